import copy
from pathlib import Path

import pytest

from amenity_parser.common.errors import ConfigError
from amenity_parser.common.fs import read_yaml
from amenity_parser.common.schema import validate_pipeline_config

BASE_CONFIG = read_yaml(Path("config/pipeline.yml"))


def _config() -> dict:
    return copy.deepcopy(BASE_CONFIG)


def test_validate_pipeline_config_accepts_repo_config():
    validated = validate_pipeline_config(_config())
    assert validated["source"]["name"] == "volgograd_np_objects"


def test_validate_pipeline_config_rejects_unknown_key_by_default():
    bad = _config()
    bad["unexpected"] = True
    with pytest.raises(ConfigError):
        validate_pipeline_config(bad)


def test_validate_pipeline_config_allows_unknown_when_enabled():
    okay = _config()
    okay["extra"] = 1
    validate_pipeline_config(okay, allow_unknown=True)


def test_validate_pipeline_config_rejects_missing_section_key():
    bad = _config()
    del bad["source"]["page_url"]
    with pytest.raises(ConfigError):
        validate_pipeline_config(bad)


def test_validate_pipeline_config_rejects_bad_regex():
    bad = _config()
    bad["extraction"]["address_tokens"].append("ул(")
    with pytest.raises(ConfigError):
        validate_pipeline_config(bad)


def test_validate_pipeline_config_rejects_unknown_budget_unit():
    bad = _config()
    bad["extraction"]["budget"]["column_unit"] = "billion"
    with pytest.raises(ConfigError):
        validate_pipeline_config(bad)


def test_validate_pipeline_config_rejects_inverted_block_limits():
    bad = _config()
    bad["extraction"]["min_block_lines"] = 40
    with pytest.raises(ConfigError):
        validate_pipeline_config(bad)


def test_validate_pipeline_config_rejects_district_without_coordinates():
    bad = _config()
    bad["districts"]["known"]["Заречный"] = {"lat": 48.7}
    with pytest.raises(ConfigError):
        validate_pipeline_config(bad)


def test_validate_pipeline_config_accepts_missing_retry_section():
    okay = _config()
    okay["source"].pop("retry", None)
    validate_pipeline_config(okay)


@pytest.mark.parametrize(
    "retry",
    [
        {"max_attempts": 0},
        {"max_attempts": "3"},
        {"max_wait": -1},
        {"backoff": 2},
        [3],
    ],
)
def test_validate_pipeline_config_rejects_bad_retry(retry):
    bad = _config()
    bad["source"]["retry"] = retry
    with pytest.raises(ConfigError):
        validate_pipeline_config(bad)
