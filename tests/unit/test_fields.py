from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from amenity_parser.common.config_loader import load_pipeline_config
from amenity_parser.common.districts import DistrictTable
from amenity_parser.common.models import Category, Status
from amenity_parser.pipeline.fields import (
    build_default_strategies,
    clean_address,
    extract_dates,
    extract_fields,
    parse_budget,
)
from amenity_parser.pipeline.settings import ExtractionSettings


@pytest.fixture(scope="module")
def cfg() -> dict:
    return load_pipeline_config(Path("config"))


@pytest.fixture(scope="module")
def settings(cfg) -> ExtractionSettings:
    return ExtractionSettings.from_config(cfg["extraction"])


@pytest.fixture(scope="module")
def strategies(cfg, settings):
    return build_default_strategies(settings, DistrictTable.from_config(cfg["districts"]))


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("59,00 млн руб", Decimal("59000000")),
        ("500 тыс руб", Decimal("500000")),
        ("1234", Decimal("1234")),
        ("59,00", Decimal("59000000")),
        ("125 000 000 руб.", Decimal("125000000")),
        ("Стоимость: 12,5 млн", Decimal("12500000")),
    ],
)
def test_parse_budget_scales_by_unit(settings, line, expected):
    assert parse_budget(line, settings.budget) == expected


@pytest.mark.parametrize("line", ["2024", "2025", "12", "ул. Мира, 15", "15.01.2024", "Квартал 95"])
def test_parse_budget_rejects_years_row_numbers_and_text(settings, line):
    assert parse_budget(line, settings.budget) is None


def test_extract_dates_reinterprets_as_iso():
    assert extract_dates("срок 15.03.2024") == ["2024-03-15"]
    assert extract_dates("01.06.2025 - 01.10.2025") == ["2025-06-01", "2025-10-01"]
    assert extract_dates("31.02.2024") == []


def test_single_date_is_used_for_start_and_end(settings, strategies):
    fields = extract_fields(["Сквер у вокзала", "15.03.2024"], strategies, settings)
    assert fields["dates"] == ("2024-03-15", "2024-03-15")


def test_category_falls_back_to_other(settings, strategies):
    fields = extract_fields(["Общественная территория", "г.Волгоград", "Территория у школы № 5"], strategies, settings)
    assert fields["category"] is Category.OTHER
    assert fields["status"] is Status.ACTIVE


def test_category_uses_first_keyword_in_priority_order(settings, strategies):
    fields = extract_fields(["Сквер у парка", "ул. Мира, 1"], strategies, settings)
    assert fields["category"] is Category.PARK


def test_clean_address_strips_labels():
    assert clean_address("Адрес: ул. Мира, 15") == "ул. Мира, 15"
    assert clean_address("Общественная территория, сквер по ул. Мира") == "сквер по ул. Мира"


def test_scenario_line_sequence_fields(settings, strategies):
    lines = [
        "Общественная территория, сквер по ул. Мира",
        "г.Волгоград",
        "Центральный район",
        "ООО СтройГруп",
        "15.01.2024",
        "59,00",
    ]
    fields = extract_fields(lines, strategies, settings)

    assert "сквер по ул. Мира" in fields["name"]
    assert fields["district"] == "Центральный"
    assert "ООО" in fields["contractor"]
    assert fields["budget"] == Decimal("59000000")
    assert fields["dates"][0] == "2024-01-15"
    assert fields["region"] == "г.Волгоград"
    assert "customer" not in fields


def test_one_line_may_feed_several_fields(settings, strategies):
    fields = extract_fields(["Сквер Памяти", "ул. Мира, Центральный район"], strategies, settings)
    assert fields["address"] == "ул. Мира, Центральный район"
    assert fields["district"] == "Центральный"


def test_customer_and_contractor_markers(settings, strategies):
    lines = ["Парк Победы", "Администрация Волгограда", "МБУ Комбинат благоустройства", "АО Волгоградстрой"]
    fields = extract_fields(lines, strategies, settings)

    assert fields["customer"] == "Администрация Волгограда"
    assert fields["contractor"] == "АО Волгоградстрой"


def test_description_is_residual_text(settings, strategies):
    lines = [
        "Общественная территория",
        "г.Волгоград",
        "Сквер Дружбы",
        "Устройство пешеходных дорожек и освещения",
        "СМР",
    ]
    fields = extract_fields(lines, strategies, settings)

    assert fields["name"] == "Сквер Дружбы"
    assert fields["description"] == "Устройство пешеходных дорожек и освещения"
    assert fields["status"] is Status.UNDER_CONSTRUCTION


def test_photos_only_from_literal_urls(settings, strategies):
    lines = ["Сквер Победы", "фото: https://example.org/img/skver.jpg", "Площадка для отдыха"]
    fields = extract_fields(lines, strategies, settings)

    assert fields["photos"] == ("https://example.org/img/skver.jpg",)
    assert fields["has_photo_hint"] is True


def test_missing_fields_stay_absent(settings, strategies):
    fields = extract_fields(["12", "2025"], strategies, settings)
    assert "name" not in fields
    assert "address" not in fields
    assert "budget" not in fields
    assert "dates" not in fields
