"""Table boundary detection and record segmentation.

Linearized PDF text has no reliable end-of-record marker, only a recurring
start marker: a line with the record token followed by a line with the region
token. Blocks run from one start marker to the next and are capped so that a
missed marker cannot swallow the rest of the document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from amenity_parser.common.errors import BoundaryNotFoundError
from amenity_parser.common.models import RecordBlock

DEFAULT_MAX_BLOCK_LINES = 30
DEFAULT_MIN_BLOCK_LINES = 5


@dataclass(frozen=True)
class StartSignature:
    record_token: re.Pattern
    region_token: re.Pattern

    @classmethod
    def from_config(cls, cfg: dict) -> "StartSignature":
        return cls(
            record_token=re.compile(cfg["record_token"], re.IGNORECASE),
            region_token=re.compile(cfg["region_token"], re.IGNORECASE),
        )

    def matches_at(self, lines: Sequence[str], index: int) -> bool:
        if index < 0 or index + 1 >= len(lines):
            return False
        return bool(self.record_token.search(lines[index]) and self.region_token.search(lines[index + 1]))


@dataclass(frozen=True)
class SegmentationResult:
    boundary: int
    blocks: list[RecordBlock]
    discarded: list[RecordBlock]


def find_table_boundary(lines: Sequence[str], signature: StartSignature) -> int:
    for index in range(len(lines) - 1):
        if signature.matches_at(lines, index):
            return index
    raise BoundaryNotFoundError("Start-of-table signature not found")


def partition_blocks(
    lines: Sequence[str],
    signature: StartSignature,
    *,
    max_block_lines: int = DEFAULT_MAX_BLOCK_LINES,
) -> list[RecordBlock]:
    """Partition every line from the table boundary onward into blocks."""
    boundary = find_table_boundary(lines, signature)

    blocks: list[RecordBlock] = []
    start = boundary
    started_on_signature = True
    index = boundary + 1
    while index < len(lines):
        # A block opened by a signature owns its region line; that line never starts a new block.
        owned = started_on_signature and index == start + 1
        recurs = not owned and signature.matches_at(lines, index)
        if recurs or index - start >= max_block_lines:
            blocks.append(RecordBlock(start_index=start, lines=tuple(lines[start:index])))
            start = index
            started_on_signature = recurs
        index += 1
    blocks.append(RecordBlock(start_index=start, lines=tuple(lines[start:])))
    return blocks


def segment_records(
    lines: Sequence[str],
    signature: StartSignature,
    *,
    max_block_lines: int = DEFAULT_MAX_BLOCK_LINES,
    min_block_lines: int = DEFAULT_MIN_BLOCK_LINES,
) -> SegmentationResult:
    partition = partition_blocks(lines, signature, max_block_lines=max_block_lines)
    kept = [block for block in partition if len(block) >= min_block_lines]
    discarded = [block for block in partition if len(block) < min_block_lines]
    return SegmentationResult(boundary=partition[0].start_index, blocks=kept, discarded=discarded)
