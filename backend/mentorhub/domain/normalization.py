"""
Interval normalization for a day's time blocks.

``normalize_blocks`` assumes the validator's invariants already hold (no
overlap between blocks of different types) and only merges same-type runs.
"""

from __future__ import annotations

from typing import Hashable, Iterable, Optional

from ..core.enums import BlockType
from .time_blocks import TimeBlock


def _merge_key(block: TimeBlock) -> Hashable:
    # AVAILABLE blocks with different capacities stay separate
    if block.type == BlockType.AVAILABLE:
        return (block.type, block.capacity)
    return (block.type, None)


def _sort_key(block: TimeBlock) -> tuple[int, int]:
    return (block.start_minute, block.end_minute)


def normalize_blocks(blocks: Iterable[TimeBlock]) -> list[TimeBlock]:
    """
    Sort blocks and merge adjacent or overlapping blocks of the same type.

    Sorting is by start then end. A single left-to-right sweep keeps one open
    run per merge key; a block touching or overlapping its run extends it
    (start = min, end = max), otherwise the run is closed. Capacity is only
    kept on AVAILABLE blocks.

    The result is sorted, idempotent, and has no two same-type entries that
    touch or overlap.
    """
    ordered = sorted(blocks, key=_sort_key)
    open_runs: dict[Hashable, TimeBlock] = {}
    closed: list[TimeBlock] = []

    for block in ordered:
        if block.type != BlockType.AVAILABLE and block.max_bookings is not None:
            block = TimeBlock(block.start_minute, block.end_minute, block.type)
        key = _merge_key(block)
        current = open_runs.get(key)
        if current is not None and block.start_minute <= current.end_minute:
            open_runs[key] = TimeBlock(
                current.start_minute,
                max(current.end_minute, block.end_minute),
                current.type,
                current.max_bookings,
            )
            continue
        if current is not None:
            closed.append(current)
        open_runs[key] = block

    closed.extend(open_runs.values())
    return sorted(closed, key=_sort_key)


def _subtract(
    segments: list[tuple[int, int]], cut_start: int, cut_end: int
) -> list[tuple[int, int]]:
    remaining: list[tuple[int, int]] = []
    for start, end in segments:
        if end <= cut_start or start >= cut_end:
            remaining.append((start, end))
            continue
        if start < cut_start:
            remaining.append((start, cut_start))
        if end > cut_end:
            remaining.append((cut_end, end))
    return [(s, e) for s, e in remaining if e > s]


def apply_blocked_times(
    available_blocks: Iterable[TimeBlock],
    blocked_blocks: Iterable[TimeBlock],
    blocking_types: Optional[Iterable[BlockType]] = None,
) -> list[TimeBlock]:
    """
    Split AVAILABLE blocks around blocked intervals.

    Non-AVAILABLE entries in ``available_blocks`` pass through unchanged.
    By default every non-AVAILABLE type cuts availability.

    Returns:
        Normalized block list
    """
    cutting = set(blocking_types) if blocking_types is not None else {
        BlockType.BLOCKED,
        BlockType.BREAK,
        BlockType.BUFFER,
    }
    cuts = [b for b in blocked_blocks if b.type in cutting and b.end_minute > b.start_minute]

    result: list[TimeBlock] = []
    for block in available_blocks:
        if block.type != BlockType.AVAILABLE:
            result.append(block)
            continue
        segments = [(block.start_minute, block.end_minute)]
        for cut in cuts:
            segments = _subtract(segments, cut.start_minute, cut.end_minute)
            if not segments:
                break
        result.extend(
            TimeBlock(start, end, BlockType.AVAILABLE, block.max_bookings) for start, end in segments
        )
    return normalize_blocks(result)


def bookable_coverage(blocks: Iterable[TimeBlock]) -> list[TimeBlock]:
    """AVAILABLE intervals of a day with every other block type cut out."""
    block_list = list(blocks)
    available = [b for b in block_list if b.type == BlockType.AVAILABLE]
    others = [b for b in block_list if b.type != BlockType.AVAILABLE]
    return apply_blocked_times(available, others)
