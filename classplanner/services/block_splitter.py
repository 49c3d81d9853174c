"""
Request generation: turn weekly subject hours into schedulable blocks.

Durations are counted in half-hour units. A block is at most 3 units
(1.5 hours) and 1-hour blocks are preferred.
"""

import logging
from typing import Iterable, List

from classplanner.services.entities import BlockRequest, SectionInfo, SubjectInfo

logger = logging.getLogger(__name__)

MAX_BLOCK_UNITS = 3

# Fixed splits kept for compatibility with existing timetables.
# 6 stays three 1-hour meetings rather than two 1.5-hour ones.
_SPECIAL_SPLITS = {
    6: [2, 2, 2],
    7: [2, 2, 3],
}

_SMALL_SPLITS = {
    1: [1],  # 30-minute fallback
    2: [2],
    3: [3],
    4: [2, 2],
    5: [2, 3],
}


def hours_to_units(hours: float) -> int:
    """Convert weekly hours to half-hour units; rejects non half-hour values."""
    units = hours * 2
    if units != int(units):
        raise ValueError(f"Duration {hours}h is not a whole number of half hours")
    return int(units)


def split_duration(total_units: int) -> List[int]:
    """
    Split ``total_units`` half-hour units into block lengths.

    >>> split_duration(6)
    [2, 2, 2]
    >>> split_duration(9)
    [3, 2, 2, 2]
    """
    if total_units <= 0:
        return []
    if total_units in _SPECIAL_SPLITS:
        return list(_SPECIAL_SPLITS[total_units])

    blocks: List[int] = []
    remaining = total_units
    while remaining > 0:
        if remaining in _SMALL_SPLITS:
            blocks.extend(_SMALL_SPLITS[remaining])
            remaining = 0
        elif remaining - 3 >= 2 and (remaining - 3) % 2 == 0:
            blocks.append(3)
            remaining -= 3
        else:
            blocks.append(2)
            remaining -= 2
    return blocks


def build_requests_for(section: SectionInfo, subject: SubjectInfo) -> List[BlockRequest]:
    """All block requests for one (section, subject) pair, in block order."""
    units = hours_to_units(subject.duration_per_week)
    blocks = split_duration(units)
    logger.debug(
        "Subject %s: %sh = %d units -> %s",
        subject.name, subject.duration_per_week, units, blocks,
    )
    return [
        BlockRequest(
            section=section,
            subject=subject,
            required_capacity=section.student_count,
            room_type=subject.required_room_type,
            priority=subject.priority,
            duration_index=index,
            block_length=length,
        )
        for index, length in enumerate(blocks)
    ]


def generate_requests(
    sections: Iterable[SectionInfo],
    subjects: Iterable[SubjectInfo],
) -> List[BlockRequest]:
    """
    Build block requests for every (section, subject) pair.

    The result is ordered by priority (desc) then block length (desc);
    the sort is stable so ties keep generation order.
    """
    subjects = list(subjects)
    requests: List[BlockRequest] = []
    for section in sections:
        for subject in subjects:
            requests.extend(build_requests_for(section, subject))

    requests.sort(key=lambda r: (-r.priority, -r.block_length))
    logger.info("Generated %d block requests", len(requests))
    return requests
