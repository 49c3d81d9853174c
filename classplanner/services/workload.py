"""
Post-allocation workload hook.

The engine hands its committed placements to a balancer before they are
persisted. The default balancer only measures load.
"""

import logging
from collections import Counter
from typing import Dict, List, Protocol, Sequence

from classplanner.services.entities import Placement, TeacherInfo

logger = logging.getLogger(__name__)


class WorkloadBalancer(Protocol):
    def balance(self, placements: List[Placement], teachers: Sequence[TeacherInfo]) -> List[Placement]:
        ...


def teacher_workload(placements: Sequence[Placement], teachers: Sequence[TeacherInfo]) -> Dict[int, int]:
    """Placement count per teacher id, zero for teachers with nothing placed."""
    load = {teacher.id: 0 for teacher in teachers}
    load.update(Counter(p.teacher.id for p in placements))
    return load


class IdentityBalancer:
    """Returns placements unchanged."""

    def balance(self, placements: List[Placement], teachers: Sequence[TeacherInfo]) -> List[Placement]:
        logger.debug("Teacher workload: %s", teacher_workload(placements, teachers))
        return placements
