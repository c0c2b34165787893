"""Task conflict gate.

Advisory while a request is pending; a hard block on approval.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date

from workforce.common.constants import TERMINAL_TASK_STATUSES
from workforce.leave.ports import TaskSource
from workforce.leave.schemas import TaskBrief, TaskConflictReport

logger = logging.getLogger(__name__)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Inclusive on both ends."""
    return a_start <= b_end and b_start <= a_end


class ConflictGate:
    def __init__(self, tasks: TaskSource) -> None:
        self.tasks = tasks

    async def check(
        self,
        employee_id: uuid.UUID,
        start: date,
        end: date,
    ) -> TaskConflictReport:
        found = await self.tasks.find_overlapping_tasks(employee_id, start, end)
        conflicting = [
            TaskBrief.model_validate(task)
            for task in found
            if task.status not in TERMINAL_TASK_STATUSES
            and ranges_overlap(task.start_date, task.end_date, start, end)
        ]
        if conflicting:
            logger.debug(
                "Employee %s has %d task(s) overlapping %s..%s",
                employee_id, len(conflicting), start, end,
            )
        return TaskConflictReport(
            has_conflicts=bool(conflicting),
            conflict_count=len(conflicting),
            conflicting_tasks=conflicting,
        )
