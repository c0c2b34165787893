"""SQL-backed task source used by the leave conflict gate."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.common.constants import TERMINAL_TASK_STATUSES
from workforce.tasks.models import Task, TaskAssignment


class SqlTaskSource:
    """Answers "which unfinished tasks overlap this window?" for one employee."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_overlapping_tasks(
        self,
        employee_id: uuid.UUID,
        start: date,
        end: date,
    ) -> Sequence[Task]:
        # Two inclusive ranges overlap when each starts before the other ends.
        stmt = (
            select(Task)
            .join(TaskAssignment, TaskAssignment.task_id == Task.id)
            .where(
                TaskAssignment.employee_id == employee_id,
                Task.start_date <= end,
                Task.end_date >= start,
                Task.status.notin_(list(TERMINAL_TASK_STATUSES)),
            )
            .order_by(Task.start_date, Task.job_number)
        )
        result = await self.session.execute(stmt)
        return result.scalars().unique().all()
