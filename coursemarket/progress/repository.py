# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Progress persistence on Cassandra."""

from typing import TYPE_CHECKING
from uuid import UUID

from coursemarket.progress.models import Progress


if TYPE_CHECKING:
    from cassandra.cluster import Session


class ProgressRepository:
    """Reads and set-updates of course progress rows."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._get_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_progress
            WHERE user_id = ? AND course_id = ?
        """)
        self._add_completed = self.session.prepare(f"""
            UPDATE {self.keyspace}.course_progress
            SET completed_lectures = completed_lectures + ?
            WHERE user_id = ? AND course_id = ?
        """)
        self._delete_progress = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.course_progress
            WHERE user_id = ? AND course_id = ?
        """)

    async def get(self, user_id: UUID, course_id: UUID) -> Progress | None:
        """Progress row for the pair, if any."""
        result = await self.session.aexecute(self._get_progress, [user_id, course_id])
        row = result.one()
        return Progress.from_row(row) if row else None

    async def add_completed_lecture(
        self, user_id: UUID, course_id: UUID, lecture_id: UUID
    ) -> None:
        """Add one lecture id to the completed set."""
        await self.session.aexecute(
            self._add_completed, [{lecture_id}, user_id, course_id]
        )

    async def delete(self, user_id: UUID, course_id: UUID) -> None:
        """Drop the progress row for the pair."""
        await self.session.aexecute(self._delete_progress, [user_id, course_id])
