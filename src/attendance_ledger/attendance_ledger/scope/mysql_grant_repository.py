from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import TeachingGrant, parse_batch_selector
from .repository import GrantRepository


class MySQLGrantRepository(GrantRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_faculty(self, faculty_id: str) -> Sequence[TeachingGrant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT grant_id, faculty_id, subject_id, branch_id, batch_id
                FROM teaching_grants
                WHERE faculty_id=%s
                ORDER BY grant_id
                """,
                (faculty_id,),
            )
            return [
                TeachingGrant(
                    grant_id=str(r["grant_id"]),
                    faculty_id=r["faculty_id"],
                    subject_id=r["subject_id"],
                    branch_id=r["branch_id"],
                    batch=parse_batch_selector(r["batch_id"]),
                )
                for r in fetchall(cur)
            ]
