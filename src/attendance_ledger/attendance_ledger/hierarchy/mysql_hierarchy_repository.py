from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from ..scope.model import AllInBranch, BatchSelector
from .model import Student, roll_sort_key
from .repository import HierarchyRepository


class MySQLHierarchyRepository(HierarchyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_batches(self, branch_id: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT batch_id FROM batches WHERE branch_id=%s ORDER BY batch_id",
                (branch_id,),
            )
            return [r["batch_id"] for r in fetchall(cur)]

    def list_subjects(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT subject_id FROM subjects ORDER BY subject_id")
            return [r["subject_id"] for r in fetchall(cur)]

    def list_students(self, branch_id: str, batch: BatchSelector) -> Sequence[Student]:
        clauses = ["branch_id=%s"]
        params: list[object] = [branch_id]
        if not isinstance(batch, AllInBranch):
            clauses.append("batch_id=%s")
            params.append(batch.batch_id)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT student_id, display_name, branch_id, batch_id, roll_no, enrollment_id
                FROM students
                WHERE {where}
                """,
                tuple(params),
            )
            students = [
                Student(
                    student_id=r["student_id"],
                    display_name=r["display_name"],
                    branch_id=r["branch_id"],
                    batch_id=r["batch_id"],
                    roll_no=r.get("roll_no"),
                    enrollment_id=r.get("enrollment_id"),
                )
                for r in fetchall(cur)
            ]
            return sorted(students, key=roll_sort_key)
