from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from ..scope.model import AllInBranch, BatchSelector
from .model import AttendanceEvent
from .repository import AttendanceRepository

_COLUMNS = """
    event_id, on_date, student_id, subject_id, branch_id, batch_id,
    lecture_slot, is_present, author_id, author_name, written_at
"""


def _to_event(r: dict) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=r["event_id"],
        on_date=r["on_date"],
        student_id=r["student_id"],
        subject_id=r["subject_id"],
        branch_id=r["branch_id"],
        batch_id=r["batch_id"],
        lecture_slot=int(r.get("lecture_slot") or 1),
        is_present=bool(r["is_present"]),
        author_id=r["author_id"],
        author_name=r.get("author_name"),
        written_at=int(r["written_at"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def query_by_scope(
        self,
        *,
        branch_id: str,
        batch: BatchSelector,
        subject_id: Optional[str],
        on_date: Optional[date] = None,
        student_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[AttendanceEvent]:
        clauses = ["branch_id=%s"]
        params: list[object] = [branch_id]

        if not isinstance(batch, AllInBranch):
            clauses.append("batch_id=%s")
            params.append(batch.batch_id)
        if subject_id is not None:
            clauses.append("subject_id=%s")
            params.append(subject_id)
        if on_date is not None:
            clauses.append("on_date=%s")
            params.append(on_date)
        if student_ids is not None:
            if not student_ids:
                return []
            clauses.append(f"student_id IN ({in_clause(student_ids)})")
            params.extend(student_ids)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events
                WHERE {where}
                ORDER BY on_date ASC, lecture_slot ASC, student_id ASC
                """,
                tuple(params),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def query_by_student(self, student_id: str) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events
                WHERE student_id=%s
                ORDER BY on_date ASC, lecture_slot ASC
                """,
                (student_id,),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def batch_upsert(self, events: Sequence[AttendanceEvent]) -> None:
        if not events:
            return

        # One transaction for the whole batch (db_cursor commits or rolls back).
        # The written_at guard only stops a skewed or delayed older write from
        # clobbering a newer row; choosing a winner across dedup keys is left
        # to the reader. written_at is assigned last because MySQL evaluates
        # the SET list left to right. Row aliases need MySQL 8.0.19+.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO attendance_events(
                    event_id, on_date, student_id, subject_id, branch_id, batch_id,
                    lecture_slot, is_present, author_id, author_name, written_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s) AS new
                ON DUPLICATE KEY UPDATE
                    batch_id=IF(new.written_at >= attendance_events.written_at, new.batch_id, attendance_events.batch_id),
                    branch_id=IF(new.written_at >= attendance_events.written_at, new.branch_id, attendance_events.branch_id),
                    is_present=IF(new.written_at >= attendance_events.written_at, new.is_present, attendance_events.is_present),
                    author_id=IF(new.written_at >= attendance_events.written_at, new.author_id, attendance_events.author_id),
                    author_name=IF(new.written_at >= attendance_events.written_at, new.author_name, attendance_events.author_name),
                    written_at=GREATEST(attendance_events.written_at, new.written_at)
                """,
                [
                    (
                        e.event_id,
                        e.on_date,
                        e.student_id,
                        e.subject_id,
                        e.branch_id,
                        e.batch_id,
                        int(e.lecture_slot),
                        1 if e.is_present else 0,
                        e.author_id,
                        e.author_name,
                        int(e.written_at),
                    )
                    for e in events
                ],
            )
