"""Example: drive the attendance service directly (no Flask).

Controllers are a thin layer; the ledger rules live in the services.
Requires the schema and demo seed (scripts/init_db.py, scripts/seed_db.py).
"""

import importlib
from datetime import date

from config import get_settings_module

from src.attendance_ledger.attendance_ledger.attendance.model import CommitRequest
from src.attendance_ledger.attendance_ledger.container import build_container
from src.attendance_ledger.attendance_ledger.core.enums import Role
from src.attendance_ledger.attendance_ledger.core.exceptions import ConflictAcknowledgmentRequired
from src.attendance_ledger.attendance_ledger.scope.model import ALL_BATCHES
from src.attendance_ledger.attendance_ledger.users.model import Actor


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    svc = container.attendance_service

    faculty = Actor(user_id="fac-001", display_name="Demo Faculty", role=Role.FACULTY)
    print(svc.resolve_scope(faculty).as_dict())

    req = CommitRequest(
        branch_id="cse",
        batch=ALL_BATCHES,
        subject_id="math",
        on_date=date.today(),
        slots=[1],
        marks={"stu-002": False},
    )
    try:
        print(svc.commit(faculty, req))
    except ConflictAcknowledgmentRequired as e:
        print("conflict:", e.report.as_dict())
        print(svc.commit(faculty, req, acknowledge_conflict=True))

    stats = svc.get_subject_stats(faculty, branch_id="cse", batch=ALL_BATCHES, subject_id="math")
    print(stats.overall)


if __name__ == "__main__":
    main()
