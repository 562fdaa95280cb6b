from __future__ import annotations

from dataclasses import dataclass

from .attendance.conflicts import ConflictDetector
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .common.clock import WriteClock
from .core.constants import AT_RISK_THRESHOLD, DEFAULT_STORE_TIMEOUT_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .hierarchy.mysql_hierarchy_repository import MySQLHierarchyRepository
from .scope.mysql_grant_repository import MySQLGrantRepository
from .scope.resolver import AssignmentResolver


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    attendance_repo: MySQLAttendanceRepository
    hierarchy_repo: MySQLHierarchyRepository
    grants_repo: MySQLGrantRepository

    resolver: AssignmentResolver
    attendance_service: AttendanceService


def build_container(*, db_config: dict, at_risk_threshold: int = AT_RISK_THRESHOLD) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        connect_timeout=int(db_config.get("connect_timeout", DEFAULT_STORE_TIMEOUT_SECONDS)),
    )
    conn = DatabaseConnection.get_instance(config)

    attendance_repo = MySQLAttendanceRepository(conn)
    hierarchy_repo = MySQLHierarchyRepository(conn)
    grants_repo = MySQLGrantRepository(conn)

    resolver = AssignmentResolver(grants_repo, hierarchy_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        hierarchy_repo,
        resolver,
        detector=ConflictDetector(attendance_repo),
        clock=WriteClock(),
        at_risk_threshold=at_risk_threshold,
    )

    return Container(
        conn=conn,
        attendance_repo=attendance_repo,
        hierarchy_repo=hierarchy_repo,
        grants_repo=grants_repo,
        resolver=resolver,
        attendance_service=attendance_service,
    )
