from __future__ import annotations

import csv
import io
import logging
from functools import wraps

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import parse_iso_date
from ..core.constants import STORE_RETRY_AFTER_SECONDS
from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictAcknowledgmentRequired,
    StoreUnavailable,
    ValidationError,
)
from ..scope.model import format_batch_selector, parse_batch_selector
from ..users.model import Actor
from .model import CommitRequest

logger = logging.getLogger(__name__)

EXPORT_FIELDS = ["date", "lecture", "student_name", "roll_no", "status", "marked_by"]


def register(app: Flask, container) -> None:
    service = container.attendance_service

    def current_actor() -> Actor:
        try:
            role = Role(session.get("role"))
        except ValueError:
            raise AuthorizationError("Unknown role")
        return Actor(
            user_id=str(session["user_id"]),
            display_name=session.get("name") or str(session["user_id"]),
            role=role,
        )

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session or not session.get("role"):
                return jsonify({"success": False, "message": "Login required"}), 401
            return view(*args, **kwargs)

        return wrapper

    @app.errorhandler(ConflictAcknowledgmentRequired)
    def _conflict(e: ConflictAcknowledgmentRequired):
        return jsonify({"success": False, "message": str(e), "conflict": e.report.as_dict()}), 409

    @app.errorhandler(ValidationError)
    def _invalid(e: ValidationError):
        return jsonify({"success": False, "message": str(e)}), 400

    @app.errorhandler(AuthorizationError)
    def _forbidden(e: AuthorizationError):
        return jsonify({"success": False, "message": str(e)}), 403

    @app.errorhandler(StoreUnavailable)
    def _unavailable(e: StoreUnavailable):
        resp = jsonify({"success": False, "message": str(e), "retryable": True})
        resp.status_code = 503
        resp.headers["Retry-After"] = str(STORE_RETRY_AFTER_SECONDS)
        return resp

    def _json_flag(value, field_name: str) -> bool:
        if not isinstance(value, bool):
            raise ValidationError(f"{field_name} must be true or false")
        return value

    def _commit_request() -> CommitRequest:
        data = request.get_json(silent=True) or {}
        marks = data.get("marks") or {}
        if not isinstance(marks, dict):
            raise ValidationError("marks must be an object of student_id -> bool")
        slots = data.get("slots")
        if slots is None:
            slots = [1]
        if not isinstance(slots, list):
            raise ValidationError("slots must be a list")

        return CommitRequest(
            branch_id=str(data.get("branch_id") or ""),
            batch=parse_batch_selector(str(data.get("batch_id") or "")),
            subject_id=str(data.get("subject_id") or ""),
            on_date=parse_iso_date(str(data.get("date") or "")),
            slots=slots,
            marks={str(k): _json_flag(v, f"marks.{k}") for k, v in marks.items()},
        )

    def _slots_arg() -> list[str]:
        raw = request.args.get("slots") or "1"
        return [s for s in raw.split(",") if s.strip()]

    @app.route("/api/scope", methods=["GET"], endpoint="api_scope")
    @login_required
    def api_scope():
        scope = service.resolve_scope(current_actor())
        return jsonify(
            {
                "success": True,
                "empty": scope.is_empty,
                "branches": scope.as_dict(),
                "batch_options": {
                    b: [format_batch_selector(o) for o in scope.batch_options(b)] for b in scope.branch_ids()
                },
            }
        )

    @app.route("/api/attendance/preflight", methods=["POST"], endpoint="api_attendance_preflight")
    @login_required
    def api_attendance_preflight():
        result = service.preflight_commit(current_actor(), _commit_request())
        return jsonify(
            {
                "success": True,
                "clear": result.clear,
                "conflict": result.conflict.as_dict() if result.conflict else None,
            }
        )

    @app.route("/api/attendance/commit", methods=["POST"], endpoint="api_attendance_commit")
    @login_required
    def api_attendance_commit():
        data = request.get_json(silent=True) or {}
        acknowledge = _json_flag(data.get("acknowledge_conflict", False), "acknowledge_conflict")
        result = service.commit(current_actor(), _commit_request(), acknowledge_conflict=acknowledge)
        return jsonify(
            {
                "success": True,
                "events_written": result.events_written,
                "slots": list(result.slots),
                "overrode_author_id": result.overrode_author_id,
            }
        )

    @app.route("/api/students/<student_id>/history", methods=["GET"], endpoint="api_student_history")
    @login_required
    def api_student_history(student_id: str):
        events = service.get_history(current_actor(), student_id)
        return jsonify({"success": True, "events": [e.as_dict() for e in events]})

    @app.route("/api/students/<student_id>/dashboard", methods=["GET"], endpoint="api_student_dashboard")
    @login_required
    def api_student_dashboard(student_id: str):
        stats = service.get_student_dashboard(current_actor(), student_id)
        return jsonify({"success": True, "subjects": {sid: s.as_dict() for sid, s in stats.items()}})

    @app.route(
        "/api/classes/<branch_id>/<batch_id>/<subject_id>/snapshot",
        methods=["GET"],
        endpoint="api_class_snapshot",
    )
    @login_required
    def api_class_snapshot(branch_id: str, batch_id: str, subject_id: str):
        events = service.get_class_snapshot(
            current_actor(),
            branch_id=branch_id,
            batch=parse_batch_selector(batch_id),
            subject_id=subject_id,
            on_date=parse_iso_date(request.args.get("date") or ""),
        )
        return jsonify({"success": True, "events": [e.as_dict() for e in events]})

    @app.route(
        "/api/classes/<branch_id>/<batch_id>/<subject_id>/sheet",
        methods=["GET"],
        endpoint="api_class_sheet",
    )
    @login_required
    def api_class_sheet(branch_id: str, batch_id: str, subject_id: str):
        rows = service.get_marking_sheet(
            current_actor(),
            branch_id=branch_id,
            batch=parse_batch_selector(batch_id),
            subject_id=subject_id,
            on_date=parse_iso_date(request.args.get("date") or ""),
            slots=_slots_arg(),
        )
        return jsonify(
            {
                "success": True,
                "rows": [
                    {
                        "student_id": r.student_id,
                        "display_name": r.display_name,
                        "roll_no": r.roll_label,
                        "batch_id": r.batch_id,
                        "is_present": r.is_present,
                        "marked_by": r.marked_by,
                    }
                    for r in rows
                ],
            }
        )

    @app.route(
        "/api/classes/<branch_id>/<batch_id>/<subject_id>/stats",
        methods=["GET"],
        endpoint="api_class_stats",
    )
    @login_required
    def api_class_stats(branch_id: str, batch_id: str, subject_id: str):
        stats = service.get_subject_stats(
            current_actor(),
            branch_id=branch_id,
            batch=parse_batch_selector(batch_id),
            subject_id=subject_id,
        )
        return jsonify(
            {
                "success": True,
                "overall": stats.overall.as_dict(),
                "students": [
                    {
                        "student_id": row.student_id,
                        "display_name": row.display_name,
                        "roll_no": row.roll_label,
                        **row.stats.as_dict(),
                    }
                    for row in stats.students
                ],
            }
        )

    @app.route(
        "/api/classes/<branch_id>/<batch_id>/<subject_id>/export.csv",
        methods=["GET"],
        endpoint="api_class_export",
    )
    @login_required
    def api_class_export(branch_id: str, batch_id: str, subject_id: str):
        rows = service.export_class_history(
            current_actor(),
            branch_id=branch_id,
            batch=parse_batch_selector(batch_id),
            subject_id=subject_id,
        )
        if not rows:
            raise ValidationError("No attendance recorded for this class yet")

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=EXPORT_FIELDS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        filename = f"attendance_{subject_id}_{branch_id}_{batch_id}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
