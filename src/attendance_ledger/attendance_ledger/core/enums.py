from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles supplied by the identity provider."""

    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"


class Standing(str, Enum):
    """Attendance standing derived from the percentage."""

    AT_RISK = "AT_RISK"
    ON_TRACK = "ON_TRACK"


class WizardStep(str, Enum):
    """Steps of the class selection wizard."""

    BRANCH = "BRANCH"
    BATCH = "BATCH"
    SUBJECT = "SUBJECT"
    DASHBOARD = "DASHBOARD"
