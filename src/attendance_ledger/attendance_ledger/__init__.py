"""Attendance Ledger package.

Feature modules (hierarchy, scope, attendance, ...) follow a layered layout:
frozen dataclass models, Protocol repositories with MySQL adapters, service
use cases and a thin Flask controller.
"""
