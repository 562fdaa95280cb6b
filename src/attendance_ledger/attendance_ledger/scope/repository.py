from __future__ import annotations

from typing import Protocol, Sequence

from .model import TeachingGrant


class GrantRepository(Protocol):
    """Read-only access to teaching grants (grant editing lives elsewhere)."""

    def list_for_faculty(self, faculty_id: str) -> Sequence[TeachingGrant]:
        raise NotImplementedError
