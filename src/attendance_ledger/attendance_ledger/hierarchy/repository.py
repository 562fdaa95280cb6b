from __future__ import annotations

from typing import Protocol, Sequence

from ..scope.model import BatchSelector
from .model import Student


class HierarchyRepository(Protocol):
    """Read-only view of the branch -> batch directory.

    Lookups are live: nothing here is cached, so batches created after a
    grant was issued show up on the next call.
    """

    def list_batches(self, branch_id: str) -> Sequence[str]:
        raise NotImplementedError

    def list_subjects(self) -> Sequence[str]:
        raise NotImplementedError

    def list_students(self, branch_id: str, batch: BatchSelector) -> Sequence[Student]:
        raise NotImplementedError
