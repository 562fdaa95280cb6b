from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Union

from ..core.constants import ALL_BATCHES_TOKEN


@dataclass(frozen=True)
class SpecificBatch:
    batch_id: str

    def __str__(self) -> str:
        return self.batch_id


@dataclass(frozen=True)
class AllInBranch:
    """Every batch currently under the branch, resolved at read time."""

    def __str__(self) -> str:
        return ALL_BATCHES_TOKEN


BatchSelector = Union[SpecificBatch, AllInBranch]

ALL_BATCHES = AllInBranch()


def parse_batch_selector(value: str) -> BatchSelector:
    """Boundary parser: the only place the ``ALL`` literal is interpreted."""
    value = (value or "").strip()
    if value == ALL_BATCHES_TOKEN:
        return ALL_BATCHES
    return SpecificBatch(value)


def format_batch_selector(batch: BatchSelector) -> str:
    return str(batch)


@dataclass(frozen=True)
class TeachingGrant:
    """A faculty member's permission to record attendance."""

    grant_id: str
    faculty_id: str
    subject_id: str
    branch_id: str
    batch: BatchSelector


@dataclass(frozen=True)
class ResolvedScope:
    """Concrete teaching scope of one faculty member.

    ``branches`` maps branch -> subject -> batch ids, wildcards already
    expanded. ``wildcard_subjects`` remembers which subjects were granted for
    the whole branch so "all batches combined" can be offered and authorized.
    """

    faculty_id: str
    branches: Mapping[str, Mapping[str, frozenset[str]]] = field(default_factory=dict)
    wildcard_subjects: Mapping[str, frozenset[str]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.branches

    def branch_ids(self) -> list[str]:
        return sorted(self.branches)

    def batch_options(self, branch_id: str) -> list[BatchSelector]:
        subjects = self.branches.get(branch_id, {})
        batch_ids = sorted({b for batches in subjects.values() for b in batches})
        options: list[BatchSelector] = [SpecificBatch(b) for b in batch_ids]
        if self.wildcard_subjects.get(branch_id):
            options.insert(0, ALL_BATCHES)
        return options

    def subject_options(self, branch_id: str, batch: BatchSelector) -> list[str]:
        if isinstance(batch, AllInBranch):
            return sorted(self.wildcard_subjects.get(branch_id, frozenset()))
        subjects = self.branches.get(branch_id, {})
        return sorted(s for s, batches in subjects.items() if batch.batch_id in batches)

    def allows(self, branch_id: str, batch: BatchSelector, subject_id: str) -> bool:
        return subject_id in self.subject_options(branch_id, batch)

    def batches_for(self, branch_id: str, subject_id: str) -> frozenset[str]:
        return self.branches.get(branch_id, {}).get(subject_id, frozenset())

    def as_dict(self) -> dict:
        return {
            branch_id: {subject_id: sorted(batches) for subject_id, batches in sorted(subjects.items())}
            for branch_id, subjects in sorted(self.branches.items())
        }
