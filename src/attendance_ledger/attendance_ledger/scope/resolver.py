from __future__ import annotations

import logging

from ..hierarchy.repository import HierarchyRepository
from .model import AllInBranch, ResolvedScope
from .repository import GrantRepository

logger = logging.getLogger(__name__)


class AssignmentResolver:
    """Expands a faculty member's teaching grants into a concrete scope.

    Wildcard grants are expanded against the live batch list on every call;
    nothing is cached between resolutions.
    """

    def __init__(self, grants: GrantRepository, hierarchy: HierarchyRepository):
        self._grants = grants
        self._hierarchy = hierarchy

    def resolve(self, faculty_id: str) -> ResolvedScope:
        grants = self._grants.list_for_faculty(faculty_id)

        branches: dict[str, dict[str, set[str]]] = {}
        wildcards: dict[str, set[str]] = {}
        live_batches: dict[str, list[str]] = {}

        for g in grants:
            subjects = branches.setdefault(g.branch_id, {})
            batches = subjects.setdefault(g.subject_id, set())

            if isinstance(g.batch, AllInBranch):
                if g.branch_id not in live_batches:
                    live_batches[g.branch_id] = list(self._hierarchy.list_batches(g.branch_id))
                batches.update(live_batches[g.branch_id])
                wildcards.setdefault(g.branch_id, set()).add(g.subject_id)
            else:
                batches.add(g.batch.batch_id)

        if not grants:
            logger.debug("faculty %s has no teaching grants", faculty_id)

        return ResolvedScope(
            faculty_id=faculty_id,
            branches={b: {s: frozenset(ids) for s, ids in subs.items()} for b, subs in branches.items()},
            wildcard_subjects={b: frozenset(subs) for b, subs in wildcards.items()},
        )
