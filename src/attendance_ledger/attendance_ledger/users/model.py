from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Actor:
    """The caller as attributed by the identity provider.

    Authorship is keyed by ``user_id``; ``display_name`` is for display only.
    """

    user_id: str
    display_name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
