"""Role-based authorization decisions.

These functions are pure: they look only at the role (and owner id) they are
given and never touch storage. The request layer calls them before any
mutation and turns a denial into a 403.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from .models.user import ROLE_ADMIN, ROLE_SUPERADMIN, ROLE_USER

if TYPE_CHECKING:
    from .security import Principal

ROLE_LEVELS = {
    ROLE_USER: 0,
    ROLE_ADMIN: 1,
    ROLE_SUPERADMIN: 2,
}


def authorize(role: str | None, required: str) -> bool:
    """Return True when `role` is at or above the `required` level."""

    if role not in ROLE_LEVELS:
        return False
    return ROLE_LEVELS[role] >= ROLE_LEVELS[required]


def is_admin(role: str | None) -> bool:
    return authorize(role, ROLE_ADMIN)


def may_access_owned(principal: "Principal", owner_id: int) -> bool:
    """Owners may touch their own rows; admins may touch anyone's."""

    return principal.user_id == owner_id or is_admin(principal.role)
