"""
===============================================================================
CurrentUser Provider Protocol & Defaults
-------------------------------------------------------------------------------
Purpose:
    Tiny abstraction for obtaining the calling user. Session lookup and
    authentication live in the host application; services only see the
    resolved CurrentUser.
===============================================================================
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Protocol

ROLE_ADMIN = "admin"
ROLE_WORKER = "worker"


@dataclass(frozen=True)
class CurrentUser:
    id: int
    name: str
    role: str = ROLE_WORKER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class CurrentUserProvider(Protocol):
    """Protocol for providers that yield the active CurrentUser (None if logged out)."""
    def get_current_user(self) -> Optional[CurrentUser]: ...


class StaticCurrentUserProvider:
    """Returns a fixed user; used by scripts, tests and single-user tools."""

    def __init__(self, user: Optional[CurrentUser]) -> None:
        self._user = user

    def set_user(self, user: Optional[CurrentUser]) -> None:
        self._user = user

    def get_current_user(self) -> Optional[CurrentUser]:
        return self._user
