"""Authorization hook consulted before every document operation."""

from __future__ import annotations

from enum import Enum
from typing import Protocol
from uuid import UUID


class DocumentAction(str, Enum):
    """Operations an authorization policy can allow or refuse."""

    LIST = "list"
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    DOWNLOAD = "download"


class AuthorizationPolicy(Protocol):
    """Decide whether the current caller may perform ``action``.

    Implementations raise ``DocumentPermissionDeniedError`` to refuse.
    """

    async def authorize(
        self,
        action: DocumentAction,
        *,
        document_id: UUID | None = None,
    ) -> None: ...


class AllowAllPolicy:
    """Default deployment policy: every action is permitted."""

    async def authorize(
        self,
        action: DocumentAction,
        *,
        document_id: UUID | None = None,
    ) -> None:
        return None


def get_authorization_policy() -> AuthorizationPolicy:
    """FastAPI dependency returning the active policy (override to restrict)."""

    return AllowAllPolicy()


__all__ = [
    "AllowAllPolicy",
    "AuthorizationPolicy",
    "DocumentAction",
    "get_authorization_policy",
]
