"""Service factories used by API routers.

Routers import per-request service constructors from here only.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docstore_api.db.session import get_session
from docstore_api.features.documents.policy import AuthorizationPolicy, get_authorization_policy
from docstore_api.settings import Settings, get_settings

SessionDep = Annotated[AsyncSession, Depends(get_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
PolicyDep = Annotated[AuthorizationPolicy, Depends(get_authorization_policy)]


def get_document_storage(settings: SettingsDep):
    from docstore_api.features.documents.storage import DocumentStorage

    return DocumentStorage(settings.storage_dir)


def get_documents_service(
    session: SessionDep,
    settings: SettingsDep,
    policy: PolicyDep,
    storage=Depends(get_document_storage),
):
    from docstore_api.features.documents.service import DocumentsService

    return DocumentsService(session=session, settings=settings, storage=storage, policy=policy)


__all__ = [
    "PolicyDep",
    "SessionDep",
    "SettingsDep",
    "get_document_storage",
    "get_documents_service",
]
