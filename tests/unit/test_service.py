"""Tests for the documents service."""

from __future__ import annotations

from pathlib import Path
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from docstore_api.features.documents.exceptions import (
    DocumentFileMissingError,
    DocumentNotFoundError,
    DocumentPermissionDeniedError,
    DocumentPersistenceError,
    DocumentTooLargeError,
    DocumentValidationError,
    StorageDeleteError,
    StorageWriteError,
)
from docstore_api.features.documents.models import Document, DocumentStatus
from docstore_api.features.documents.policy import DocumentAction
from docstore_api.features.documents.service import DocumentsService
from docstore_api.features.documents.storage import DocumentStorage
from docstore_api.settings import Settings
from tests.utils import make_upload

pytestmark = pytest.mark.asyncio


def _stored_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return [path for path in root.rglob("*") if path.is_file()]


async def _count_documents(session: AsyncSession) -> int:
    stmt = select(func.count()).select_from(Document)
    return int((await session.execute(stmt)).scalar_one())


async def _create(service: DocumentsService, title: str = "Report", **kwargs) -> UUID:
    payload = kwargs.pop("payload", b"%PDF-1.4 body")
    record = await service.create_document(
        title=title,
        upload=make_upload(
            payload,
            filename=kwargs.pop("filename", "report.pdf"),
            content_type=None,
        ),
        **kwargs,
    )
    return record.id


class DenyingPolicy:
    """Refuse every action."""

    def __init__(self) -> None:
        self.calls: list[DocumentAction] = []

    async def authorize(self, action, *, document_id=None) -> None:
        self.calls.append(action)
        raise DocumentPermissionDeniedError(action=action.value, document_id=document_id)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def test_create_document_stores_file_and_metadata(
    service: DocumentsService,
    storage: DocumentStorage,
    session: AsyncSession,
) -> None:
    """Uploads persist bytes on disk and a matching record."""

    record = await service.create_document(
        title="  Quarterly report ",
        upload=make_upload(b"%PDF-1.4 numbers", filename="Q1.PDF"),
        description="Numbers for Q1",
        uploaded_by="finance",
    )

    assert record.title == "Quarterly report"
    assert record.description == "Numbers for Q1"
    assert record.category == "general"
    assert record.status == DocumentStatus.ACTIVE.value
    assert record.file_name == "Q1.PDF"
    assert record.file_size == len(b"%PDF-1.4 numbers")
    assert record.mime_type == "application/pdf"
    assert record.uploaded_by == "finance"
    assert record.download_url == f"http://testserver/api/documents/{record.id}/download"

    document = await session.get(Document, record.id)
    assert document is not None
    assert document.file_path.startswith("documents/")
    assert document.file_path.endswith(".pdf")
    assert storage.path_for(document.file_path).read_bytes() == b"%PDF-1.4 numbers"


async def test_create_document_validation_has_no_side_effects(
    service: DocumentsService,
    settings: Settings,
    session: AsyncSession,
) -> None:
    """Invalid input reports every field and writes nothing."""

    with pytest.raises(DocumentValidationError) as excinfo:
        await service.create_document(title=None, upload=None, category="c" * 51)

    assert set(excinfo.value.errors) == {"title", "file", "category"}
    assert excinfo.value.errors["file"] == ["The file field is required."]
    assert _stored_files(settings.storage_dir) == []
    assert await _count_documents(session) == 0


async def test_create_document_rejects_empty_file(
    service: DocumentsService,
    settings: Settings,
) -> None:
    """Zero-byte uploads are rejected."""

    with pytest.raises(DocumentValidationError) as excinfo:
        await service.create_document(title="Empty", upload=make_upload(b""))

    assert "file" in excinfo.value.errors
    assert _stored_files(settings.storage_dir) == []


async def test_create_document_rejects_oversized_file(
    session: AsyncSession,
    settings: Settings,
) -> None:
    """Files above the configured limit raise DocumentTooLargeError."""

    small = settings.model_copy(update={"storage_upload_max_bytes": 8})
    service = DocumentsService(session=session, settings=small)

    with pytest.raises(DocumentTooLargeError) as excinfo:
        await service.create_document(title="Big", upload=make_upload(b"x" * 9))

    assert excinfo.value.limit == 8
    assert excinfo.value.received == 9
    assert _stored_files(settings.storage_dir) == []


async def test_create_document_storage_failure_leaves_no_record(
    service: DocumentsService,
    settings: Settings,
    session: AsyncSession,
) -> None:
    """A failed blob write never inserts metadata."""

    settings.storage_dir.mkdir(parents=True, exist_ok=True)
    (settings.storage_dir / "documents").write_bytes(b"blocking file")

    with pytest.raises(StorageWriteError):
        await service.create_document(title="Report", upload=make_upload(b"data"))

    assert await _count_documents(session) == 0


async def test_create_document_persistence_failure_removes_blob(
    service: DocumentsService,
    storage: DocumentStorage,
    session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A failed insert discards the blob that was just written."""

    taken_path = "documents/2024/01/01/taken.pdf"
    existing = Document(
        title="Existing",
        file_name="taken.pdf",
        file_path=taken_path,
        file_size=4,
        mime_type="application/pdf",
    )
    session.add(existing)
    await session.commit()

    monkeypatch.setattr(storage, "generate_path", lambda *_args, **_kwargs: taken_path)

    with pytest.raises(DocumentPersistenceError):
        await service.create_document(title="Clash", upload=make_upload(b"data"))

    assert not storage.path_for(taken_path).exists()
    assert await _count_documents(session) == 1


async def test_create_document_commit_failure_removes_blob(
    service: DocumentsService,
    settings: Settings,
    session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A failed commit discards the blob written for the new record."""

    async def _fail_commit() -> None:
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", _fail_commit)

    with pytest.raises(DocumentPersistenceError):
        await service.create_document(title="Report", upload=make_upload(b"data"))

    assert _stored_files(settings.storage_dir) == []
    assert await _count_documents(session) == 0


# ---------------------------------------------------------------------------
# List / show
# ---------------------------------------------------------------------------


async def test_list_documents_paginates_newest_first(service: DocumentsService) -> None:
    """Pages are ordered by creation time and carry page metadata."""

    for index in range(5):
        await _create(service, title=f"Doc {index}")

    first = await service.list_documents(page=1, per_page=2)
    last = await service.list_documents(page=3, per_page=2)
    beyond = await service.list_documents(page=9, per_page=2)

    assert [item.title for item in first.data] == ["Doc 4", "Doc 3"]
    assert (first.current_page, first.last_page, first.per_page, first.total) == (1, 3, 2, 5)
    assert [item.title for item in last.data] == ["Doc 0"]
    assert beyond.data == []
    assert beyond.total == 5


async def test_list_documents_defaults(service: DocumentsService) -> None:
    """An empty store returns one empty page of the default size."""

    page = await service.list_documents()

    assert page.data == []
    assert (page.current_page, page.last_page, page.per_page, page.total) == (1, 1, 15, 0)


async def test_list_documents_filters_by_category_and_status(
    service: DocumentsService,
) -> None:
    """Category and status filters combine."""

    invoice = await _create(service, title="Invoice", category="finance")
    await _create(service, title="Memo", category="hr")
    archived = await _create(service, title="Old invoice", category="finance")
    await service.update_document(document_id=archived, changes={"status": "inactive"})

    finance = await service.list_documents(category="finance")
    active_finance = await service.list_documents(category="finance", status="active")

    assert {item.title for item in finance.data} == {"Invoice", "Old invoice"}
    assert [item.id for item in active_finance.data] == [invoice]


async def test_list_documents_rejects_invalid_parameters(service: DocumentsService) -> None:
    """Out-of-range paging and unknown statuses are validation errors."""

    with pytest.raises(DocumentValidationError) as excinfo:
        await service.list_documents(per_page=500, status="archived")

    assert set(excinfo.value.errors) == {"per_page", "status"}


async def test_list_documents_excludes_soft_deleted(service: DocumentsService) -> None:
    """Soft-deleted records never appear in listings."""

    keep = await _create(service, title="Keep")
    drop = await _create(service, title="Drop")
    await service.delete_document(document_id=drop)

    page = await service.list_documents()

    assert [item.id for item in page.data] == [keep]
    assert page.total == 1


async def test_get_document_missing_raises(service: DocumentsService) -> None:
    """Unknown identifiers raise DocumentNotFoundError."""

    with pytest.raises(DocumentNotFoundError):
        await service.get_document(document_id=uuid4())


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


async def test_update_document_applies_partial_changes(
    service: DocumentsService,
    session: AsyncSession,
) -> None:
    """Only supplied fields change; file attributes are ignored."""

    document_id = await _create(service, title="Draft", description="Initial")
    before = await session.get(Document, document_id)
    assert before is not None
    original_path = before.file_path

    updated = await service.update_document(
        document_id=document_id,
        changes={
            "title": "Final",
            "status": "processing",
            "file_path": "documents/hijack.pdf",
            "file_size": 1,
        },
    )

    assert updated.title == "Final"
    assert updated.status == "processing"
    assert updated.description == "Initial"
    assert updated.file_size == len(b"%PDF-1.4 body")

    document = await session.get(Document, document_id)
    assert document is not None
    assert document.file_path == original_path


async def test_update_document_rejects_invalid_values(service: DocumentsService) -> None:
    """Nulling the title or using an unknown status is rejected."""

    document_id = await _create(service)

    with pytest.raises(DocumentValidationError) as excinfo:
        await service.update_document(
            document_id=document_id,
            changes={"title": None, "status": "archived"},
        )

    assert set(excinfo.value.errors) == {"title", "status"}


async def test_update_document_missing_raises_not_found(service: DocumentsService) -> None:
    """Unknown records are reported before the payload is validated."""

    with pytest.raises(DocumentNotFoundError):
        await service.update_document(document_id=uuid4(), changes={"title": None})


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


async def test_delete_document_soft_deletes_and_keeps_blob(
    service: DocumentsService,
    storage: DocumentStorage,
    session: AsyncSession,
) -> None:
    """Plain deletes hide the record but keep the row and file."""

    document_id = await _create(service)

    await service.delete_document(document_id=document_id)

    document = await session.get(Document, document_id)
    assert document is not None
    assert document.deleted_at is not None
    assert storage.path_for(document.file_path).exists()
    with pytest.raises(DocumentNotFoundError):
        await service.get_document(document_id=document_id)
    with pytest.raises(DocumentNotFoundError):
        await service.delete_document(document_id=document_id)


async def test_delete_document_with_remove_file_purges_blob(
    service: DocumentsService,
    storage: DocumentStorage,
    session: AsyncSession,
) -> None:
    """remove_file deletes the stored bytes before soft deleting."""

    document_id = await _create(service)
    document = await session.get(Document, document_id)
    assert document is not None

    await service.delete_document(document_id=document_id, remove_file=True)

    assert not storage.path_for(document.file_path).exists()
    assert document.deleted_at is not None


async def test_delete_document_with_missing_blob_keeps_record(
    service: DocumentsService,
    storage: DocumentStorage,
    session: AsyncSession,
) -> None:
    """A missing blob aborts remove_file deletes and leaves the record live."""

    document_id = await _create(service)
    document = await session.get(Document, document_id)
    assert document is not None
    storage.path_for(document.file_path).unlink()

    with pytest.raises(DocumentFileMissingError):
        await service.delete_document(document_id=document_id, remove_file=True)

    assert document.deleted_at is None
    assert (await service.get_document(document_id=document_id)).id == document_id


async def test_delete_document_storage_failure_keeps_record(
    service: DocumentsService,
    storage: DocumentStorage,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A failed blob removal propagates and the record stays live."""

    document_id = await _create(service)

    async def _fail(file_path: str, *, document_id=None) -> bool:
        raise StorageDeleteError(file_path=file_path, reason="denied", document_id=document_id)

    monkeypatch.setattr(storage, "delete", _fail)

    with pytest.raises(StorageDeleteError):
        await service.delete_document(document_id=document_id, remove_file=True)

    assert (await service.get_document(document_id=document_id)).id == document_id


async def test_delete_document_commit_failure_keeps_record(
    service: DocumentsService,
    session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A failed commit is reported and the record is not soft deleted."""

    document_id = await _create(service)

    async def _fail_commit() -> None:
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", _fail_commit)

    with pytest.raises(DocumentPersistenceError):
        await service.delete_document(document_id=document_id)

    assert (await service.get_document(document_id=document_id)).id == document_id


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------


async def test_download_document_streams_bytes(service: DocumentsService) -> None:
    """Downloads expose the recorded name, type and bytes."""

    document_id = await _create(service, payload=b"plain text", filename="notes.txt")

    download = await service.download_document(document_id=document_id)
    body = b"".join([chunk async for chunk in download.stream])

    assert body == b"plain text"
    assert download.file_name == "notes.txt"
    assert download.media_type == "text/plain"
    assert download.file_size == len(b"plain text")


async def test_download_document_missing_blob_raises(
    service: DocumentsService,
    storage: DocumentStorage,
    session: AsyncSession,
) -> None:
    """A record whose blob vanished is reported as missing."""

    document_id = await _create(service)
    document = await session.get(Document, document_id)
    assert document is not None
    storage.path_for(document.file_path).unlink()

    with pytest.raises(DocumentFileMissingError):
        await service.download_document(document_id=document_id)


async def test_download_document_soft_deleted_raises(service: DocumentsService) -> None:
    """Soft-deleted records cannot be downloaded."""

    document_id = await _create(service)
    await service.delete_document(document_id=document_id)

    with pytest.raises(DocumentNotFoundError):
        await service.download_document(document_id=document_id)


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


async def test_policy_refusal_blocks_side_effects(
    session: AsyncSession,
    settings: Settings,
) -> None:
    """A refusing policy stops the operation before anything is written."""

    policy = DenyingPolicy()
    service = DocumentsService(session=session, settings=settings, policy=policy)

    with pytest.raises(DocumentPermissionDeniedError):
        await service.create_document(title="Report", upload=make_upload(b"data"))
    with pytest.raises(DocumentPermissionDeniedError):
        await service.list_documents()

    assert policy.calls == [DocumentAction.CREATE, DocumentAction.LIST]
    assert _stored_files(settings.storage_dir) == []
    assert await _count_documents(session) == 0
