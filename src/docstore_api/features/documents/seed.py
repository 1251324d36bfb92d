"""Sample documents for local development databases."""

from __future__ import annotations

import io
import logging

from starlette.datastructures import Headers, UploadFile

from docstore_api.common.logging import log_context

from .models import DocumentStatus
from .schemas import DocumentOut
from .service import DocumentsService

logger = logging.getLogger(__name__)

SEED_UPLOADER = "seeder"

SAMPLE_DOCUMENTS: tuple[dict[str, str], ...] = (
    {
        "title": "Project Requirements Document",
        "description": "Requirements document for the document store project.",
        "file_name": "project_requirements.pdf",
        "mime_type": "application/pdf",
        "category": "documentation",
        "status": "active",
    },
    {
        "title": "API Design Specification",
        "description": "Endpoint design notes for the document management API.",
        "file_name": "api_design_spec.docx",
        "mime_type": (
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        ),
        "category": "specification",
        "status": "active",
    },
    {
        "title": "Database Schema Diagram",
        "description": "Diagram of the documents table and its indexes.",
        "file_name": "database_schema.png",
        "mime_type": "image/png",
        "category": "diagram",
        "status": "active",
    },
    {
        "title": "User Manual Draft",
        "description": "Draft user manual for the document management API.",
        "file_name": "user_manual_draft.txt",
        "mime_type": "text/plain",
        "category": "manual",
        "status": "processing",
    },
    {
        "title": "Test Data Sample",
        "description": "CSV rows used to exercise list filters.",
        "file_name": "test_data.csv",
        "mime_type": "text/csv",
        "category": "data",
        "status": "active",
    },
    {
        "title": "Architecture Overview",
        "description": "High-level architecture presentation.",
        "file_name": "architecture_overview.pptx",
        "mime_type": (
            "application/vnd.openxmlformats-officedocument.presentationml.presentation"
        ),
        "category": "presentation",
        "status": "active",
    },
    {
        "title": "Configuration Settings",
        "description": "JSON configuration file for application settings.",
        "file_name": "config.json",
        "mime_type": "application/json",
        "category": "configuration",
        "status": "active",
    },
    {
        "title": "Legacy Document",
        "description": "Old document kept for reference.",
        "file_name": "legacy_doc.doc",
        "mime_type": "application/msword",
        "category": "archive",
        "status": "inactive",
    },
    {
        "title": "Temporary Upload",
        "description": "Temporary file upload for testing purposes.",
        "file_name": "temp_file.tmp",
        "mime_type": "application/octet-stream",
        "category": "temporary",
        "status": "inactive",
    },
    {
        "title": "Large Dataset",
        "description": "Spreadsheet with a dataset for analysis.",
        "file_name": "large_dataset.xlsx",
        "mime_type": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "category": "data",
        "status": "active",
    },
)


def _placeholder_upload(sample: dict[str, str]) -> UploadFile:
    payload = f"Sample content for {sample['file_name']}\n".encode()
    return UploadFile(
        file=io.BytesIO(payload),
        size=len(payload),
        filename=sample["file_name"],
        headers=Headers({"content-type": sample["mime_type"]}),
    )


async def seed_documents(service: DocumentsService) -> list[DocumentOut]:
    """Create every sample document with a small placeholder file.

    Records go through the regular create path, so each one has a stored blob.
    Non-active samples are moved to their status afterwards.
    """

    created: list[DocumentOut] = []
    for sample in SAMPLE_DOCUMENTS:
        document = await service.create_document(
            title=sample["title"],
            upload=_placeholder_upload(sample),
            description=sample["description"],
            category=sample["category"],
            uploaded_by=SEED_UPLOADER,
        )
        if sample["status"] != DocumentStatus.ACTIVE.value:
            document = await service.update_document(
                document_id=document.id,
                changes={"status": sample["status"]},
            )
        created.append(document)

    logger.info("document.seed.success", extra=log_context(count=len(created)))
    return created


__all__ = ["SAMPLE_DOCUMENTS", "SEED_UPLOADER", "seed_documents"]
