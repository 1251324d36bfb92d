"""HTTP routes for the documents module."""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import (
    APIRouter,
    Body,
    Depends,
    File,
    Form,
    HTTPException,
    Path,
    Query,
    UploadFile,
    status,
)
from fastapi.responses import StreamingResponse

from docstore_api.api.deps import SettingsDep, get_documents_service
from docstore_api.common.downloads import build_content_disposition
from docstore_api.common.exceptions import validation_detail
from docstore_api.common.schema import ErrorMessage
from docstore_api.settings import Settings

from .exceptions import (
    DocumentFileMissingError,
    DocumentNotFoundError,
    DocumentPermissionDeniedError,
    DocumentPersistenceError,
    DocumentValidationError,
    StorageDeleteError,
    StorageWriteError,
)
from .schemas import DocumentDeleteResponse, DocumentOut, DocumentPage
from .service import DocumentsService

router = APIRouter(prefix="/documents", tags=["documents"])

DocumentPath = Annotated[
    UUID,
    Path(
        description="Document identifier",
    ),
]
DocumentsServiceDep = Annotated[DocumentsService, Depends(get_documents_service)]

_GENERIC_SERVER_ERROR = "Internal server error"

_VALIDATION_RESPONSE = {
    status.HTTP_400_BAD_REQUEST: {
        "model": ErrorMessage,
        "description": "Input failed validation; `detail.errors` lists messages per field.",
    }
}
_FORBIDDEN_RESPONSE = {
    status.HTTP_403_FORBIDDEN: {
        "model": ErrorMessage,
        "description": "The authorization policy refused the action.",
    }
}
_NOT_FOUND_RESPONSE = {
    status.HTTP_404_NOT_FOUND: {
        "model": ErrorMessage,
        "description": "Document not found or already deleted.",
    }
}


def _validation_error(exc: DocumentValidationError) -> HTTPException:
    return HTTPException(status.HTTP_400_BAD_REQUEST, detail=validation_detail(exc.errors))


def _forbidden(exc: DocumentPermissionDeniedError) -> HTTPException:
    return HTTPException(status.HTTP_403_FORBIDDEN, detail=str(exc))


def _server_error(exc: Exception, settings: Settings) -> HTTPException:
    detail = str(exc) if settings.is_development else _GENERIC_SERVER_ERROR
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.get(
    "",
    response_model=DocumentPage,
    status_code=status.HTTP_200_OK,
    summary="List documents",
    responses={**_VALIDATION_RESPONSE, **_FORBIDDEN_RESPONSE},
)
async def list_documents(
    service: DocumentsServiceDep,
    page: Annotated[int | None, Query(description="1-based page number.")] = None,
    per_page: Annotated[
        int | None, Query(description="Items per page (1-100, default 15).")
    ] = None,
    category: Annotated[str | None, Query(description="Exact category filter.")] = None,
    document_status: Annotated[
        str | None,
        Query(alias="status", description="active, inactive or processing."),
    ] = None,
) -> DocumentPage:
    try:
        return await service.list_documents(
            page=page,
            per_page=per_page,
            category=category,
            status=document_status,
        )
    except DocumentValidationError as exc:
        raise _validation_error(exc) from exc
    except DocumentPermissionDeniedError as exc:
        raise _forbidden(exc) from exc


@router.post(
    "",
    response_model=DocumentOut,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a document",
    responses={
        **_VALIDATION_RESPONSE,
        **_FORBIDDEN_RESPONSE,
        status.HTTP_500_INTERNAL_SERVER_ERROR: {
            "model": ErrorMessage,
            "description": "The file or its metadata could not be stored.",
        },
    },
)
async def create_document(
    service: DocumentsServiceDep,
    settings: SettingsDep,
    *,
    file: Annotated[UploadFile | None, File(description="File to upload.")] = None,
    title: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    category: Annotated[str | None, Form()] = None,
    uploaded_by: Annotated[str | None, Form()] = None,
) -> DocumentOut:
    try:
        return await service.create_document(
            title=title,
            upload=file,
            description=description,
            category=category,
            uploaded_by=uploaded_by,
        )
    except DocumentValidationError as exc:
        raise _validation_error(exc) from exc
    except DocumentPermissionDeniedError as exc:
        raise _forbidden(exc) from exc
    except (StorageWriteError, DocumentPersistenceError) as exc:
        raise _server_error(exc, settings) from exc


@router.get(
    "/{document_id}",
    response_model=DocumentOut,
    status_code=status.HTTP_200_OK,
    summary="Retrieve document metadata",
    responses={**_FORBIDDEN_RESPONSE, **_NOT_FOUND_RESPONSE},
)
async def read_document(
    document_id: DocumentPath,
    service: DocumentsServiceDep,
) -> DocumentOut:
    try:
        return await service.get_document(document_id=document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DocumentPermissionDeniedError as exc:
        raise _forbidden(exc) from exc


@router.put(
    "/{document_id}",
    response_model=DocumentOut,
    status_code=status.HTTP_200_OK,
    summary="Update document metadata",
    responses={**_VALIDATION_RESPONSE, **_FORBIDDEN_RESPONSE, **_NOT_FOUND_RESPONSE},
)
async def update_document(
    document_id: DocumentPath,
    service: DocumentsServiceDep,
    changes: Annotated[
        dict[str, Any],
        Body(
            description="Any of title, description, category, status; other keys are ignored.",
            examples=[{"title": "Quarterly report", "status": "inactive"}],
        ),
    ],
) -> DocumentOut:
    try:
        return await service.update_document(document_id=document_id, changes=changes)
    except DocumentNotFoundError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DocumentValidationError as exc:
        raise _validation_error(exc) from exc
    except DocumentPermissionDeniedError as exc:
        raise _forbidden(exc) from exc


@router.delete(
    "/{document_id}",
    response_model=DocumentDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Soft delete a document",
    responses={
        **_FORBIDDEN_RESPONSE,
        status.HTTP_404_NOT_FOUND: {
            "model": ErrorMessage,
            "description": "Document not found, or its file is missing when remove_file is set.",
        },
        status.HTTP_500_INTERNAL_SERVER_ERROR: {
            "model": ErrorMessage,
            "description": "Removing the stored file or saving the deletion failed.",
        },
    },
)
async def delete_document(
    document_id: DocumentPath,
    service: DocumentsServiceDep,
    settings: SettingsDep,
    remove_file: Annotated[
        bool,
        Query(description="Also remove the stored file before soft deleting."),
    ] = False,
) -> DocumentDeleteResponse:
    try:
        await service.delete_document(document_id=document_id, remove_file=remove_file)
    except (DocumentNotFoundError, DocumentFileMissingError) as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DocumentPermissionDeniedError as exc:
        raise _forbidden(exc) from exc
    except (StorageDeleteError, DocumentPersistenceError) as exc:
        raise _server_error(exc, settings) from exc
    return DocumentDeleteResponse(message="Document deleted successfully")


@router.get(
    "/{document_id}/download",
    summary="Download a stored document",
    response_class=StreamingResponse,
    responses={
        status.HTTP_200_OK: {
            "content": {"application/octet-stream": {}},
            "description": "The stored file bytes with their recorded content type.",
        },
        **_FORBIDDEN_RESPONSE,
        status.HTTP_404_NOT_FOUND: {
            "model": ErrorMessage,
            "description": "Document is missing or its stored file is unavailable.",
        },
    },
)
async def download_document(
    document_id: DocumentPath,
    service: DocumentsServiceDep,
) -> StreamingResponse:
    try:
        download = await service.download_document(document_id=document_id)
    except (DocumentNotFoundError, DocumentFileMissingError) as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DocumentPermissionDeniedError as exc:
        raise _forbidden(exc) from exc

    response = StreamingResponse(download.stream)
    # Stored MIME type verbatim, no charset suffix.
    response.headers["Content-Type"] = download.media_type
    response.headers["Content-Length"] = str(download.file_size)
    response.headers["Content-Disposition"] = build_content_disposition(download.file_name)
    return response


__all__ = ["router"]
