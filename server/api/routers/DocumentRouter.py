"""Document router: upload, semantic search and deletion."""

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from server.models.requests import DeleteDocumentRequest, SearchRequest
from server.models.responses import DeleteDocumentResponse
from shared.dependencies.auth import verify_api_key

document_router = APIRouter(prefix="/api/documents")


@document_router.post(
    "/upload",
    dependencies=[Depends(verify_api_key)],
    tags=["Documents"],
)
async def handle_upload(
    request: Request,
    document: UploadFile = File(...),
    owner_id: str = Form(...),
    is_admin: bool = Form(False),
    folder_id: str | None = Form(None),
) -> JSONResponse:
    """Extract, chunk, embed and store an uploaded document.

    Args:
        request (Request): The incoming FastAPI request (carries app state).
        document (UploadFile): The uploaded file.
        owner_id (str): Tenant id of the uploader.
        is_admin (bool): Store as shared admin knowledge.
        folder_id (str | None): Optional folder tag.

    Returns:
        JSONResponse: The ingestion result.

    Raises:
        HTTPException: 413 if the file is too large, 415 if its type is not accepted.
    """
    state = request.app.state
    max_bytes = state.config.get_int_val("UPLOAD_MAX_BYTES", default=10 * 1024 * 1024, minimum=1)
    media_type = document.content_type or "application/octet-stream"
    if not state.services.extractor.is_supported(media_type):
        raise HTTPException(
            status_code=415,
            detail="Invalid file type. Only PDF, Word, Excel, and text files are allowed.",
        )
    buffer = await document.read(max_bytes + 1)
    if len(buffer) > max_bytes:
        raise HTTPException(status_code=413, detail=f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")

    result = await state.services.ingestion.ingest(
        buffer=buffer,
        media_type=media_type,
        filename=document.filename or "upload",
        owner_id=owner_id,
        is_admin=is_admin,
        folder_id=folder_id or None,
    )
    return JSONResponse(content=result.model_dump())


@document_router.post(
    "/search",
    dependencies=[Depends(verify_api_key)],
    tags=["Documents"],
)
async def handle_search(request: Request, body: SearchRequest) -> JSONResponse:
    """Rank stored chunks against a natural-language query.

    A tenant searches its private collection plus the admin collection,
    an admin the admin collection only.
    """
    result = await request.app.state.services.retrieval.search(
        query=body.query,
        owner_id=body.owner_id,
        is_admin=body.is_admin,
        limit=body.limit,
        score_threshold=body.score_threshold,
        folder_id=body.folder_id,
    )
    return JSONResponse(content=result.model_dump())


@document_router.delete(
    "/{document_id}",
    dependencies=[Depends(verify_api_key)],
    tags=["Documents"],
)
async def handle_delete(request: Request, document_id: str, body: DeleteDocumentRequest) -> JSONResponse:
    """Delete every stored chunk of a document from the requester's collection."""
    deleted = await request.app.state.services.ingestion.delete_document(
        document_id=document_id,
        owner_id=body.owner_id,
        is_admin=body.is_admin,
    )
    if deleted == 0:
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found.")
    return JSONResponse(content=DeleteDocumentResponse(document_id=document_id, points_deleted=deleted).model_dump())
