"""Health and collection listing."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from server.models.responses import CollectionsResponse, HealthResponse
from shared.dependencies.auth import verify_api_key

system_router = APIRouter(prefix="/api")


@system_router.get("/health", tags=["System"])
async def handle_health(request: Request) -> JSONResponse:
    services = request.app.state.services
    return JSONResponse(content=HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        vector_store=services.rag_client.get_engine_name(),
        embeddings=services.embed_client.get_engine_name(),
    ).model_dump())


@system_router.get("/collections", dependencies=[Depends(verify_api_key)], tags=["System"])
async def handle_collections(request: Request) -> JSONResponse:
    names = await request.app.state.services.rag_client.do_get_collections()
    return JSONResponse(content=CollectionsResponse(collections=names).model_dump())
