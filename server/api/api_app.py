"""FastAPI application entry point for the Tala retrieval API."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
from server.api.routers.DocumentRouter import document_router
from server.api.routers.FolderRouter import folder_router
from server.api.routers.SystemRouter import system_router
from services.ServiceContainer import ServiceContainer
from shared.exceptions.RetrievalErrors import RetrievalError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown."""
    app.state.logging = setup_logging()
    app.state.config = HelperConfig(logger=app.state.logging)

    # Fail fast if the API key is missing
    app.state.config.get_string_val("APP_API_KEY")

    # Wire up services
    app.state.services = ServiceContainer(helper_config=app.state.config)
    await app.state.services.boot(
        healthcheck=app.state.config.get_bool_val("BOOT_HEALTHCHECK", default=True),
    )

    app.state.logging.info("Tala retrieval API ready.", color="green")
    yield

    # Shutdown
    await app.state.services.close()
    app.state.logging.info("Tala retrieval API shut down.")


app = FastAPI(
    title="Tala Retrieval API",
    description="Document ingestion and semantic search over per-tenant vector collections.",
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RetrievalError)
async def handle_retrieval_error(request: Request, exc: RetrievalError) -> JSONResponse:
    """Answer pipeline errors with their structured detail and mapped status."""
    request.app.state.logging.error("%s: %s", exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


app.include_router(document_router)
app.include_router(folder_router)
app.include_router(system_router)


# Server Start
if __name__ == "__main__":
    # start server
    import uvicorn
    port = int(os.getenv("APP_PORT", "8000"))
    logging.info(f"Starting Tala retrieval API v{app_version} from root dir: {os.getenv('ROOT_DIR', os.getcwd())} on port {port}...")
    uvicorn.run(app, host="0.0.0.0", port=port)
