"""
patchpush - FastAPI Application Entry Point
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from patchpush.routers import config, patch
from patchpush.services.config_manager import ConfigManager
from patchpush.services.errors import GitHubAPIError, PatchPushError

logger = logging.getLogger("patchpush")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown logic"""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("[Backend] Starting patchpush...")
    config_manager = ConfigManager.get_instance()
    logger.info("[Backend] ConfigManager initialized (%s)", config_manager.config_file)
    if not config_manager.get_config()["github"].get("token"):
        logger.warning("[Backend] No GitHub token configured; requests must supply one")

    yield
    logger.info("[Backend] Shutting down patchpush...")


app = FastAPI(
    title="patchpush",
    description="Apply unified diffs to GitHub repositories through the REST API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(patch.router, prefix="/api/patch", tags=["patch"])
app.include_router(config.router, prefix="/api/config", tags=["config"])


@app.exception_handler(PatchPushError)
async def patchpush_error_handler(request: Request, exc: PatchPushError) -> JSONResponse:
    status_code = exc.status_code
    if status_code is None or (isinstance(exc, GitHubAPIError) and status_code < 400):
        status_code = 502  # no usable status from GitHub
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(asyncio.TimeoutError)
async def timeout_error_handler(request: Request, exc: asyncio.TimeoutError) -> JSONResponse:
    return JSONResponse(
        status_code=504,
        content={"error": "TIMEOUT", "message": "Operation timed out; no further changes were attempted"},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "patchpush"}


def run():
    import uvicorn

    server = ConfigManager.get_instance().get_config().get("server", {})
    uvicorn.run(app, host=server.get("host", "0.0.0.0"), port=server.get("port", 8000))


if __name__ == "__main__":
    run()
