"""
FastAPI Application: entry point.

Run with ``uvicorn escrow.main:app``.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from escrow.config import settings
from escrow.database import init_db
from escrow.exceptions import EscrowError, InternalFailure
from escrow.routes import router
from escrow.services.escrow import EscrowService, set_escrow_service
from escrow.services.file_storage import DiskFileStorage
from escrow.store import build_store

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hook."""
    logger.info(f"🚀 Starting Model Escrow API v{VERSION} ({settings.storage_backend} store)")
    store = build_store(settings)
    if settings.storage_backend == "sql":
        await init_db()
        logger.info("✅ Database ready")

    files = DiskFileStorage(settings.upload_dir)
    files.ensure_dir()
    set_escrow_service(EscrowService(store, files))

    yield

    set_escrow_service(None)
    await store.close()
    logger.info("👋 Shutdown complete")


app = FastAPI(
    title="Model Escrow API",
    description=(
        "Escrow workflow for 3D model commissions: deposit, upload, "
        "dual approval and payment release."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EscrowError)
async def escrow_error_handler(request: Request, exc: EscrowError) -> JSONResponse:
    if isinstance(exc, InternalFailure):
        logger.error("Internal failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc)})


app.include_router(router, prefix="/api")


@app.get("/", include_in_schema=False)
async def root():
    return {
        "service": "Model Escrow API",
        "version": VERSION,
        "docs": "/docs",
    }
