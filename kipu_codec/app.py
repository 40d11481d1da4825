"""
KIPU Evaluation Codec service.

Run with: uvicorn kipu_codec.app:app --reload --port 8000
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .field_types import FIELD_TYPE_REGISTRY
from .logging_config import setup_logging
from .routes import router as evaluations_router

logger = logging.getLogger("kipu-codec")


# ============================================================================
# FASTAPI APPLICATION
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    setup_logging()
    logger.info("=" * 60)
    logger.info("  KIPU EVALUATION CODEC STARTING")
    logger.info("=" * 60)
    logger.info(f"Field types registered: {len(FIELD_TYPE_REGISTRY)}")
    logger.info("REST Endpoints:")
    logger.info("  Health Check:     http://localhost:8000/health")
    logger.info("  Adapt:            http://localhost:8000/evaluations/adapt")
    logger.info("  Parse:            http://localhost:8000/evaluations/parse")
    logger.info("  Categorize:       http://localhost:8000/evaluations/categorize")
    logger.info("=" * 60)
    yield
    logger.info("=" * 60)
    logger.info("  KIPU EVALUATION CODEC SHUTTING DOWN")
    logger.info("=" * 60)


# Create FastAPI app
app = FastAPI(
    title="KIPU Evaluation Codec",
    description="Normalization, display parsing and submission categorization for KIPU evaluations",
    version=__version__,
    lifespan=lifespan
)

# CORS middleware for REST endpoints
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(evaluations_router)


@app.get("/health")
async def health():
    """Simple health check endpoint."""
    logger.debug("Health check")
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}
