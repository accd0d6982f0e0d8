"""
carebook API Server - HTTP surface for support-record derivation.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
from datetime import datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.attendance_router import router as attendance_router
from api.response_models import HealthResponse
from carebook import __version__, config
from carebook.observability import CorrelationIdMiddleware, configure_logging

logger = logging.getLogger(__name__)

app = FastAPI(
    title="carebook API",
    description="Derives billing/support records from child day-care attendance",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(attendance_router, prefix="/api")


@app.get("/api/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__, timestamp=datetime.now().isoformat())


def main(host: str | None = None, port: int | None = None) -> None:
    configure_logging(config.LOG_LEVEL, config.LOG_JSON)
    host = host or config.API_HOST
    port = port or config.API_PORT
    logger.info("Starting carebook API on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
