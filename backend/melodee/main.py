"""Melodee ingest API - review and promotion of staged albums."""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from melodee import __version__
from melodee.api import api_router
from melodee.logging_config import setup_logging
from melodee.services.errors import PipelineError

# Initialize logging
setup_logging()


app = FastAPI(
    title="Melodee Ingest",
    description="Inbound scanning, staging review and promotion",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    """Map domain errors to their HTTP status."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
def root():
    """Root endpoint - API info."""
    return {
        "name": "Melodee Ingest",
        "version": __version__,
        "docs": "/docs",
    }
