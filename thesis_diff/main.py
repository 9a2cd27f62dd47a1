"""
Thesis Diff Service - Main Application

FastAPI application for comparing submitted thesis versions.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from thesis_diff.api.routes import router as api_router
from thesis_diff.core.config import get_settings
from thesis_diff.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

settings = get_settings()

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "application_starting",
        version=settings.api_version,
        diff_line_limit=settings.diff_line_limit,
        text_extraction_enabled=settings.text_extraction_enabled
    )
    yield
    logger.info("application_shutting_down")


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="""
    Compares two submitted versions of a thesis.

    * **Capability check**: whether a text diff is possible, and why not
    * **Line diff**: LCS-aligned context, addition and removal rows
    * **Word diff**: intra-line highlighting of added and removed words
    * **PDF fallback**: side-by-side PDF view with coarse change markers

    Send extracted text to `/api/v1/diff`, or upload two PDFs to
    `/api/v1/compare` and poll the returned job.
    """,
    lifespan=lifespan,
    debug=settings.debug
)

if settings.enable_cors:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=API_PREFIX, tags=["Version Comparison"])


@app.get("/")
async def root():
    """Service name, version and entry points."""
    return {
        "service": settings.api_title,
        "version": settings.api_version,
        "status": "running",
        "endpoints": {
            "diff": f"{API_PREFIX}/diff",
            "compare": f"{API_PREFIX}/compare",
            "health": f"{API_PREFIX}/health",
        },
        "diff_line_limit": settings.diff_line_limit,
    }


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Comparison failed unexpectedly.", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "thesis_diff.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
