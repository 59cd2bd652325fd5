"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import maps
from domain.errors import ResolverError
from settings import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Create app
app = FastAPI(
    title="Place Resolver API",
    description="Resolve destination names to coordinates near an origin",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(maps.router, prefix="/maps", tags=["maps"])


@app.exception_handler(ResolverError)
async def resolver_error_handler(request: Request, exc: ResolverError):
    """Report pipeline errors with their status category."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.category, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": {"type": exc.category, "message": exc.message},
        },
    )


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Place Resolver API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    logger.info("Maps resolver endpoint: http://localhost:%s/maps/resolve-place", settings.PORT)
    uvicorn.run("api.main:app", host="0.0.0.0", port=settings.PORT)
