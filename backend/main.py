"""
FastAPI application entry point.

Sets up the FastAPI application with logging, CORS, the pipeline error
handler and the v1 routers.
"""

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables first
load_dotenv()

from core.config.settings import get_settings
from shared.errors import IllustrationError
from shared.utils.logging import configure_logging

from .api.v1 import router as api_router
from .errors import illustration_error_handler

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title=settings.app_name,
    description="Generates illustrations for articles through a fallback chain of image providers",
    version=settings.app_version,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(IllustrationError, illustration_error_handler)

app.include_router(api_router)


@app.get("/")
def read_root():
    """Health check endpoint."""
    return {
        "message": "Article Illustrator backend is running!",
        "version": settings.app_version,
        "environment": settings.environment,
        "image_providers_configured": settings.has_image_credentials,
    }
