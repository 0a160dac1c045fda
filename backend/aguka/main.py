from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse
import logging

from aguka.core.config import settings
from aguka.core.database import create_db_and_tables
from aguka.core.cache import cache
from aguka.core.exceptions import AgukaError
from aguka.api.v1.api import api_router
from aguka.utils.file_paths import Buckets, FileTypes, get_bucket_path, ensure_upload_directory

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Aguka API",
    description="Recruitment platform with AI résumé parsing, job pools and proctored skills tests",
    version="1.0.0",
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url="/redoc" if settings.environment == "development" else None
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# only the public bucket is served; recordings go through the admin endpoint
app.mount(
    f"/uploads/{Buckets.PUBLIC}",
    StaticFiles(directory=get_bucket_path(Buckets.PUBLIC), check_dir=False),
    name="public-uploads",
)


@app.exception_handler(AgukaError)
async def aguka_error_handler(request: Request, exc: AgukaError):
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later.",
        }
    )


@app.on_event("startup")
async def startup_event():
    logger.info("Starting Aguka API...")

    for file_type in (FileTypes.CHUNKS, FileTypes.PENDING_SUBMISSIONS, Buckets.PUBLIC, Buckets.TEST_RECORDINGS):
        ensure_upload_directory(file_type)
    logger.info("Upload directories ready")

    create_db_and_tables()

    if await cache.ahealth_check():
        logger.info("Cache connection established")
    else:
        logger.warning("Cache connection failed - running without cache")

    logger.info("Aguka API startup completed")


@app.on_event("shutdown")
async def shutdown_event():
    await cache.aclose()
    logger.info("Aguka API shutdown completed")


app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/")
async def read_root():
    return {"message": "Welcome to the Aguka API!", "version": "1.0.0"}
