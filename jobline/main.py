from contextlib import asynccontextmanager
import logging
import sys
import asyncio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from jobline.core.config import settings
from jobline.core.exceptions import AppError
from jobline.core.logger import setup_logging
from jobline.models import create_db_and_tables
from jobline.api.v1.api import api_router # Import the main API router
from jobline.api.v1.endpoints import public

logger = logging.getLogger(__name__)

# Fix for asyncpg on Windows
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    # Startup: Create database tables
    await create_db_and_tables()
    logger.info("%s started", settings.PROJECT_NAME)
    yield

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan
)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).strip("/") for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

app.include_router(api_router, prefix=settings.API_V1_STR) # Include the API router
app.include_router(public.router, tags=["public"])

@app.get("/")
async def root():
    return {"message": "Welcome to the Jobline Case Management API"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
