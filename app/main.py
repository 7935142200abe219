from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from app.config import get_settings
from app.core.errors import VoterImportError, ImportValidationError
from app.core.log_config import setup_logging
from app.database import init_db, dispose_engines

settings = get_settings()
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    # Startup
    if settings.CREATE_TABLES_ON_STARTUP:
        await init_db(settings.DEFAULT_TENANT_DB)
    yield
    # Shutdown
    await dispose_engines()


app = FastAPI(
    title="Voter Registry API",
    description="Constituency, booth and voter management with spreadsheet bulk import",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

if settings.ENVIRONMENT == "development":
    logger.info(f"CORS allowed origins: {settings.cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Add Gzip compression
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.exception_handler(VoterImportError)
async def voter_import_error_handler(request: Request, exc: VoterImportError):
    """Render import failures as the standard status/message envelope"""
    content = {"status": False, "message": exc.message}
    if isinstance(exc, ImportValidationError):
        content["fkInvalidRows"] = [issue.to_dict() for issue in exc.row_issues]
    else:
        content["error"] = str(exc)
    logger.error(f"{request.url.path}: {exc.message}: {exc}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Voter Registry API",
        "version": "1.0.0",
        "docs": "/docs",
        "status": "operational"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT
    }


# Import and include routers
from app.api.v1 import voters  # noqa: E402

app.include_router(voters.router, prefix="/api/v1/voters", tags=["Voters"])
