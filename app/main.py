import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.exceptions import FormsSyncError
from app.logging_config import configure_logging
from app.routers import forms, sync
from app.services.forms_client import mask_api_key

settings = get_settings()

# Configure logging at startup
configure_logging(settings.log_level, settings.sync_log_level)

logger = logging.getLogger(__name__)
logger.info("Forms API key loaded: %s", mask_api_key(settings.forms_api_key))

app = FastAPI(title="Forms Sync")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Routers
app.include_router(forms.router, prefix="/api/forms", tags=["forms"])
app.include_router(sync.router, prefix="/api", tags=["sync"])


@app.exception_handler(FormsSyncError)
async def forms_sync_error_handler(request: Request, exc: FormsSyncError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": f"Invalid request: {exc.errors()}"},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}
