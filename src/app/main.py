# src/app/main.py
from __future__ import annotations
import logging
import sys
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.app.config import settings
from src.app.domain.errors import TranscriberError
from src.app.routers.auth import router as auth_router
from src.app.routers.plans import router as plans_router
from src.app.routers.transcribe import router as transcribe_router
from src.app.routers.upload import router as upload_router

# Plain stdout logging (fine for dev and containers)
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Audio Transcriber API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(plans_router)
app.include_router(upload_router)
app.include_router(transcribe_router)


@app.exception_handler(TranscriberError)
async def transcriber_error_handler(request: Request, exc: TranscriberError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": [e.get("msg") for e in exc.errors()]},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc) or "Unknown error"},
    )


@app.on_event("startup")
async def startup() -> None:
    for problem in settings.validate_runtime():
        logger.warning("Configuration: %s", problem)


@app.get("/health")
def health():
    return {"ok": True}
