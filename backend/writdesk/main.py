"""
FastAPI application entry point
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from writdesk.api.v1.api import api_router
from writdesk.api.v1.endpoints import health
from writdesk.core.config import settings
from writdesk.core.logger import logger
from writdesk.middleware.correlation import CorrelationMiddleware
from writdesk.utils.exceptions import (
    AttachmentValidationError,
    AuthenticationError,
    CaseApiRequestError,
    FormValidationError,
    ResponseParseError,
    ServiceUnavailableError,
)

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(api_router, prefix="/api/v1")
app.include_router(health.router, prefix="/health", tags=["Health"])

# ── Correlation ID middleware (must be added before CORS) ─────────────────────
app.add_middleware(CorrelationMiddleware)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID", "X-Tab-ID"],
)


# ── Error mapping ─────────────────────────────────────────────────────────────

@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    session = getattr(request.state, "session", None)
    redirect = session.login_path if session is not None else settings.LOGIN_PATH
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": exc.message, "redirect": redirect},
    )


@app.exception_handler(FormValidationError)
async def form_validation_error_handler(request: Request, exc: FormValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "errors": exc.errors},
    )


@app.exception_handler(AttachmentValidationError)
async def attachment_error_handler(request: Request, exc: AttachmentValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "errors": {"file": exc.message}},
    )


@app.exception_handler(CaseApiRequestError)
async def case_api_request_error_handler(request: Request, exc: CaseApiRequestError):
    code = exc.status_code if exc.status_code and 400 <= exc.status_code < 600 else status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=code, content={"detail": exc.message})


@app.exception_handler(ServiceUnavailableError)
@app.exception_handler(ResponseParseError)
async def upstream_error_handler(request: Request, exc):
    logger.error("Case service failure on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": exc.message})


@app.get("/")
def read_root():
    logger.info("Root endpoint accessed")
    return {"message": "WritDesk API is running", "version": "1.0.0", "docs": "/docs"}
