# main.py
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import LOG_LEVEL
from app.core.db import init_models
from app.core.exceptions import QuotationError, InternalError
from app.middleware.request_logger import RequestLoggerMiddleware
from app.routers import quotation_router
from app.schemas.response_schemas import ErrorMessage, FieldError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Marketplace Quotation API",
    description="FastAPI backend for the customer / distributor quotation workflow",
    version="0.1.0"
)
# CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # adjust for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggerMiddleware)


def _error_response(status_code: int, message: str, errors=None) -> JSONResponse:
    body = ErrorMessage(
        message=message,
        errors=[FieldError(**e) for e in errors] if errors else None,
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body, exclude_none=True))


# --------------------------
# Exception handlers
# --------------------------
@app.exception_handler(QuotationError)
async def quotation_error_handler(request: Request, exc: QuotationError):
    return _error_response(exc.status_code, exc.message, exc.errors)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return _error_response(400, "Validation failed", errors)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError()
    return _error_response(error.status_code, error.message)


# Health check endpoint
@app.get("/", tags=["Health"])
async def health_check():
    return {"status": "ok", "message": "Backend is running"}

# Register routers
app.include_router(quotation_router)


@app.on_event("startup")
async def on_startup():
    await init_models()
