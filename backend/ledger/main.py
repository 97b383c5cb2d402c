import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ledger.core.config import settings
from ledger.core.errors import LedgerError
from ledger.core.logging import setup_logging
from ledger.routers import invoices, payments
from ledger.schemas.responses import ErrorDetail, ErrorResponse

setup_logging()
logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Invoices", "description": "Invoices, line items, documents and their history."},
    {"name": "Payments", "description": "Payments recorded against invoices."},
]

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Invoice and payment ledger for field-service jobs. "
        "Creates invoices, tracks line items and payments, and keeps totals "
        "and status consistent."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


def error_response(status_code: int, code: str, message: str, detail: object = None) -> JSONResponse:
    body = ErrorResponse(
        message=message,
        error=ErrorDetail(
            code=code,
            message=message,
            detail=None if settings.is_production else detail,
        ),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Ledger error on %s: %s", request.url.path, exc.message, exc_info=exc)
    return error_response(exc.status_code, exc.code, exc.message, exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Validation error on %s", request.url.path)
    return error_response(
        400, "VALIDATION_FAILED", "Request validation failed", jsonable_encoder(exc.errors())
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return error_response(exc.status_code, code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception on %s", request.url.path, exc_info=exc)
    return error_response(500, "UNEXPECTED", "Internal server error", str(exc))


app.include_router(invoices.router, prefix="/v1/invoices", tags=["Invoices"])
app.include_router(payments.router, prefix="/v1/payments", tags=["Payments"])


@app.get("/")
def root() -> dict[str, str]:
    return {"name": settings.APP_NAME, "version": settings.version}
