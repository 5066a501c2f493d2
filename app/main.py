import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes.catalog import router as catalog_router
from app.api.routes.invoices import router as invoices_router
from app.api.routes.payments import router as payments_router
from app.api.routes.reports import ledger_router, reports_router, stock_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.services.errors import InsufficientStock, LedgerError, NotFound, TransactionFailed, ValidationError

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[LedgerError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    InsufficientStock: status.HTTP_409_CONFLICT,
    TransactionFailed: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    logger.info("%s starting; valuation fallback: %s", settings.app_name, ",".join(settings.valuation_cost_fallback))
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(catalog_router)
app.include_router(invoices_router)
app.include_router(payments_router)
app.include_router(ledger_router)
app.include_router(reports_router)
app.include_router(stock_router)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    body: dict = {"detail": exc.detail, "error": exc.kind}
    if isinstance(exc, InsufficientStock):
        body["product_id"] = exc.product_id
        body["requested"] = exc.requested
        body["available"] = exc.available
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=status_code, content=body)


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}
