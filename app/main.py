# app/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.responses import Response

from app.api.deps import close_payconiq_client
from app.api.error_handlers import register_exception_handlers
from app.api.routers import payments
from app.core.config import settings
from app.core.logging import setup_logging
from app.core.metrics import export_metrics
from app.middleware import ObservabilityMiddleware

setup_logging()

TAGS_METADATA = [
    {"name": "payments", "description": "Payconiq transactions, callbacks and refunds."},
]


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    close_payconiq_client()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    description=(
        "Payconiq checkout integration.\n\n"
        "- **Transactions**: create a Payconiq payment and read its status.\n"
        "- **Callback**: endpoint Payconiq notifies when a payment changes.\n"
        "- **Refunds**: refund a paid transaction by SEPA credit transfer or direct debit."
    ),
    openapi_tags=TAGS_METADATA,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# --- Middlewares ---
app.add_middleware(ObservabilityMiddleware)

register_exception_handlers(app)

# --- Routers ---
app.include_router(payments.router, prefix=settings.API_V1_STR)


@app.get("/metrics", include_in_schema=False)
def metrics():
    body, content_type = export_metrics()
    return Response(content=body, media_type=content_type)


@app.get("/", include_in_schema=False)
def root():
    return {"status": "ok", "docs_url": "/docs", "sandbox": settings.PAYCONIQ_SANDBOX}


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
