import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
import app.models  # noqa: F401  # force model registration

from app.api.v1.auth import router as auth_router
from app.api.v1.sales import router as sales_router


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_application() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Closers API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"status": "ok", "service": "closers"}

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(sales_router, prefix="/api/v1")

    logging.getLogger(__name__).info("Closers API ready (environment=%s)", settings.ENVIRONMENT)
    return app


app = create_application()
