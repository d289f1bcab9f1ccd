from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from stockflow.api.routes_health import router as health_router
from stockflow.api.routes_inventory import router as inventory_router
from stockflow.api.routes_metrics import router as metrics_router
from stockflow.core.config import settings
from stockflow.core.errors import register_error_handlers
from stockflow.core.logger import init_logging
from stockflow.core.monitoring import init_monitoring


def create_app() -> FastAPI:
    init_logging()
    init_monitoring()

    # Interactive docs are off in production
    is_production = settings.ENV.lower() == "prod"
    app = FastAPI(
        title=settings.APP_NAME,
        debug=False,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )
    register_error_handlers(app)
    app.include_router(inventory_router)
    app.include_router(metrics_router)
    app.include_router(health_router)
    return app


app = create_app()
