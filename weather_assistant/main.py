from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weather_assistant.config import SERVICE_VERSION, Settings
from weather_assistant.errors import ApiError
from weather_assistant.routes.api import router as api_router
from weather_assistant.routes.health import router as health_router


logger = logging.getLogger("weather-assistant")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs full request URLs at INFO; the OpenWeather key is a query param.
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("api_error path=%s status=%s error=%s", request.url.path, exc.status_code, exc.error)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    _setup_logging(settings.log_level)
    app = FastAPI(title="Weather Assistant", version=SERVICE_VERSION)
    app.state.settings = settings

    allow_all = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=86400,
    )
    app.add_exception_handler(ApiError, _api_error_handler)

    app.include_router(health_router)
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
