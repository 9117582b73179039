from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from teamcal.core.settings import S
from teamcal.metrics import metrics_endpoint, metrics_middleware, set_app_info
from teamcal.routers.calendar import router as calendar_router


def create_app() -> FastAPI:
    logging.basicConfig(
        level=S.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Team calendar scheduling", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if S.metrics_enabled:
        app.middleware("http")(metrics_middleware)
        set_app_info(app.title, app.version)
        app.get("/metrics")(metrics_endpoint)

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    app.include_router(calendar_router)
    return app


app = create_app()
