from __future__ import annotations

from fastapi import FastAPI

from api.actions import analysis, config, fix, health, usage
from core.config import get_settings
from core.log import configure_logging

configure_logging(get_settings().log_level)

app = FastAPI(title="WordWise API")

app.include_router(health.router)
app.include_router(config.router)
app.include_router(analysis.router)
app.include_router(fix.router)
app.include_router(usage.router)
