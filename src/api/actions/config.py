from typing import Any, Dict, List

from fastapi import APIRouter
from pydantic import BaseModel

from core.config import get_settings
from services.analysis_runner import get_registry

router = APIRouter()

class ConfigResponse(BaseModel):
    settings: Dict[str, Any]
    analyzers: Dict[str, List[str]]

@router.get("/config", response_model=ConfigResponse, tags=["System"])
async def get_configuration():
    """Runtime configuration and the analyzers registered per tier."""
    return ConfigResponse(settings=get_settings().model_dump(), analyzers=get_registry().names())
