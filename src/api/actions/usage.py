from fastapi import APIRouter, HTTPException

from schemas.responses import UsageReport
from services.analysis_runner import usage_report

router = APIRouter()

@router.get("/usage/{user_id}", response_model=UsageReport, tags=["Usage"])
async def get_usage(user_id: str):
    """Daily AI usage for a user."""
    if not user_id.strip():
        raise HTTPException(status_code=400, detail="user_id must not be empty.")
    return usage_report(user_id)
