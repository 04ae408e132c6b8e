from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from editor.fix import FixError, TextNotFoundError
from schemas.requests import FixRequest
from schemas.responses import FixResult
from services.analysis_runner import apply_fix_request

router = APIRouter()

@router.post("/fix", response_model=FixResult, tags=["Editor"])
async def apply_suggestion_fix(payload: FixRequest):
    """
    Apply a suggestion's fix to the submitted document.

    Returns 409 when the suggestion's text can no longer be located.
    """
    try:
        return await run_in_threadpool(apply_fix_request, payload)
    except TextNotFoundError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except FixError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid input: {e}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Fix failed: {e}")
