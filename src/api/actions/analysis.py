from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from engine.errors import InvalidInputError
from schemas.requests import AnalysisInput
from schemas.responses import AnalysisResult, CacheStats
from services.analysis_runner import (
    cache_stats,
    run_analysis,
    run_fast_analysis,
    stream_analysis,
)

router = APIRouter()

@router.post("/analysis", response_model=AnalysisResult, tags=["Analysis"])
async def analyze_document(payload: AnalysisInput):
    """
    Run every enabled tier and return the settled suggestions.
    """
    try:
        return await run_analysis(payload)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid input: {e}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Analysis failed: {e}")


@router.post("/analysis/fast", response_model=AnalysisResult, tags=["Analysis"])
async def analyze_document_fast(payload: AnalysisInput):
    """
    Run only the fast tier. Intended for the typing path.
    """
    try:
        return await run_in_threadpool(run_fast_analysis, payload)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid input: {e}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Analysis failed: {e}")


@router.post("/analysis/stream", tags=["Analysis"])
async def analyze_document_stream(payload: AnalysisInput):
    """
    Stream every published snapshot of the cycle as newline-delimited JSON.
    """
    try:
        snapshots = stream_analysis(payload)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid input: {e}")

    async def _ndjson():
        async for snapshot in snapshots:
            yield snapshot.model_dump_json(by_alias=True) + "\n"

    return StreamingResponse(_ndjson(), media_type="application/x-ndjson")


@router.get("/analysis/cache-stats", response_model=CacheStats, tags=["Analysis"])
async def get_cache_stats():
    """Result cache size and hit/miss counters."""
    return cache_stats()
