"""Index API routes - rebuild the embedding cache."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from autoflow.api.dependencies import get_flow_use_case, limiter
from autoflow.application.flow.dto import RebuildIndexRequest, RebuildIndexResponse
from autoflow.application.flow.use_case import FlowUseCase
from autoflow.domain.errors import ProviderError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/index", tags=["index"])


@router.post("/rebuild")
@limiter.limit("10/minute")
async def rebuild_index(
    request: Request,
    body: RebuildIndexRequest,
    use_case: FlowUseCase = Depends(get_flow_use_case),
) -> RebuildIndexResponse:
    """Re-embed every document under body.folder, ignoring cached entries."""
    try:
        count = await use_case.rebuild_index(body.folder)
    except ProviderError as e:
        logger.warning("Index rebuild failed for %r: %s", body.folder, e)
        raise HTTPException(status_code=502, detail=str(e))
    except Exception:
        logger.exception("Index rebuild failed for %r", body.folder)
        raise HTTPException(status_code=500, detail="Index rebuild failed")

    return RebuildIndexResponse(folder=body.folder, files_indexed=count)
