"""Flow API routes - run, describe, manage autorun."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from autoflow.api.dependencies import get_autorun_registry, get_flow_use_case, limiter
from autoflow.application.flow.dto import (
    AutorunPathRequest,
    DescribeFlowRequest,
    DescribeFlowResponse,
    RunFlowRequest,
    RunFlowResponse,
)
from autoflow.application.flow.use_case import FlowUseCase, summarize
from autoflow.domain.errors import FlowParseError, StorageError
from autoflow.infrastructure.notifications import CollectingNotifier, LogNotifier
from autoflow.infrastructure.persistence.autorun_registry import AutorunRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flows", tags=["flows"])


@router.post("/run")
@limiter.limit("30/minute")
async def run_flow(
    request: Request,
    body: RunFlowRequest,
    use_case: FlowUseCase = Depends(get_flow_use_case),
) -> RunFlowResponse:
    """Run the flow stored at body.path.

    A failing flow is still a 200: the outcome is in success/error and
    notices. 404 when the document does not exist.
    """
    notifier = CollectingNotifier(forward_to=LogNotifier())
    try:
        result = await use_case.run_flow_file(body.path, notifier=notifier)
    except StorageError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("Flow run failed: %s", body.path)
        raise HTTPException(status_code=500, detail="Flow run failed")

    return RunFlowResponse(
        flow_name=result.flow_name,
        success=result.success,
        error=result.error,
        notices=result.notices,
        written_paths=result.written_paths,
    )


@router.post("/describe")
@limiter.limit("60/minute")
async def describe_flow(
    request: Request,
    body: DescribeFlowRequest,
    use_case: FlowUseCase = Depends(get_flow_use_case),
) -> DescribeFlowResponse:
    """Parse a flow without running it. 422 with the parse error when invalid."""
    try:
        if body.path:
            described = await use_case.describe_flow_file(body.path)
        else:
            parsed = use_case.parse_text(body.text or "")
            described = parsed if isinstance(parsed, FlowParseError) else summarize(parsed)
    except StorageError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if isinstance(described, FlowParseError):
        raise HTTPException(
            status_code=422,
            detail={"kind": described.kind.value, "message": described.message, "line": described.line},
        )
    return described


@router.get("/autorun")
@limiter.limit("60/minute")
async def list_autorun(
    request: Request,
    registry: AutorunRegistry = Depends(get_autorun_registry),
) -> dict:
    """Registered autorun flow paths."""
    paths = registry.paths()
    return {"paths": paths, "count": len(paths)}


@router.delete("/autorun")
@limiter.limit("30/minute")
async def unregister_autorun(
    request: Request,
    body: AutorunPathRequest,
    registry: AutorunRegistry = Depends(get_autorun_registry),
) -> dict:
    """Stop running a flow on startup."""
    if not registry.unregister(body.path):
        raise HTTPException(status_code=404, detail=f"Not registered: {body.path}")
    return {"status": "ok", "path": body.path}
