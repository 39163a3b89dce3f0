"""Flow application layer."""

from autoflow.application.flow.dto import (
    DescribeFlowRequest,
    DescribeFlowResponse,
    RebuildIndexRequest,
    RebuildIndexResponse,
    RunFlowRequest,
    RunFlowResponse,
)
from autoflow.application.flow.executor import StepExecutor
from autoflow.application.flow.runner import FlowRunner
from autoflow.application.flow.scheduler import AutorunScheduler
from autoflow.application.flow.use_case import FlowUseCase

__all__ = [
    "AutorunScheduler",
    "DescribeFlowRequest",
    "DescribeFlowResponse",
    "FlowRunner",
    "FlowUseCase",
    "RebuildIndexRequest",
    "RebuildIndexResponse",
    "RunFlowRequest",
    "RunFlowResponse",
    "StepExecutor",
]
