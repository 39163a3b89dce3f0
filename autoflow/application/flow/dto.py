"""Flow DTOs."""

from pydantic import BaseModel, Field, model_validator


class RunFlowRequest(BaseModel):
    """Run the flow stored in a vault document."""

    path: str = Field(..., min_length=1, max_length=1000)


class RunFlowResponse(BaseModel):
    """Outcome of one flow run."""

    flow_name: str
    success: bool
    error: str | None = None
    notices: list[str] = []
    written_paths: list[str] = []


class DescribeFlowRequest(BaseModel):
    """Parse a flow from a vault document or from raw text."""

    path: str | None = Field(None, max_length=1000)
    text: str | None = Field(None, max_length=200_000)

    @model_validator(mode="after")
    def exactly_one_source(self) -> "DescribeFlowRequest":
        if bool(self.path) == bool(self.text):
            raise ValueError("Provide exactly one of path or text")
        return self


class StepSummary(BaseModel):
    """One step as shown in a flow summary."""

    type: str
    params: dict[str, str] = {}


class DescribeFlowResponse(BaseModel):
    """Parsed flow summary."""

    name: str
    description: str
    autorun: bool | str | None = None
    last_run: str | None = None
    steps: list[StepSummary]
    summary: str


class AutorunPathRequest(BaseModel):
    """A registered autorun flow path."""

    path: str = Field(..., min_length=1, max_length=1000)


class RebuildIndexRequest(BaseModel):
    """Rebuild the embedding cache for a folder."""

    folder: str = Field("", max_length=1000)


class RebuildIndexResponse(BaseModel):
    """Result of an index rebuild."""

    folder: str
    files_indexed: int
