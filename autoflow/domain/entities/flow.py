"""Flow definition schema: typed steps, per-run context, run result."""

from dataclasses import dataclass, field
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from autoflow.domain.ports.documents import DocumentRef

_STEP_MODEL_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


def _blank_to_none(value: str | None) -> str | None:
    if value is None or value == "":
        return None
    return value


class SearchStep(BaseModel):
    """Collect documents under a folder, optionally ranked against a query."""

    model_config = _STEP_MODEL_CONFIG

    type: Literal["search"] = "search"
    source_folder: str = Field(alias="sourceFolder")
    query: str | None = None

    @field_validator("query", mode="before")
    @classmethod
    def blank_query_is_none(cls, value: str | None) -> str | None:
        return _blank_to_none(value)


class TransformStep(BaseModel):
    """Send collected documents to the completion provider with a prompt."""

    model_config = _STEP_MODEL_CONFIG

    type: Literal["transform"] = "transform"
    prompt: str | None = None
    prompt_file: str | None = Field(None, alias="promptFile")

    @field_validator("prompt", "prompt_file", mode="before")
    @classmethod
    def blank_prompt_is_none(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def exactly_one_prompt_source(self) -> "TransformStep":
        if self.prompt and self.prompt_file:
            raise ValueError("Transform step cannot have both prompt and promptFile.")
        if not self.prompt and not self.prompt_file:
            raise ValueError("Transform step must have either prompt or promptFile.")
        return self


class WriteStep(BaseModel):
    """Write the transform result to a document, appending if it exists."""

    model_config = _STEP_MODEL_CONFIG

    type: Literal["write"] = "write"
    target_file: str = Field(alias="targetFile")


FlowStep = Annotated[Union[SearchStep, TransformStep, WriteStep], Field(discriminator="type")]

STEP_TYPES = ("search", "transform", "write")


class FlowDefinition(BaseModel):
    """Parsed flow. Immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    steps: tuple[FlowStep, ...] = Field(min_length=1)
    autorun: bool | str | None = None  # True | "daily" | None
    last_run: str | None = Field(None, alias="lastRun")  # YYYY-MM-DD


@dataclass
class StepContext:
    """Hand-off between consecutive steps of one run. Never persisted."""

    search_results: list[str] = field(default_factory=list)
    search_result_refs: list[DocumentRef] = field(default_factory=list)
    transform_result: str | None = None
    written_paths: list[str] = field(default_factory=list)


@dataclass
class FlowRunResult:
    """Terminal outcome of one flow run."""

    flow_name: str
    success: bool
    error: str | None = None
    notices: list[str] = field(default_factory=list)
    written_paths: list[str] = field(default_factory=list)
