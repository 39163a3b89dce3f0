"""Error taxonomy for flow parsing and execution."""

from enum import Enum


class AutoflowError(Exception):
    """Base class for autoflow errors."""


class FlowParseErrorKind(str, Enum):
    """Why a flow definition was rejected."""

    EMPTY = "empty"
    NOT_A_FLOW = "not_a_flow"
    INVALID_TOP_LEVEL_LINE = "invalid_top_level_line"
    PARAMETER_BEFORE_STEP = "parameter_before_step"
    INVALID_PARAMETER_LINE = "invalid_parameter_line"
    INVALID_STEP_TYPE_LINE = "invalid_step_type_line"
    MISSING_NAME_OR_DESCRIPTION = "missing_name_or_description"
    NO_STEPS = "no_steps"
    TRANSFORM_PROMPT_CONFLICT = "transform_prompt_conflict"
    TRANSFORM_PROMPT_MISSING = "transform_prompt_missing"
    PROMPT_FILE_NOT_FOUND = "prompt_file_not_found"
    PROMPT_FILE_IS_FOLDER = "prompt_file_is_folder"
    INVALID_STEP_PARAMETERS = "invalid_step_parameters"


class FlowParseError(AutoflowError):
    """Malformed flow text. Returned by the parser as a value, not raised."""

    def __init__(self, kind: FlowParseErrorKind, message: str, line: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.line = line


class FlowValidationError(FlowParseError):
    """Syntactically valid step with semantically invalid parameters."""


class ProviderError(AutoflowError):
    """Embedding or completion call failed."""


class StorageError(AutoflowError):
    """Document, index or log I/O failed."""
