"""Flow Parser - turns autoflow definition text into a FlowDefinition.

Expected structure (leading/trailing whitespace on each line is ignored):

    autoflow
    name: Example Name
    description: "..."
    autorun: daily
    steps:
    type: search
    - sourceFolder: "Folder"
    - query: "something"
    type: transform
    - prompt: "..."
    type: write
    - targetFile: "path"

Blank lines and lines starting with ``<!--`` are skipped. Parsing never
raises: problems come back as a FlowParseError value.
"""

import re

from pydantic import TypeAdapter, ValidationError

from autoflow.domain.entities.flow import STEP_TYPES, FlowDefinition, FlowStep
from autoflow.domain.errors import FlowParseError, FlowParseErrorKind, FlowValidationError
from autoflow.domain.ports.documents import DocumentRef, DocumentStorePort

HEADER = "autoflow"

# "key: value" with an optional leading dash
KV_PATTERN = re.compile(r"^-?\s*([A-Za-z0-9_]+)\s*:\s*(.*)$")
STEPS_PATTERN = re.compile(r"^steps\s*:")
LINE_SPLIT = re.compile(r"\r?\n")

_step_adapter: TypeAdapter = TypeAdapter(FlowStep)


def _unquote(value: str) -> str:
    """Strip one leading and one trailing double quote, independently."""
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def _significant_lines(text: str) -> list[str]:
    lines = (line.strip() for line in LINE_SPLIT.split(text))
    return [line for line in lines if line and not line.startswith("<!--")]


def _check_transform(raw: dict[str, str], documents: DocumentStorePort) -> FlowParseError | None:
    """Exactly one prompt source; a prompt file must be an existing document."""
    prompt = raw.get("prompt")
    prompt_file = raw.get("promptFile")
    if prompt and prompt_file:
        return FlowValidationError(
            FlowParseErrorKind.TRANSFORM_PROMPT_CONFLICT,
            "Transform step cannot have both prompt and promptFile.",
        )
    if not prompt and not prompt_file:
        return FlowValidationError(
            FlowParseErrorKind.TRANSFORM_PROMPT_MISSING,
            "Transform step must have either prompt or promptFile.",
        )
    if prompt_file:
        target = documents.resolve(prompt_file)
        if target is None:
            return FlowValidationError(
                FlowParseErrorKind.PROMPT_FILE_NOT_FOUND,
                f"Prompt file not found: {prompt_file}",
            )
        if not isinstance(target, DocumentRef):
            return FlowValidationError(
                FlowParseErrorKind.PROMPT_FILE_IS_FOLDER,
                f"Prompt file path is a folder: {prompt_file}",
            )
    return None


def _build_step(raw: dict[str, str]) -> FlowStep | FlowParseError:
    try:
        return _step_adapter.validate_python(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or raw['type']}: {err['msg']}"
            for err in e.errors()
        )
        return FlowValidationError(
            FlowParseErrorKind.INVALID_STEP_PARAMETERS,
            f"Invalid {raw['type']} step: {problems}",
        )


def parse_flow_definition(text: str, documents: DocumentStorePort) -> FlowDefinition | FlowParseError:
    """Parse flow definition text.

    Args:
        text: Raw document content.
        documents: Store used to check that prompt files exist.

    Returns:
        The parsed FlowDefinition, or a FlowParseError describing the
        offending line or missing field.

    """
    lines = _significant_lines(text)
    if not lines:
        return FlowParseError(FlowParseErrorKind.EMPTY, "Empty flow definition.")

    if lines[0].lower() != HEADER:
        return FlowParseError(
            FlowParseErrorKind.NOT_A_FLOW,
            f"Not a flow definition: first line must be '{HEADER}'.",
            line=lines[0],
        )

    idx = 1
    top_level: dict[str, str] = {}

    while idx < len(lines):
        line = lines[idx]
        idx += 1
        if STEPS_PATTERN.match(line):
            break
        match = KV_PATTERN.match(line)
        if not match:
            return FlowParseError(
                FlowParseErrorKind.INVALID_TOP_LEVEL_LINE,
                f"Invalid top-level line: {line}",
                line=line,
            )
        key, value = match.groups()
        top_level[key] = _unquote(value)

    raw_steps: list[dict[str, str]] = []
    current: dict[str, str] | None = None

    for line in lines[idx:]:
        if line.startswith("type"):
            match = KV_PATTERN.match(line)
            if not match:
                return FlowParseError(
                    FlowParseErrorKind.INVALID_STEP_TYPE_LINE,
                    f"Invalid step type line: {line}",
                    line=line,
                )
            step_type = _unquote(match.group(2))
            if step_type not in STEP_TYPES:
                return FlowParseError(
                    FlowParseErrorKind.INVALID_STEP_TYPE_LINE,
                    f"Invalid step type line: {line} (expected one of {', '.join(STEP_TYPES)})",
                    line=line,
                )
            current = {"type": step_type}
            raw_steps.append(current)
            continue

        if current is None:
            return FlowParseError(
                FlowParseErrorKind.PARAMETER_BEFORE_STEP,
                f"Parameter specified before step type: {line}",
                line=line,
            )
        match = KV_PATTERN.match(line)
        if not match:
            return FlowParseError(
                FlowParseErrorKind.INVALID_PARAMETER_LINE,
                f"Invalid parameter line: {line}",
                line=line,
            )
        key, value = match.groups()
        current[key] = _unquote(value)

    steps: list[FlowStep] = []
    for raw in raw_steps:
        if raw["type"] == "transform":
            problem = _check_transform(raw, documents)
            if problem is not None:
                return problem
        step = _build_step(raw)
        if isinstance(step, FlowParseError):
            return step
        steps.append(step)

    name = top_level.get("name")
    description = top_level.get("description")
    if not name or not description:
        return FlowParseError(
            FlowParseErrorKind.MISSING_NAME_OR_DESCRIPTION,
            "Flow must have name and description.",
        )

    if not steps:
        return FlowParseError(FlowParseErrorKind.NO_STEPS, "Flow must include at least one step.")

    autorun_value = top_level.get("autorun") or None
    autorun: bool | str | None = True if autorun_value == "true" else autorun_value

    return FlowDefinition(
        name=name,
        description=description,
        steps=tuple(steps),
        autorun=autorun,
        last_run=top_level.get("lastRun") or None,
    )


def describe_flow(definition: FlowDefinition) -> str:
    """Plain-text summary of a flow: name, description, autorun, steps."""
    lines = [f"Flow: {definition.name}", definition.description]
    if definition.autorun:
        lines.append("This flow is set to run automatically every day.")
    lines.append("Steps:")
    lines.extend(f"- {step.type}" for step in definition.steps)
    return "\n".join(lines)
