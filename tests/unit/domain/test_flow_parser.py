"""Tests for flow definition parsing."""

import pytest

from autoflow.domain.entities.flow import FlowDefinition, SearchStep, TransformStep, WriteStep
from autoflow.domain.errors import FlowParseError, FlowParseErrorKind, FlowValidationError
from autoflow.domain.services.flow_parser import describe_flow, parse_flow_definition

DAILY_SUMMARY = """autoflow
name: Daily Summary
description: "Summarize today's notes"
autorun: daily
steps:
type: search
- sourceFolder: "Notes"
- query: "project alpha"
type: transform
- prompt: "Summarize the following notes."
type: write
- targetFile: "Summaries/{{date}}.md"
"""


def flow(*step_lines: str, header: str = "autoflow", top: tuple[str, ...] = ("name: N", "description: D")) -> str:
    return "\n".join([header, *top, "steps:", *step_lines])


class TestParseValidFlows:
    def test_minimal_write_flow(self, vault):
        result = parse_flow_definition("autoflow\nname: X\ndescription: Y\nsteps:\ntype: write\n- targetFile: Z", vault)
        assert isinstance(result, FlowDefinition)
        assert result.steps == (WriteStep(targetFile="Z"),)

    def test_full_flow(self, vault):
        result = parse_flow_definition(DAILY_SUMMARY, vault)

        assert isinstance(result, FlowDefinition)
        assert result.name == "Daily Summary"
        assert result.description == "Summarize today's notes"
        assert result.autorun == "daily"
        assert result.last_run is None
        assert [s.type for s in result.steps] == ["search", "transform", "write"]

        search, transform, write = result.steps
        assert isinstance(search, SearchStep)
        assert search.source_folder == "Notes"
        assert search.query == "project alpha"
        assert isinstance(transform, TransformStep)
        assert transform.prompt == "Summarize the following notes."
        assert transform.prompt_file is None
        assert isinstance(write, WriteStep)
        assert write.target_file == "Summaries/{{date}}.md"

    def test_whitespace_comments_and_blank_lines_ignored(self, vault):
        text = """

        autoflow
        <!-- a comment -->
            name: N
        description: D

        steps:
          type: search
          - sourceFolder: Notes
        """
        result = parse_flow_definition(text, vault)
        assert isinstance(result, FlowDefinition)
        assert result.steps[0].source_folder == "Notes"

    def test_crlf_line_endings(self, vault):
        text = "autoflow\r\nname: N\r\ndescription: D\r\nsteps:\r\ntype: search\r\n- sourceFolder: X\r\n"
        result = parse_flow_definition(text, vault)
        assert isinstance(result, FlowDefinition)
        assert result.steps[0].source_folder == "X"

    def test_header_is_case_insensitive(self, vault):
        result = parse_flow_definition(flow("type: search", "- sourceFolder: X", header="AutoFlow"), vault)
        assert isinstance(result, FlowDefinition)

    def test_autorun_true_becomes_boolean(self, vault):
        text = flow("type: search", "- sourceFolder: X", top=("name: N", "description: D", "autorun: true"))
        result = parse_flow_definition(text, vault)
        assert result.autorun is True

    def test_autorun_absent(self, vault):
        result = parse_flow_definition(flow("type: search", "- sourceFolder: X"), vault)
        assert result.autorun is None

    def test_last_run_parsed(self, vault):
        text = flow(
            "type: search",
            "- sourceFolder: X",
            top=("name: N", "description: D", "autorun: daily", "lastRun: 2024-03-01"),
        )
        result = parse_flow_definition(text, vault)
        assert result.last_run == "2024-03-01"

    def test_quotes_stripped_independently(self, vault):
        text = flow("type: search", "- sourceFolder: X", top=('name: "Open', 'description: Close"'))
        result = parse_flow_definition(text, vault)
        assert result.name == "Open"
        assert result.description == "Close"

    def test_value_may_contain_colons(self, vault):
        text = flow("type: search", "- sourceFolder: X", top=("name: N", "description: Time: 10:30"))
        result = parse_flow_definition(text, vault)
        assert result.description == "Time: 10:30"

    def test_parameters_without_dash(self, vault):
        result = parse_flow_definition(flow("type: write", "targetFile: out.md"), vault)
        assert result.steps[0].target_file == "out.md"

    def test_empty_query_means_no_ranking(self, vault):
        result = parse_flow_definition(flow("type: search", "- sourceFolder: X", '- query: ""'), vault)
        assert result.steps[0].query is None

    def test_quoted_step_type(self, vault):
        result = parse_flow_definition(flow('type: "write"', "- targetFile: out.md"), vault)
        assert isinstance(result.steps[0], WriteStep)

    def test_prompt_file_existing_document(self, vault, write_note):
        write_note("Prompts/summary.md", "Summarize.")
        result = parse_flow_definition(flow("type: transform", "- promptFile: Prompts/summary.md"), vault)
        assert isinstance(result, FlowDefinition)
        assert result.steps[0].prompt_file == "Prompts/summary.md"
        assert result.steps[0].prompt is None

    def test_unknown_parameters_ignored(self, vault):
        result = parse_flow_definition(flow("type: search", "- sourceFolder: X", "- colour: red"), vault)
        assert isinstance(result, FlowDefinition)

    def test_definition_is_immutable(self, vault):
        result = parse_flow_definition(DAILY_SUMMARY, vault)
        with pytest.raises(Exception):
            result.name = "changed"


class TestParseErrors:
    """Each rejected input maps to one FlowParseErrorKind."""

    def assert_error(self, result, kind: FlowParseErrorKind) -> FlowParseError:
        assert isinstance(result, FlowParseError)
        assert result.kind == kind
        assert result.message
        return result

    @pytest.mark.parametrize("text", ["", "   \n\n  ", "<!-- only a comment -->\n"])
    def test_empty(self, vault, text):
        self.assert_error(parse_flow_definition(text, vault), FlowParseErrorKind.EMPTY)

    def test_missing_header(self, vault):
        text = "name: N\ndescription: D\nsteps:\ntype: search\n- sourceFolder: X"
        error = self.assert_error(parse_flow_definition(text, vault), FlowParseErrorKind.NOT_A_FLOW)
        assert "autoflow" in error.message

    def test_invalid_top_level_line(self, vault):
        text = "autoflow\nname: N\nthis line has no key\nsteps:\ntype: search\n- sourceFolder: X"
        error = self.assert_error(parse_flow_definition(text, vault), FlowParseErrorKind.INVALID_TOP_LEVEL_LINE)
        assert error.line == "this line has no key"

    def test_parameter_before_step_type(self, vault):
        result = parse_flow_definition(flow("- sourceFolder: X", "type: search"), vault)
        self.assert_error(result, FlowParseErrorKind.PARAMETER_BEFORE_STEP)

    def test_step_type_line_without_colon(self, vault):
        result = parse_flow_definition(flow("type search"), vault)
        self.assert_error(result, FlowParseErrorKind.INVALID_STEP_TYPE_LINE)

    def test_unknown_step_type(self, vault):
        result = parse_flow_definition(flow("type: upload", "- targetFile: x"), vault)
        error = self.assert_error(result, FlowParseErrorKind.INVALID_STEP_TYPE_LINE)
        assert "upload" in error.message

    def test_invalid_parameter_line(self, vault):
        result = parse_flow_definition(flow("type: search", "- sourceFolder: X", "not a parameter"), vault)
        self.assert_error(result, FlowParseErrorKind.INVALID_PARAMETER_LINE)

    def test_missing_name(self, vault):
        result = parse_flow_definition(flow("type: search", "- sourceFolder: X", top=("description: D",)), vault)
        self.assert_error(result, FlowParseErrorKind.MISSING_NAME_OR_DESCRIPTION)

    def test_empty_description(self, vault):
        result = parse_flow_definition(
            flow("type: search", "- sourceFolder: X", top=("name: N", 'description: ""')), vault
        )
        self.assert_error(result, FlowParseErrorKind.MISSING_NAME_OR_DESCRIPTION)

    def test_no_steps(self, vault):
        self.assert_error(parse_flow_definition(flow(), vault), FlowParseErrorKind.NO_STEPS)

    def test_no_steps_line_at_all(self, vault):
        result = parse_flow_definition("autoflow\nname: N\ndescription: D", vault)
        self.assert_error(result, FlowParseErrorKind.NO_STEPS)

    def test_transform_with_both_prompts(self, vault, write_note):
        write_note("p.md", "x")
        result = parse_flow_definition(flow("type: transform", "- prompt: P", "- promptFile: p.md"), vault)
        error = self.assert_error(result, FlowParseErrorKind.TRANSFORM_PROMPT_CONFLICT)
        assert isinstance(error, FlowValidationError)

    def test_transform_without_prompt(self, vault):
        result = parse_flow_definition(flow("type: transform"), vault)
        self.assert_error(result, FlowParseErrorKind.TRANSFORM_PROMPT_MISSING)

    def test_transform_with_empty_prompt(self, vault):
        result = parse_flow_definition(flow("type: transform", '- prompt: ""'), vault)
        self.assert_error(result, FlowParseErrorKind.TRANSFORM_PROMPT_MISSING)

    def test_prompt_file_not_found(self, vault):
        result = parse_flow_definition(flow("type: transform", "- promptFile: missing.md"), vault)
        error = self.assert_error(result, FlowParseErrorKind.PROMPT_FILE_NOT_FOUND)
        assert "missing.md" in error.message

    def test_prompt_file_is_folder(self, vault, vault_root):
        (vault_root / "Prompts").mkdir()
        result = parse_flow_definition(flow("type: transform", "- promptFile: Prompts"), vault)
        self.assert_error(result, FlowParseErrorKind.PROMPT_FILE_IS_FOLDER)

    def test_transform_checked_before_name(self, vault):
        """A bad transform step is reported even when name is missing too."""
        result = parse_flow_definition(flow("type: transform", top=("description: D",)), vault)
        self.assert_error(result, FlowParseErrorKind.TRANSFORM_PROMPT_MISSING)

    def test_search_without_source_folder(self, vault):
        result = parse_flow_definition(flow("type: search", "- query: alpha"), vault)
        error = self.assert_error(result, FlowParseErrorKind.INVALID_STEP_PARAMETERS)
        assert isinstance(error, FlowValidationError)

    def test_write_without_target_file(self, vault):
        result = parse_flow_definition(flow("type: write"), vault)
        self.assert_error(result, FlowParseErrorKind.INVALID_STEP_PARAMETERS)

    def test_parser_never_raises(self, vault):
        for text in ["autoflow", "autoflow\nsteps:", "autoflow\nsteps:\ntype:", ":::"]:
            assert isinstance(parse_flow_definition(text, vault), FlowParseError)


class TestDescribeFlow:
    def test_summary_lists_steps(self, vault):
        definition = parse_flow_definition(DAILY_SUMMARY, vault)
        summary = describe_flow(definition)

        assert summary.splitlines() == [
            "Flow: Daily Summary",
            "Summarize today's notes",
            "This flow is set to run automatically every day.",
            "Steps:",
            "- search",
            "- transform",
            "- write",
        ]

    def test_summary_without_autorun(self, vault):
        definition = parse_flow_definition(flow("type: search", "- sourceFolder: X"), vault)
        assert "automatically" not in describe_flow(definition)
