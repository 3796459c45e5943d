"""
Tests for Document Loaders
============================

Verifies YAML reading, prompt loading, template rendering, and function
schema loading against temporary files.
"""

import asyncio
import json
import textwrap

import pytest
import yaml

from booking_agent_stack.errors import (
    MalformedSourceError,
    MissingRequiredSourceError,
    TemplateRenderError,
)
from booking_agent_stack.loader import load_functions_schema, load_prompt, read_yaml
from booking_agent_stack.stack import serialize_prompt_document
from booking_agent_stack.templating import CompiledTemplate


def run_async(coro):
    """Helper to run async tests without pytest-asyncio."""
    return asyncio.run(coro)


def write(path, content):
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


# =============================================================================
# read_yaml
# =============================================================================

class TestReadYaml:
    """Tests for the structured-data reader."""

    def test_missing_file_returns_none(self, tmp_path, caplog):
        """A missing optional file should warn and return None, not raise."""
        result = read_yaml(tmp_path / "nope.yaml")
        assert result is None
        assert not result
        assert "does not exist" in caplog.text

    def test_reads_mapping(self, tmp_path):
        """Should deserialize a YAML mapping."""
        path = write(tmp_path / "doc.yaml", "name: x\nitems: [1, 2]\n")
        assert read_yaml(path) == {"name": "x", "items": [1, 2]}

    def test_empty_file_returns_empty_dict(self, tmp_path):
        """An empty existing file is present but empty."""
        path = write(tmp_path / "empty.yaml", "")
        assert read_yaml(path) == {}

    def test_malformed_file_raises(self, tmp_path):
        """Broken YAML is fatal even though absence is not."""
        path = write(tmp_path / "bad.yaml", "name: [unclosed\n")
        with pytest.raises(MalformedSourceError) as exc:
            read_yaml(path)
        assert str(path) in str(exc.value)

    def test_accepts_string_path(self, tmp_path):
        """Should accept plain strings as paths."""
        path = write(tmp_path / "doc.yaml", "a: 1\n")
        assert read_yaml(str(path)) == {"a": 1}

    def test_invalid_encoding_raises(self, tmp_path):
        """Bytes that are not UTF-8 are a malformed source naming the file."""
        path = tmp_path / "latin.yaml"
        path.write_bytes(b"name: \xff\xfe bad\n")
        with pytest.raises(MalformedSourceError) as exc:
            read_yaml(path)
        assert exc.value.path == str(path)
        assert str(path) in str(exc.value)

    def test_unreadable_file_raises(self, tmp_path, monkeypatch):
        """OS errors while reading an existing file are a malformed source."""
        path = write(tmp_path / "locked.yaml", "a: 1\n")

        def deny(*args, **kwargs):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr("booking_agent_stack.loader.open", deny, raising=False)
        with pytest.raises(MalformedSourceError) as exc:
            read_yaml(path)
        assert "unreadable" in str(exc.value)


# =============================================================================
# load_prompt
# =============================================================================

class TestLoadPrompt:
    """Tests for prompt loading."""

    def test_name_and_description_copied(self, tmp_path):
        """Name and description should match the source verbatim."""
        path = write(tmp_path / "p.yaml", """
            name: booking-agent
            description: Agent in charge of bookings
            template: You are a restaurant agent.
        """)
        prompt = load_prompt(path)
        assert prompt.name == "booking-agent"
        assert prompt.description == "Agent in charge of bookings"
        assert prompt.prompt_template is not None
        assert prompt.prompt_template.template == "You are a restaurant agent."

    def test_no_template(self, tmp_path):
        """A prompt without template has no compiled template."""
        path = write(tmp_path / "p.yaml", """
            name: TableBookingsActionGroup
            description: Booking actions
        """)
        prompt = load_prompt(path)
        assert prompt.prompt_template is None
        assert prompt.input_variables == []

    def test_empty_template_is_absent(self, tmp_path):
        """An empty template string counts as no template."""
        path = write(tmp_path / "p.yaml", "name: x\ntemplate: ''\n")
        assert load_prompt(path).prompt_template is None

    def test_missing_description_is_none(self, tmp_path):
        """Description is optional."""
        path = write(tmp_path / "p.yaml", "name: x\n")
        assert load_prompt(path).description is None

    def test_missing_file_raises_with_path(self, tmp_path):
        """A required prompt that does not exist should name the path."""
        path = tmp_path / "missing.yaml"
        with pytest.raises(MissingRequiredSourceError) as exc:
            load_prompt(path)
        assert exc.value.path == str(path)
        assert str(path) in str(exc.value)

    def test_missing_name_raises(self, tmp_path):
        """The name field is mandatory."""
        path = write(tmp_path / "p.yaml", "description: no name\n")
        with pytest.raises(MalformedSourceError) as exc:
            load_prompt(path)
        assert exc.value.field == "name"

    def test_blank_name_raises(self, tmp_path):
        """An empty name is as bad as a missing one."""
        path = write(tmp_path / "p.yaml", "name: '  '\n")
        with pytest.raises(MalformedSourceError):
            load_prompt(path)

    def test_non_mapping_document_raises(self, tmp_path):
        """A list document is not a prompt."""
        path = write(tmp_path / "p.yaml", "- a\n- b\n")
        with pytest.raises(MalformedSourceError):
            load_prompt(path)

    def test_bad_input_variables_raises(self, tmp_path):
        """input_variables must be a list of names."""
        path = write(tmp_path / "p.yaml", "name: x\ntemplate: hi\ninput_variables: kb_name\n")
        with pytest.raises(MalformedSourceError) as exc:
            load_prompt(path)
        assert exc.value.field == "input_variables"

    def test_invalid_template_syntax_raises(self, tmp_path):
        """An unbalanced brace cannot be compiled."""
        path = write(tmp_path / "p.yaml", "name: x\ntemplate: 'Hello {name'\n")
        with pytest.raises(MalformedSourceError) as exc:
            load_prompt(path)
        assert exc.value.field == "template"


# =============================================================================
# Template rendering
# =============================================================================

class TestTemplateRendering:
    """Tests for CompiledTemplate rendering."""

    def test_render_substitutes_all(self, tmp_path):
        """Both declared placeholders should be substituted."""
        path = write(tmp_path / "p.yaml", """
            name: x
            template: "{x} and {y}"
            input_variables: ["x", "y"]
        """)
        prompt = load_prompt(path)
        assert run_async(prompt.prompt_template.render({"x": "A", "y": "B"})) == "A and B"

    def test_render_missing_variable_raises(self, tmp_path):
        """Rendering without a declared variable should fail loudly."""
        path = write(tmp_path / "p.yaml", """
            name: x
            template: "{x} and {y}"
            input_variables: ["x", "y"]
        """)
        prompt = load_prompt(path)
        with pytest.raises(TemplateRenderError) as exc:
            run_async(prompt.prompt_template.render({"x": "A"}))
        assert exc.value.variable == "y"

    def test_undeclared_referenced_variable_still_required(self):
        """A placeholder missing from input_variables is still required."""
        template = CompiledTemplate("Use {kb_name}")
        assert template.variables == frozenset({"kb_name"})
        with pytest.raises(TemplateRenderError):
            run_async(template.render({}))

    def test_extra_values_ignored(self):
        """Values not referenced by the template are ignored."""
        template = CompiledTemplate("Hello {name}", ["name"])
        assert run_async(template.render({"name": "Ana", "other": 1})) == "Hello Ana"

    def test_render_sync(self):
        """render_sync should give the same result as awaiting render."""
        template = CompiledTemplate("Hello {name}", ["name"])
        assert template.render_sync({"name": "Ana"}) == "Hello Ana"

    def test_escaped_braces(self):
        """Doubled braces render as literal braces."""
        template = CompiledTemplate('{{"kb": "{kb_name}"}}', ["kb_name"])
        assert run_async(template.render({"kb_name": "menus"})) == '{"kb": "menus"}'


# =============================================================================
# load_functions_schema
# =============================================================================

SCHEMA = """
functions:
  - name: get_booking_details
    description: Retrieve details of a restaurant booking
    parameters:
      booking_id:
        type: string
        description: The ID of the booking to retrieve
        required: true
"""


class TestLoadFunctionsSchema:
    """Tests for function schema loading."""

    def test_pass_through(self, tmp_path):
        """The document should come back unchanged."""
        path = write(tmp_path / "schema.yaml", SCHEMA)
        schema = load_functions_schema(path)
        assert schema == yaml.safe_load(SCHEMA)

    def test_pass_through_skips_validation(self, tmp_path):
        """Without validation an odd shape is left for the provisioning API to reject."""
        path = write(tmp_path / "schema.yaml", "functions: []\n")
        assert load_functions_schema(path) == {"functions": []}

    def test_missing_file_raises(self, tmp_path):
        """The function schema is mandatory."""
        path = tmp_path / "schema.yaml"
        with pytest.raises(MissingRequiredSourceError) as exc:
            load_functions_schema(path)
        assert str(path) in str(exc.value)

    def test_validate_accepts_valid_schema(self, tmp_path):
        """A well-formed schema passes local validation."""
        path = write(tmp_path / "schema.yaml", SCHEMA)
        assert load_functions_schema(path, validate=True)["functions"][0]["name"] == "get_booking_details"

    def test_validate_rejects_bad_type(self, tmp_path):
        """Unknown parameter types are caught locally when validating."""
        path = write(tmp_path / "schema.yaml", SCHEMA.replace("type: string", "type: uuid"))
        with pytest.raises(MalformedSourceError) as exc:
            load_functions_schema(path, validate=True)
        assert "booking_id" in exc.value.field

    def test_validate_rejects_empty_functions(self, tmp_path):
        """At least one function must be declared."""
        path = write(tmp_path / "schema.yaml", "functions: []\n")
        with pytest.raises(MalformedSourceError):
            load_functions_schema(path, validate=True)


# =============================================================================
# Post-processing document serialization
# =============================================================================

class TestSerializePromptDocument:
    """Tests for the base prompt template string form."""

    def test_template_text_preserved(self, tmp_path):
        """Serializing and parsing back keeps the text byte-for-byte."""
        path = write(tmp_path / "post.yaml", """
            anthropic_version: bedrock-2023-05-31
            messages:
              - role: user
                content: |
                  Rewrite $latest_response$ in 한국어, keep "quotes" & {braces}.
        """)
        document = read_yaml(path)
        serialized = serialize_prompt_document(document)
        assert json.loads(serialized) == document
        assert "한국어" in serialized
        assert serialized.startswith("{\n    ")
