"""
Booking Agent Stack - Document Loaders
=======================================

Reads prompt and function schema documents from YAML files and adapts them
into the shapes used by the stack builder.

Missing files are handled differently depending on the caller:
    read_yaml()              → absent is fine, returns None with a warning
    load_prompt()            → absent is fatal
    load_functions_schema()  → absent is fatal
A file that exists but does not parse is always fatal.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from booking_agent_stack.errors import MalformedSourceError, MissingRequiredSourceError
from booking_agent_stack.models import FunctionSchema, FunctionSchemaModel, Prompt
from booking_agent_stack.templating import CompiledTemplate

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_yaml(path: PathLike) -> Optional[Any]:
    """
    Read and parse a YAML file.

    Args:
        path: File to read.

    Returns:
        The deserialized document, `{}` for an empty file, or None when the
        file does not exist.

    Raises:
        MalformedSourceError: the file exists but is not valid YAML.
    """
    path = Path(path)
    if not path.is_file():
        logger.warning(f"[Loader] File {path} does not exist")
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise MalformedSourceError(path, f"invalid YAML: {e}") from e
    except (UnicodeDecodeError, OSError) as e:
        raise MalformedSourceError(path, f"unreadable: {e}") from e

    return {} if data is None else data


def load_prompt(path: PathLike) -> Prompt:
    """
    Load a prompt document (`name`, `description`, `template`, `input_variables`).

    Raises:
        MissingRequiredSourceError: the file does not exist.
        MalformedSourceError: the document is not a mapping, has no name, or
            its template cannot be compiled.
    """
    data = read_yaml(path)
    if data is None:
        raise MissingRequiredSourceError(path)
    if not isinstance(data, dict):
        raise MalformedSourceError(path, "prompt document must be a mapping")

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise MalformedSourceError(path, "prompt name is required", field="name")

    description = data.get("description")
    if description is not None and not isinstance(description, str):
        raise MalformedSourceError(path, "description must be a string", field="description")

    input_variables = data.get("input_variables") or []
    if not isinstance(input_variables, list) or not all(isinstance(v, str) for v in input_variables):
        raise MalformedSourceError(
            path, "input_variables must be a list of strings", field="input_variables"
        )

    prompt_template = None
    template = data.get("template")
    if template:
        if not isinstance(template, str):
            raise MalformedSourceError(path, "template must be a string", field="template")
        try:
            prompt_template = CompiledTemplate(template, input_variables)
        except ValueError as e:
            raise MalformedSourceError(path, f"invalid template: {e}", field="template") from e

    logger.info(
        f"[Loader] Prompt loaded: {name} from {path}"
        + (f" (variables: {sorted(prompt_template.variables)})" if prompt_template else "")
    )
    return Prompt(
        name=name,
        description=description,
        prompt_template=prompt_template,
        input_variables=input_variables,
    )


def load_functions_schema(path: PathLike, validate: bool = False) -> FunctionSchema:
    """
    Load an action group function schema.

    The document is returned as-is; the provisioning service is the final
    judge of its shape. With `validate=True` it is checked locally first.

    Raises:
        MissingRequiredSourceError: the file does not exist.
        MalformedSourceError: the document is not a mapping, or fails validation.
    """
    data = read_yaml(path)
    if data is None:
        raise MissingRequiredSourceError(path)
    if not isinstance(data, dict):
        raise MalformedSourceError(path, "function schema must be a mapping")

    if validate:
        try:
            FunctionSchemaModel.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first["loc"])
            raise MalformedSourceError(path, first["msg"], field=field) from e

    logger.info(
        f"[Loader] Function schema loaded from {path}: "
        f"{len(data.get('functions') or [])} functions"
    )
    return data
