"""Conversion of provider-declared input schemas into `FunctionDeclaration`.

Providers describe tool parameters with JSON Schema. Only the keywords the
function-calling layer understands are kept: ``type``, ``description``,
``properties``, ``required``, ``items``, ``anyOf``, ``enum`` and ``default``.
Anything else is dropped. Boolean subschemas become empty schemas, a null
``type`` or ``description`` is treated as absent, and non-string ``required``
entries are skipped. Any other keyword with the wrong shape fails the whole
tool, so a tool is either registered completely or not at all.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, List

from .errors import SchemaConversionError
from .naming import build_tool_name
from .schemas.core import FunctionDeclaration, JsonSchema

MAX_SCHEMA_DEPTH = 32


class _SchemaShapeError(ValueError):
    """A keyword with an unexpected shape, with the JSON path where it occurred."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")


def mcp_tool_to_function(
    server_name: str,
    tool_name: str,
    tool_description: str | None,
    input_schema: Any,
) -> FunctionDeclaration:
    """Convert one discovered MCP tool into a `FunctionDeclaration`.

    Args:
        server_name: Name of the configured provider that reported the tool.
        tool_name: Tool name as reported by the provider.
        tool_description: Provider description (None becomes an empty string).
        input_schema: The tool's declared input schema (a JSON object).

    Returns:
        The declaration with name ``mcp__<server>__<tool>``.

    Raises:
        SchemaConversionError: If the schema (at any depth) cannot be converted.
        MalformedToolNameError: If the server or tool name is empty.
    """
    name = build_tool_name(server_name, tool_name)
    try:
        parameters = convert_json_schema(input_schema)
    except (ValueError, RecursionError) as e:
        raise SchemaConversionError(tool_name, str(e)) from e
    return FunctionDeclaration(
        name=name,
        description=tool_description or "",
        parameters=parameters,
        agent=False,
    )


def convert_json_schema(schema: Any, *, max_depth: int = MAX_SCHEMA_DEPTH) -> JsonSchema:
    """Recursively convert a JSON Schema mapping into `JsonSchema`.

    Raises:
        ValueError: If a keyword has an unexpected shape or the nesting exceeds ``max_depth``.
    """
    return _convert(schema, "$", 0, max_depth)


def _convert(schema: Any, path: str, depth: int, max_depth: int) -> JsonSchema:
    if depth > max_depth:
        raise _SchemaShapeError(path, f"schema nesting exceeds {max_depth} levels")
    if isinstance(schema, bool):
        # Boolean schemas carry no keywords the declaration can express.
        return JsonSchema()
    if not isinstance(schema, Mapping):
        raise _SchemaShapeError(path, f"expected a schema object, got {type(schema).__name__}")

    fields: Dict[str, Any] = {}

    if schema.get("type") is not None:
        fields["type"] = _type_keyword(schema["type"], path)
    if "description" in schema:
        desc = schema["description"]
        if desc is not None:
            if not isinstance(desc, str):
                raise _SchemaShapeError(f"{path}.description", "expected a string")
            fields["description"] = desc
    if "default" in schema:
        fields["default"] = schema["default"]

    if "properties" in schema:
        props = schema["properties"]
        if not isinstance(props, Mapping):
            raise _SchemaShapeError(f"{path}.properties", "expected an object")
        # dict preserves insertion order, which prompts depend on
        fields["properties"] = {
            str(key): _convert(value, f"{path}.properties.{key}", depth + 1, max_depth) for key, value in props.items()
        }

    if "required" in schema:
        fields["required"] = _string_list(schema["required"], f"{path}.required")

    if "items" in schema:
        fields["items"] = _convert(schema["items"], f"{path}.items", depth + 1, max_depth)

    if "anyOf" in schema:
        alternatives = schema["anyOf"]
        if not isinstance(alternatives, list):
            raise _SchemaShapeError(f"{path}.anyOf", "expected an array")
        fields["any_of"] = [
            _convert(alt, f"{path}.anyOf[{i}]", depth + 1, max_depth) for i, alt in enumerate(alternatives)
        ]

    if "enum" in schema:
        values = schema["enum"]
        if not isinstance(values, list):
            raise _SchemaShapeError(f"{path}.enum", "expected an array")
        fields["enum"] = list(values)

    return JsonSchema(**fields)


def _type_keyword(value: Any, path: str) -> str | List[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise _SchemaShapeError(f"{path}.type", "expected a string or an array of strings")


def _string_list(value: Any, path: str) -> List[str]:
    if not isinstance(value, list):
        raise _SchemaShapeError(path, "expected an array of strings")
    # Non-string entries name no property; drop them.
    return [v for v in value if isinstance(v, str)]
