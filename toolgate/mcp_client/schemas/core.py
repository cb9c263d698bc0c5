from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import ConfigDict, Field, JsonValue

from .base import BaseSchema


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


class ToolCall(BaseSchema):
    """A tool invocation requested by the agent.

    Produced by the agent runtime and consumed, unchanged, by the permission
    engine and the capability registry.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        description="Tool name as emitted by the model; MCP tools use the namespaced 'mcp__<server>__<tool>' form.",
        min_length=1,
        examples=["mcp__filesystem__read_file", "fs_cat"],
    )
    arguments: JsonValue = Field(
        default=None,
        description="Structured arguments for the call. MCP tools accept an object or null.",
        examples=[{"path": "/tmp/a.txt"}],
    )
    id: Optional[str] = Field(
        default=None,
        description="Optional correlation token used by the agent runtime to pair calls with results.",
    )


class JsonSchema(BaseSchema):
    """Internal function-parameter schema shared by all tool backends.

    Only the fields that were present in the source schema are marked as set,
    so ``model_dump(exclude_unset=True, by_alias=True)`` reproduces the
    declared shape without inventing defaults. ``properties`` keeps the
    declaration order of the source mapping.
    """

    type: Optional[Union[str, List[str]]] = Field(default=None, description="JSON Schema type keyword.")
    description: Optional[str] = Field(default=None, description="Human-readable description.")
    properties: Optional[Dict[str, "JsonSchema"]] = Field(
        default=None,
        description="Object properties, in declaration order.",
    )
    required: Optional[List[str]] = Field(default=None, description="Names of required properties.")
    items: Optional["JsonSchema"] = Field(default=None, description="Schema of array items.")
    any_of: Optional[List["JsonSchema"]] = Field(default=None, description="Union of alternative schemas.")
    enum: Optional[List[JsonValue]] = Field(default=None, description="Allowed literal values.")
    default: JsonValue = Field(default=None, description="Declared default value (only meaningful when set).")

    @property
    def has_default(self) -> bool:
        """Return True when the source schema declared a ``default`` (even ``null``)."""
        return "default" in self.model_fields_set

    def to_dict(self) -> Dict[str, Any]:
        """Render back to a JSON-Schema-like mapping containing only declared keywords."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class FunctionDeclaration(BaseSchema):
    """A tool surfaced to the model, built once at discovery time."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        description="Namespaced tool identifier 'mcp__<server>__<tool>'.",
        min_length=1,
        examples=["mcp__filesystem__read_file"],
    )
    description: str = Field(default="", description="Tool description as reported by the provider.")
    parameters: JsonSchema = Field(default_factory=JsonSchema, description="Converted parameter schema.")
    agent: bool = Field(
        default=False,
        description="Whether the declaration belongs to a provider agent rather than a plain tool.",
    )

    def to_openai_tool(self) -> Dict[str, Any]:
        """Render as an OpenAI-style function tool entry."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters.to_dict(),
            },
        }


class ProviderStatus(BaseSchema):
    name: str = Field(..., description="Configured provider name.")
    connected: bool = Field(..., description="Whether the provider is currently Connected.")
    description: Optional[str] = Field(default=None, description="Configured provider description.")


class ToolCallOutcome(BaseSchema):
    """What the agent runtime receives back for one tool call."""

    name: str = Field(..., description="Tool name the call targeted.")
    id: Optional[str] = Field(default=None, description="Correlation token copied from the call.")
    ok: bool = Field(True, description="Whether the tool invocation succeeded.")
    denied: bool = Field(False, description="Whether the permission engine refused the call.")
    result: JsonValue = Field(default=None, description="Raw JSON payload returned by the provider.")
    error: Optional[str] = Field(None, description="Error message if invocation failed.")


JsonSchema.model_rebuild()
