from .config import McpServerConfig
from .core import (
    ConnectionState,
    FunctionDeclaration,
    JsonSchema,
    ProviderStatus,
    ToolCall,
    ToolCallOutcome,
)

__all__ = [
    "ConnectionState",
    "FunctionDeclaration",
    "JsonSchema",
    "McpServerConfig",
    "ProviderStatus",
    "ToolCall",
    "ToolCallOutcome",
]
