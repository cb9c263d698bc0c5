"""
Configuration Settings.

This module defines two layers of configuration:

- `Settings`: process settings bound from environment variables and the .env
  file through Pydantic's BaseSettings.
- `AgentConfig` (see `toolgate.permission.models`): the mutable runtime
  configuration built from `Settings` and shared through
  `toolgate.permission.context.ConfigContext`.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from toolgate.mcp_client.schemas.config import McpServerConfig
from toolgate.permission.models import AgentConfig, ToolPermissions
from toolgate.permission.store import GrantStore, JsonFileGrantStore

# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    List and mapping fields are read as JSON, e.g.
    ``TOOLGATE_MCP_SERVERS='[{"name": "fs", "command": "uvx", "args": ["mcp-server-fs"]}]'``.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="TOOLGATE_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log line format (simple, detailed, json)",
        alias="TOOLGATE_LOG_FORMAT",
    )
    enable_file_logging: bool = Field(
        default=False,
        description="Also write DEBUG logs to a file under log_file_dir",
        alias="TOOLGATE_ENABLE_FILE_LOGGING",
    )
    log_file_dir: str = Field(
        default="logs",
        description="Directory for the log file when file logging is enabled",
        alias="TOOLGATE_LOG_FILE_DIR",
    )

    # =====================================================================
    # Tool Permission Configuration
    # =====================================================================
    verbose_tool_calls: bool = Field(
        default=False,
        description="Print an audit line for every permission decision",
        alias="TOOLGATE_VERBOSE_TOOL_CALLS",
    )
    tool_call_permission: Optional[str] = Field(
        default=None,
        description="Default permission level (always, never, ask)",
        alias="TOOLGATE_TOOL_CALL_PERMISSION",
    )
    tool_permissions: Optional[ToolPermissions] = Field(
        default=None,
        description="Global allow/deny/ask pattern lists as JSON",
        alias="TOOLGATE_TOOL_PERMISSIONS",
    )
    grant_store_path: Optional[str] = Field(
        default=None,
        description="JSON file where 'approve for session' grants are persisted",
        alias="TOOLGATE_GRANT_STORE_PATH",
    )

    # =====================================================================
    # MCP Provider Configuration
    # =====================================================================
    mcp_servers: List[McpServerConfig] = Field(
        default_factory=list,
        description="MCP servers as a JSON list",
        alias="TOOLGATE_MCP_SERVERS",
    )

    def grant_store(self) -> Optional[GrantStore]:
        """Return the configured grant store, or None when grants are not persisted."""
        if not self.grant_store_path:
            return None
        return JsonFileGrantStore(self.grant_store_path)

    def to_agent_config(self) -> AgentConfig:
        """Build the runtime configuration from these settings."""
        return AgentConfig(
            mcp_servers=list(self.mcp_servers),
            tool_call_permission=self.tool_call_permission,
            tool_permissions=self.tool_permissions,
            verbose_tool_calls=self.verbose_tool_calls,
        )


settings = Settings()
