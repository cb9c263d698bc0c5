"""Shared pydantic bases for toolgate models.

Everything toolgate serializes speaks camelCase on the wire: MCP payloads
(``inputSchema``, ``isError``), the agent config file
(``toolCallPermission``, ``mcpServers``) and the JSON grant file. Python code
uses the snake_case field names; both spellings are accepted on input.

Two variants exist:

- `BaseSchema` for data toolgate owns (server configs, permission policy,
  persisted grants, function declarations). Unknown keys are rejected so a
  misspelled policy key fails instead of silently loosening the gate.
- `WireSchema` for payloads produced by a provider (cron envelopes and
  results). Providers add fields over time, so unknown keys are dropped.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        alias_generator=to_camel,
    )


class WireSchema(BaseSchema):
    model_config = ConfigDict(extra="ignore")
