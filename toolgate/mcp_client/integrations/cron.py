"""Typed client for a cron-management MCP server.

The server answers every tool with an envelope::

    {"tool": "cron_list_jobs", "ok": true, "status": "ok", "result": {...}}

either as the raw result or as JSON text in the first content block of a
``CallToolResult``. `CronMcpClient` unwraps the envelope and validates the
payload into the models below.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import Field, JsonValue, ValidationError

from ..errors import EnvelopeError
from ..naming import build_tool_name
from ..registry import CapabilityRegistry
from ..schemas.base import WireSchema

logger = logging.getLogger(__name__)


class EnvelopeErrorDetail(WireSchema):
    message: str


class ToolEnvelope(WireSchema):
    tool: str
    ok: bool
    status: str
    result: JsonValue = None
    error: Optional[EnvelopeErrorDetail] = None

    def error_message(self) -> Optional[str]:
        return self.error.message if self.error is not None else None


class CronJob(WireSchema):
    id: str
    schedule: str
    command: str
    description: Optional[str] = None
    enabled: bool
    source: str
    raw_lines: List[str] = Field(default_factory=list, description="Crontab lines backing this job.")


class DiffChange(WireSchema):
    change_type: str = Field(..., alias="type")
    before: Optional[str] = None
    after: Optional[str] = None


class CronDiff(WireSchema):
    is_noop: bool
    before: str
    after: str
    changes: List[DiffChange] = Field(default_factory=list)
    unified: Optional[str] = None


class SafetyIssue(WireSchema):
    code: str
    severity: str
    message: str
    details: JsonValue = None


class SafetyReport(WireSchema):
    issues: List[SafetyIssue] = Field(default_factory=list)
    can_proceed: bool


class MutationResponse(WireSchema):
    status: str
    dry_run: Optional[bool] = None
    job: Optional[CronJob] = None
    jobs: Optional[List[CronJob]] = None
    diff: Optional[CronDiff] = None
    safety: SafetyReport
    backup_path: Optional[str] = None


def parse_tool_envelope(tool: str, raw: JsonValue) -> ToolEnvelope:
    """Extract the envelope from a raw tool result.

    Raises:
        EnvelopeError: If ``raw`` matches neither accepted shape.
    """
    try:
        if isinstance(raw, dict) and "tool" in raw:
            return ToolEnvelope.model_validate(raw)
        if isinstance(raw, dict) and isinstance(raw.get("content"), list):
            content = raw["content"]
            if not content:
                raise EnvelopeError(tool, f"Empty content in '{tool}' response")
            first = content[0]
            text = first.get("text") if isinstance(first, dict) else None
            if isinstance(text, str):
                return ToolEnvelope.model_validate_json(text)
    except ValidationError as e:
        raise EnvelopeError(tool, f"Invalid envelope in '{tool}' response: {e}") from e
    raise EnvelopeError(tool, f"Unrecognized MCP tool result shape for '{tool}'")


class CronMcpClient:
    """Typed wrapper for the cron tools of one MCP provider."""

    def __init__(self, registry: CapabilityRegistry, provider_name: str) -> None:
        self._registry = registry
        self._provider_name = provider_name

    @property
    def provider_name(self) -> str:
        return self._provider_name

    async def _call(self, tool: str, arguments: Optional[Dict[str, Any]], fallback: str) -> JsonValue:
        name = build_tool_name(self._provider_name, tool)
        raw = await self._registry.dispatch(name, arguments)
        envelope = parse_tool_envelope(tool, raw)
        if not envelope.ok:
            message = envelope.error_message() or fallback
            logger.debug("Cron tool %s returned ok=false (status=%s): %s", tool, envelope.status, message)
            raise EnvelopeError(tool, message)
        return envelope.result

    async def _mutation(self, tool: str, arguments: Dict[str, Any], fallback: str) -> MutationResponse:
        result = await self._call(tool, arguments, fallback)
        if result is None:
            raise EnvelopeError(tool, f"Missing result in {tool} response")
        try:
            return MutationResponse.model_validate(result)
        except ValidationError as e:
            raise EnvelopeError(tool, f"Invalid {tool} result: {e}") from e

    async def list_jobs(self, enabled: Optional[bool] = None, source: Optional[str] = None) -> List[CronJob]:
        """List cron jobs, optionally filtered by enabled flag and source."""
        args: Dict[str, Any] = {}
        if enabled is not None:
            args["enabled"] = enabled
        if source is not None:
            args["source"] = source
        tool = "cron_list_jobs"
        result = await self._call(tool, args or None, f"{tool} failed")
        if result is None:
            raise EnvelopeError(tool, f"Missing result in {tool} response")
        jobs = result.get("jobs", []) if isinstance(result, dict) else None
        if not isinstance(jobs, list):
            raise EnvelopeError(tool, f"Invalid {tool} result: 'jobs' is not a list")
        try:
            return [CronJob.model_validate(job) for job in jobs]
        except ValidationError as e:
            raise EnvelopeError(tool, f"Invalid {tool} result: {e}") from e

    async def create_or_update_job(
        self,
        command: str,
        schedule: str,
        description: Optional[str] = None,
        force_update: bool = False,
        dry_run: bool = False,
    ) -> MutationResponse:
        args: Dict[str, Any] = {"command": command, "schedule": schedule}
        if description is not None:
            args["description"] = description
        if force_update:
            args["forceUpdate"] = True
        if dry_run:
            args["dryRun"] = True
        return await self._mutation("cron_create_or_update_job", args, "create_or_update blocked")

    async def disable_job_by_command(self, command: str, dry_run: bool = False) -> MutationResponse:
        return await self._by_command("cron_disable_job", command, dry_run)

    async def enable_job_by_command(self, command: str, dry_run: bool = False) -> MutationResponse:
        return await self._by_command("cron_enable_job", command, dry_run)

    async def delete_job_by_command(self, command: str, dry_run: bool = False) -> MutationResponse:
        return await self._by_command("cron_delete_job", command, dry_run)

    async def _by_command(self, tool: str, command: str, dry_run: bool) -> MutationResponse:
        args: Dict[str, Any] = {"command": command}
        if dry_run:
            args["dryRun"] = True
        return await self._mutation(tool, args, f"{tool} blocked")

    async def explain_schedule(self, schedule: str, occurrences: Optional[int] = None) -> JsonValue:
        """Return the server's explanation of ``schedule`` as raw JSON."""
        args: Dict[str, Any] = {"schedule": schedule}
        if occurrences is not None:
            args["showNextOccurrences"] = occurrences
        return await self._call("cron_explain_schedule", args, "cron_explain_schedule blocked")

    async def nl_to_cron(self, text: str) -> JsonValue:
        """Translate a natural-language schedule into cron syntax via the server."""
        return await self._call("cron_nl_to_cron", {"text": text}, "cron_nl_to_cron blocked")
