"""Interactive confirmation of tool calls.

`Prompter.ask` blocks on user input; the permission engine runs it in a worker
thread so the event loop keeps serving other tasks.
"""

from __future__ import annotations

import json
import sys
import threading
from typing import Optional, Protocol, runtime_checkable

from pydantic import JsonValue
from rich.console import Console
from rich.prompt import Prompt
from rich.text import Text

from ..mcp_client.schemas.core import ToolCall
from .models import ConfirmChoice

_MAX_ARGS_DISPLAY = 400

# One terminal, one question at a time.
_PROMPT_LOCK = threading.Lock()


@runtime_checkable
class Prompter(Protocol):
    def is_interactive(self) -> bool: ...

    def ask(self, call: ToolCall) -> ConfirmChoice: ...


def format_arguments(arguments: JsonValue, limit: int = _MAX_ARGS_DISPLAY) -> str:
    """Render tool arguments for display, truncated to ``limit`` characters."""
    if isinstance(arguments, dict):
        text = json.dumps(arguments, indent=2, ensure_ascii=False, default=str)
    else:
        text = json.dumps(arguments, ensure_ascii=False, default=str)
    if len(text) > limit:
        return f"{text[:limit]}... (truncated)"
    return text


class TerminalPrompter(Prompter):
    """Three-way confirmation on the attached terminal, rendered with rich."""

    CHOICES = {
        "once": ConfirmChoice.once,
        "session": ConfirmChoice.session,
        "no": ConfirmChoice.deny,
    }

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console()

    def is_interactive(self) -> bool:
        return sys.stdin.isatty() and self._console.is_terminal

    def ask(self, call: ToolCall) -> ConfirmChoice:
        with _PROMPT_LOCK:
            self._console.print()
            self._console.print(Text.assemble("Can I run ", (call.name, "cyan"), " with the following arguments?"))
            self._console.print(Text(format_arguments(call.arguments), style="dim"))
            try:
                answer = Prompt.ask(
                    "Allow this tool call? [dim](once = this time only, session = for this session)[/dim]",
                    console=self._console,
                    choices=list(self.CHOICES),
                    default="no",
                )
            except (EOFError, KeyboardInterrupt):
                return ConfirmChoice.deny
        return self.CHOICES.get(answer.strip().lower(), ConfirmChoice.deny)
