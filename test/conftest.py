from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pytest

# Load dotenv files early so test fixtures can read settings via os.getenv
try:  # pragma: no cover
    from dotenv import load_dotenv

    TEST_ROOT = Path(__file__).resolve().parent
    # Load test/.env first, then fallback to test/.env.example for defaults
    load_dotenv(TEST_ROOT / ".env", override=False)
    load_dotenv(TEST_ROOT / ".env.example", override=False)
except ImportError:
    pass

from toolgate.mcp_client.schemas.core import ToolCall
from toolgate.permission.models import ConfirmChoice


class FakePrompter:
    """Records every question and answers with a scripted choice."""

    def __init__(self, *, interactive: bool = True, choice: ConfirmChoice = ConfirmChoice.deny) -> None:
        self.interactive = interactive
        self.choice = choice
        self.asked: List[ToolCall] = []
        self.error: Optional[Exception] = None

    def is_interactive(self) -> bool:
        return self.interactive

    def ask(self, call: ToolCall) -> ConfirmChoice:
        self.asked.append(call)
        if self.error is not None:
            raise self.error
        return self.choice


@pytest.fixture
def prompter() -> FakePrompter:
    return FakePrompter()


@pytest.fixture
def no_tty_prompter() -> FakePrompter:
    return FakePrompter(interactive=False)
