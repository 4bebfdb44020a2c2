"""AI agents package."""

from messledger.agents.assistant import (
    AssistantError,
    AssistantParseError,
    AssistantUnavailableError,
    LedgerAssistant,
    build_prompt,
    parse_proposal,
)

__all__ = [
    "AssistantError",
    "AssistantParseError",
    "AssistantUnavailableError",
    "LedgerAssistant",
    "build_prompt",
    "parse_proposal",
]
