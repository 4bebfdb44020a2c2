"""
Smart Assistant for the Mess Ledger

Turns a free-text note ("Rahim paid 500", "বাজার ৩০০ টাকা") into a
TransactionProposal.

CRITICAL BOUNDARIES:
- CAN: Parse English or Bangla text into a deposit or an expense
- CAN: Match a mentioned member against the current member list
- CANNOT: Write anything to the ledger. A proposal becomes a record
  only after the user confirms it (see AssistantFlow.confirm)
- CANNOT: Guess. An unclear note yields no proposal at all

The LLM is a TRANSLATOR, not an ORACLE.
It converts a sentence into a structured operation and nothing else.
"""

import json
from datetime import date
from typing import Any, Iterable, Optional

import google.generativeai as genai
from pydantic import ValidationError

from messledger.config import get_settings
from messledger.log import get_logger
from messledger.models.ledger import Member, TransactionProposal


logger = get_logger(__name__)


SYSTEM_INSTRUCTION = """You are a helpful assistant for a shared mess expense tracker.
Your job is to parse natural language user input into structured data for either a "Deposit" or an "Expense".
The user input might be in English or Bangla (Bengali). You should understand both.

Rules:
1. If the input looks like someone paying money TO the mess/fund, it is a DEPOSIT.
2. If the input looks like buying items, shopping, or spending money, it is an EXPENSE.
3. If the member is mentioned, try to match their ID. If ambiguous, use closest match.
4. Return null if the input is unclear.
5. 'summary' field should be in the same language as the user's input (English or Bangla)."""


RESPONSE_FORMAT = """Respond with ONLY a JSON object in this exact format, or null:
{"actionType": "DEPOSIT" | "EXPENSE" | "UNKNOWN",
 "amount": 0,
 "date": "YYYY-MM-DD",
 "memberId": "ID of the member, deposits only",
 "shopperName": "who did the shopping, expenses only",
 "items": "what was bought, expenses only",
 "summary": "a short confirmation message of what was parsed"}"""


class AssistantError(Exception):
    """Base exception for assistant errors."""
    pass


class AssistantUnavailableError(AssistantError):
    """The model could not be reached or refused to answer."""
    pass


class AssistantParseError(AssistantError):
    """The model answered, but not with a usable proposal."""
    pass


def describe_members(members: Iterable[Member]) -> str:
    """Member list as the model sees it: "Name (ID: id), ..."."""
    return ", ".join(f"{m.name} (ID: {m.id})" for m in members)


def build_prompt(text: str, members: Iterable[Member], today: date) -> str:
    return (
        f"Current Date: {today.isoformat()}\n"
        f"Existing Members: {describe_members(members) or 'none'}\n\n"
        f"{RESPONSE_FORMAT}\n\n"
        f"User input: {text}"
    )


def parse_proposal(text: str) -> Optional[TransactionProposal]:
    """
    Parse the model's raw answer.

    Returns None for an empty or `null` answer.
    Raises AssistantParseError for anything else that is not a proposal.
    """
    text = (text or "").strip()
    if not text or text == "null":
        return None

    # Find JSON in response
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise AssistantParseError(f"No JSON object in assistant response: {text[:100]}")

    try:
        data: Any = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise AssistantParseError(f"Invalid JSON from assistant: {e}") from e

    try:
        return TransactionProposal.model_validate(data)
    except ValidationError as e:
        raise AssistantParseError(f"Assistant response is not a transaction: {e}") from e


class LedgerAssistant:
    """
    Gemini-backed parser from free text to a TransactionProposal.

    BOUNDARIES:
    - NEVER persists data
    - NEVER retries; a failed call is reported to the user as-is
    """

    def __init__(self, model: Any = None):
        """
        Args:
            model: Anything with an async `generate_content_async(prompt)`.
                Defaults to a Gemini model built from GeminiSettings.
        """
        self._model = model if model is not None else self._create_model()

    @staticmethod
    def _create_model() -> Any:
        """Configure Google Generative AI."""
        settings = get_settings().gemini
        genai.configure(api_key=settings.api_key)
        return genai.GenerativeModel(
            model_name=settings.model_name,
            system_instruction=SYSTEM_INSTRUCTION,
            generation_config={
                "temperature": settings.temperature,
                "max_output_tokens": settings.max_tokens,
                "response_mime_type": "application/json",
            },
        )

    async def propose(
        self,
        text: str,
        members: Iterable[Member],
        today: Optional[date] = None,
    ) -> Optional[TransactionProposal]:
        """
        Propose a deposit or expense for a free-text note.

        Args:
            text: What the user typed, in English or Bangla
            members: Current members, so the model can pick a memberId
            today: Date the model resolves "today"/"yesterday" against

        Returns:
            The proposal, or None when the text is empty or unclear
        """
        if not text or not text.strip():
            return None

        prompt = build_prompt(text.strip(), list(members), today or date.today())

        try:
            response = await self._model.generate_content_async(prompt)
            raw = response.text
        except Exception as e:
            logger.warning("assistant_failed", error=str(e))
            raise AssistantUnavailableError(f"Assistant call failed: {e}") from e

        try:
            proposal = parse_proposal(raw)
        except AssistantParseError as e:
            logger.warning("assistant_unparseable", error=str(e))
            raise

        if proposal is None:
            logger.info("assistant_no_proposal")
        else:
            logger.info(
                "assistant_proposed",
                action_type=proposal.action_type.value,
                amount=str(proposal.amount),
            )
        return proposal
