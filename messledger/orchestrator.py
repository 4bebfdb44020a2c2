"""
Main Orchestrator for the Mess Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Session (load ledger → mutate → persist after every change)
2. Assistant (free text → proposal → user confirms → record added)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No assistant proposal reaches the ledger without human confirmation
- Every successful mutation is persisted before control returns
- Reports and stats are always computed against today's date

This is the "glue" between the pure ledger core and the outside world.
"""

from datetime import date
from typing import Any, Callable, Optional, Union
from uuid import UUID

from messledger.agents import LedgerAssistant
from messledger.config import LedgerSettings, Settings, get_settings
from messledger.engine import all_balances, compute_stats, member_balance
from messledger.ledger import LedgerStore
from messledger.log import create_correlation_id, get_logger
from messledger.models.ledger import (
    Deposit,
    Expense,
    Language,
    LedgerMode,
    LedgerStats,
    MemberBalance,
    TransactionProposal,
)
from messledger.queries import (
    CategorySelection,
    MonthlyReport,
    MonthView,
    available_periods,
    build_report,
    month_view,
    most_recent_first,
)
from messledger.services.storage import (
    GoogleSheetsLedgerStorage,
    JsonFileLedgerStorage,
    LedgerStorageInterface,
    StorageError,
)


logger = get_logger(__name__)


class LedgerSession:
    """
    One open ledger, kept in sync with its storage.

    Flow:
    1. Open → Load the snapshot (or start an empty ledger)
    2. Mutate → Any add, delete, toggle or rename on `store`
    3. Persist → The new snapshot is saved before the call returns

    Queries pass today's date as `as_of`.
    """

    def __init__(
        self,
        store: LedgerStore,
        storage: Optional[LedgerStorageInterface] = None,
        settings: Optional[LedgerSettings] = None,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self._storage = storage
        self._tracking_start = settings.tracking_start if settings else None
        self._today = today
        if storage is not None:
            store.subscribe(self._persist)

    @classmethod
    def open(
        cls,
        storage: LedgerStorageInterface,
        mode: LedgerMode = LedgerMode.SHARED,
        language: Language = Language.ENGLISH,
        settings: Optional[LedgerSettings] = None,
        today: Callable[[], date] = date.today,
    ) -> "LedgerSession":
        """
        Rehydrate a ledger from storage.

        `mode` and `language` only apply when storage holds nothing yet;
        a saved ledger keeps its own.
        """
        snapshot = storage.load_snapshot()
        if snapshot is None:
            store = LedgerStore(mode=mode, language=language)
            logger.info("ledger_created", mode=store.mode.value)
        else:
            store = LedgerStore.from_snapshot(snapshot)
            if store.mode != LedgerMode(mode):
                logger.warning(
                    "ledger_mode_mismatch",
                    stored=store.mode.value,
                    requested=LedgerMode(mode).value,
                )
            logger.info("ledger_opened", mode=store.mode.value)
        return cls(store, storage=storage, settings=settings, today=today)

    def _persist(self, store: LedgerStore) -> None:
        try:
            self._storage.save_snapshot(store.snapshot())
        except StorageError as e:
            logger.error("snapshot_save_failed", error=str(e))
            raise

    def today(self) -> date:
        return self._today()

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    def stats(self) -> LedgerStats:
        return compute_stats(self.store, self.today(), self._tracking_start)

    def balances(self) -> tuple[LedgerStats, list[MemberBalance]]:
        """Stats plus every member's balance. Shared mode only."""
        return all_balances(self.store, self.today())

    def member_balance(self, member_id: Union[UUID, str]) -> Optional[MemberBalance]:
        return member_balance(self.store, member_id, self.stats(), self.today())

    # -------------------------------------------------------------------------
    # Finances
    # -------------------------------------------------------------------------

    def recent_deposits(self) -> list[Deposit]:
        return most_recent_first(self.store.deposits)

    def recent_expenses(self) -> list[Expense]:
        return most_recent_first(self.store.expenses)

    def available_periods(self) -> tuple[list[int], dict[int, list[int]]]:
        return available_periods(self.store.deposits + self.store.expenses)

    def month_view(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        selection: Optional[CategorySelection] = None,
    ) -> MonthView:
        """Month view, defaulting to the current month."""
        today = self.today()
        return month_view(
            self.store,
            year or today.year,
            month or today.month,
            selection,
        )

    def report(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        selection: Optional[CategorySelection] = None,
    ) -> MonthlyReport:
        """Share report, defaulting to the current month."""
        today = self.today()
        return build_report(
            self.store,
            year or today.year,
            month or today.month,
            as_of=today,
            selection=selection,
            stats=self.stats(),
        )


class AssistantFlow:
    """
    Orchestrates the smart assistant flow.

    Flow:
    1. Propose → The assistant parses the user's note
    2. Review → The proposal is shown to the user (PAUSE)
    3. Confirm → The user explicitly approves; the record is added

    Human confirmation (step 3) is MANDATORY.
    A proposal that is never confirmed leaves no trace in the ledger.
    """

    def __init__(
        self,
        session: LedgerSession,
        assistant: Optional[LedgerAssistant] = None,
    ):
        self._session = session
        self._assistant = assistant or LedgerAssistant()

    async def propose(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[TransactionProposal]:
        """
        Ask the assistant for a proposal.

        Returns None when the note was empty or unclear.
        Assistant errors propagate to the caller unchanged.
        """
        correlation_id = correlation_id or create_correlation_id()
        log = logger.bind(correlation_id=str(correlation_id))

        log.info("assistant_requested", length=len(text or ""))
        return await self._assistant.propose(
            text,
            self._session.store.members,
            today=self._session.today(),
        )

    def confirm(
        self,
        proposal: TransactionProposal,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Union[Deposit, Expense]]:
        """
        Write a user-confirmed proposal to the ledger.

        CRITICAL: Call this ONLY after explicit user confirmation.
        The usual record checks apply (RecordValidationError).
        """
        correlation_id = correlation_id or create_correlation_id()
        record = self._session.store.apply_proposal(proposal)
        logger.info(
            "proposal_confirmed",
            correlation_id=str(correlation_id),
            action_type=proposal.action_type.value,
            record_id=str(record.id) if record else None,
        )
        return record


def create_storage(settings: Settings) -> LedgerStorageInterface:
    """Build the configured storage backend."""
    ledger = settings.ledger
    if ledger.storage_backend == "google_sheets":
        return GoogleSheetsLedgerStorage(default_mode=ledger.mode)
    return JsonFileLedgerStorage(
        ledger.data_file,
        default_mode=ledger.mode,
        default_language=ledger.default_language,
    )


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[LedgerStorageInterface] = None,
    assistant_model: Any = None,
) -> tuple[LedgerSession, Optional[AssistantFlow]]:
    """
    Factory function to create all application components.

    Args:
        settings: Application settings (default: get_settings())
        storage: Storage override; built from settings when omitted
        assistant_model: Model override for the assistant, mainly for tests

    Returns:
        (session, assistant_flow)

    assistant_flow is None when Gemini is not configured; the ledger
    works without it.
    """
    settings = settings or get_settings()
    ledger = settings.ledger

    session = LedgerSession.open(
        storage or create_storage(settings),
        mode=ledger.mode,
        language=ledger.default_language,
        settings=ledger,
    )

    try:
        assistant = LedgerAssistant(model=assistant_model)
    except Exception as e:
        # Assistant not configured - continue without it
        logger.warning("assistant_not_configured", error=str(e))
        return session, None

    return session, AssistantFlow(session, assistant)
