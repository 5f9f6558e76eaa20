"""
Module: invoicing_engines.allocation_session
Responsibility:
    The editing session over one entity's allocations: load the persisted
    rows, edit a local working copy, validate, and hand the complete set to
    a persistence collaborator (replace-all).

Architecture position:
    Engines -- holds the working copy of ONE session. Persistence is
    delegated to an ``AllocationPersister`` supplied by the caller; this
    module performs no I/O of its own.

State machine (``ALLOCATION_SESSION_WORKFLOW``):

    LOADED --edit--> EDITING --edit--> EDITING
    LOADED | EDITING --save--> VALIDATING
    VALIDATING --accept--> SAVED
    VALIDATING --reject--> EDITING      (rule violation, result returned)
    VALIDATING --fail--> EDITING        (persister raised, error re-raised)
    LOADED | EDITING --discard--> DISCARDED

    SAVED and DISCARDED are terminal.

Invariants enforced:
    - There is no partial save: the persister receives every row, as
      ``(target_id, percentage)`` pairs only. Amounts are never sent.
    - At most one save is in flight per session; a second ``save()`` while
      VALIDATING raises ``SaveInProgressError``.
    - Persistence failures propagate unchanged. The session never retries.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol

from invoicing_config.schema import CalculationSettings
from invoicing_engines.allocation import AllocationDistributor, AllocationSummary, WeightEntry
from invoicing_engines.allocation_validator import AllocationValidator
from invoicing_kernel.domain.allocations import Allocation, AllocationSet
from invoicing_kernel.domain.dtos import ValidationResult
from invoicing_kernel.domain.values import Money, Numeric, to_decimal
from invoicing_kernel.domain.workflow import Transition, Workflow
from invoicing_kernel.exceptions import InvalidSessionTransitionError, SaveInProgressError
from invoicing_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.allocation_session")


class SessionState:
    LOADED = "loaded"
    EDITING = "editing"
    VALIDATING = "validating"
    SAVED = "saved"
    DISCARDED = "discarded"


ALLOCATION_SESSION_WORKFLOW = Workflow(
    name="allocation_edit_session",
    initial_state=SessionState.LOADED,
    states=(
        SessionState.LOADED,
        SessionState.EDITING,
        SessionState.VALIDATING,
        SessionState.SAVED,
        SessionState.DISCARDED,
    ),
    transitions=(
        Transition(SessionState.LOADED, SessionState.EDITING, "edit"),
        Transition(SessionState.EDITING, SessionState.EDITING, "edit"),
        Transition(SessionState.LOADED, SessionState.VALIDATING, "save"),
        Transition(SessionState.EDITING, SessionState.VALIDATING, "save"),
        Transition(SessionState.VALIDATING, SessionState.SAVED, "accept"),
        Transition(SessionState.VALIDATING, SessionState.EDITING, "reject"),
        Transition(SessionState.VALIDATING, SessionState.EDITING, "fail"),
        Transition(SessionState.LOADED, SessionState.DISCARDED, "discard"),
        Transition(SessionState.EDITING, SessionState.DISCARDED, "discard"),
    ),
    terminal_states=(SessionState.SAVED, SessionState.DISCARDED),
)


class AllocationPersister(Protocol):
    """The external collaborator that stores an entity's allocations."""

    def replace_allocations(
        self,
        entity_id: str,
        pairs: list[tuple[str, Decimal]],
    ) -> None:
        """Replace every stored allocation of ``entity_id`` with ``pairs``."""
        ...


_UNSET = object()


class AllocationEditSession:
    """
    Working copy of one entity's allocations.

    Create with ``AllocationEditSession.load(...)``. Every edit replaces the
    immutable ``working`` set; ``save()`` validates it and, when valid, hands
    it to the persister in full.
    """

    def __init__(
        self,
        entity_id: str,
        working: AllocationSet,
        persister: AllocationPersister,
        settings: CalculationSettings | None = None,
    ):
        self._settings = settings or CalculationSettings()
        self._entity_id = entity_id
        self._working = working
        self._persister = persister
        self._distributor = AllocationDistributor(self._settings)
        self._validator = AllocationValidator(self._settings)
        self._state = ALLOCATION_SESSION_WORKFLOW.initial_state
        self._last_result: ValidationResult | None = None

    @classmethod
    def load(
        cls,
        entity_id: str,
        source_amount: Money,
        allocations: Sequence[tuple[str | None, Numeric]],
        persister: AllocationPersister,
        settings: CalculationSettings | None = None,
    ) -> AllocationEditSession:
        """Start a session from the entity's persisted ``(target_id, percentage)`` rows."""
        session = cls(
            entity_id=entity_id,
            working=AllocationSet.of(source_amount, allocations),
            persister=persister,
            settings=settings,
        )
        logger.info("allocation_session_loaded", extra={
            "entity_id": entity_id,
            "allocation_count": len(session._working),
            "source_amount": str(source_amount.amount),
        })
        return session

    # State

    @property
    def entity_id(self) -> str:
        return self._entity_id

    @property
    def state(self) -> str:
        return self._state

    @property
    def working(self) -> AllocationSet:
        return self._working

    @property
    def last_result(self) -> ValidationResult | None:
        return self._last_result

    def _transition(self, action: str) -> None:
        transition = ALLOCATION_SESSION_WORKFLOW.find(self._state, action)
        if transition is None:
            raise InvalidSessionTransitionError(self._state, action)
        if transition.from_state != transition.to_state:
            logger.debug("allocation_session_transition", extra={
                "entity_id": self._entity_id,
                "from_state": transition.from_state,
                "to_state": transition.to_state,
                "action": action,
            })
        self._state = transition.to_state

    def _edit(self, working: AllocationSet) -> AllocationSet:
        self._transition("edit")
        self._working = working
        return working

    # Derived views

    def with_amounts(self) -> AllocationSet:
        """The working copy with display amounts filled in."""
        return self._distributor.with_amounts(self._working)

    def summary(self) -> AllocationSummary:
        return self._distributor.summarize(self._working)

    def validate(self) -> ValidationResult:
        """Inline validation of the working copy; does not change state."""
        return self._validator.validate(self._working, entity_id=self._entity_id)

    # Edits

    def add_target(
        self,
        target_id: str | None = None,
        percentage: Numeric | None = None,
    ) -> AllocationSet:
        """Append a row, pre-filled with the remaining percentage by default."""
        if percentage is None:
            percentage = self._distributor.next_row_percentage(self._working)
        row = Allocation(target_id=target_id, percentage=to_decimal(percentage, "percentage"))
        return self._edit(self._working.appended(row))

    def update(self, index: int, target_id=_UNSET, percentage=_UNSET) -> AllocationSet:
        """Change the target and/or percentage of the row at ``index``."""
        current = self._working.allocations[index] if 0 <= index < len(self._working) else None
        if current is None:
            raise IndexError(f"No allocation at position {index}")
        row = Allocation(
            target_id=current.target_id if target_id is _UNSET else target_id,
            percentage=(
                current.percentage if percentage is _UNSET
                else to_decimal(percentage, "percentage")
            ),
        )
        return self._edit(self._working.replaced_at(index, row))

    def remove(self, index: int) -> AllocationSet:
        return self._edit(self._working.removed_at(index))

    def split_evenly(self) -> AllocationSet:
        """
        Even split across the rows that have a target.

        Rows without a target keep their position and value.
        """
        targeted = [i for i, a in enumerate(self._working.allocations) if a.has_target]
        if not targeted:
            logger.warning("allocation_session_split_skipped", extra={
                "entity_id": self._entity_id,
                "reason": "no rows with a target",
            })
            return self._working

        split = self._distributor.even_split(
            [self._working.allocations[i].target_id for i in targeted]
        )
        rows = list(self._working.allocations)
        for i, allocation in zip(targeted, split):
            rows[i] = allocation
        return self._edit(self._working.with_allocations(rows))

    def apply_proportional(self, entries: Sequence[WeightEntry]) -> AllocationSet:
        """Replace every row with a split proportional to measured quantities."""
        split = self._distributor.proportional_split_from_entries(entries)
        return self._edit(self._working.with_allocations(split))

    # Terminal actions

    def save(self) -> ValidationResult:
        """
        Validate and persist the whole working copy.

        Returns the ``ValidationResult``. On a rule violation the session is
        back in EDITING and nothing was persisted.

        Raises:
            SaveInProgressError: a save for this session is still running.
            InvalidSessionTransitionError: the session is SAVED or DISCARDED.
            BaseException: whatever the persister raises, unchanged,
                including cancellation.
        """
        if self._state == SessionState.VALIDATING:
            raise SaveInProgressError(self._entity_id)
        self._transition("save")

        with LogContext.bind(entity_id=self._entity_id):
            result = self._validator.validate(self._working, entity_id=self._entity_id)
            self._last_result = result
            if not result:
                self._transition("reject")
                logger.info("allocation_session_save_rejected", extra={
                    "error_codes": list(result.error_codes),
                })
                return result

            pairs = [(a.target_id, a.percentage) for a in self._working.allocations]
            try:
                self._persister.replace_allocations(self._entity_id, pairs)
            except BaseException:
                self._transition("fail")
                logger.warning("allocation_session_persist_failed", exc_info=True)
                raise

            self._transition("accept")
            logger.info("allocation_session_saved", extra={
                "allocation_count": len(pairs),
                "total_percentage": str(self._working.total_percentage),
            })
        return result

    def discard(self) -> None:
        """Abandon the working copy. The persister is not contacted."""
        self._transition("discard")
        logger.info("allocation_session_discarded", extra={"entity_id": self._entity_id})
