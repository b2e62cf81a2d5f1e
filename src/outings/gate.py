"""Destructive-change gate: one confirmation request in flight at a time.

The gate's state is an explicit variant, GateIdle or AwaitingConfirmation.
While a request is open, opening another one raises
ConfirmationPendingError; an unresolved confirmation is never replaced.

The dialog collaborator receives a ConfirmationRequest and must call exactly
one of on_confirm() / on_cancel(), exactly once.
"""

from collections.abc import Callable
from dataclasses import dataclass

from src.outings.errors import ConfirmationPendingError, GateError
from src.outings.logging import get_logger

log = get_logger(__name__)


class ConfirmationRequest:
    """Question put to the user: discard ``days_to_lose`` days?"""

    def __init__(
        self,
        days_to_lose: int,
        confirm_action: Callable[[], None],
        cancel_action: Callable[[], None],
        release: Callable[["ConfirmationRequest"], None],
    ) -> None:
        self.days_to_lose = days_to_lose
        self._confirm_action = confirm_action
        self._cancel_action = cancel_action
        self._release = release
        self._decision: str | None = None

    @property
    def resolved(self) -> bool:
        return self._decision is not None

    @property
    def confirmed(self) -> bool:
        return self._decision == "confirmed"

    @property
    def cancelled(self) -> bool:
        return self._decision == "cancelled"

    def on_confirm(self) -> None:
        self._resolve("confirmed", self._confirm_action)

    def on_cancel(self) -> None:
        self._resolve("cancelled", self._cancel_action)

    def _resolve(self, decision: str, action: Callable[[], None]) -> None:
        if self._decision is not None:
            raise GateError("Confirmation request was already resolved")
        self._decision = decision
        # Gate goes back to idle before the action runs
        self._release(self)
        log.info("confirmation_resolved", decision=decision, days_to_lose=self.days_to_lose)
        action()

    def __repr__(self) -> str:
        return (
            f"ConfirmationRequest(days_to_lose={self.days_to_lose}, "
            f"decision={self._decision!r})"
        )


@dataclass(frozen=True)
class GateIdle:
    pass


@dataclass(frozen=True)
class AwaitingConfirmation:
    request: ConfirmationRequest


GateState = GateIdle | AwaitingConfirmation


class ConfirmationGate:
    """Holds at most one open ConfirmationRequest."""

    def __init__(
        self, on_request: Callable[[ConfirmationRequest], None] | None = None
    ) -> None:
        """Initialize the gate.

        Args:
            on_request: Optional listener (the dialog) called whenever a new
                request opens.
        """
        self.on_request = on_request
        self._state: GateState = GateIdle()

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def is_awaiting(self) -> bool:
        return isinstance(self._state, AwaitingConfirmation)

    @property
    def request(self) -> ConfirmationRequest | None:
        if isinstance(self._state, AwaitingConfirmation):
            return self._state.request
        return None

    def open(
        self,
        days_to_lose: int,
        on_confirm: Callable[[], None],
        on_cancel: Callable[[], None],
    ) -> ConfirmationRequest:
        """Open a request.

        Raises:
            ConfirmationPendingError: If a request is already open.
            ValueError: If days_to_lose is not positive.
        """
        if self.is_awaiting:
            raise ConfirmationPendingError(
                "A destructive change is already awaiting confirmation"
            )
        if days_to_lose <= 0:
            raise ValueError(f"days_to_lose must be positive, got {days_to_lose}")

        request = ConfirmationRequest(days_to_lose, on_confirm, on_cancel, self._release)
        self._state = AwaitingConfirmation(request)
        log.info("confirmation_requested", days_to_lose=days_to_lose)

        if self.on_request is not None:
            self.on_request(request)
        return request

    def confirm(self) -> None:
        self._open_request().on_confirm()

    def cancel(self) -> None:
        self._open_request().on_cancel()

    def _open_request(self) -> ConfirmationRequest:
        request = self.request
        if request is None:
            raise GateError("No confirmation request is open")
        return request

    def _release(self, request: ConfirmationRequest) -> None:
        if self.request is request:
            self._state = GateIdle()
