"""Error hierarchy for outing storage and the confirmation protocol.

Storage failures are split into transient (should retry) and permanent
(should not retry) so tenacity retry decorators can classify them:

    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def _request(...):
        ...

Date-ordering problems are not exceptions: they come back as a
DateRangeRejection result from the reconciler.
"""


class OutingsError(Exception):
    """Base exception for all outing planner errors."""

    pass


class TransientError(OutingsError):
    """Temporary storage failure that may succeed on retry.

    Examples: connection reset, timeouts, 502/503/504 from the record service.
    """

    pass


class RateLimitError(TransientError):
    """Record service answered 429 - needs longer backoff.

    Inherits from TransientError so tenacity will retry it.
    """

    pass


class PermanentError(OutingsError):
    """Storage failure that won't succeed on retry.

    Examples: 400 Bad Request, 401/403, malformed record on disk.
    """

    pass


class RecordNotFoundError(PermanentError):
    """No outing record exists under the requested id."""

    def __init__(self, outing_id: str) -> None:
        super().__init__(f"Outing {outing_id!r} not found")
        self.outing_id = outing_id


class StoreNotConfiguredError(OutingsError):
    """The editor was asked to save or load without a storage collaborator."""

    pass


class GateError(OutingsError):
    """The destructive-change confirmation protocol was misused.

    Raised when a request is resolved twice, or resolved while none is open.
    """

    pass


class ConfirmationPendingError(GateError):
    """A destructive change is awaiting confirmation.

    Date edits (and new confirmation requests) are refused until the open
    request is confirmed or cancelled.
    """

    pass
