from __future__ import annotations


class VouchindError(Exception):
    """Base class for indexer errors."""


class RPCError(VouchindError):
    """The node answered with a JSON-RPC error payload."""

    def __init__(self, method: str, code: int | None, message: str | None) -> None:
        super().__init__(f"RPC error on {method}: {code} {message}")
        self.method = method
        self.code = code
        self.message = message


class UnknownEventError(VouchindError):
    """No handler is registered for the event type."""


class MissingGoalError(VouchindError):
    """An event refers to a goal id with no Goal row (strict policy only)."""

    def __init__(self, goal_id: int, event_type: str, activity_id: str) -> None:
        super().__init__(
            f"{event_type} at {activity_id} refers to unknown goal {goal_id}; backfill its GoalCreated first"
        )
        self.goal_id = goal_id
        self.event_type = event_type
        self.activity_id = activity_id


class EventProcessingError(VouchindError):
    """Applying one event failed; none of its mutations were committed."""

    def __init__(self, activity_id: str, cause: BaseException) -> None:
        super().__init__(f"failed to apply event {activity_id}: {type(cause).__name__}: {cause}")
        self.activity_id = activity_id
        self.cause = cause
