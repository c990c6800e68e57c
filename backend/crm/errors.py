"""Typed failures returned by the transition authority.

Every error carries enough structured detail for a caller to explain the
rejection (``to_dict``). None of them leave partial writes behind.
"""

from typing import Any


class TransitionError(Exception):
    code = "transition_error"

    def __init__(self, message: str, **detail: Any):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, **self.detail}


class NotFoundError(TransitionError):
    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found", entity=entity, entity_id=str(entity_id))


class InvalidStateError(TransitionError):
    code = "invalid_state"

    def __init__(self, message: str, current_status: str, required_status: str | None = None, **detail: Any):
        self.current_status = current_status
        self.required_status = required_status
        super().__init__(message, current_status=current_status, required_status=required_status, **detail)


class GateUnsatisfiedError(TransitionError):
    code = "gate_unsatisfied"

    def __init__(self, message: str, gate: str, value: float, threshold: float):
        self.gate = gate
        self.value = value
        self.threshold = threshold
        super().__init__(message, gate=gate, value=value, threshold=threshold)


class ConflictingOpenResourceError(TransitionError):
    """A second OPEN opportunity or a second deal was about to be created.

    ``retryable`` is True when the conflict came from a concurrent writer and
    the caller should re-read the contact and try again.
    """

    code = "conflicting_open_resource"

    def __init__(self, message: str, resource: str, existing_id: Any = None, retryable: bool = False):
        self.resource = resource
        self.existing_id = existing_id
        self.retryable = retryable
        super().__init__(
            message,
            resource=resource,
            existing_id=str(existing_id) if existing_id else None,
            retryable=retryable,
        )


class SideEffectFailure(Exception):
    """Notification or email delivery failed. Raised inside workers only."""

    def __init__(self, kind: str, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(f"{kind}: {reason}")
