"""
Ledger Errors
=============

Every rejection raised by the ledger. A raised error always means the
operation left no state behind.

Each error exposes:
- kind: stable name surfaced to callers (e.g. "CanvasFinished")
- category: validation, lookup, state, authorization or concurrency
- status_code: HTTP status the API layer maps it to
- transient: True when retrying later or after another caller acts may help
"""

from typing import Any, Dict


class LedgerError(Exception):
    """Base class for ledger rejections."""

    category = "ledger"
    status_code = 400
    transient = False

    def __init__(self, message: str, **fields: Any):
        super().__init__(message)
        self.message = message
        self.fields = fields

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind,
            "category": self.category,
            "message": self.message,
            "transient": self.transient,
            **self.fields,
        }


# Validation

class ValidationFailed(LedgerError):
    category = "validation"
    status_code = 400


class InvalidDimensions(ValidationFailed):
    def __init__(self, width: int, height: int):
        super().__init__(
            f"Canvas dimensions must be positive, got {width}x{height}",
            width=width, height=height,
        )


class InvalidDuration(ValidationFailed):
    def __init__(self, max_duration_ticks: int):
        super().__init__(
            f"Canvas duration must be positive, got {max_duration_ticks}",
            max_duration_ticks=max_duration_ticks,
        )


class CoordinatesOutOfBounds(ValidationFailed):
    def __init__(self, canvas_id: int, x: int, y: int, width: int, height: int):
        super().__init__(
            f"({x}, {y}) is outside canvas {canvas_id} ({width}x{height})",
            canvas_id=canvas_id, x=x, y=y,
        )


class InvalidColor(ValidationFailed):
    def __init__(self, color: int):
        super().__init__(f"Color must be within 0..255, got {color}", color=color)


class InvalidArtworkReference(ValidationFailed):
    def __init__(self, canvas_id: int):
        super().__init__(
            f"Claiming canvas {canvas_id} requires a non-empty artwork reference",
            canvas_id=canvas_id,
        )


class InvalidCaller(ValidationFailed):
    def __init__(self):
        super().__init__("Caller identity must not be empty")


class InvalidOperator(ValidationFailed):
    def __init__(self, owner: str, operator: str):
        super().__init__(
            f"{operator!r} cannot be made an operator for {owner!r}",
            owner=owner, operator=operator,
        )


class InvalidReceiver(ValidationFailed):
    def __init__(self, token_id: int):
        super().__init__(
            f"Token {token_id} cannot be sent to an empty identity",
            token_id=token_id,
        )


# Lookup

class LookupFailed(LedgerError):
    category = "lookup"
    status_code = 404


class UnknownCanvas(LookupFailed):
    def __init__(self, canvas_id: int):
        super().__init__(f"Canvas {canvas_id} does not exist", canvas_id=canvas_id)


class UnknownToken(LookupFailed):
    def __init__(self, token_id: int):
        super().__init__(f"Token {token_id} does not exist", token_id=token_id)


# State

class StateError(LedgerError):
    category = "state"
    status_code = 409


class CanvasFinished(StateError):
    transient = True

    def __init__(self, canvas_id: int):
        super().__init__(
            f"Canvas {canvas_id} is finished and no longer accepts pixels",
            canvas_id=canvas_id,
        )


class CanvasNotFinished(StateError):
    transient = True

    def __init__(self, canvas_id: int):
        super().__init__(f"Canvas {canvas_id} is still open", canvas_id=canvas_id)


class CanvasAlreadyClaimed(StateError):
    def __init__(self, canvas_id: int):
        super().__init__(f"Canvas {canvas_id} was already claimed", canvas_id=canvas_id)


# Authorization

class AuthorizationError(LedgerError):
    category = "authorization"
    status_code = 403


class NotCanvasOwner(AuthorizationError):
    def __init__(self, canvas_id: int, expected: str):
        super().__init__(
            f"Only the creator of canvas {canvas_id} may claim it",
            canvas_id=canvas_id, expected=expected,
        )


class NotTokenHolder(AuthorizationError):
    def __init__(self, token_id: int, identity: str):
        super().__init__(
            f"Token {token_id} is not held by {identity}",
            token_id=token_id, identity=identity,
        )


class InsufficientApproval(AuthorizationError):
    def __init__(self, token_id: int, operator: str):
        super().__init__(
            f"{operator} is neither holder nor approved for token {token_id}",
            token_id=token_id, operator=operator,
        )


class TokenReceiverRejected(AuthorizationError):
    def __init__(self, token_id: int, receiver: str):
        super().__init__(
            f"Receiver {receiver} refused token {token_id}",
            token_id=token_id, receiver=receiver,
        )


# Concurrency

class ReentrantCall(LedgerError):
    category = "concurrency"
    status_code = 409
    transient = True

    def __init__(self, canvas_id: int):
        super().__init__(
            f"Canvas {canvas_id} is mid-claim; nested ledger calls are rejected",
            canvas_id=canvas_id,
        )
