"""Domain error kinds raised by the session & billing engine."""
from __future__ import annotations


class BillingEngineError(Exception):
    """Base class for every error the engine surfaces to callers."""


class InvalidState(BillingEngineError):
    """Room or order is in a state incompatible with the requested operation."""


class NoActiveSession(BillingEngineError):
    """The room has no open order in the live-session index."""


class TargetUnavailable(BillingEngineError):
    """Move-session target room is not free."""


class NotFound(BillingEngineError):
    """Referenced room, order, product or request does not exist in this store."""
