"""
Typed Exception Hierarchy for the Drawer Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure of the drawer kernel is surfaced to the operator verbatim and
is recoverable at the caller (UI) level: show the message, let the operator
retry.  Callers therefore need to branch on the KIND of failure, never on
message text.

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        drawer.open_session(Decimal("50000"), user_id)
    except SessionAlreadyActiveError as e:
        show(f"Session {e.active_session_id} is still open")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    DrawerKernelError (base)
    |
    +-- AmountError
    |   +-- InvalidAmountError
    |
    +-- SessionError
    |   +-- SessionAlreadyActiveError
    |   +-- SessionNotFoundError
    |   +-- SessionAlreadyClosedError
    |
    +-- ClosingError
    |   +-- ClosingNotFoundError
    |
    +-- PersistenceError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Amount          | INVALID_AMOUNT              | Negative opening balance, NaN or Infinity
----------------|-----------------------------|-----------------------------------------
Session         | SESSION_ALREADY_ACTIVE      | Scope already has an open session
                | SESSION_NOT_FOUND           | Session ID doesn't exist
                | SESSION_ALREADY_CLOSED      | Closing a closed session
----------------|-----------------------------|-----------------------------------------
Closing         | CLOSING_NOT_FOUND           | Closing record ID doesn't exist
----------------|-----------------------------|-----------------------------------------
Persistence     | PERSISTENCE_ERROR           | Closing record store write failed
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Modifying a closing or closed session

Variance between counted and expected amounts is NOT an error.  It is
business signal data and never blocks a close.
"""


class DrawerKernelError(Exception):
    """
    Base exception for all drawer kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "DRAWER_KERNEL_ERROR"


# Amount-related exceptions


class AmountError(DrawerKernelError):
    """Base exception for monetary input errors."""

    code: str = "AMOUNT_ERROR"


class InvalidAmountError(AmountError):
    """Monetary input is outside its allowed range."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, amount: str, reason: str):
        self.field = field
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid {field} {amount}: {reason}")


# Session-related exceptions


class SessionError(DrawerKernelError):
    """Base exception for cash session lifecycle errors."""

    code: str = "SESSION_ERROR"


class SessionAlreadyActiveError(SessionError):
    """The operator/terminal scope already has an open session."""

    code: str = "SESSION_ALREADY_ACTIVE"

    def __init__(self, scope_key: str, active_session_id: str | None = None):
        self.scope_key = scope_key
        self.active_session_id = active_session_id
        if active_session_id:
            message = (
                f"Scope {scope_key} already has an active cash session "
                f"{active_session_id}"
            )
        else:
            message = f"Scope {scope_key} already has an active cash session"
        super().__init__(message)


class SessionNotFoundError(SessionError):
    """Cash session with given ID was not found."""

    code: str = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Cash session not found: {session_id}")


class SessionAlreadyClosedError(SessionError):
    """Cash session has already been closed. Closed is terminal."""

    code: str = "SESSION_ALREADY_CLOSED"

    def __init__(self, session_id: str, closed_at: str | None = None):
        self.session_id = session_id
        self.closed_at = closed_at
        super().__init__(f"Cash session {session_id} is already closed")


# Closing-related exceptions


class ClosingError(DrawerKernelError):
    """Base exception for closing record errors."""

    code: str = "CLOSING_ERROR"


class ClosingNotFoundError(ClosingError):
    """Closing record with given ID was not found."""

    code: str = "CLOSING_NOT_FOUND"

    def __init__(self, closing_id: str):
        self.closing_id = closing_id
        super().__init__(f"Cash closing not found: {closing_id}")


# Persistence exceptions


class PersistenceError(DrawerKernelError):
    """
    The closing record store failed to persist a record.

    Fatal to the close operation: the session is NOT marked closed.
    Retrying is the caller's responsibility.
    """

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, reason: str, session_id: str | None = None):
        self.operation = operation
        self.reason = reason
        self.session_id = session_id
        super().__init__(f"Persistence failure during {operation}: {reason}")


# Immutability exceptions


class ImmutabilityError(DrawerKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an immutable record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )
