"""
ORM-Level Immutability Enforcement for drawer records.

===============================================================================
HOW IT WORKS
===============================================================================

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check our invariants:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

If a check fails, we raise ImmutabilityViolationError and the flush is
aborted.  The database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity            | When Immutable                  | Why
------------------|---------------------------------|-------------------------------
CashClosingModel  | ALWAYS (from creation)          | Closing record is the audit artifact
CashSession       | After status = closed           | Closed is terminal, no reopen
CashSession       | Opening fields, always          | Opening float and owner are facts

The OPEN -> CLOSED transition itself is allowed; it is detected through
SQLAlchemy's attribute history, which is why the check looks at what the
status WAS, not what it IS.

Bulk query.update()/query.delete() bypass ORM events.  The kernel never
issues them.
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from drawer_kernel.exceptions import ImmutabilityViolationError
from drawer_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Fields fixed at open time
_SESSION_OPENING_FIELDS = (
    "user_id",
    "terminal_id",
    "scope_key",
    "opening_balance",
    "currency",
    "opened_at",
    "created_at",
    "created_by_id",
)

# Fields the close transition may set
_SESSION_CLOSE_FIELDS = frozenset({"status", "closed_at", "closed_by_id"})


def _block(entity_type: str, entity_id, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


# =============================================================================
# CashClosing - always immutable
# =============================================================================


def _check_cash_closing_immutability(mapper, connection, target):
    """Closing records cannot be modified after creation."""
    _block(
        "CashClosing",
        target.id,
        "UPDATE",
        "Cash closing records are immutable",
    )


def _check_cash_closing_delete(mapper, connection, target):
    """Closing records cannot be deleted."""
    _block(
        "CashClosing",
        target.id,
        "DELETE",
        "Cash closing records cannot be deleted",
    )


# =============================================================================
# CashSession - opening facts always, everything once closed
# =============================================================================


def _status_value(status) -> str:
    return getattr(status, "value", status)


def _check_cash_session_immutability(mapper, connection, target):
    """
    Prevent modifications to closed sessions and to opening facts.

    Allowed:
        open -> closed, setting closed_at and closed_by_id in the same flush.

    Blocked:
        closed -> anything
        Any field change on a closed session
        Opening fields on any session
    """
    from drawer_kernel.models.cash_session import CashSessionStatus

    for field in _SESSION_OPENING_FIELDS:
        if get_history(target, field).has_changes():
            _block(
                "CashSession",
                target.id,
                "UPDATE",
                f"Cannot modify opening field '{field}' of a cash session",
                field=field,
            )

    status_history = get_history(target, "status")
    if status_history.deleted:
        was_closed = _status_value(status_history.deleted[0]) == CashSessionStatus.CLOSED.value
    else:
        was_closed = _status_value(target.status) == CashSessionStatus.CLOSED.value

    if not was_closed:
        if status_history.added:
            new_status = _status_value(status_history.added[0])
            if new_status != CashSessionStatus.CLOSED.value:
                _block(
                    "CashSession",
                    target.id,
                    "UPDATE",
                    f"Invalid status transition to '{new_status}'",
                    field="status",
                )
        return

    for attr in inspect(target).attrs:
        if attr.history.has_changes():
            reason = (
                "Closed cash sessions cannot be reopened"
                if attr.key in _SESSION_CLOSE_FIELDS
                else f"Cannot modify field '{attr.key}' on closed cash session"
            )
            _block("CashSession", target.id, "UPDATE", reason, field=attr.key)


def _check_cash_session_delete(mapper, connection, target):
    """Closed sessions cannot be deleted."""
    from drawer_kernel.models.cash_session import CashSessionStatus

    status_history = get_history(target, "status")
    status = status_history.deleted[0] if status_history.deleted else target.status
    if _status_value(status) == CashSessionStatus.CLOSED.value:
        _block(
            "CashSession",
            target.id,
            "DELETE",
            "Closed cash sessions cannot be deleted",
        )


# =============================================================================
# Registration
# =============================================================================


def _listeners():
    from drawer_kernel.models.cash_closing import CashClosingModel
    from drawer_kernel.models.cash_session import CashSession

    return (
        (CashClosingModel, "before_update", _check_cash_closing_immutability),
        (CashClosingModel, "before_delete", _check_cash_closing_delete),
        (CashSession, "before_update", _check_cash_session_immutability),
        (CashSession, "before_delete", _check_cash_session_delete),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call this during application initialization, after the models are
    imported and before any database operations begin.  Idempotent.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that need to tamper with records on
    purpose.
    """
    for target, event_name, listener_fn in _listeners():
        _safe_remove_listener(target, event_name, listener_fn)
