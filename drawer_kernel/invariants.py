"""
Kernel Invariants Contract.

These invariants are structural law for cash drawer accounting.  No
DrawerConfig value may override them; configuration influences labels,
scope and thresholds, never *whether* these rules apply.

This module exists solely to declare them explicitly.  Enforcement is
distributed across CashSessionService, the reconciliation engine, the
closing store, and the ORM immutability listeners.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    SINGLE_ACTIVE_SESSION = "single_active_session"
    """At most one open cash session per scope.  Enforced by
    CashSessionService.open_session and the partial unique index
    on cash_sessions.scope_key."""

    TERMINAL_CLOSE = "terminal_close"
    """Closed sessions never reopen and never change.  Enforced by
    CashSessionService.close_session and ORM listeners."""

    SIGNED_VARIANCE = "signed_variance"
    """Every difference is counted minus expected; positive is a
    surplus, negative a shortage.  Enforced by the reconciliation
    engine."""

    VARIANCE_CONSERVATION = "variance_conservation"
    """The total difference equals the sum of the per-method
    differences.  The opening float is subtracted exactly once."""

    CLOSING_IMMUTABILITY = "closing_immutability"
    """Closing records are append-only audit artifacts.  No UPDATE or
    DELETE.  Enforced by drawer_kernel.db.immutability."""

    CLOSE_ATOMICITY = "close_atomicity"
    """A session is marked closed only if its closing record was
    persisted.  Enforced by the savepoint in close_session."""


ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "drawer_services",
    "drawer_config",
)
