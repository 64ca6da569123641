"""
DrawerConfig schema.

The human-authored YAML file is parsed into these frozen dataclasses by
the loader.  Nothing in here reads files or environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from drawer_kernel.domain.payment_methods import PaymentClassifier

SESSION_SCOPES = ("operator", "terminal")


@dataclass(frozen=True)
class PersistenceSettings:
    """Where closing records and sessions live."""

    database_url: str = "sqlite:///drawer.db"
    timeout_seconds: float = 5.0
    echo: bool = False


@dataclass(frozen=True)
class DrawerConfig:
    """Runtime configuration of the cash drawer."""

    config_id: str
    version: int
    currency: str = "COP"
    session_scope: str = "operator"
    payment_method_aliases: dict[str, tuple[str, ...]] = field(default_factory=dict)
    paid_statuses: tuple[str, ...] = ("pagada", "paid")
    variance_alert_threshold: Decimal | None = None
    recent_invoice_limit: int = 5
    persistence: PersistenceSettings = field(default_factory=PersistenceSettings)
    checksum: str = ""

    @property
    def database_url(self) -> str:
        return self.persistence.database_url

    @property
    def persistence_timeout_seconds(self) -> float:
        return self.persistence.timeout_seconds

    def payment_classifier(self) -> PaymentClassifier:
        """Classifier built from the alias table (defaults when empty)."""
        return PaymentClassifier.build(
            aliases=self.payment_method_aliases or None,
            paid_statuses=self.paid_statuses,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "config_id": self.config_id,
            "version": self.version,
            "currency": self.currency,
            "session_scope": self.session_scope,
            "payment_method_aliases": {
                k: list(v) for k, v in self.payment_method_aliases.items()
            },
            "paid_statuses": list(self.paid_statuses),
            "variance_alert_threshold": (
                str(self.variance_alert_threshold)
                if self.variance_alert_threshold is not None
                else None
            ),
            "recent_invoice_limit": self.recent_invoice_limit,
            "persistence": {
                "database_url": self.persistence.database_url,
                "timeout_seconds": self.persistence.timeout_seconds,
                "echo": self.persistence.echo,
            },
        }
