"""
Payment method and invoice status classification.

The invoice store speaks in its own labels ("Efectivo", "pagada", ...).
PaymentClassifier maps those labels onto the four drawer buckets and
decides which invoices count as paid.  Matching is exact: a label that is
not listed for Cash, Card or Transfer lands in Other, never in a guessed
bucket.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class PaymentMethod(str, Enum):
    """Reconciliation buckets."""

    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    OTHER = "other"


DEFAULT_PAYMENT_METHOD_ALIASES: Mapping[PaymentMethod, tuple[str, ...]] = MappingProxyType(
    {
        PaymentMethod.CASH: ("Efectivo", "cash"),
        PaymentMethod.CARD: ("Tarjeta de Crédito/Débito", "card"),
        PaymentMethod.TRANSFER: ("Transferencia", "transfer"),
    }
)

DEFAULT_PAID_STATUSES: tuple[str, ...] = ("pagada", "paid")


@dataclass(frozen=True)
class PaymentClassifier:
    """
    Label lookup for payment methods and paid statuses.

    Guarantees:
        - classify() is total: every label maps to exactly one bucket.
        - OTHER is never listed in the alias table; it is the fallback.
    """

    label_to_method: Mapping[str, PaymentMethod]
    paid_statuses: frozenset[str]

    @classmethod
    def build(
        cls,
        aliases: Mapping[PaymentMethod | str, Iterable[str]] | None = None,
        paid_statuses: Iterable[str] | None = None,
    ) -> PaymentClassifier:
        """
        Build a classifier from an alias table.

        Raises:
            ValueError: If a label is listed under two buckets, or if
                aliases are declared for the Other bucket.
        """
        table = DEFAULT_PAYMENT_METHOD_ALIASES if aliases is None else aliases
        lookup: dict[str, PaymentMethod] = {}
        for method, labels in table.items():
            bucket = PaymentMethod(method)
            if bucket is PaymentMethod.OTHER:
                raise ValueError("The 'other' bucket is the fallback and takes no aliases")
            for label in labels:
                existing = lookup.get(label)
                if existing is not None and existing is not bucket:
                    raise ValueError(
                        f"Payment label {label!r} mapped to both "
                        f"{existing.value} and {bucket.value}"
                    )
                lookup[label] = bucket
        statuses = DEFAULT_PAID_STATUSES if paid_statuses is None else tuple(paid_statuses)
        return cls(
            label_to_method=MappingProxyType(lookup),
            paid_statuses=frozenset(statuses),
        )

    def classify(self, label: str | None) -> PaymentMethod:
        if label is None:
            return PaymentMethod.OTHER
        return self.label_to_method.get(label, PaymentMethod.OTHER)

    def is_paid(self, status: str | None) -> bool:
        return status in self.paid_statuses


DEFAULT_CLASSIFIER = PaymentClassifier.build()
