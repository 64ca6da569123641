"""
Configuration Loader (``drawer_config.loader``).

Responsibility
--------------
Loads the drawer YAML file and parses it into a frozen ``DrawerConfig``.
This is internal tooling; runtime callers use
``drawer_config.get_active_config()``.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` with a descriptive message; no
  silent defaults for malformed values.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  configuration for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from drawer_config.schema import SESSION_SCOPES, DrawerConfig, PersistenceSettings
from drawer_kernel.domain.formatting import CurrencyRegistry
from drawer_kernel.domain.payment_methods import PaymentMethod


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of data."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _parse_decimal(name: str, value: Any) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        # YAML floats go through str() so 0.1 stays 0.1
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc
    if amount < 0:
        raise ValueError(f"{name} must not be negative, got {amount}")
    return amount


def _parse_aliases(raw: Any) -> dict[str, tuple[str, ...]]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("payment_methods must map a bucket to a list of labels")
    aliases: dict[str, tuple[str, ...]] = {}
    for bucket, labels in raw.items():
        try:
            method = PaymentMethod(bucket)
        except ValueError as exc:
            raise ValueError(f"Unknown payment bucket {bucket!r}") from exc
        if method is PaymentMethod.OTHER:
            raise ValueError("The 'other' bucket is the fallback and takes no labels")
        if isinstance(labels, str):
            labels = [labels]
        aliases[method.value] = tuple(str(label) for label in labels)
    return aliases


def parse_drawer_config(data: dict[str, Any]) -> DrawerConfig:
    """
    Build a DrawerConfig from a parsed YAML mapping.

    Raises:
        ValueError: On any invalid value.
    """
    drawer = data.get("drawer", {}) or {}
    persistence_raw = data.get("persistence", {}) or {}

    currency = str(drawer.get("currency", "COP")).upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValueError(f"currency must be an ISO 4217 code, got {currency!r}")
    if not CurrencyRegistry.is_known(currency):
        raise ValueError(f"Unsupported currency {currency!r}")

    scope = drawer.get("session_scope", "operator")
    if scope not in SESSION_SCOPES:
        raise ValueError(
            f"session_scope must be one of {', '.join(SESSION_SCOPES)}, got {scope!r}"
        )

    limit = drawer.get("recent_invoice_limit", 5)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ValueError(f"recent_invoice_limit must be a non-negative integer, got {limit!r}")

    paid_statuses = data.get("paid_statuses", ["pagada", "paid"])
    if isinstance(paid_statuses, str):
        paid_statuses = [paid_statuses]
    if not paid_statuses:
        raise ValueError("paid_statuses must list at least one status")

    timeout = persistence_raw.get("timeout_seconds", 5.0)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError(f"persistence.timeout_seconds must be positive, got {timeout!r}")

    database_url = persistence_raw.get("database_url", "sqlite:///drawer.db")
    if not database_url:
        raise ValueError("persistence.database_url must not be empty")

    config = DrawerConfig(
        config_id=str(data.get("config_id", "default")),
        version=int(data.get("version", 1)),
        currency=currency,
        session_scope=scope,
        payment_method_aliases=_parse_aliases(data.get("payment_methods")),
        paid_statuses=tuple(str(s) for s in paid_statuses),
        variance_alert_threshold=_parse_decimal(
            "variance_alert_threshold", drawer.get("variance_alert_threshold")
        ),
        recent_invoice_limit=limit,
        persistence=PersistenceSettings(
            database_url=str(database_url),
            timeout_seconds=float(timeout),
            echo=bool(persistence_raw.get("echo", False)),
        ),
    )

    # Cross-check the alias table (duplicate labels across buckets)
    config.payment_classifier()

    return replace(config, checksum=compute_checksum(config.to_dict()))


def load_drawer_config(path: Path) -> DrawerConfig:
    """Load and parse a drawer YAML file."""
    return parse_drawer_config(load_yaml_file(path))
