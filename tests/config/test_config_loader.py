"""
Tests for drawer configuration loading (``drawer_config``).

Covers the packaged default file, path resolution (explicit path, then
DRAWER_CONFIG_PATH, then the default), validation failures, and the
checksum used to tie closings to the configuration in force.
"""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from drawer_config import CONFIG_PATH_ENV, get_active_config, resolve_config_path
from drawer_config.loader import compute_checksum, load_yaml_file, parse_drawer_config
from drawer_kernel.domain.payment_methods import PaymentMethod


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "drawer.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaultConfig:
    def test_packaged_default_loads(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        config = get_active_config()

        assert config.config_id == "default-drawer"
        assert config.currency == "COP"
        assert config.session_scope == "operator"
        assert config.variance_alert_threshold == Decimal("10000")
        assert config.recent_invoice_limit == 5
        assert config.paid_statuses == ("pagada", "paid")
        assert config.database_url == "sqlite:///drawer.db"
        assert config.persistence_timeout_seconds == 5.0
        assert len(config.checksum) == 64

    def test_default_classifier_matches_builtin_labels(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        classifier = get_active_config().payment_classifier()

        assert classifier.classify("Efectivo") is PaymentMethod.CASH
        assert classifier.classify("Tarjeta de Crédito/Débito") is PaymentMethod.CARD
        assert classifier.classify("Transferencia") is PaymentMethod.TRANSFER
        assert classifier.classify("Nequi") is PaymentMethod.OTHER

    def test_load_is_logged(self, monkeypatch, captured_logs):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        config = get_active_config()

        loaded = [r for r in captured_logs() if r["message"] == "drawer_config_loaded"]
        assert loaded[0]["checksum"] == config.checksum
        assert loaded[0]["logger"] == "drawer_kernel.config"


class TestResolvePath:
    def test_explicit_path_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv(CONFIG_PATH_ENV, "/nowhere.yaml")

        assert resolve_config_path(tmp_path / "x.yaml") == tmp_path / "x.yaml"

    def test_env_override(self, monkeypatch, tmp_path):
        path = _write(tmp_path, "config_id: from-env\ndrawer:\n  currency: USD\n")
        monkeypatch.setenv(CONFIG_PATH_ENV, str(path))

        config = get_active_config()

        assert config.config_id == "from-env"
        assert config.currency == "USD"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "missing.yaml")


class TestValidation:
    @pytest.mark.parametrize(
        "data, message",
        [
            ({"drawer": {"currency": "PESOS"}}, "ISO 4217"),
            ({"drawer": {"currency": "XYZ"}}, "Unsupported currency"),
            ({"drawer": {"session_scope": "store"}}, "session_scope"),
            ({"drawer": {"recent_invoice_limit": -1}}, "recent_invoice_limit"),
            ({"drawer": {"recent_invoice_limit": True}}, "recent_invoice_limit"),
            ({"drawer": {"variance_alert_threshold": "-5"}}, "must not be negative"),
            ({"drawer": {"variance_alert_threshold": "lots"}}, "must be a number"),
            ({"paid_statuses": []}, "paid_statuses"),
            ({"persistence": {"timeout_seconds": 0}}, "timeout_seconds"),
            ({"persistence": {"database_url": ""}}, "database_url"),
            ({"payment_methods": {"crypto": ["BTC"]}}, "Unknown payment bucket"),
            ({"payment_methods": {"other": ["Nequi"]}}, "fallback"),
            ({"payment_methods": {"cash": ["X"], "card": ["X"]}}, "mapped to both"),
            ({"payment_methods": ["Efectivo"]}, "payment_methods"),
        ],
    )
    def test_invalid_values(self, data, message):
        with pytest.raises(ValueError, match=message):
            parse_drawer_config(data)

    def test_empty_file_gives_defaults(self, tmp_path):
        config = get_active_config(_write(tmp_path, ""))

        assert config.currency == "COP"
        assert config.variance_alert_threshold is None

    def test_non_mapping_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="mapping"):
            load_yaml_file(_write(tmp_path, "- a\n- b\n"))

    def test_malformed_yaml(self, tmp_path):
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(_write(tmp_path, "drawer: [unclosed\n"))

    def test_lowercase_currency_normalized(self):
        assert parse_drawer_config({"drawer": {"currency": "usd"}}).currency == "USD"

    def test_yaml_float_threshold_stays_exact(self):
        config = parse_drawer_config({"drawer": {"variance_alert_threshold": 0.1}})

        assert config.variance_alert_threshold == Decimal("0.1")

    def test_single_label_string(self):
        config = parse_drawer_config({"payment_methods": {"cash": "Contado"}})

        assert config.payment_method_aliases == {"cash": ("Contado",)}


class TestChecksum:
    def test_deterministic(self):
        data = {"drawer": {"currency": "COP"}}

        assert parse_drawer_config(data).checksum == parse_drawer_config(data).checksum

    def test_changes_with_content(self):
        a = parse_drawer_config({"drawer": {"currency": "COP"}})
        b = parse_drawer_config({"drawer": {"currency": "USD"}})

        assert a.checksum != b.checksum

    def test_key_order_irrelevant(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})
