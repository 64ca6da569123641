"""
End-to-end drawer flows through ``CashDrawerService``.

Covers the full open -> sell -> count -> close path with invoices from an
InMemoryInvoiceSource, previews, dashboard figures, and closing history.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from drawer_config import get_active_config
from drawer_kernel.domain.dtos import CountedTotals, VarianceStatus
from drawer_kernel.exceptions import (
    ClosingNotFoundError,
    InvalidAmountError,
    SessionAlreadyClosedError,
    SessionNotFoundError,
)
from drawer_kernel.services.invoice_source import InMemoryInvoiceSource
from drawer_kernel.services.session_service import SessionScope
from drawer_services.cash_drawer import CashDrawerService

OPENING = Decimal("50000")


class TestCloseScenarios:
    """Worked drawer closes."""

    def test_balanced_cash_day(self, drawer, invoice_source, invoice_factory, test_actor_id, later):
        info = drawer.open_session(OPENING, test_actor_id)
        invoice_source.add(invoice_factory(info.id, "120000"))
        later(8)

        record = drawer.close_session(info.id, CountedTotals(cash=Decimal("170000")))

        assert record.expected_cash == Decimal("170000")
        assert record.cash_difference == Decimal("0")
        assert record.total_system_sales == Decimal("120000")
        assert record.total_counted_sales == Decimal("120000")
        assert record.total_difference == Decimal("0")
        assert record.status is VarianceStatus.BALANCED

    def test_cash_shortage(self, drawer, invoice_source, invoice_factory, test_actor_id):
        info = drawer.open_session(OPENING, test_actor_id)
        invoice_source.add(invoice_factory(info.id, "120000"))

        record = drawer.close_session(info.id, CountedTotals(cash=Decimal("165000")))

        assert record.cash_difference == Decimal("-5000")
        assert record.total_difference == Decimal("-5000")
        assert record.status is VarianceStatus.SHORTAGE

    def test_mixed_payment_day(self, drawer, invoice_source, invoice_factory, test_actor_id):
        info = drawer.open_session(OPENING, test_actor_id)
        for total, label in [
            ("30000", "Efectivo"),
            ("45000", "Tarjeta de Crédito/Débito"),
            ("20000", "Transferencia"),
            ("8000", "Nequi"),
        ]:
            invoice_source.add(invoice_factory(info.id, total, label))
        invoice_source.add(invoice_factory(info.id, "99000", status="pendiente"))

        record = drawer.close_session(
            info.id,
            CountedTotals(
                cash=Decimal("80000"),
                card=Decimal("45000"),
                transfer=Decimal("21000"),
                other=Decimal("8000"),
            ),
        )

        assert record.expected_card == Decimal("45000")
        assert record.expected_other == Decimal("8000")
        assert record.transfer_difference == Decimal("1000")
        assert record.total_system_sales == Decimal("103000")
        assert record.total_counted_sales == Decimal("104000")
        assert record.total_difference == Decimal("1000")
        assert record.status is VarianceStatus.SURPLUS

    def test_negative_opening_balance(self, drawer, test_actor_id):
        with pytest.raises(InvalidAmountError):
            drawer.open_session(Decimal("-100"), test_actor_id)

        assert drawer.active_session(test_actor_id) is None

    def test_stored_expected_matches_preview(self, drawer, invoice_source, invoice_factory, test_actor_id):
        info = drawer.open_session(OPENING, test_actor_id)
        invoice_source.add(invoice_factory(info.id, "12345"))
        counted = CountedTotals(cash=Decimal("62000"))

        preview = drawer.preview(info.id, counted)
        record = drawer.close_session(info.id, counted)

        assert record.expected_cash == preview.cash.expected
        assert record.cash_difference == preview.cash.difference
        assert record.total_difference == preview.total_difference

    def test_close_twice(self, drawer, test_actor_id):
        info = drawer.open_session(OPENING, test_actor_id)
        drawer.close_session(info.id, CountedTotals(cash=OPENING))

        with pytest.raises(SessionAlreadyClosedError):
            drawer.close_session(info.id, CountedTotals(cash=OPENING))

        assert len(drawer.list_closings(info.id)) == 1

    def test_close_unknown(self, drawer):
        with pytest.raises(SessionNotFoundError):
            drawer.close_session(uuid4(), CountedTotals(cash=OPENING))


class TestExpectedAndSummary:
    def test_compute_expected_without_invoices(self, drawer, test_actor_id):
        info = drawer.open_session(OPENING, test_actor_id)

        expected = drawer.compute_expected(info.id)

        assert expected.cash == OPENING
        assert expected.system_sales == Decimal("0")

    def test_compute_expected_is_repeatable(self, drawer, invoice_source, invoice_factory, test_actor_id):
        info = drawer.open_session(OPENING, test_actor_id)
        invoice_source.add(invoice_factory(info.id, "1000"))

        assert drawer.compute_expected(info.id) == drawer.compute_expected(info.id)

    def test_preview_does_not_close(self, drawer, test_actor_id):
        info = drawer.open_session(OPENING, test_actor_id)
        drawer.preview(info.id, CountedTotals(cash=Decimal("1")))

        assert drawer.active_session(test_actor_id).id == info.id
        assert drawer.list_closings(info.id) == ()

    def test_session_summary(self, drawer, invoice_source, invoice_factory, test_actor_id):
        info = drawer.open_session(OPENING, test_actor_id)
        base = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        for i in range(7):
            invoice_source.add(
                invoice_factory(info.id, "1000", issue_date=base + timedelta(minutes=i), invoice_id=f"F{i}")
            )

        summary = drawer.session_summary(info.id)

        assert summary.total_sales == Decimal("7000")
        assert summary.transaction_count == 7
        assert summary.expected.cash == Decimal("57000")
        assert [i.invoice_id for i in summary.recent_invoices] == ["F6", "F5", "F4", "F3", "F2"]

    def test_summary_unknown_session(self, drawer):
        with pytest.raises(SessionNotFoundError):
            drawer.session_summary(uuid4())


class TestSessionListing:
    def test_open_sessions_across_operators(self, drawer, test_actor_id, later):
        closed = drawer.open_session(OPENING, test_actor_id)
        drawer.close_session(closed.id, CountedTotals(cash=OPENING))
        later(1)
        mine = drawer.open_session(OPENING, test_actor_id)
        later(1)
        theirs = drawer.open_session(OPENING, uuid4())

        assert [s.id for s in drawer.open_sessions()] == [theirs.id, mine.id]
        assert [s.id for s in drawer.list_sessions(user_id=test_actor_id)] == [mine.id, closed.id]
        assert [s.id for s in drawer.list_sessions(status="closed")] == [closed.id]


class TestClosingHistory:
    def test_history_newest_first(self, drawer, later):
        records = []
        for _ in range(3):
            info = drawer.open_session(OPENING, uuid4())
            later(1)
            records.append(drawer.close_session(info.id, CountedTotals(cash=OPENING)))

        history = drawer.closing_history()

        assert [r.id for r in history] == [r.id for r in reversed(records)]
        assert [r.id for r in drawer.list_closings()] == [r.id for r in records]

    def test_history_by_operator_and_limit(self, drawer, test_actor_id, later):
        for _ in range(3):
            info = drawer.open_session(OPENING, test_actor_id)
            later(1)
            drawer.close_session(info.id, CountedTotals(cash=OPENING))
        other = drawer.open_session(OPENING, uuid4())
        drawer.close_session(other.id, CountedTotals(cash=OPENING))

        assert len(drawer.closing_history(user_id=test_actor_id)) == 3
        assert len(drawer.closing_history(limit=2)) == 2

    def test_detail(self, drawer, test_actor_id):
        info = drawer.open_session(OPENING, test_actor_id)
        record = drawer.close_session(info.id, CountedTotals(cash=OPENING), notes="ok")

        detail = drawer.closing_detail(record.id)

        assert detail.closing.id == record.id
        assert detail.closing.notes == "ok"
        assert detail.session.id == info.id
        assert not detail.session.is_open

    def test_detail_unknown(self, drawer):
        with pytest.raises(ClosingNotFoundError):
            drawer.closing_detail(uuid4())


class TestFromConfig:
    def test_uses_configured_labels_and_scope(self, session, deterministic_clock, tmp_path, invoice_factory):
        path = tmp_path / "drawer.yaml"
        path.write_text(
            "drawer:\n"
            "  currency: USD\n"
            "  session_scope: terminal\n"
            "  recent_invoice_limit: 1\n"
            "payment_methods:\n"
            "  cash: [Cash]\n"
            "  card: [Visa]\n"
            "paid_statuses: [settled]\n",
            encoding="utf-8",
        )
        config = get_active_config(path)
        source = InMemoryInvoiceSource()
        drawer = CashDrawerService.from_config(session, source, config, clock=deterministic_clock)

        info = drawer.open_session(Decimal("100"), uuid4(), terminal_id="POS-1")
        source.add(invoice_factory(info.id, "20", "Visa", status="settled"))
        source.add(invoice_factory(info.id, "5", "Cash", status="settled"))
        source.add(invoice_factory(info.id, "7", "Efectivo", status="pagada"))

        expected = drawer.compute_expected(info.id)

        assert drawer.session_service.scope_key(uuid4(), "POS-1") == "terminal:POS-1"
        assert info.currency == "USD"
        assert expected.card == Decimal("20")
        assert expected.cash == Decimal("105")
        assert expected.other == Decimal("0")
        assert len(drawer.session_summary(info.id).recent_invoices) == 1

    def test_terminal_scope_from_enum(self, session, invoice_source):
        drawer = CashDrawerService(session, invoice_source, scope=SessionScope.TERMINAL)

        with pytest.raises(ValueError):
            drawer.open_session(OPENING, uuid4())
