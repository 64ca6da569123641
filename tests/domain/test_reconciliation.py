"""
Tests for the reconciliation engine (``drawer_kernel.domain.reconciliation``).

Invariants tested:
- Signed variance: difference = counted - expected, per bucket.
- Conservation: total_difference is the sum of the four differences.
- The opening float is subtracted exactly once from each sales total.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from drawer_kernel.domain.aggregation import compute_expected
from drawer_kernel.domain.dtos import CountedTotals, ExpectedTotals, VarianceStatus
from drawer_kernel.domain.reconciliation import reconcile, variances_over_threshold
from drawer_kernel.exceptions import InvalidAmountError
from tests.conftest import make_invoice

OPENING = Decimal("50000")


def _expected(cash="0", card="0", transfer="0", other="0", opening=OPENING) -> ExpectedTotals:
    return ExpectedTotals(
        session_id=uuid4(),
        opening_balance=opening,
        cash=opening + Decimal(cash),
        card=Decimal(card),
        transfer=Decimal(transfer),
        other=Decimal(other),
    )


class TestReconcileScenarios:
    """Worked examples of a drawer close."""

    def test_balanced_close(self):
        sid = uuid4()
        expected = compute_expected(sid, [make_invoice(sid, "120000")], OPENING)
        result = reconcile(expected, CountedTotals(cash=Decimal("170000")), OPENING)

        assert result.cash.expected == Decimal("170000")
        assert result.cash.difference == Decimal("0")
        assert result.total_system_sales == Decimal("120000")
        assert result.total_counted_sales == Decimal("120000")
        assert result.total_difference == Decimal("0")
        assert result.status is VarianceStatus.BALANCED
        assert result.is_balanced

    def test_cash_shortage_is_negative(self):
        sid = uuid4()
        expected = compute_expected(sid, [make_invoice(sid, "120000")], OPENING)
        result = reconcile(expected, CountedTotals(cash=Decimal("165000")), OPENING)

        assert result.cash.difference == Decimal("-5000")
        assert result.total_counted_sales == Decimal("115000")
        assert result.total_difference == Decimal("-5000")
        assert result.status is VarianceStatus.SHORTAGE
        assert result.cash.status is VarianceStatus.SHORTAGE
        assert not result.is_balanced

    def test_surplus_is_positive(self):
        result = reconcile(_expected(card="30000"), CountedTotals(cash=OPENING, card=Decimal("31000")), OPENING)

        assert result.card.difference == Decimal("1000")
        assert result.card.status is VarianceStatus.SURPLUS
        assert result.total_difference == Decimal("1000")

    def test_offsetting_variances_net_to_zero_but_not_balanced(self):
        result = reconcile(
            _expected(cash="10000", card="10000"),
            CountedTotals(cash=OPENING + Decimal("9000"), card=Decimal("11000")),
            OPENING,
        )

        assert result.total_difference == Decimal("0")
        assert result.status is VarianceStatus.BALANCED
        assert not result.is_balanced

    def test_opening_float_not_counted_as_sales(self):
        result = reconcile(_expected(), CountedTotals(cash=OPENING), OPENING)

        assert result.total_system_sales == Decimal("0")
        assert result.total_counted_sales == Decimal("0")

    def test_negative_count_preserved(self):
        result = reconcile(_expected(), CountedTotals(cash=OPENING, other=Decimal("-200")), OPENING)

        assert result.other.counted == Decimal("-200")
        assert result.other.difference == Decimal("-200")

    def test_methods_order(self):
        result = reconcile(_expected(), CountedTotals(cash=OPENING), OPENING)

        assert [m.method for m in result.methods] == ["cash", "card", "transfer", "other"]

    def test_float_count_rejected(self):
        with pytest.raises(TypeError):
            CountedTotals(cash=100.0)

    def test_non_finite_count_rejected(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            CountedTotals(cash=OPENING, card=Decimal("NaN"))

        assert exc_info.value.field == "counted_card"


class TestVariancesOverThreshold:
    def test_filters_by_absolute_difference(self):
        result = reconcile(
            _expected(cash="100000", card="50000", transfer="20000"),
            CountedTotals(
                cash=OPENING + Decimal("85000"),
                card=Decimal("50500"),
                transfer=Decimal("20000"),
                other=Decimal("12000"),
            ),
            OPENING,
        )
        flagged = variances_over_threshold(result, Decimal("10000"))

        assert [m.method for m in flagged] == ["cash", "other"]

    def test_threshold_is_inclusive(self):
        result = reconcile(_expected(), CountedTotals(cash=OPENING + Decimal("10000")), OPENING)

        assert len(variances_over_threshold(result, Decimal("10000"))) == 1

    def test_zero_threshold_ignores_balanced_buckets(self):
        result = reconcile(_expected(), CountedTotals(cash=OPENING), OPENING)

        assert variances_over_threshold(result, Decimal("0")) == ()


# =========================================================================
# Property-based
# =========================================================================

money = st.decimals(min_value=-1_000_000, max_value=10_000_000, places=2, allow_nan=False, allow_infinity=False)


class TestReconciliationProperties:
    @given(
        opening=st.decimals(min_value=0, max_value=1_000_000, places=2),
        system=st.tuples(money, money, money, money),
        counted=st.tuples(money, money, money, money),
    )
    @settings(max_examples=300)
    def test_total_difference_is_sum_of_method_differences(self, opening, system, counted):
        expected = ExpectedTotals(
            session_id=uuid4(),
            opening_balance=opening,
            cash=opening + system[0],
            card=system[1],
            transfer=system[2],
            other=system[3],
        )
        result = reconcile(
            expected,
            CountedTotals(cash=counted[0], card=counted[1], transfer=counted[2], other=counted[3]),
            opening,
        )

        assert result.total_difference == sum(m.difference for m in result.methods)
        assert result.total_difference == result.total_counted_sales - result.total_system_sales
        assert result.total_system_sales == expected.system_sales
        for m in result.methods:
            assert m.difference == m.counted - m.expected
