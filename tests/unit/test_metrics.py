"""
Unit Tests - Metric Calculations
"""
import math
from decimal import Decimal

import pytest

from reporting.analytics.metrics import (
    MARGIN_BUCKETS,
    PRICE_BUCKETS,
    average_order_value,
    bucketize,
    buckets_from_edges,
    customer_concentration,
    customers_to_share,
    days_of_supply,
    forecast_daily_demand,
    inventory_status,
    margin_amount,
    margin_percentage,
    metric_triple,
    percentage_change,
    reorder_quantity,
)


class TestPercentageChange:
    """Tests for percentage_change"""

    def test_regular_change(self):
        """Test growth and decline against a non-zero base"""
        assert percentage_change(150, 100) == 50.0
        assert percentage_change(50, 100) == -50.0
        assert percentage_change(Decimal("110.00"), Decimal("100.00")) == pytest.approx(10.0)

    def test_flat_from_zero(self):
        """Test 0 against 0 is no change"""
        assert percentage_change(0, 0) == 0.0

    def test_new_from_zero(self):
        """Test any positive value against 0 is 100"""
        assert percentage_change(1, 0) == 100.0
        assert percentage_change(1_000_000, 0) == 100.0

    def test_negative_from_zero(self):
        """Test a negative value against 0 is -100"""
        assert percentage_change(-5, 0) == -100.0

    def test_missing_values_count_as_zero(self):
        """Test None on either side is treated as 0"""
        assert percentage_change(None, None) == 0.0
        assert percentage_change(10, None) == 100.0
        assert percentage_change(None, 10) == -100.0

    def test_metric_triple_without_comparison(self):
        """Test only current is set when there is no comparison window"""
        triple = metric_triple(42, 10, has_comparison=False)

        assert triple.current == 42.0
        assert triple.previous is None
        assert triple.change is None

    def test_metric_triple_with_comparison(self):
        """Test previous and change are filled"""
        triple = metric_triple(120, 100)

        assert triple.previous == 100.0
        assert triple.change == pytest.approx(20.0)

    def test_average_order_value(self):
        """Test revenue per order and the no-order case"""
        assert average_order_value(500, 4) == 125.0
        assert average_order_value(500, 0) == 0.0
        assert average_order_value(None, None) == 0.0


class TestMargin:
    """Tests for margin calculations"""

    def test_margin_percentage(self):
        """Test (list - cost) / list"""
        assert margin_percentage(100, 40) == 60.0
        assert margin_percentage(Decimal("50.00"), Decimal("60.00")) == pytest.approx(-20.0)

    def test_unknown_list_price(self):
        """Test a missing list price is unknown, never 0% or -500%"""
        assert margin_percentage(None, 5) is None

    def test_unknown_cost(self):
        """Test a missing cost is unknown"""
        assert margin_percentage(100, None) is None
        assert margin_amount(100, None) is None

    def test_zero_list_price(self):
        """Test a zero list price has no margin percentage"""
        assert margin_percentage(0, 5) is None
        assert margin_amount(0, 5) == -5.0


class TestConcentration:
    """Tests for customer concentration"""

    def test_equal_spends(self):
        """Test four equal customers: two reach 50%, all four needed for 80%"""
        concentration = customer_concentration([100, 100, 100, 100])

        assert concentration.customers_to_50_percent == 2
        assert concentration.customers_to_80_percent == 4
        assert concentration.total_customers == 4
        assert concentration.total_revenue == 400.0

    def test_order_does_not_matter(self):
        """Test spends are ranked largest first"""
        assert customers_to_share([10, 10, 80], 80) == 1
        assert customers_to_share([10, 80, 10], 50) == 1

    def test_crossing_customer_counts(self):
        """Test the customer that crosses the threshold is included"""
        assert customers_to_share([60, 30, 10], 80) == 2

    def test_no_revenue(self):
        """Test empty or zero spend needs no customers"""
        assert customers_to_share([], 50) == 0
        assert customers_to_share([0, 0], 50) == 0
        assert customer_concentration([]).total_customers == 0


class TestDistribution:
    """Tests for bucketize"""

    def test_counts_sum_to_total(self):
        """Test every known value lands in exactly one bucket"""
        values = [-3, 0, 5, 10, 24.99, 25, 99, 100, 250, 10_000, None, float("nan")]
        distribution = bucketize(values, PRICE_BUCKETS)

        assert sum(b.count for b in distribution.buckets) == distribution.total_count
        assert distribution.total_count == 10
        assert distribution.unknown_count == 2

    def test_half_open_bounds(self):
        """Test a value on an edge belongs to the upper bucket"""
        distribution = bucketize([10, 25], PRICE_BUCKETS)
        counts = {b.label: b.count for b in distribution.buckets}

        assert counts["$10-$25"] == 1
        assert counts["$25-$50"] == 1
        assert counts["Under $10"] == 0

    def test_out_of_range_values_clamp(self):
        """Test values outside finite edges go to the first or last bucket"""
        specs = buckets_from_edges([0, 10, 20])
        distribution = bucketize([-5, 20, 500], specs)

        assert [b.count for b in distribution.buckets] == [1, 2]
        assert distribution.total_count == 3

    def test_percentages(self):
        """Test bucket percentages are shares of known values"""
        distribution = bucketize([-10, 10, 30, 30, None], MARGIN_BUCKETS)
        shares = {b.label: b.percentage for b in distribution.buckets}

        assert shares["Negative"] == 25.0
        assert shares["20-40%"] == 50.0
        assert math.isclose(sum(shares.values()), 100.0)

    def test_no_values(self):
        """Test an empty input yields empty buckets"""
        distribution = bucketize([], MARGIN_BUCKETS)

        assert distribution.total_count == 0
        assert all(b.count == 0 and b.percentage == 0.0 for b in distribution.buckets)


class TestReorderPlanning:
    """Tests for demand, days of supply and status"""

    def test_forecast_daily_demand(self):
        """Test average units per day over the window"""
        assert forecast_daily_demand(90, 90) == 1.0
        assert forecast_daily_demand(None, 90) == 0.0
        assert forecast_daily_demand(10, 0) == 0.0

    def test_days_of_supply(self):
        """Test available stock over daily demand"""
        assert days_of_supply(20, 2) == 10.0
        assert days_of_supply(-5, 2) == 0.0

    def test_days_of_supply_without_demand(self):
        """Test no demand means unknown days remaining"""
        assert days_of_supply(100, 0) is None

    @pytest.mark.parametrize(
        "days,status",
        [
            (0, "CRITICAL"),
            (29.9, "CRITICAL"),
            (30, "LOW"),
            (59.9, "LOW"),
            (60, "MODERATE"),
            (89.9, "MODERATE"),
            (90, "SUFFICIENT"),
            (None, "SUFFICIENT"),
        ],
    )
    def test_inventory_status(self, days, status):
        """Test status thresholds"""
        assert inventory_status(days) == status

    def test_reorder_quantity(self):
        """Test units needed to cover the target horizon, rounded up"""
        assert reorder_quantity(90, projected=3, daily_demand=0.1) == 6
        assert reorder_quantity(180, projected=0, daily_demand=0.05) == 9
        assert reorder_quantity(90, projected=10.5, daily_demand=0.2) == 8

    def test_reorder_quantity_when_covered(self):
        """Test no reorder when projected stock already covers the target"""
        assert reorder_quantity(90, projected=100, daily_demand=1) == 0
        assert reorder_quantity(90, projected=5, daily_demand=0) == 0
