"""
Integration Tests - Reporting API
"""
import uuid
from datetime import date
from decimal import Decimal

import pytest

from reporting.database.models import Order, OrderLineItem


class TestHealth:
    """Tests for health endpoints"""

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        """Test liveness always answers"""
        response = await client.get("/api/v1/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    @pytest.mark.asyncio
    async def test_health_reports_database(self, client):
        """Test the health check includes database connectivity"""
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["environment"] == "testing"
        assert data["checks"]["database"]["status"] == "healthy"


class TestListingEndpoints:
    """Tests for query normalization and the listing envelope"""

    @pytest.mark.asyncio
    async def test_invalid_parameters_fall_back(self, client):
        """Test bad paging and sort parameters degrade to defaults"""
        response = await client.get(
            "/api/v1/orders", params={"pageSize": 2, "page": 0, "sortColumn": "bogus"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["page"] == 1
        assert data["pageSize"] == 2
        assert data["totalCount"] == 7
        assert data["totalPages"] == 4
        assert len(data["rows"]) == 2
        assert "orderNumber" in data["rows"][0]

    @pytest.mark.asyncio
    async def test_page_size_is_capped(self, client):
        """Test oversized pages are capped"""
        response = await client.get("/api/v1/orders", params={"pageSize": 100000})

        assert response.json()["pageSize"] == 500

    @pytest.mark.asyncio
    async def test_page_far_past_the_end(self, client):
        """Test an enormous page number returns an empty page"""
        response = await client.get("/api/v1/orders", params={"page": "99999999999999999999"})

        assert response.status_code == 200
        data = response.json()
        assert data["rows"] == []
        assert data["totalCount"] == 7

    @pytest.mark.asyncio
    async def test_non_numeric_page_size(self, client):
        """Test a non-numeric page size uses the listing default"""
        response = await client.get("/api/v1/orders", params={"pageSize": "lots", "minAmount": "abc"})

        assert response.status_code == 200
        data = response.json()
        assert data["pageSize"] == 25
        assert data["totalCount"] == 7

    @pytest.mark.asyncio
    async def test_companies_consumer_filter(self, client):
        """Test consumer domains are hidden unless filterConsumer=false"""
        filtered = (await client.get("/api/v1/companies")).json()
        unfiltered = (await client.get("/api/v1/companies", params={"filterConsumer": "false"})).json()

        assert filtered["totalCount"] == 2
        assert unfiltered["totalCount"] == 3
        assert "recentlyEnrichedCount" in filtered["summary"]

    @pytest.mark.asyncio
    async def test_store_failure_maps_to_503(self, broken_client):
        """Test a failing aggregation names the report"""
        response = await broken_client.get("/api/v1/orders")

        assert response.status_code == 503
        assert response.json() == {"detail": "Aggregation unavailable", "report": "orders"}


class TestReportEndpoints:
    """Tests for distributions, breakdowns and dashboards"""

    @pytest.mark.asyncio
    async def test_price_distribution_open_bounds(self, client):
        """Test unbounded bucket ends are null on the wire"""
        data = (await client.get("/api/v1/products/distribution/price")).json()

        assert data["buckets"][0]["low"] is None
        assert data["buckets"][-1]["high"] is None
        assert data["totalCount"] == 3
        assert data["unknownCount"] == 2

    @pytest.mark.asyncio
    async def test_family_breakdown_all_time(self, client):
        """Test all-time groups carry no comparison"""
        data = (await client.get("/api/v1/breakdowns/families", params={"period": "all"})).json()

        furniture = next(g for g in data["groups"] if g["groupKey"] == "Furniture")
        assert furniture["current"]["revenue"] == 1150.0
        assert furniture["previous"] is None
        assert furniture["growth"] is None

    @pytest.mark.asyncio
    async def test_family_breakdown_explicit_range(self, client):
        """Test an explicit range is compared against the preceding window"""
        data = (
            await client.get("/api/v1/breakdowns/families", params={"period": "2025-05-16..2025-06-15"})
        ).json()

        furniture = next(g for g in data["groups"] if g["groupKey"] == "Furniture")
        assert furniture["current"]["revenue"] == 650.0
        assert furniture["previous"]["revenue"] == 100.0
        assert furniture["growth"]["revenue"] == pytest.approx(550.0)

    @pytest.mark.asyncio
    async def test_company_breakdown_labels(self, client):
        """Test company groups are keyed by domain and carry the company name"""
        data = (await client.get("/api/v1/breakdowns/companies", params={"period": "all"})).json()

        labels = {g["groupKey"]: g["label"] for g in data["groups"]}
        assert labels["acme.com"] == "Acme Corp"
        assert "gmail.com" not in labels

    @pytest.mark.asyncio
    async def test_dashboard_unknown_period(self, client):
        """Test an unknown period is reported as 30d"""
        data = (await client.get("/api/v1/dashboard/metrics", params={"period": "bogus"})).json()

        assert data["period"] == "30d"
        assert set(data["revenue"]) == {"current", "previous", "change"}

    @pytest.mark.asyncio
    async def test_reorder_planning_shape(self, client, test_db, dataset):
        """Test reorder rows list one target per horizon"""
        order = Order(order_number="O-3001", customer_id=dataset["customers"]["alice"].id,
                      order_date=date.today(), total_amount=Decimal("200.00"))
        test_db.add(order)
        await test_db.flush()
        test_db.add(OrderLineItem(order_id=order.id, product_code="P-002", quantity=Decimal(4),
                                  unit_price=Decimal("50.00"), line_amount=Decimal("200.00")))
        await test_db.commit()

        data = (await client.get("/api/v1/reorder-planning")).json()

        assert data["totalCount"] == 1
        row = data["rows"][0]
        assert row["productCode"] == "P-002"
        assert [target["targetDays"] for target in row["reorder"]] == [90, 180]
        assert row["inventoryValue"] == 60.0

        summary = (await client.get("/api/v1/reorder-planning/summary")).json()
        assert summary["totalProducts"] == 1
        # 2 available, 4 sold in 90 days: 45 days of supply
        assert row["daysRemaining"] == 45.0
        assert row["inventoryStatus"] == "LOW"
        assert summary["avgDaysUntilStockout"] == 45.0
        assert summary["stockoutTimeline"][0]["skus"] == ["P-002"]
        assert summary["stockoutTimeline"][0]["totalValue"] == 60.0

    @pytest.mark.asyncio
    async def test_quality_line_items(self, client):
        """Test the line-item checks pass on clean data"""
        data = (await client.get("/api/v1/quality/line-items")).json()

        assert data["dataset"] == "line_items"
        assert data["status"] == "passed"


class TestPricingEndpoints:
    """Tests for the pricing write path over HTTP"""

    @pytest.mark.asyncio
    async def test_update_cost(self, client, dataset):
        """Test a cost update returns the product and writes history"""
        product_id = dataset["products"]["P-003"].id

        response = await client.put(f"/api/v1/products/{product_id}/pricing", json={"cost": 12.5})

        assert response.status_code == 200
        data = response.json()
        assert data["cost"] == 12.5
        assert data["listPrice"] == 25.0

        history = (await client.get(f"/api/v1/products/{product_id}/pricing/history")).json()
        assert len(history) == 1
        assert history[0]["cost"] == 12.5

    @pytest.mark.asyncio
    async def test_explicit_null_clears(self, client, dataset):
        """Test listPrice null clears the list price"""
        product_id = dataset["products"]["P-001"].id

        data = (await client.put(f"/api/v1/products/{product_id}/pricing", json={"listPrice": None})).json()

        assert data["listPrice"] is None
        assert data["marginDisplay"] == "N/A"

    @pytest.mark.asyncio
    async def test_unknown_product(self, client):
        """Test an unknown product is 404"""
        response = await client.put(f"/api/v1/products/{uuid.uuid4()}/pricing", json={"cost": 1})

        assert response.status_code == 404
        assert response.json() == {"detail": "Product not found"}

    @pytest.mark.asyncio
    async def test_negative_cost_rejected(self, client, dataset):
        """Test negative prices fail request validation"""
        product_id = dataset["products"]["P-001"].id

        response = await client.put(f"/api/v1/products/{product_id}/pricing", json={"cost": -1})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_oversized_price_rejected(self, client, dataset):
        """Test prices beyond the stored precision fail request validation"""
        product_id = dataset["products"]["P-001"].id

        response = await client.put(
            f"/api/v1/products/{product_id}/pricing", json={"cost": 5, "listPrice": 1e30}
        )

        assert response.status_code == 422
        history = (await client.get(f"/api/v1/products/{product_id}/pricing/history")).json()
        assert history == []
