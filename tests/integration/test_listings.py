"""
Integration Tests - Paginated Listings
"""
import pytest

from reporting.analytics.filters import normalize_filters
from reporting.database.models import CustomerEmail
from reporting.reports.companies import company_listing_options, list_companies
from reporting.reports.contacts import contact_listing_options, list_contacts
from reporting.reports.customers import customer_listing_options, list_customers
from reporting.reports.orders import get_order, get_order_line_items, list_orders, order_listing_options
from reporting.reports.products import list_products, product_listing_options

CONSUMER_DOMAINS = ["gmail.com", "yahoo.com"]


def order_filters(settings, **raw):
    return normalize_filters(raw, order_listing_options(settings))


def product_filters(settings, **raw):
    return normalize_filters(raw, product_listing_options(settings))


class TestOrderListing:
    """Tests for list_orders"""

    @pytest.mark.asyncio
    async def test_default_sort_newest_first(self, test_db, dataset, now, test_settings):
        """Test orders are listed by order date descending"""
        page = await list_orders(test_db, order_filters(test_settings), now=now)

        numbers = [row["order_number"] for row in page.rows]
        assert page.total_count == 7
        assert numbers[:2] == ["O-1005", "O-1004"]
        assert set(numbers[2:4]) == {"O-1001", "O-1007"}
        assert numbers[4:] == ["O-1002", "O-1003", "O-1006"]

    @pytest.mark.asyncio
    async def test_ties_break_on_id(self, test_db, dataset, now, test_settings):
        """Test orders on the same date come out in id order"""
        page = await list_orders(test_db, order_filters(test_settings), now=now)

        same_day = [row["id"] for row in page.rows if row["order_number"] in ("O-1001", "O-1007")]
        assert same_day == sorted(same_day, key=lambda value: value.hex)

    @pytest.mark.asyncio
    async def test_pages_are_deterministic(self, test_db, dataset, now, test_settings):
        """Test paging through returns every row once, identically on repeat"""
        full = await list_orders(test_db, order_filters(test_settings, pageSize="100"), now=now)

        paged = []
        for page_number in range(1, 5):
            filters = order_filters(test_settings, page=str(page_number), pageSize="2", sortColumn="status")
            first = await list_orders(test_db, filters, now=now)
            again = await list_orders(test_db, filters, now=now)
            assert [r["id"] for r in first.rows] == [r["id"] for r in again.rows]
            assert first.total_pages == 4
            paged.extend(row["id"] for row in first.rows)

        assert len(paged) == 7
        assert set(paged) == {row["id"] for row in full.rows}

    @pytest.mark.asyncio
    async def test_period_filter(self, test_db, dataset, now, test_settings):
        """Test the period bounds order dates"""
        page = await list_orders(test_db, order_filters(test_settings, period="30d"), now=now)

        assert page.total_count == 5

    @pytest.mark.asyncio
    async def test_amount_bounds(self, test_db, dataset, now, test_settings):
        """Test minAmount and maxAmount are inclusive"""
        filters = order_filters(test_settings, minAmount="100", maxAmount="300")
        page = await list_orders(test_db, filters, now=now)

        assert {row["order_number"] for row in page.rows} == {"O-1001", "O-1002", "O-1003", "O-1007"}

    @pytest.mark.asyncio
    async def test_is_paid_flag(self, test_db, dataset, now, test_settings):
        """Test isPaid=false keeps unpaid orders only"""
        page = await list_orders(test_db, order_filters(test_settings, isPaid="false"), now=now)

        assert [row["order_number"] for row in page.rows] == ["O-1002"]
        assert page.rows[0]["is_paid"] is False

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, test_db, dataset, now, test_settings):
        """Test search matches company names regardless of case"""
        page = await list_orders(test_db, order_filters(test_settings, search="GLOBEX"), now=now)

        assert {row["order_number"] for row in page.rows} == {"O-1003", "O-1007"}

    @pytest.mark.asyncio
    async def test_consumer_filter(self, test_db, dataset, now, test_settings):
        """Test orders from consumer-domain companies are excluded"""
        filters = order_filters(test_settings, filterConsumer="true")
        page = await list_orders(test_db, filters, consumer_domains=CONSUMER_DOMAINS, now=now)

        numbers = {row["order_number"] for row in page.rows}
        assert page.total_count == 6
        assert "O-1004" not in numbers
        assert "O-1005" in numbers

    @pytest.mark.asyncio
    async def test_individual_customer(self, test_db, dataset, now, test_settings):
        """Test customers without a company are flagged individual"""
        page = await list_orders(test_db, order_filters(test_settings, search="erin"), now=now)

        assert page.rows[0]["is_individual_customer"] is True
        assert page.rows[0]["company_name"] is None

    @pytest.mark.asyncio
    async def test_page_past_the_end(self, test_db, dataset, now, test_settings):
        """Test a page beyond the last one is empty but keeps the total"""
        page = await list_orders(test_db, order_filters(test_settings, page="9", pageSize="5"), now=now)

        assert page.rows == []
        assert page.total_count == 7


class TestOrderDetail:
    """Tests for single order lookups"""

    @pytest.mark.asyncio
    async def test_get_order(self, test_db, dataset):
        """Test an order header by number"""
        order = await get_order(test_db, "O-1001")

        assert order["total_amount"] == 300.0
        assert order["customer_name"] == "Alice Archer"

    @pytest.mark.asyncio
    async def test_missing_order(self, test_db, dataset):
        """Test an unknown number returns None"""
        assert await get_order(test_db, "O-0000") is None

    @pytest.mark.asyncio
    async def test_line_items_with_unknown_product(self, test_db, dataset):
        """Test lines keep unknown products with null classification and margin"""
        items = await get_order_line_items(test_db, "O-1002")

        assert [item["product_code"] for item in items] == ["P-003", "X-999"]
        unknown = items[1]
        assert unknown["family"] is None
        assert unknown["margin_percentage"] is None


class TestProductListing:
    """Tests for list_products"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("direction", ["asc", "desc"])
    async def test_null_prices_sort_last(self, test_db, dataset, now, test_settings, direction):
        """Test products without a list price come last in both directions"""
        filters = product_filters(test_settings, sortColumn="listPrice", sortDirection=direction)
        page = await list_products(test_db, filters, now=now)

        prices = [row["list_price"] for row in page.rows]
        assert prices[3:] == [None, None]
        known = prices[:3]
        assert known == sorted(known, reverse=direction == "desc")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("direction", ["asc", "desc"])
    async def test_unknown_margins_sort_last(self, test_db, dataset, now, test_settings, direction):
        """Test incomplete pricing sorts after every known margin"""
        filters = product_filters(test_settings, sortColumn="marginPercentage", sortDirection=direction)
        page = await list_products(test_db, filters, now=now)

        margins = [row["margin_percentage"] for row in page.rows]
        assert margins[2:] == [None, None, None]
        assert sorted(margins[:2]) == [pytest.approx(40.0), pytest.approx(60.0)]

    @pytest.mark.asyncio
    async def test_search_wildcards_match_literally(self, test_db, dataset, now, test_settings):
        """Test % in a search term is not a wildcard"""
        page = await list_products(test_db, product_filters(test_settings, search="50%"), now=now)

        assert [row["product_code"] for row in page.rows] == ["P-004"]

    @pytest.mark.asyncio
    async def test_unknown_margin_displays_na(self, test_db, dataset, now, test_settings):
        """Test a product with cost but no list price shows N/A"""
        page = await list_products(test_db, product_filters(test_settings, search="P-004"), now=now)

        row = page.rows[0]
        assert row["margin_percentage"] is None
        assert row["margin_display"] == "N/A"
        assert row["list_price_display"] == "—"

    @pytest.mark.asyncio
    async def test_period_sales(self, test_db, dataset, now, test_settings):
        """Test sales columns cover the default 30 day period"""
        page = await list_products(test_db, product_filters(test_settings, search="P-001"), now=now)

        row = page.rows[0]
        assert row["period_revenue"] == 200.0
        assert row["period_units"] == 2.0

    @pytest.mark.asyncio
    async def test_category_filter(self, test_db, dataset, now, test_settings):
        """Test family filter"""
        page = await list_products(test_db, product_filters(test_settings, family="Lighting"), now=now)

        assert [row["product_code"] for row in page.rows] == ["P-003", "P-004"]


class TestCustomerListing:
    """Tests for list_customers"""

    @pytest.mark.asyncio
    async def test_sorted_by_total_spent(self, test_db, dataset, now, test_settings):
        """Test highest spenders first and customers without orders last"""
        filters = normalize_filters({}, customer_listing_options(test_settings))
        page = await list_customers(test_db, filters, now=now)

        names = [row["name"] for row in page.rows]
        assert names == ["Alice Archer", "Carol Cole", "Bob Baker", "Dave Dunn", "Erin Ellis", "Frank Ford"]
        assert page.rows[0]["total_spent"] == 700.0
        assert page.rows[0]["primary_email"] == "alice@acme.com"
        assert page.rows[0]["primary_phone"] == "555-0100"
        assert page.rows[-1]["total_spent"] is None
        assert page.rows[-1]["order_count"] == 0

    @pytest.mark.asyncio
    async def test_no_spend_last_ascending(self, test_db, dataset, now, test_settings):
        """Test customers without orders stay last when sorting ascending"""
        filters = normalize_filters({"sortDirection": "asc"}, customer_listing_options(test_settings))
        page = await list_customers(test_db, filters, now=now)

        assert page.rows[0]["name"] == "Erin Ellis"
        assert page.rows[-1]["name"] == "Frank Ford"

    @pytest.mark.asyncio
    async def test_consumer_filter_keeps_individuals(self, test_db, dataset, now, test_settings):
        """Test consumer-domain companies are excluded but customers without a company stay"""
        filters = normalize_filters({"filterConsumer": "true"}, customer_listing_options(test_settings))
        page = await list_customers(test_db, filters, consumer_domains=CONSUMER_DOMAINS, now=now)

        names = {row["name"] for row in page.rows}
        assert "Dave Dunn" not in names
        assert "Erin Ellis" in names
        assert page.total_count == 5

    @pytest.mark.asyncio
    async def test_period_spend(self, test_db, dataset, now, test_settings):
        """Test spend statistics cover the filter period only"""
        filters = normalize_filters({"period": "30d", "search": "alice"}, customer_listing_options(test_settings))
        page = await list_customers(test_db, filters, now=now)

        assert page.rows[0]["total_spent"] == 300.0
        assert page.rows[0]["order_count"] == 1

    @pytest.mark.asyncio
    async def test_search_matches_secondary_email(self, test_db, dataset, now, test_settings):
        """Test search finds a customer by any email on file, not only the primary"""
        test_db.add(CustomerEmail(customer_id=dataset["customers"]["bob"].id, email="purchasing@bobsupply.net",
                                  is_primary=False))
        await test_db.commit()

        filters = normalize_filters({"search": "BOBSUPPLY"}, customer_listing_options(test_settings))
        page = await list_customers(test_db, filters, now=now)

        assert page.total_count == 1
        assert page.rows[0]["name"] == "Bob Baker"
        assert page.rows[0]["primary_email"] == "bob@acme.com"


class TestCompanyListing:
    """Tests for list_companies"""

    @pytest.mark.asyncio
    async def test_consumer_filter_on_by_default(self, test_db, dataset, now, test_settings):
        """Test consumer domains are excluded unless disabled"""
        filters = normalize_filters({}, company_listing_options(test_settings))
        page = await list_companies(test_db, filters, consumer_domains=CONSUMER_DOMAINS, now=now)

        assert [row["domain"] for row in page.rows] == ["acme.com", "globex.com"]

    @pytest.mark.asyncio
    async def test_consumer_filter_disabled(self, test_db, dataset, now, test_settings):
        """Test filterConsumer=false lists every company"""
        filters = normalize_filters({"filterConsumer": "false"}, company_listing_options(test_settings))
        page = await list_companies(test_db, filters, consumer_domains=CONSUMER_DOMAINS, now=now)

        assert page.total_count == 3

    @pytest.mark.asyncio
    async def test_company_statistics(self, test_db, dataset, now, test_settings):
        """Test customer, order and revenue totals per company"""
        filters = normalize_filters({}, company_listing_options(test_settings))
        page = await list_companies(test_db, filters, consumer_domains=CONSUMER_DOMAINS, now=now)

        acme, globex = page.rows
        assert (acme["customer_count"], acme["total_orders"], acme["total_revenue"]) == (2, 3, 860.0)
        assert (globex["customer_count"], globex["total_orders"], globex["total_revenue"]) == (2, 2, 400.0)
        assert acme["enriched"] is True
        assert globex["enriched"] is False

    @pytest.mark.asyncio
    async def test_recently_enriched_count(self, test_db, dataset, now, test_settings):
        """Test the summary counts companies enriched in the last 30 days"""
        filters = normalize_filters({"filterConsumer": "false"}, company_listing_options(test_settings))
        page = await list_companies(test_db, filters, consumer_domains=CONSUMER_DOMAINS, now=now)

        assert page.summary["recently_enriched_count"] == 1


class TestContactListing:
    """Tests for list_contacts"""

    @pytest.mark.asyncio
    async def test_tri_state_flags(self, test_db, dataset, test_settings):
        """Test true, false and unset emailMarketable"""
        options = contact_listing_options(test_settings)

        marketable = await list_contacts(test_db, normalize_filters({"emailMarketable": "true"}, options))
        not_marketable = await list_contacts(test_db, normalize_filters({"emailMarketable": "false"}, options))
        everyone = await list_contacts(test_db, normalize_filters({}, options))

        assert {row["email"] for row in marketable.rows} == {"alice@acme.com", "dave@gmail.com"}
        assert [row["email"] for row in not_marketable.rows] == ["bob@acme.com"]
        assert everyone.total_count == 5

    @pytest.mark.asyncio
    async def test_key_account_contacts(self, test_db, dataset, test_settings):
        """Test keyAccountContact filter"""
        filters = normalize_filters({"keyAccountContact": "true"}, contact_listing_options(test_settings))
        page = await list_contacts(test_db, filters)

        assert [row["name"] for row in page.rows] == ["Alice Archer"]

    @pytest.mark.asyncio
    async def test_sorted_by_name(self, test_db, dataset, test_settings):
        """Test default sort is by customer name"""
        page = await list_contacts(test_db, normalize_filters({}, contact_listing_options(test_settings)))

        names = [row["name"] for row in page.rows]
        assert names == sorted(names)
