"""
Integration Tests - Data Quality Against the Store
"""
import uuid
from decimal import Decimal

import pytest

from reporting.database.models import OrderLineItem
from reporting.quality import ValidationStatus, validate_line_items, validate_orders, validate_products


def check(result, name):
    return next(c for c in result.checks if c.name == name)


class TestStoreValidation:
    """Tests for the table validators over seeded data"""

    @pytest.mark.asyncio
    async def test_clean_dataset_passes(self, test_db, dataset):
        """Test the seeded tables pass every check"""
        for validate in (validate_orders, validate_line_items, validate_products):
            result = await validate(test_db)
            assert result.status == ValidationStatus.PASSED, result.failures()

    @pytest.mark.asyncio
    async def test_orders_row_counts(self, test_db, dataset):
        """Test every order is checked"""
        result = await validate_orders(test_db)

        assert check(result, "unique_order_number").total_rows == 7

    @pytest.mark.asyncio
    async def test_line_amount_mismatch_is_a_warning(self, test_db, dataset):
        """Test an inconsistent line amount yields a partial result"""
        test_db.add(
            OrderLineItem(
                order_id=dataset["orders"]["O-1001"].id,
                product_code="P-001",
                quantity=Decimal("2"),
                unit_price=Decimal("10.00"),
                line_amount=Decimal("25.00"),
            )
        )
        await test_db.flush()

        result = await validate_line_items(test_db)

        assert result.status == ValidationStatus.PARTIAL
        assert check(result, "tolerance_line_amount").failed_rows == 1

    @pytest.mark.asyncio
    async def test_orphan_line_fails(self, test_db, dataset):
        """Test a line without its order fails referential integrity"""
        test_db.add(
            OrderLineItem(
                order_id=uuid.uuid4(),
                product_code="P-001",
                quantity=Decimal("1"),
                unit_price=Decimal("10.00"),
                line_amount=Decimal("10.00"),
            )
        )
        await test_db.flush()

        result = await validate_line_items(test_db)

        assert result.status == ValidationStatus.FAILED
        assert check(result, "ref_integrity_order_id").failed_rows == 1
