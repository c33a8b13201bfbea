"""
Data Quality API Endpoints

Read-only validation of the tables the reports aggregate.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.database.connection import get_session
from reporting.quality import ValidationResult, validate_line_items, validate_orders, validate_products
from reporting.serving.api.schemas import CamelModel

router = APIRouter()


class CheckModel(CamelModel):
    name: str
    passed: bool
    severity: str
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int
    total_rows: int


class ValidationResponse(CamelModel):
    dataset: str
    status: str
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    success_rate: float
    checks: List[CheckModel]
    started_at: datetime
    completed_at: Optional[datetime] = None


def _response(dataset: str, result: ValidationResult) -> ValidationResponse:
    return ValidationResponse(
        dataset=dataset,
        status=result.status.value,
        total_checks=result.total_checks,
        passed_checks=result.passed_checks,
        failed_checks=result.failed_checks,
        warning_count=result.warning_count,
        success_rate=round(result.success_rate, 2),
        checks=[
            CheckModel(
                name=check.name,
                passed=check.passed,
                severity=check.severity.value,
                message=check.message,
                details=check.details,
                failed_rows=check.failed_rows,
                total_rows=check.total_rows,
            )
            for check in result.checks
        ],
        started_at=result.started_at,
        completed_at=result.completed_at,
    )


@router.get("/orders", response_model=ValidationResponse)
async def get_orders_quality(session: AsyncSession = Depends(get_session)) -> ValidationResponse:
    """Unique order numbers, order dates present, non-negative totals."""
    return _response("orders", await validate_orders(session))


@router.get("/line-items", response_model=ValidationResponse)
async def get_line_items_quality(session: AsyncSession = Depends(get_session)) -> ValidationResponse:
    """Line amounts match quantity times unit price; every line has its order."""
    return _response("line_items", await validate_line_items(session))


@router.get("/products", response_model=ValidationResponse)
async def get_products_quality(session: AsyncSession = Depends(get_session)) -> ValidationResponse:
    return _response("products", await validate_products(session))
