"""
Breakdown API Endpoints

Revenue by product family, material type, sales channel and company, each
with the comparison window and growth percentages. Periods default to one
year.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.filters import parse_flag
from reporting.analytics.periods import resolve_period
from reporting.config.settings import Settings
from reporting.database.connection import get_session
from reporting.reports.breakdowns import (
    BREAKDOWN_DEFAULT_PERIOD,
    channel_breakdown,
    company_breakdown,
    family_breakdown,
    family_detail,
    material_breakdown,
)
from reporting.serving.api.dependencies import get_app_settings, raw_params, requested_period
from reporting.serving.api.schemas import (
    CamelModel,
    GroupComparisonModel,
    WindowModel,
    group_response,
)

router = APIRouter()

breakdown_period = requested_period(BREAKDOWN_DEFAULT_PERIOD)


class BreakdownResponse(CamelModel):
    window: WindowModel
    groups: List[GroupComparisonModel]


class ConcentrationModel(CamelModel):
    customers_to_50_percent: int
    customers_to_80_percent: int
    total_customers: int
    total_revenue: float


class FamilyDetailResponse(CamelModel):
    family: str
    window: WindowModel
    comparison: Optional[GroupComparisonModel] = None
    concentration: ConcentrationModel


@router.get("/families", response_model=BreakdownResponse)
async def get_family_breakdown(
    period: Optional[str] = Depends(breakdown_period),
    session: AsyncSession = Depends(get_session),
) -> BreakdownResponse:
    window = resolve_period(period)
    groups = await family_breakdown(session, window)
    return BreakdownResponse(window=WindowModel.from_window(window), groups=group_response(groups))


@router.get("/families/{family}", response_model=FamilyDetailResponse)
async def get_family_detail(
    family: str,
    period: Optional[str] = Depends(breakdown_period),
    session: AsyncSession = Depends(get_session),
) -> FamilyDetailResponse:
    """One family's comparison and customer concentration; an unknown family has no comparison."""
    window = resolve_period(period)
    detail = await family_detail(session, window, family)
    comparison = group_response([detail.comparison])[0] if detail.comparison else None
    return FamilyDetailResponse(
        family=detail.family,
        window=WindowModel.from_window(window),
        comparison=comparison,
        concentration=ConcentrationModel.model_validate(detail.concentration),
    )


@router.get("/materials", response_model=BreakdownResponse)
async def get_material_breakdown(
    period: Optional[str] = Depends(breakdown_period),
    session: AsyncSession = Depends(get_session),
) -> BreakdownResponse:
    window = resolve_period(period)
    groups = await material_breakdown(session, window)
    return BreakdownResponse(window=WindowModel.from_window(window), groups=group_response(groups))


@router.get("/channels", response_model=BreakdownResponse)
async def get_channel_breakdown(
    period: Optional[str] = Depends(breakdown_period),
    session: AsyncSession = Depends(get_session),
) -> BreakdownResponse:
    window = resolve_period(period)
    groups = await channel_breakdown(session, window)
    return BreakdownResponse(window=WindowModel.from_window(window), groups=group_response(groups))


@router.get("/companies", response_model=BreakdownResponse)
async def get_company_breakdown(
    period: Optional[str] = Depends(breakdown_period),
    raw: dict = Depends(raw_params),
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_session),
) -> BreakdownResponse:
    """Revenue by company; consumer domains are excluded unless filterConsumer=false."""
    window = resolve_period(period)
    exclude = parse_flag(raw.get("filterConsumer")) is not False
    domains = settings.reporting.consumer_domains if exclude else None
    groups = await company_breakdown(session, window, consumer_domains=domains)
    return BreakdownResponse(window=WindowModel.from_window(window), groups=group_response(groups))
