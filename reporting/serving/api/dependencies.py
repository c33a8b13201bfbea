"""
API Dependencies

FastAPI dependencies shared by the routers. Query strings stay untyped
until they reach normalize_filters; routers never parse them themselves.
"""

from typing import Dict, List, Optional

from fastapi import Depends, Request

from reporting.analytics.filters import ListingOptions, TypedFilters, normalize_filters, period_param
from reporting.config.settings import Settings


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def raw_params(request: Request) -> Dict[str, List[str]]:
    """All query parameters as lists; repeated keys keep every value in order."""
    params = request.query_params
    return {key: params.getlist(key) for key in params.keys()}


def listing_filters(options_factory):
    """
    Dependency normalizing the query string against a listing's options.

    Example:
        filters: TypedFilters = Depends(listing_filters(order_listing_options))
    """
    def dependency(
        raw: Dict[str, List[str]] = Depends(raw_params),
        settings: Settings = Depends(get_app_settings),
    ) -> TypedFilters:
        options: ListingOptions = options_factory(settings)
        return normalize_filters(raw, options)

    return dependency


def requested_period(default: Optional[str] = None):
    """Dependency returning the period key (period or startDate/endDate) or default."""
    def dependency(raw: Dict[str, List[str]] = Depends(raw_params)) -> Optional[str]:
        return period_param(raw, default)

    return dependency
