"""
Sales Reporting

Filtered, sorted and paginated sales reports with period-over-period
comparison, served over a FastAPI application.
"""

__version__ = "1.0.0"
