"""
Data Validation Module

Rule-based checks over polars DataFrames of the reporting tables. Reports
read whatever ingestion wrote; these checks surface rows that would skew
them (negative totals, duplicated order numbers, line amounts that do not
match quantity times unit price, lines pointing at missing orders).

Checks are registered on a DataValidator with chained add_* calls and run
together by validate().
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import polars as pl
import structlog

logger = structlog.get_logger(__name__)

# Line amounts may differ from quantity * unit price by rounding only
AMOUNT_TOLERANCE = 0.01


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    def failures(self) -> List[ValidationCheck]:
        return [check for check in self.checks if not check.passed]


def _missing_column(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
    return ValidationCheck(
        name=name,
        passed=False,
        severity=severity,
        message=f"Column '{column}' not found",
    )


class DataValidator:
    """
    Chainable suite of DataFrame checks.

    Example:
        validator = (
            DataValidator()
            .add_unique_check("order_number")
            .add_range_check("total_amount", min_value=0)
        )
        result = validator.validate(orders_df)
    """

    def __init__(self, strict_mode: bool = False):
        # strict_mode turns warnings into a FAILED status
        self.strict_mode = strict_mode
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def __len__(self) -> int:
        return len(self._checks)

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Fail when the column holds any null"""
        name = f"not_null_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(name, column, severity)

            null_count = df[column].null_count()
            total = df.height
            return ValidationCheck(
                name=name,
                passed=null_count == 0,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values",
                details={"null_percentage": (null_count / total) * 100 if total else 0.0},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Fail when a non-null value appears more than once"""
        name = f"unique_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(name, column, severity)

            values = df[column].drop_nulls()
            duplicates = len(values) - values.n_unique()
            return ValidationCheck(
                name=name,
                passed=duplicates == 0,
                severity=severity,
                message=f"Column '{column}' has {duplicates} duplicate values",
                details={"duplicate_count": duplicates},
                failed_rows=duplicates,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Fail on values outside [min_value, max_value]; nulls are not checked"""
        name = f"range_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(name, column, severity)

            outside = pl.lit(False)
            if min_value is not None:
                outside = outside | (pl.col(column) < min_value)
            if max_value is not None:
                outside = outside | (pl.col(column) > max_value)

            out_of_range = df.filter(outside.fill_null(False)).height
            return ValidationCheck(
                name=name,
                passed=out_of_range == 0,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside [{min_value}, {max_value}]",
                details={"min": min_value, "max": max_value},
                failed_rows=out_of_range,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_non_negative_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        return self.add_range_check(column, min_value=0, severity=severity)

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[Any],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Fail on non-null values outside the allowed set"""
        name = f"enum_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(name, column, severity)

            invalid = df.filter(
                pl.col(column).is_not_null() & ~pl.col(column).is_in(allowed_values)
            ).height
            return ValidationCheck(
                name=name,
                passed=invalid == 0,
                severity=severity,
                message=f"Column '{column}' has {invalid} values outside {allowed_values}",
                details={"allowed_values": allowed_values},
                failed_rows=invalid,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_tolerance_check(
        self,
        column: str,
        factors: List[str],
        tolerance: float = AMOUNT_TOLERANCE,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Fail where column differs from the product of factors by more than tolerance"""
        name = f"tolerance_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            for required in [column] + list(factors):
                if required not in df.columns:
                    return _missing_column(name, required, severity)

            expected = pl.col(factors[0])
            for factor in factors[1:]:
                expected = expected * pl.col(factor)

            mismatched = df.filter(
                ((pl.col(column) - expected).abs() > tolerance).fill_null(False)
            ).height
            return ValidationCheck(
                name=name,
                passed=mismatched == 0,
                severity=severity,
                message=f"Column '{column}' differs from {' * '.join(factors)} on {mismatched} rows",
                details={"tolerance": tolerance},
                failed_rows=mismatched,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Fail on non-null values with no match in reference_df[reference_column]"""
        name = f"ref_integrity_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(name, column, severity)

            known = reference_df[reference_column].drop_nulls().unique()
            orphans = df.filter(
                pl.col(column).is_not_null() & ~pl.col(column).is_in(known.to_list())
            ).height
            return ValidationCheck(
                name=name,
                passed=orphans == 0,
                severity=severity,
                message=f"Column '{column}' has {orphans} orphan records",
                details={"reference": reference_column},
                failed_rows=orphans,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame, dataset: str = "dataset") -> ValidationResult:
        """
        Run all registered checks on a DataFrame.

        Args:
            df: DataFrame to validate
            dataset: Name used in log events

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.now()
        logger.info("Running validation checks", dataset=dataset, checks=len(self._checks), rows=df.height)

        results = []
        for check_func in self._checks:
            result = check_func(df)
            results.append(result)
            if not result.passed:
                logger.warning(
                    "Validation check failed",
                    dataset=dataset,
                    check=result.name,
                    message=result.message,
                    severity=result.severity.value,
                )

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0 or (warning_count > 0 and self.strict_mode):
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        logger.info(
            "Validation complete",
            dataset=dataset,
            status=status.value,
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )
        return ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=datetime.now(),
        )


# =============================================================================
# PRE-BUILT VALIDATORS
# =============================================================================

def create_orders_validator() -> DataValidator:
    """Order headers: unique numbers, dates present, totals never negative"""
    return (
        DataValidator()
        .add_not_null_check("order_number")
        .add_unique_check("order_number")
        .add_not_null_check("order_date")
        .add_not_null_check("customer_id")
        .add_non_negative_check("total_amount")
        .add_enum_check("status", ["open", "closed", "cancelled"], severity=ValidationSeverity.WARNING)
        .add_enum_check("payment_status", ["unpaid", "partial", "paid"], severity=ValidationSeverity.WARNING)
    )


def create_line_items_validator(orders: Optional[pl.DataFrame] = None) -> DataValidator:
    """Order lines: amounts consistent with quantity and price, parent order present"""
    validator = (
        DataValidator()
        .add_not_null_check("order_id")
        .add_not_null_check("product_code", severity=ValidationSeverity.WARNING)
        .add_non_negative_check("quantity", severity=ValidationSeverity.WARNING)
        .add_tolerance_check("line_amount", ["quantity", "unit_price"])
    )
    if orders is not None:
        validator.add_referential_integrity_check("order_id", orders, "id")
    return validator


def create_products_validator() -> DataValidator:
    """Catalog: unique codes; prices optional but never negative"""
    return (
        DataValidator()
        .add_not_null_check("product_code")
        .add_unique_check("product_code")
        .add_non_negative_check("cost", severity=ValidationSeverity.WARNING)
        .add_non_negative_check("list_price", severity=ValidationSeverity.WARNING)
    )
