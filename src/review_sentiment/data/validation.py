"""
Data Validation Module

Data quality checks for the Olist tables before the order-level join.

Key Validations:
    - Schema validation (required columns per table)
    - Range checks (review scores 1-5, non-negative money columns)
    - Key integrity (unique order ids, reviews pointing at known orders)
    - Completeness (missing timestamps reported, not fatal)
"""

import logging
from dataclasses import dataclass, field
from typing import List, Dict, Optional
from enum import Enum

import pandas as pd

logger = logging.getLogger(__name__)


class DataValidationError(ValueError):
    """Raised in strict mode when blocking checks fail."""


class ValidationLevel(Enum):
    """Severity level for validation checks."""
    BLOCKING = "blocking"  # Pipeline must stop
    WARNING = "warning"    # Log alert, continue
    INFO = "info"          # Informational only


@dataclass
class ValidationResult:
    """
    Container for a single validation check result.

    Attributes:
        check_name: Name of the validation check
        passed: Whether the check passed
        level: Severity level
        message: Human-readable result message
        details: Additional details (e.g., affected rows)
    """
    check_name: str
    passed: bool
    level: ValidationLevel
    message: str
    details: Optional[Dict] = None

    def __str__(self):
        status = "PASS" if self.passed else "FAIL"
        return f"[{self.level.value.upper()}] {status}: {self.check_name} - {self.message}"


@dataclass
class ValidationReport:
    """Aggregated validation report for the loaded tables."""
    results: List[ValidationResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """Check if all blocking validations passed."""
        return all(
            r.passed for r in self.results
            if r.level == ValidationLevel.BLOCKING
        )

    @property
    def blocking_failures(self) -> List[ValidationResult]:
        """Get list of failed blocking validations."""
        return [r for r in self.results if not r.passed and r.level == ValidationLevel.BLOCKING]

    @property
    def warnings(self) -> List[ValidationResult]:
        """Get list of warning-level issues."""
        return [r for r in self.results if not r.passed and r.level == ValidationLevel.WARNING]

    def add(self, result: ValidationResult):
        """Add a validation result to the report."""
        self.results.append(result)
        log_level = logging.WARNING if not result.passed else logging.DEBUG
        logger.log(log_level, str(result))

    def summary(self) -> str:
        """Generate a summary string."""
        total = len(self.results)
        passed = sum(1 for r in self.results if r.passed)
        status = "PASSED" if self.passed else "FAILED"

        return (
            f"Validation Report: {status}\n"
            f"  Total Checks: {total}\n"
            f"  Passed: {passed}\n"
            f"  Blocking Failures: {len(self.blocking_failures)}\n"
            f"  Warnings: {len(self.warnings)}"
        )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([
            {'check': r.check_name, 'level': r.level.value, 'passed': r.passed, 'message': r.message}
            for r in self.results
        ])


# Columns the order-level join depends on
REQUIRED_COLUMNS: Dict[str, List[str]] = {
    'orders': [
        'order_id', 'customer_id', 'order_status', 'order_purchase_timestamp',
        'order_approved_at', 'order_delivered_carrier_date',
        'order_delivered_customer_date', 'order_estimated_delivery_date',
    ],
    'items': ['order_id', 'order_item_id', 'product_id', 'seller_id', 'price', 'freight_value'],
    'reviews': ['review_id', 'order_id', 'review_score', 'review_creation_date', 'review_answer_timestamp'],
    'products': [
        'product_id', 'product_category_name', 'product_description_lenght', 'product_photos_qty',
    ],
    'sellers': ['seller_id', 'seller_zip_code_prefix', 'seller_state'],
    'payments': ['order_id', 'payment_sequential', 'payment_type', 'payment_installments', 'payment_value'],
    'customers': ['customer_id', 'customer_zip_code_prefix', 'customer_state'],
    'geolocation': ['geolocation_zip_code_prefix', 'geolocation_lat', 'geolocation_lng'],
}

NON_NEGATIVE_COLUMNS: Dict[str, List[str]] = {
    'items': ['price', 'freight_value'],
    'payments': ['payment_value'],
}


class DataValidator:
    """
    Validation orchestrator for the Olist tables.

    Example:
        validator = DataValidator()
        report = validator.validate(tables)
    """

    def __init__(self, strict: bool = True):
        """
        Args:
            strict: If True, raise DataValidationError on blocking failures
        """
        self.strict = strict

    def validate(self, tables: Dict[str, pd.DataFrame]) -> ValidationReport:
        """
        Run all validation checks.

        Args:
            tables: Dict short name -> DataFrame (see ingestion.TABLE_FILES)

        Returns:
            ValidationReport with all results

        Raises:
            DataValidationError: If strict=True and blocking validations fail
        """
        report = ValidationReport()

        for name in REQUIRED_COLUMNS:
            report.add(self._check_required_columns(tables, name))

        # Content checks need the schema to be intact
        if report.passed:
            report.add(self._check_review_score_range(tables['reviews']))
            for name, cols in NON_NEGATIVE_COLUMNS.items():
                report.add(self._check_non_negative(tables[name], name, cols))
            report.add(self._check_unique_orders(tables['orders']))
            report.add(self._check_review_coverage(tables['reviews'], tables['orders']))
            report.add(self._check_missing_timestamps(tables['orders']))

        logger.info(report.summary())

        if self.strict and not report.passed:
            failures = [str(f) for f in report.blocking_failures]
            raise DataValidationError("Blocking validation failures:\n" + "\n".join(failures))

        return report

    def _check_required_columns(self, tables: Dict[str, pd.DataFrame], name: str) -> ValidationResult:
        check_name = f"{name}_required_columns"
        if name not in tables:
            return ValidationResult(
                check_name=check_name,
                passed=False,
                level=ValidationLevel.BLOCKING,
                message=f"Table '{name}' not loaded"
            )

        missing = sorted(set(REQUIRED_COLUMNS[name]) - set(tables[name].columns))
        if missing:
            return ValidationResult(
                check_name=check_name,
                passed=False,
                level=ValidationLevel.BLOCKING,
                message=f"Missing required columns: {missing}",
                details={'missing': missing}
            )

        return ValidationResult(
            check_name=check_name,
            passed=True,
            level=ValidationLevel.BLOCKING,
            message="All required columns present"
        )

    def _check_review_score_range(self, reviews: pd.DataFrame) -> ValidationResult:
        """Review scores must lie in [1, 5]."""
        scores = pd.to_numeric(reviews['review_score'], errors='coerce')
        invalid = int(((scores < 1) | (scores > 5) | scores.isna()).sum())

        if invalid > 0:
            return ValidationResult(
                check_name="review_score_range",
                passed=False,
                level=ValidationLevel.BLOCKING,
                message=f"{invalid:,} reviews have scores outside [1, 5]",
                details={'invalid_count': invalid}
            )

        return ValidationResult(
            check_name="review_score_range",
            passed=True,
            level=ValidationLevel.BLOCKING,
            message="All review scores in [1, 5]"
        )

    def _check_non_negative(self, df: pd.DataFrame, name: str, cols: List[str]) -> ValidationResult:
        counts = {col: int((df[col] < 0).sum()) for col in cols}
        invalid = sum(counts.values())

        if invalid > 0:
            return ValidationResult(
                check_name=f"{name}_non_negative",
                passed=False,
                level=ValidationLevel.BLOCKING,
                message=f"Negative values found: {counts}",
                details=counts
            )

        return ValidationResult(
            check_name=f"{name}_non_negative",
            passed=True,
            level=ValidationLevel.BLOCKING,
            message=f"{', '.join(cols)} are non-negative"
        )

    def _check_unique_orders(self, orders: pd.DataFrame) -> ValidationResult:
        duplicates = int(orders['order_id'].duplicated().sum())

        return ValidationResult(
            check_name="orders_unique_id",
            passed=duplicates == 0,
            level=ValidationLevel.BLOCKING,
            message="order_id is unique" if duplicates == 0 else f"{duplicates:,} duplicated order_id values",
            details={'duplicates': duplicates}
        )

    def _check_review_coverage(self, reviews: pd.DataFrame, orders: pd.DataFrame) -> ValidationResult:
        """Reviews pointing at unknown orders are dropped by the join."""
        orphaned = int((~reviews['order_id'].isin(orders['order_id'])).sum())
        multi = int(reviews['order_id'].duplicated().sum())

        return ValidationResult(
            check_name="review_order_coverage",
            passed=orphaned == 0,
            level=ValidationLevel.WARNING,
            message=(
                f"{orphaned:,} reviews reference unknown orders; "
                f"{multi:,} extra reviews on already-reviewed orders (latest is kept)"
            ),
            details={'orphaned': orphaned, 'multiple_reviews': multi}
        )

    def _check_missing_timestamps(self, orders: pd.DataFrame) -> ValidationResult:
        cols = REQUIRED_COLUMNS['orders'][3:]
        missing = {col: f"{orders[col].isna().mean() * 100:.1f}%" for col in cols}

        return ValidationResult(
            check_name="orders_missing_timestamps",
            passed=True,
            level=ValidationLevel.INFO,
            message=f"Missing timestamp rates: {missing}",
            details=missing
        )


def validate_tables(tables: Dict[str, pd.DataFrame], strict: bool = True) -> ValidationReport:
    """Quick validation with a fresh DataValidator."""
    return DataValidator(strict=strict).validate(tables)
