"""
Data Layer Module

Handles data ingestion, validation, and order-level preprocessing.

Quick Start:
    from review_sentiment.data import OlistDataLoader, DataValidator, prepare_dataset

    tables = OlistDataLoader('data').load_all()
    DataValidator().validate(tables)
    df = prepare_dataset(tables)
"""

from review_sentiment.data.ingestion import (
    OlistDataLoader,
    TABLE_FILES,
    load_olist_tables,
    table_summary
)

from review_sentiment.data.validation import (
    DataValidator,
    DataValidationError,
    ValidationResult,
    ValidationReport,
    ValidationLevel,
    validate_tables
)

from review_sentiment.data.preprocessing import (
    TARGET,
    SENTIMENT_COLUMN,
    build_order_dataset,
    derive_sentiment,
    apply_quality_filters,
    prepare_dataset
)

__all__ = [
    # Ingestion
    'OlistDataLoader',
    'TABLE_FILES',
    'load_olist_tables',
    'table_summary',

    # Validation
    'DataValidator',
    'DataValidationError',
    'ValidationResult',
    'ValidationReport',
    'ValidationLevel',
    'validate_tables',

    # Preprocessing
    'TARGET',
    'SENTIMENT_COLUMN',
    'build_order_dataset',
    'derive_sentiment',
    'apply_quality_filters',
    'prepare_dataset',
]
