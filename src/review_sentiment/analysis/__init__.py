"""
Analysis Module

Exploratory summary tables for the report.
"""

from review_sentiment.analysis.eda import (
    score_distribution,
    sentiment_distribution,
    numeric_summary_by_sentiment,
    negative_rate_by,
    negative_rate_by_category,
    negative_rate_by_lateness,
    missing_value_summary,
    feature_correlations,
    run_eda
)

__all__ = [
    'score_distribution',
    'sentiment_distribution',
    'numeric_summary_by_sentiment',
    'negative_rate_by',
    'negative_rate_by_category',
    'negative_rate_by_lateness',
    'missing_value_summary',
    'feature_correlations',
    'run_eda',
]
