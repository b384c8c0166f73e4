"""
Exploratory Analysis Module

Summary tables describing the order-level dataset and how review
sentiment relates to delivery, money and product attributes.
"""

import logging
from typing import List, Optional

import numpy as np
import pandas as pd

from review_sentiment.data.preprocessing import TARGET, SENTIMENT_COLUMN
from review_sentiment.features.feature_definitions import NUMERIC_FEATURES

logger = logging.getLogger(__name__)

LATENESS_BINS = [-np.inf, -10, -5, 0, 5, 10, np.inf]
LATENESS_LABELS = ['>10 days early', '5-10 days early', '0-5 days early',
                   '0-5 days late', '5-10 days late', '>10 days late']


def score_distribution(scores: pd.Series) -> pd.DataFrame:
    """Counts and shares of raw 1-5 review scores (neutral included)."""
    counts = pd.to_numeric(scores, errors='coerce').dropna().astype(int).value_counts().sort_index()
    return pd.DataFrame({'orders': counts, 'share': (counts / counts.sum()).round(4)}).rename_axis('review_score')


def sentiment_distribution(df: pd.DataFrame) -> pd.DataFrame:
    """Counts and shares of negative / positive reviews."""
    counts = df[SENTIMENT_COLUMN].value_counts()
    return pd.DataFrame({'orders': counts, 'share': (counts / counts.sum()).round(4)}).rename_axis('sentiment')


def numeric_summary_by_sentiment(
    df: pd.DataFrame,
    columns: Optional[List[str]] = None
) -> pd.DataFrame:
    """Median and mean of numeric features per sentiment class."""
    columns = [c for c in (columns or NUMERIC_FEATURES) if c in df.columns]
    summary = df.groupby(SENTIMENT_COLUMN)[columns].agg(['median', 'mean']).T
    return summary.round(2)


def negative_rate_by(df: pd.DataFrame, column: str, min_count: int = 1) -> pd.DataFrame:
    """Negative-review rate per level of a column, for levels with >= min_count orders."""
    grouped = df.groupby(column, observed=True)[TARGET].agg(orders='count', negative_rate='mean')
    grouped = grouped[grouped['orders'] >= min_count]
    grouped['negative_rate'] = grouped['negative_rate'].round(4)
    return grouped.sort_values('negative_rate', ascending=False)


def negative_rate_by_category(df: pd.DataFrame, min_count: int = 100) -> pd.DataFrame:
    """Negative-review rate per product category (small categories filtered)."""
    return negative_rate_by(df, 'product_category', min_count=min_count)


def negative_rate_by_lateness(df: pd.DataFrame) -> pd.DataFrame:
    """Negative-review rate by delivery timeliness against the estimate."""
    binned = df.assign(lateness=pd.cut(
        df['delivery_vs_estimate_days'], bins=LATENESS_BINS, labels=LATENESS_LABELS
    ))
    out = binned.groupby('lateness', observed=False)[TARGET].agg(orders='count', negative_rate='mean')
    return out.round(4)


def missing_value_summary(df: pd.DataFrame, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Missing counts and rates, only for columns with gaps."""
    columns = [c for c in (columns or df.columns) if c in df.columns]
    missing = df[columns].isna().sum()
    missing = missing[missing > 0]
    return pd.DataFrame({
        'missing': missing,
        'rate': (missing / len(df)).round(4),
    }).sort_values('missing', ascending=False)


def feature_correlations(df: pd.DataFrame, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Pearson correlation of numeric features and the negative-review target."""
    columns = [c for c in (columns or NUMERIC_FEATURES) if c in df.columns]
    return df[columns + [TARGET]].corr().round(3)


def run_eda(df: pd.DataFrame, raw_scores: Optional[pd.Series] = None, min_category_orders: int = 100) -> dict:
    """
    Compute every EDA table used by the report.

    Args:
        df: Modelling table (neutral reviews already dropped)
        raw_scores: Review scores before neutral rows were dropped
        min_category_orders: Category size filter for the category table
    """
    tables = {
        'sentiment_distribution': sentiment_distribution(df),
        'numeric_by_sentiment': numeric_summary_by_sentiment(df),
        'negative_rate_by_category': negative_rate_by_category(df, min_count=min_category_orders),
        'negative_rate_by_lateness': negative_rate_by_lateness(df),
        'negative_rate_by_payment_type': negative_rate_by(df, 'payment_type'),
        'missing_values': missing_value_summary(df, NUMERIC_FEATURES + ['payment_type', 'product_category']),
        'correlations': feature_correlations(df),
    }
    if raw_scores is not None:
        tables['score_distribution'] = score_distribution(raw_scores)

    logger.info(f"EDA: computed {len(tables)} summary tables on {len(df):,} orders")
    return tables
