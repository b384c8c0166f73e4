"""
Data Preprocessing Module

Builds the order-level analytical table from the raw Olist tables:
- Item, payment, product and review aggregation to one row per order
- Timing features (delivery, approval, carrier hand-off, survey response)
- Review sentiment label derivation (neutral scores dropped)
- Fixed-threshold quality filters
"""

import logging
from typing import Dict, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

TARGET = 'is_negative'
SENTIMENT_COLUMN = 'review_sentiment'
NEUTRAL_SCORE = 3
NEGATIVE_MAX_SCORE = 2

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR


def _first_mode(s: pd.Series):
    m = s.dropna().mode()
    return m.iloc[0] if len(m) > 0 else np.nan


def _elapsed(end: pd.Series, start: pd.Series, unit_seconds: int) -> pd.Series:
    return ((end - start).dt.total_seconds() / unit_seconds).round(2)


def aggregate_items(items: pd.DataFrame, products: pd.DataFrame) -> pd.DataFrame:
    """
    Per-order item aggregates joined with product attributes.

    Returns one row per order_id with item_count, seller_count, price,
    freight_value, product_category, product_photos_qty,
    product_description_length and primary_seller_id.
    """
    product_cols = products[[
        'product_id', 'product_category_name', 'product_photos_qty', 'product_description_lenght'
    ]].rename(columns={
        'product_category_name': 'product_category',
        'product_description_lenght': 'product_description_length',
    })
    enriched = items.merge(product_cols, on='product_id', how='left')

    items_agg = enriched.groupby('order_id').agg(
        item_count=('order_item_id', 'count'),
        seller_count=('seller_id', 'nunique'),
        price=('price', 'sum'),
        freight_value=('freight_value', 'sum'),
        product_category=('product_category', _first_mode),
        product_photos_qty=('product_photos_qty', 'mean'),
        product_description_length=('product_description_length', 'mean'),
    ).reset_index()

    primary_seller = (
        enriched.sort_values('order_item_id')
        .groupby('order_id')['seller_id']
        .first()
        .rename('primary_seller_id')
        .reset_index()
    )

    return items_agg.merge(primary_seller, on='order_id', how='left')


def aggregate_payments(payments: pd.DataFrame) -> pd.DataFrame:
    """Per-order payment totals; payment_type is taken from the first sequential payment."""
    pay_agg = payments.groupby('order_id').agg(
        payment_value=('payment_value', 'sum'),
        payment_installments=('payment_installments', 'max'),
    ).reset_index()

    pay_type = (
        payments.sort_values('payment_sequential')
        .groupby('order_id')['payment_type']
        .first()
        .reset_index()
    )

    return pay_agg.merge(pay_type, on='order_id', how='left')


def latest_reviews(reviews: pd.DataFrame) -> pd.DataFrame:
    """Keep the most recent review per order (by review_creation_date)."""
    ordered = reviews.sort_values(['order_id', 'review_creation_date'], na_position='first')
    latest = ordered.drop_duplicates(subset='order_id', keep='last')

    dropped = len(reviews) - len(latest)
    if dropped > 0:
        logger.info(f"Dropped {dropped:,} superseded reviews (multiple reviews per order)")

    return latest[['order_id', 'review_score', 'review_creation_date', 'review_answer_timestamp']]


def add_timing_features(df: pd.DataFrame) -> pd.DataFrame:
    """
    Derive delivery, approval and survey response timings.

    - delivery_days: purchase -> delivered to customer
    - delivery_vs_estimate_days: delivered - estimated (positive = late)
    - is_late: 1 when delivered after the estimate, NaN when undelivered
    - approval_hours: purchase -> payment approved
    - carrier_days: approved -> handed to carrier
    - response_hours: survey sent -> survey answered
    """
    df = df.copy()

    df['delivery_days'] = _elapsed(
        df['order_delivered_customer_date'], df['order_purchase_timestamp'], SECONDS_PER_DAY
    )
    df['delivery_vs_estimate_days'] = _elapsed(
        df['order_delivered_customer_date'], df['order_estimated_delivery_date'], SECONDS_PER_DAY
    )
    late = df['delivery_vs_estimate_days']
    df['is_late'] = (late > 0).astype(float).where(late.notna())
    df['approval_hours'] = _elapsed(
        df['order_approved_at'], df['order_purchase_timestamp'], SECONDS_PER_HOUR
    )
    df['carrier_days'] = _elapsed(
        df['order_delivered_carrier_date'], df['order_approved_at'], SECONDS_PER_DAY
    )
    df['response_hours'] = _elapsed(
        df['review_answer_timestamp'], df['review_creation_date'], SECONDS_PER_HOUR
    )

    return df


def build_order_dataset(tables: Dict[str, pd.DataFrame]) -> pd.DataFrame:
    """
    Join the raw tables into one row per order.

    Left joins from orders: unmatched items/payments/reviews leave NaNs that
    are imputed later by the model pipeline.
    """
    orders = tables['orders']

    df = orders.merge(aggregate_items(tables['items'], tables['products']), on='order_id', how='left')
    df = df.merge(aggregate_payments(tables['payments']), on='order_id', how='left')
    df = df.merge(latest_reviews(tables['reviews']), on='order_id', how='left')

    customers = tables['customers'][['customer_id', 'customer_zip_code_prefix', 'customer_state']]
    df = df.merge(customers, on='customer_id', how='left')

    sellers = tables['sellers'][['seller_id', 'seller_zip_code_prefix', 'seller_state']].rename(
        columns={'seller_id': 'primary_seller_id'}
    )
    df = df.merge(sellers, on='primary_seller_id', how='left')

    df['item_count'] = df['item_count'].fillna(0).astype(int)
    df['freight_ratio'] = np.where(
        df['price'] > 0,
        (df['freight_value'] / df['price']).round(4),
        np.nan,
    )

    df = add_timing_features(df)

    logger.info(f"Built order-level dataset: {len(df):,} orders x {len(df.columns)} columns")
    return df


def derive_sentiment(df: pd.DataFrame) -> pd.DataFrame:
    """
    Derive the binary review sentiment.

    Scores 1-2 -> negative (is_negative=1), 4-5 -> positive (is_negative=0).
    Neutral scores (3) and orders without a review are dropped.
    """
    scores = pd.to_numeric(df['review_score'], errors='coerce')
    keep = scores.notna() & (scores != NEUTRAL_SCORE)

    out = df.loc[keep].copy()
    out['review_score'] = scores[keep].astype(int)
    out[TARGET] = (out['review_score'] <= NEGATIVE_MAX_SCORE).astype(int)
    out[SENTIMENT_COLUMN] = np.where(out[TARGET] == 1, 'negative', 'positive')

    logger.info(
        f"Derived sentiment: kept {len(out):,} of {len(df):,} orders "
        f"({int((scores == NEUTRAL_SCORE).sum()):,} neutral, {int(scores.isna().sum()):,} unreviewed dropped)"
    )
    return out


def apply_quality_filters(
    df: pd.DataFrame,
    max_response_hours: Optional[float] = 240,
    delivered_only: bool = True
) -> pd.DataFrame:
    """
    Drop rows that fail fixed thresholds.

    Args:
        df: Order-level DataFrame with timing features
        max_response_hours: Drop survey responses slower than this (unknown kept)
        delivered_only: Keep only orders with status 'delivered'

    Returns:
        Filtered DataFrame
    """
    n_start = len(df)
    mask = pd.Series(True, index=df.index)

    if delivered_only:
        delivered = df['order_status'] == 'delivered'
        logger.info(f"Filter delivered_only: dropping {int((~delivered).sum()):,} orders")
        mask &= delivered

    if max_response_hours is not None:
        slow = df['response_hours'] > max_response_hours
        logger.info(f"Filter response_hours > {max_response_hours}: dropping {int(slow.sum()):,} orders")
        mask &= ~slow

    negative_delivery = df['delivery_days'] < 0
    if negative_delivery.any():
        logger.warning(f"Dropping {int(negative_delivery.sum()):,} orders delivered before purchase")
        mask &= ~negative_delivery

    out = df.loc[mask].copy()
    logger.info(f"Quality filters: {n_start:,} -> {len(out):,} orders")
    return out


def prepare_dataset(
    tables: Dict[str, pd.DataFrame],
    max_response_hours: Optional[float] = 240,
    delivered_only: bool = True,
    min_class_size: int = 2
) -> pd.DataFrame:
    """
    Full preprocessing: join, derive sentiment, filter.

    Args:
        tables: Raw Olist tables keyed by table name
        max_response_hours: Passed to apply_quality_filters
        delivered_only: Passed to apply_quality_filters
        min_class_size: Fewest orders either sentiment class may have (stratified
            splitting and cross-validation need at least 2)

    Raises:
        ValueError: If no rows survive or a sentiment class is missing or too small
    """
    df = build_order_dataset(tables)
    df = derive_sentiment(df)
    df = apply_quality_filters(df, max_response_hours=max_response_hours, delivered_only=delivered_only)
    df = df.reset_index(drop=True)

    if df.empty:
        raise ValueError("No orders left after preprocessing; check input data and filters")
    if df[TARGET].nunique() < 2:
        raise ValueError(f"Modelling table has a single sentiment class: {df[SENTIMENT_COLUMN].unique().tolist()}")

    class_counts = df[SENTIMENT_COLUMN].value_counts()
    if class_counts.min() < min_class_size:
        raise ValueError(
            f"Sentiment class '{class_counts.idxmin()}' has {int(class_counts.min())} orders; "
            f"at least {min_class_size} are needed for stratified splitting and cross-validation"
        )

    logger.info(f"Class distribution: {class_counts.to_dict()}")
    return df
