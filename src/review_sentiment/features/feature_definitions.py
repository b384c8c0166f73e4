"""
Feature Definitions Module

Schema definitions for the order-level features used by both classifiers.
Defines feature metadata, types, and the groupings fed to the model pipeline.
"""

from dataclasses import dataclass
from typing import List, Dict, Optional
from enum import Enum


class FeatureType(Enum):
    """Feature data types."""
    NUMERICAL = "numerical"
    CATEGORICAL = "categorical"
    BINARY = "binary"


class FeatureGroup(Enum):
    """What aspect of the order a feature describes."""
    TIMING = "timing"
    MONETARY = "monetary"
    CATEGORICAL = "categorical"
    PRODUCT = "product"
    GEO = "geo"


@dataclass
class FeatureSchema:
    """
    Feature metadata.

    Attributes:
        name: Feature column name
        dtype: Feature data type
        group: Feature group
        description: Human-readable description
    """
    name: str
    dtype: FeatureType
    group: FeatureGroup
    description: str = ""

    def __str__(self):
        return f"{self.name} ({self.dtype.value})"


# =============================================================================
# MODEL FEATURES
# =============================================================================

FEATURES: Dict[str, FeatureSchema] = {
    # Timing
    'delivery_days': FeatureSchema('delivery_days', FeatureType.NUMERICAL, FeatureGroup.TIMING, 'Days from purchase to delivery'),
    'delivery_vs_estimate_days': FeatureSchema('delivery_vs_estimate_days', FeatureType.NUMERICAL, FeatureGroup.TIMING, 'Days delivered after (+) or before (-) the estimate'),
    'is_late': FeatureSchema('is_late', FeatureType.BINARY, FeatureGroup.TIMING, 'Delivered after the estimated date'),
    'approval_hours': FeatureSchema('approval_hours', FeatureType.NUMERICAL, FeatureGroup.TIMING, 'Hours from purchase to payment approval'),
    'carrier_days': FeatureSchema('carrier_days', FeatureType.NUMERICAL, FeatureGroup.TIMING, 'Days from approval to carrier hand-off'),
    'response_hours': FeatureSchema('response_hours', FeatureType.NUMERICAL, FeatureGroup.TIMING, 'Hours to answer the satisfaction survey'),

    # Monetary
    'payment_value': FeatureSchema('payment_value', FeatureType.NUMERICAL, FeatureGroup.MONETARY, 'Total paid for the order'),
    'payment_installments': FeatureSchema('payment_installments', FeatureType.NUMERICAL, FeatureGroup.MONETARY, 'Maximum number of installments'),
    'price': FeatureSchema('price', FeatureType.NUMERICAL, FeatureGroup.MONETARY, 'Sum of item prices'),
    'freight_value': FeatureSchema('freight_value', FeatureType.NUMERICAL, FeatureGroup.MONETARY, 'Sum of item freight'),
    'freight_ratio': FeatureSchema('freight_ratio', FeatureType.NUMERICAL, FeatureGroup.MONETARY, 'Freight as a share of price'),

    # Categorical
    'payment_type': FeatureSchema('payment_type', FeatureType.CATEGORICAL, FeatureGroup.CATEGORICAL, 'First payment method'),
    'product_category': FeatureSchema('product_category', FeatureType.CATEGORICAL, FeatureGroup.CATEGORICAL, 'Most frequent product category in the order'),
    'customer_state': FeatureSchema('customer_state', FeatureType.CATEGORICAL, FeatureGroup.CATEGORICAL, 'Customer state'),

    # Product aggregates
    'product_mean_rating': FeatureSchema('product_mean_rating', FeatureType.NUMERICAL, FeatureGroup.PRODUCT, 'Mean training-split review score of the ordered products'),
    'product_photos_qty': FeatureSchema('product_photos_qty', FeatureType.NUMERICAL, FeatureGroup.PRODUCT, 'Mean number of product photos'),
    'product_description_length': FeatureSchema('product_description_length', FeatureType.NUMERICAL, FeatureGroup.PRODUCT, 'Mean product description length'),
    'item_count': FeatureSchema('item_count', FeatureType.NUMERICAL, FeatureGroup.PRODUCT, 'Number of items in the order'),
    'seller_count': FeatureSchema('seller_count', FeatureType.NUMERICAL, FeatureGroup.PRODUCT, 'Number of distinct sellers'),

    # Geo
    'customer_seller_distance_km': FeatureSchema('customer_seller_distance_km', FeatureType.NUMERICAL, FeatureGroup.GEO, 'Haversine distance between customer and primary seller'),
}

NUMERIC_FEATURES: List[str] = [
    name for name, schema in FEATURES.items() if schema.dtype != FeatureType.CATEGORICAL
]

CATEGORICAL_FEATURES: List[str] = [
    name for name, schema in FEATURES.items() if schema.dtype == FeatureType.CATEGORICAL
]

# Columns that must NOT be used as features (label or post-label information)
LEAKAGE_FEATURES: List[str] = [
    'review_score',
    'review_sentiment',
    'is_negative',
    'review_comment_title',
    'review_comment_message',
]


def get_feature_schema(name: str) -> Optional[FeatureSchema]:
    """Get schema for a feature by name, or None if unknown."""
    return FEATURES.get(name)


def get_features_by_group(group: FeatureGroup) -> List[str]:
    """All feature names in a group."""
    return [name for name, schema in FEATURES.items() if schema.group == group]


def validate_feature_set(features: List[str]) -> Dict[str, bool]:
    """
    Check features against the leakage list.

    Returns:
        Dict mapping feature names to validity (True = safe)
    """
    leakage = set(LEAKAGE_FEATURES)
    return {f: f not in leakage for f in features}
