"""
Features Module

Feature definitions and split-aware feature engineering.

Quick Start:
    from review_sentiment.features import FeatureEngineer, build_model_frames

    train, test = build_model_frames(df, tables)
    engineer = FeatureEngineer()
    X_train, y_train = engineer.select(train)
"""

from review_sentiment.features.feature_engineering import (
    FeatureEngineer,
    add_product_history,
    add_geo_distance,
    zip_centroids,
    haversine_km,
    split_train_test,
    build_model_frames
)

from review_sentiment.features.feature_definitions import (
    FeatureSchema,
    FeatureType,
    FeatureGroup,
    FEATURES,
    NUMERIC_FEATURES,
    CATEGORICAL_FEATURES,
    LEAKAGE_FEATURES,
    get_feature_schema,
    get_features_by_group,
    validate_feature_set
)

__all__ = [
    # Engineering
    'FeatureEngineer',
    'add_product_history',
    'add_geo_distance',
    'zip_centroids',
    'haversine_km',
    'split_train_test',
    'build_model_frames',

    # Definitions
    'FeatureSchema',
    'FeatureType',
    'FeatureGroup',
    'FEATURES',
    'NUMERIC_FEATURES',
    'CATEGORICAL_FEATURES',
    'LEAKAGE_FEATURES',
    'get_feature_schema',
    'get_features_by_group',
    'validate_feature_set',
]
