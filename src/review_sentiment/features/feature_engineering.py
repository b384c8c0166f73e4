"""
Feature Engineering Module

Split-aware feature construction and the shared sklearn preprocessing step.

- Product rating history is learned from the training split only
- Customer/seller distance from geolocation zip centroids
- ColumnTransformer: median imputation (+ scaling) for numeric columns,
  constant imputation + one-hot encoding for categoricals
"""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.impute import SimpleImputer
from sklearn.model_selection import train_test_split
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from review_sentiment.data.preprocessing import TARGET
from review_sentiment.features.feature_definitions import (
    NUMERIC_FEATURES,
    CATEGORICAL_FEATURES,
    validate_feature_set
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
MISSING_CATEGORY = 'missing'


# =============================================================================
# PRODUCT HISTORY
# =============================================================================

def add_product_history(
    train: pd.DataFrame,
    test: pd.DataFrame,
    items: pd.DataFrame
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Add product_mean_rating to both splits using training reviews only.

    Training rows use a leave-one-out mean so an order's own score never
    feeds its feature. Products never reviewed in the training split are
    left missing and imputed by the model pipeline.

    Args:
        train: Training split (must carry review_score)
        test: Held-out split
        items: Raw order items table (order_id, product_id)

    Returns:
        (train, test) copies with product_mean_rating
    """
    pairs = items[['order_id', 'product_id']].drop_duplicates()

    train_pairs = pairs.merge(train[['order_id', 'review_score']], on='order_id', how='inner')
    stats = train_pairs.groupby('product_id')['review_score'].agg(['sum', 'count'])

    # Leave-one-out for training orders
    train_pairs = train_pairs.join(stats, on='product_id')
    loo_count = train_pairs['count'] - 1
    train_pairs['rating'] = np.where(
        loo_count > 0,
        (train_pairs['sum'] - train_pairs['review_score']) / loo_count.where(loo_count > 0, 1),
        np.nan,
    )
    train_rating = train_pairs.groupby('order_id')['rating'].mean()

    test_pairs = pairs[pairs['order_id'].isin(test['order_id'])].join(stats, on='product_id')
    test_pairs['rating'] = test_pairs['sum'] / test_pairs['count']
    test_rating = test_pairs.groupby('order_id')['rating'].mean()

    train = train.copy()
    test = test.copy()
    train['product_mean_rating'] = train['order_id'].map(train_rating)
    test['product_mean_rating'] = test['order_id'].map(test_rating)

    logger.info(
        f"Product history from {len(stats):,} products; "
        f"coverage train={train['product_mean_rating'].notna().mean():.1%}, "
        f"test={test['product_mean_rating'].notna().mean():.1%}"
    )
    return train, test


# =============================================================================
# GEO DISTANCE
# =============================================================================

def zip_centroids(geolocation: pd.DataFrame) -> pd.DataFrame:
    """One row per zip prefix: mean latitude/longitude of its geolocation points."""
    geo = geolocation.copy()
    geo['zip_code_prefix'] = geo['geolocation_zip_code_prefix'].astype(str)
    return geo.groupby('zip_code_prefix').agg(
        lat=('geolocation_lat', 'mean'),
        lng=('geolocation_lng', 'mean'),
    )


def haversine_km(lat1, lng1, lat2, lng2) -> np.ndarray:
    """Great-circle distance in km (vectorized, NaN-propagating)."""
    lat1, lng1, lat2, lng2 = (np.radians(np.asarray(v, dtype=float)) for v in (lat1, lng1, lat2, lng2))
    a = (
        np.sin((lat2 - lat1) / 2) ** 2
        + np.cos(lat1) * np.cos(lat2) * np.sin((lng2 - lng1) / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(a))


def add_geo_distance(df: pd.DataFrame, geolocation: pd.DataFrame) -> pd.DataFrame:
    """Add customer_seller_distance_km; NaN where either zip has no centroid."""
    centroids = zip_centroids(geolocation)
    df = df.copy()

    customer = centroids.reindex(df['customer_zip_code_prefix'].astype(str).values)
    seller = centroids.reindex(df['seller_zip_code_prefix'].astype(str).values)

    df['customer_seller_distance_km'] = np.round(
        haversine_km(customer['lat'].values, customer['lng'].values, seller['lat'].values, seller['lng'].values),
        1,
    )

    logger.info(f"Geo distance coverage: {df['customer_seller_distance_km'].notna().mean():.1%}")
    return df


# =============================================================================
# SPLIT
# =============================================================================

def split_train_test(
    df: pd.DataFrame,
    test_size: float = 0.2,
    random_state: int = 42
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Stratified random train/test split on the sentiment target."""
    train, test = train_test_split(
        df, test_size=test_size, random_state=random_state, stratify=df[TARGET]
    )
    logger.info(
        f"Split: train={len(train):,} (negative rate {train[TARGET].mean():.1%}), "
        f"test={len(test):,} (negative rate {test[TARGET].mean():.1%})"
    )
    return train.reset_index(drop=True), test.reset_index(drop=True)


# =============================================================================
# MODEL INPUT
# =============================================================================

@dataclass
class FeatureEngineer:
    """
    Selects model inputs and builds the sklearn preprocessing step.

    Example:
        engineer = FeatureEngineer()
        X_train, y_train = engineer.select(train)
        preprocessor = engineer.build_preprocessor(scale=True)
    """
    numeric_features: List[str] = field(default_factory=lambda: list(NUMERIC_FEATURES))
    categorical_features: List[str] = field(default_factory=lambda: list(CATEGORICAL_FEATURES))
    min_category_frequency: int = 20

    def __post_init__(self):
        unsafe = [f for f, ok in validate_feature_set(self.feature_names).items() if not ok]
        if unsafe:
            raise ValueError(f"Leakage features requested as model inputs: {unsafe}")

    @property
    def feature_names(self) -> List[str]:
        return self.numeric_features + self.categorical_features

    def select(self, df: pd.DataFrame) -> Tuple[pd.DataFrame, pd.Series]:
        """
        Extract the model matrix and target.

        Absent feature columns are added as all-missing so the pipeline
        sees a stable schema.
        """
        X = df.reindex(columns=self.feature_names).copy()
        X[self.numeric_features] = X[self.numeric_features].astype(float)
        for col in self.categorical_features:
            X[col] = X[col].astype(object).where(X[col].notna(), np.nan)

        y = df[TARGET].astype(int) if TARGET in df.columns else None
        return X, y

    def build_preprocessor(self, scale: bool = False) -> ColumnTransformer:
        """
        Build the ColumnTransformer shared by both model families.

        Args:
            scale: Standardize numeric columns (needed by the linear model)
        """
        numeric_steps = [('imputer', SimpleImputer(strategy='median'))]
        if scale:
            numeric_steps.append(('scaler', StandardScaler()))

        categorical_steps = [
            ('imputer', SimpleImputer(strategy='constant', fill_value=MISSING_CATEGORY)),
            ('onehot', OneHotEncoder(
                handle_unknown='ignore',
                min_frequency=self.min_category_frequency,
                sparse_output=False,
            )),
        ]

        return ColumnTransformer(
            transformers=[
                ('num', Pipeline(numeric_steps), self.numeric_features),
                ('cat', Pipeline(categorical_steps), self.categorical_features),
            ],
            remainder='drop',
        )


def build_model_frames(
    df: pd.DataFrame,
    tables: dict,
    test_size: float = 0.2,
    random_state: int = 42
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Geo distance, train/test split, then training-only product history.

    Returns:
        (train, test) order-level frames ready for FeatureEngineer.select()
    """
    df = add_geo_distance(df, tables['geolocation'])
    train, test = split_train_test(df, test_size=test_size, random_state=random_state)
    return add_product_history(train, test, tables['items'])
