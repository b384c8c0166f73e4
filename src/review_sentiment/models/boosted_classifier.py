"""
Boosted Review Classifier

Gradient-boosted trees (LightGBM) for negative review prediction.
Tuned by cross-validated grid search spread over a worker pool; each
LightGBM fit stays single-threaded so the pool is not oversubscribed.

Evaluation Metrics:
    - AUC-ROC, PR-AUC
    - Precision, Recall, F1 at a decision threshold
"""

import logging
from typing import Dict, Optional

import pandas as pd
import lightgbm as lgb

from review_sentiment.models.base import ReviewClassifier

logger = logging.getLogger(__name__)


class BoostedReviewClassifier(ReviewClassifier):
    """
    LightGBM classifier tuned over tree count, learning rate and leaf size.

    Example:
        clf = BoostedReviewClassifier(tuning=TuningConfig(n_jobs=12))
        clf.fit(X_train, y_train)
        importance = clf.get_feature_importance()
    """

    name = 'gradient_boosting'

    # Fixed hyperparameters
    DEFAULT_PARAMS = {
        'objective': 'binary',
        'boosting_type': 'gbdt',
        'subsample': 0.8,
        'subsample_freq': 1,
        'colsample_bytree': 0.8,
        'reg_alpha': 0.1,
        'reg_lambda': 0.1,
        'importance_type': 'gain',
        'n_jobs': 1,
        'verbose': -1,
    }

    DEFAULT_PARAM_GRID = {
        'n_estimators': [200, 400],
        'learning_rate': [0.05, 0.1],
        'num_leaves': [15, 31],
        'min_child_samples': [20, 50],
    }

    def __init__(
        self,
        engineer=None,
        param_grid=None,
        tuning=None,
        threshold: float = 0.5,
        params: Optional[Dict] = None,
        auto_balance: bool = False,
        random_state: int = 42
    ):
        super().__init__(engineer=engineer, param_grid=param_grid, tuning=tuning, threshold=threshold)
        self.params = {**self.DEFAULT_PARAMS, 'random_state': random_state, **(params or {})}
        self.auto_balance = auto_balance

    def _build_estimator(self) -> lgb.LGBMClassifier:
        return lgb.LGBMClassifier(**self.params)

    def fit(self, X: pd.DataFrame, y: pd.Series) -> 'BoostedReviewClassifier':
        """Optionally reweight the minority class, then tune and refit."""
        if self.auto_balance:
            neg_count = int((y == 0).sum())
            pos_count = int((y == 1).sum())
            if pos_count > 0:
                self.params['scale_pos_weight'] = neg_count / pos_count
                logger.info(
                    f"Class imbalance: {neg_count}:{pos_count}, "
                    f"scale_pos_weight={self.params['scale_pos_weight']:.2f}"
                )
        return super().fit(X, y)

    def get_feature_importance(self) -> pd.DataFrame:
        """Total split gain per transformed feature, normalized to sum to 1."""
        gains = self.estimator.feature_importances_
        total = gains.sum()

        importance = pd.DataFrame({
            'feature': self.transformed_feature_names,
            'importance': gains / total if total > 0 else gains,
        }).sort_values('importance', ascending=False).reset_index(drop=True)

        return importance
