"""
Logistic Review Classifier

Regularized (elastic-net) logistic regression for negative review prediction.
Numeric inputs are median-imputed and standardized before fitting.

Tuned hyperparameters:
    C         inverse regularization strength
    l1_ratio  0 = ridge, 1 = lasso
"""

import logging
from typing import Optional

import pandas as pd
from sklearn.linear_model import LogisticRegression

from review_sentiment.models.base import ReviewClassifier

logger = logging.getLogger(__name__)


class LogisticReviewClassifier(ReviewClassifier):
    """
    Elastic-net logistic regression tuned over C and l1_ratio.

    Example:
        clf = LogisticReviewClassifier(tuning=TuningConfig(cv_folds=5))
        clf.fit(X_train, y_train)
        p_negative = clf.predict_proba(X_test)
    """

    name = 'logistic_regression'
    DEFAULT_PARAM_GRID = {
        'C': [0.01, 0.1, 1.0, 10.0],
        'l1_ratio': [0.0, 0.5, 1.0],
    }
    scale_features = True

    def __init__(
        self,
        engineer=None,
        param_grid=None,
        tuning=None,
        threshold: float = 0.5,
        class_weight: Optional[str] = None,
        max_iter: int = 2000,
        random_state: int = 42
    ):
        super().__init__(engineer=engineer, param_grid=param_grid, tuning=tuning, threshold=threshold)
        self.class_weight = class_weight
        self.max_iter = max_iter
        self.random_state = random_state

    def _build_estimator(self) -> LogisticRegression:
        return LogisticRegression(
            solver='saga',
            penalty='elasticnet',
            l1_ratio=0.5,
            max_iter=self.max_iter,
            class_weight=self.class_weight,
            random_state=self.random_state,
        )

    def get_feature_importance(self) -> pd.DataFrame:
        """Standardized coefficients; positive values push towards a negative review."""
        coef = self.estimator.coef_[0]

        importance = pd.DataFrame({
            'feature': self.transformed_feature_names,
            'coefficient': coef,
            'importance': abs(coef),
        }).sort_values('importance', ascending=False).reset_index(drop=True)

        n_zero = int((importance['coefficient'] == 0).sum())
        if n_zero:
            logger.info(f"{self.name}: {n_zero} coefficients shrunk to zero")

        return importance
