"""
Review Classifier Base

Shared fit / predict plumbing for the two model families: an sklearn
Pipeline (preprocessing + estimator) tuned by cross-validated search.
Probabilities always refer to the negative-review class (is_negative=1).
"""

import logging
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.pipeline import Pipeline

from review_sentiment.features.feature_engineering import FeatureEngineer
from review_sentiment.models.evaluator import validate_threshold
from review_sentiment.models.tuning import ModelTuner, TuningConfig, summarize_cv_results

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.5


class ReviewClassifier:
    """
    Base class for negative-review classifiers.

    Subclasses set ``name``, ``DEFAULT_PARAM_GRID``, ``scale_features`` and
    implement ``_build_estimator`` and ``get_feature_importance``.
    """

    name = 'base'
    DEFAULT_PARAM_GRID: Dict[str, List] = {}
    scale_features = False

    def __init__(
        self,
        engineer: Optional[FeatureEngineer] = None,
        param_grid: Optional[Dict[str, List]] = None,
        tuning: Optional[TuningConfig] = None,
        threshold: float = DEFAULT_THRESHOLD
    ):
        self.engineer = engineer or FeatureEngineer()
        self.param_grid = param_grid or dict(self.DEFAULT_PARAM_GRID)
        self.tuning = tuning or TuningConfig()
        self.threshold = validate_threshold(threshold)

        self.pipeline: Optional[Pipeline] = None
        self.search_ = None
        self._fitted = False

    def _build_estimator(self):
        raise NotImplementedError

    def build_pipeline(self) -> Pipeline:
        """Unfitted preprocessing + estimator pipeline."""
        return Pipeline([
            ('preprocess', self.engineer.build_preprocessor(scale=self.scale_features)),
            ('model', self._build_estimator()),
        ])

    def fit(self, X: pd.DataFrame, y: pd.Series) -> 'ReviewClassifier':
        """
        Tune hyperparameters by cross-validation and refit the best pipeline.

        Raises:
            ValueError: If y does not contain both classes
        """
        classes = np.unique(y)
        if len(classes) < 2:
            raise ValueError(f"{self.name}: training target has a single class {classes.tolist()}")

        logger.info(
            f"Training {self.name} on {len(X):,} orders "
            f"(negative rate {np.mean(y):.1%}, {len(self.engineer.feature_names)} input features)"
        )

        tuner = ModelTuner(self.tuning)
        self.search_ = tuner.search(self.build_pipeline(), self.param_grid, X, y)
        self.pipeline = self.search_.best_estimator_
        self._fitted = True

        return self

    def _check_fitted(self):
        if not self._fitted:
            raise RuntimeError(f"{self.name} must be fitted before use")

    @property
    def best_params_(self) -> Dict:
        self._check_fitted()
        return {k.split('__', 1)[-1]: v for k, v in self.search_.best_params_.items()}

    @property
    def best_score_(self) -> float:
        self._check_fitted()
        return float(self.search_.best_score_)

    @property
    def cv_results_(self) -> pd.DataFrame:
        self._check_fitted()
        return summarize_cv_results(self.search_)

    def predict_proba(self, X: pd.DataFrame) -> np.ndarray:
        """Probability that each review is negative."""
        self._check_fitted()
        proba = self.pipeline.predict_proba(X)
        negative_col = list(self.pipeline.classes_).index(1)
        return proba[:, negative_col]

    def predict(self, X: pd.DataFrame, threshold: Optional[float] = None) -> np.ndarray:
        """Binary labels: 1 (negative) when P(negative) >= threshold."""
        threshold = self.threshold if threshold is None else validate_threshold(threshold)
        return (self.predict_proba(X) >= threshold).astype(int)

    def transform(self, X: pd.DataFrame) -> np.ndarray:
        """Apply the fitted preprocessing step only."""
        self._check_fitted()
        return self.pipeline.named_steps['preprocess'].transform(X)

    @property
    def transformed_feature_names(self) -> List[str]:
        self._check_fitted()
        return list(self.pipeline.named_steps['preprocess'].get_feature_names_out())

    @property
    def estimator(self):
        """The fitted final estimator."""
        self._check_fitted()
        return self.pipeline.named_steps['model']

    def get_feature_importance(self) -> pd.DataFrame:
        raise NotImplementedError
