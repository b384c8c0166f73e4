"""
SHAP Explainer Module

TreeSHAP attributions for the boosted review classifier. Values are in
log-odds of a negative review; positive values push towards negative.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

try:
    import shap
    SHAP_AVAILABLE = True
except ImportError:
    SHAP_AVAILABLE = False
    shap = None

from review_sentiment.models.boosted_classifier import BoostedReviewClassifier

logger = logging.getLogger(__name__)


@dataclass
class SHAPSummary:
    """
    Global SHAP attribution over a sample of orders.

    Attributes:
        shap_values: 2D array (samples x transformed features)
        feature_names: Transformed feature names
        base_value: Expected model output (log-odds)
    """
    shap_values: np.ndarray
    feature_names: List[str]
    base_value: float

    def importance(self, top_n: Optional[int] = None) -> pd.DataFrame:
        """Mean |SHAP| and mean signed SHAP per feature, largest first."""
        df = pd.DataFrame({
            'feature': self.feature_names,
            'mean_abs_shap': np.abs(self.shap_values).mean(axis=0),
            'mean_shap': self.shap_values.mean(axis=0),
        }).sort_values('mean_abs_shap', ascending=False).reset_index(drop=True)
        return df.head(top_n) if top_n is not None else df


class SHAPExplainer:
    """
    TreeSHAP explainer for a fitted BoostedReviewClassifier.

    Example:
        explainer = SHAPExplainer(boosted_model)
        summary = explainer.explain(X_test)
        summary.importance(top_n=10)
    """

    def __init__(self, model: BoostedReviewClassifier, max_samples: int = 2000, random_state: int = 42):
        """
        Args:
            model: Fitted boosted classifier
            max_samples: Rows sampled from X before explaining
            random_state: Sampling seed
        """
        if not SHAP_AVAILABLE:
            raise ImportError("SHAP is required. Install with: pip install shap")

        self.model = model
        self.max_samples = max_samples
        self.random_state = random_state
        self._explainer = shap.TreeExplainer(model.estimator)
        logger.info("Using TreeSHAP explainer")

    def explain(self, X: pd.DataFrame) -> SHAPSummary:
        """Compute SHAP values on (a sample of) raw model inputs."""
        if len(X) > self.max_samples:
            X = X.sample(self.max_samples, random_state=self.random_state)

        matrix = self.model.transform(X)
        values = self._explainer.shap_values(matrix)

        # Older shap releases return one array per class for binary LightGBM
        if isinstance(values, list):
            values = values[-1]
        values = np.asarray(values)
        if values.ndim == 3:
            values = values[:, :, -1]

        base_value = np.ravel(self._explainer.expected_value)[-1]

        logger.info(f"Computed SHAP values for {values.shape[0]:,} orders x {values.shape[1]} features")
        return SHAPSummary(
            shap_values=values,
            feature_names=self.model.transformed_feature_names,
            base_value=float(base_value),
        )
