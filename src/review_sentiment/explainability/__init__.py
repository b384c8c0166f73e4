"""
Explainability Module

SHAP attributions for the gradient-boosted classifier.
"""

from review_sentiment.explainability.shap_explainer import (
    SHAPExplainer,
    SHAPSummary,
    SHAP_AVAILABLE
)

__all__ = [
    'SHAPExplainer',
    'SHAPSummary',
    'SHAP_AVAILABLE',
]
