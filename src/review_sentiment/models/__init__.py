"""
Models Module

The two review sentiment classifiers, their hyperparameter search and
threshold-based evaluation.

Main Classes:
    LogisticReviewClassifier: Elastic-net logistic regression
    BoostedReviewClassifier: LightGBM gradient-boosted trees
    ModelTuner: Cross-validated grid / randomized search
    ModelEvaluator: Threshold metrics, confusion matrix, model comparison
"""

from review_sentiment.models.base import ReviewClassifier

from review_sentiment.models.logistic_classifier import LogisticReviewClassifier

from review_sentiment.models.boosted_classifier import BoostedReviewClassifier

from review_sentiment.models.tuning import (
    ModelTuner,
    TuningConfig,
    summarize_cv_results
)

from review_sentiment.models.evaluator import (
    ModelEvaluator,
    EvaluationReport,
    DEFAULT_THRESHOLDS,
    threshold_sweep,
    validate_threshold
)

__all__ = [
    # Classifiers
    'ReviewClassifier',
    'LogisticReviewClassifier',
    'BoostedReviewClassifier',

    # Tuning
    'ModelTuner',
    'TuningConfig',
    'summarize_cv_results',

    # Evaluation
    'ModelEvaluator',
    'EvaluationReport',
    'DEFAULT_THRESHOLDS',
    'threshold_sweep',
    'validate_threshold',
]
