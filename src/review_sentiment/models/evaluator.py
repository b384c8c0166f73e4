"""
Model Evaluator Module

Threshold-based evaluation of negative-review probabilities.

A review is predicted negative when P(negative) >= threshold. The default
threshold is 0.5; lowering it (e.g. to 0.2) flags more reviews as negative,
raising negative-class recall at the cost of precision.
"""

import logging
from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score, precision_score, recall_score, f1_score,
    roc_auc_score, average_precision_score, brier_score_loss,
    confusion_matrix
)

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS = (0.5, 0.2)
CONFUSION_INDEX = ['actual_positive', 'actual_negative']
CONFUSION_COLUMNS = ['pred_positive', 'pred_negative']


def validate_threshold(threshold: float) -> float:
    """Thresholds must lie strictly between 0 and 1."""
    if not 0.0 < threshold < 1.0:
        raise ValueError(f"Decision threshold must be in (0, 1), got {threshold}")
    return float(threshold)


@dataclass
class EvaluationReport:
    """Container for evaluation results of one model at one threshold."""
    model_name: str
    threshold: float
    metrics: Dict[str, float]
    confusion: pd.DataFrame = field(default=None)

    @property
    def label(self) -> str:
        return f"{self.model_name} @ {self.threshold:g}"

    def summary(self) -> str:
        lines = [f"=== {self.label} ==="]
        for key, value in self.metrics.items():
            lines.append(f"  {key}: {value:.4f}")
        return "\n".join(lines)

    def to_dict(self) -> Dict:
        return {
            'model': self.model_name,
            'threshold': self.threshold,
            'metrics': {k: float(v) for k, v in self.metrics.items()},
            'confusion_matrix': self.confusion.values.tolist() if self.confusion is not None else None,
        }


class ModelEvaluator:
    """
    Evaluates negative-review probabilities against decision thresholds.

    The negative review is the positive label (1) for precision/recall.
    """

    def evaluate(
        self,
        y_true: np.ndarray,
        p_negative: np.ndarray,
        threshold: float = 0.5,
        model_name: str = "classifier"
    ) -> EvaluationReport:
        """
        Evaluate probabilities at a single threshold.

        Args:
            y_true: True labels (1 = negative review)
            p_negative: Predicted probability of a negative review
            threshold: Decision threshold in (0, 1)
            model_name: Model identifier

        Returns:
            EvaluationReport
        """
        threshold = validate_threshold(threshold)
        y_true = np.asarray(y_true).astype(int)
        p_negative = np.asarray(p_negative, dtype=float)
        y_pred = (p_negative >= threshold).astype(int)

        tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()

        metrics = {
            'accuracy': accuracy_score(y_true, y_pred),
            'precision': precision_score(y_true, y_pred, zero_division=0),
            'recall': recall_score(y_true, y_pred, zero_division=0),
            'f1': f1_score(y_true, y_pred, zero_division=0),
            'specificity': tn / (tn + fp) if (tn + fp) > 0 else 0.0,
            'brier_score': brier_score_loss(y_true, p_negative),
        }

        if len(np.unique(y_true)) == 2:
            metrics['roc_auc'] = roc_auc_score(y_true, p_negative)
            metrics['pr_auc'] = average_precision_score(y_true, p_negative)
        else:
            logger.warning(f"{model_name}: single class in y_true, ROC-AUC/PR-AUC undefined")
            metrics['roc_auc'] = float('nan')
            metrics['pr_auc'] = float('nan')

        confusion = pd.DataFrame(
            [[tn, fp], [fn, tp]], index=CONFUSION_INDEX, columns=CONFUSION_COLUMNS
        )

        report = EvaluationReport(
            model_name=model_name, threshold=threshold, metrics=metrics, confusion=confusion
        )
        logger.info(
            f"{report.label}: accuracy={metrics['accuracy']:.3f}, ROC-AUC={metrics['roc_auc']:.3f}, "
            f"PR-AUC={metrics['pr_auc']:.3f}, recall={metrics['recall']:.3f}, precision={metrics['precision']:.3f}"
        )
        return report

    def evaluate_thresholds(
        self,
        y_true: np.ndarray,
        p_negative: np.ndarray,
        thresholds: Sequence[float] = DEFAULT_THRESHOLDS,
        model_name: str = "classifier"
    ) -> List[EvaluationReport]:
        """Evaluate the same probabilities at several thresholds."""
        return [self.evaluate(y_true, p_negative, t, model_name) for t in thresholds]

    def compare_models(
        self,
        reports: List[EvaluationReport],
        primary_metric: str = 'roc_auc'
    ) -> pd.DataFrame:
        """
        Compare evaluations side by side.

        Args:
            reports: Evaluation reports (any models, any thresholds)
            primary_metric: Metric to sort by (descending)

        Returns:
            Comparison DataFrame, one row per (model, threshold)
        """
        rows = [
            {'model': r.model_name, 'threshold': r.threshold, **r.metrics}
            for r in reports
        ]
        df = pd.DataFrame(rows)
        if primary_metric in df.columns:
            df = df.sort_values([primary_metric, 'threshold'], ascending=[False, False])
        return df.reset_index(drop=True)


def threshold_sweep(
    y_true: np.ndarray,
    p_negative: np.ndarray,
    thresholds: Optional[Sequence[float]] = None
) -> pd.DataFrame:
    """Precision / recall / F1 and flagged share across thresholds."""
    thresholds = thresholds if thresholds is not None else np.round(np.arange(0.1, 0.95, 0.1), 2)
    y_true = np.asarray(y_true).astype(int)
    p_negative = np.asarray(p_negative, dtype=float)

    rows = []
    for t in thresholds:
        validate_threshold(t)
        y_pred = (p_negative >= t).astype(int)
        rows.append({
            'threshold': float(t),
            'precision': precision_score(y_true, y_pred, zero_division=0),
            'recall': recall_score(y_true, y_pred, zero_division=0),
            'f1': f1_score(y_true, y_pred, zero_division=0),
            'flagged_rate': y_pred.mean(),
        })
    return pd.DataFrame(rows)
