"""
Visualization Module

Static figures for the report: exploratory charts and model diagnostics.
All figures are written as PNG files with the non-interactive Agg backend.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.metrics import precision_recall_curve, roc_curve, roc_auc_score, average_precision_score

from review_sentiment.data.preprocessing import SENTIMENT_COLUMN
from review_sentiment.models.evaluator import EvaluationReport

logger = logging.getLogger(__name__)

SENTIMENT_PALETTE = {'negative': '#ff6b6b', 'positive': '#4ecdc4'}
MODEL_COLORS = ['#667eea', '#f59e0b', '#10b981', '#ef4444']


class ReportVisualizer:
    """
    Figure generator for the sentiment report.

    Example:
        viz = ReportVisualizer('reports/figures')
        path = viz.plot_score_distribution(score_table)
    """

    def __init__(self, output_dir: Union[str, Path] = 'reports/figures', dpi: int = 100):
        """
        Args:
            output_dir: Directory to save plot files
            dpi: Output resolution
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.dpi = dpi
        sns.set_theme(style='whitegrid', palette='muted')

    def _save(self, fig, filename: str) -> Path:
        path = self.output_dir / filename
        fig.tight_layout()
        fig.savefig(path, dpi=self.dpi, bbox_inches='tight')
        plt.close(fig)
        logger.info(f"Saved figure {path}")
        return path

    # ------------------------------------------------------------------
    # Exploratory
    # ------------------------------------------------------------------

    def plot_score_distribution(self, score_table: pd.DataFrame) -> Path:
        """Bar chart of raw 1-5 review scores; neutral bar greyed out."""
        fig, ax = plt.subplots(figsize=(8, 5))
        scores = score_table.index.astype(int)
        colors = [
            SENTIMENT_PALETTE['negative'] if s <= 2 else '#bbbbbb' if s == 3 else SENTIMENT_PALETTE['positive']
            for s in scores
        ]
        ax.bar(scores.astype(str), score_table['orders'], color=colors)
        ax.set_xlabel('Review score')
        ax.set_ylabel('Orders')
        ax.set_title('Review score distribution (3 = neutral, excluded from modelling)')
        return self._save(fig, 'score_distribution.png')

    def plot_numeric_by_sentiment(self, df: pd.DataFrame, column: str, clip_quantile: float = 0.99) -> Path:
        """Box plot of a numeric feature split by sentiment, upper tail clipped."""
        data = df[[column, SENTIMENT_COLUMN]].dropna()
        upper = data[column].quantile(clip_quantile)
        data = data[data[column] <= upper]

        fig, ax = plt.subplots(figsize=(8, 5))
        sns.boxplot(
            data=data, x=SENTIMENT_COLUMN, y=column, hue=SENTIMENT_COLUMN,
            palette=SENTIMENT_PALETTE, order=['negative', 'positive'], legend=False, ax=ax
        )
        ax.set_xlabel('')
        ax.set_title(f"{column} by review sentiment (<= p{int(clip_quantile * 100)})")
        return self._save(fig, f'{column}_by_sentiment.png')

    def plot_negative_rate(self, table: pd.DataFrame, title: str, filename: str, top_n: int = 15) -> Path:
        """Horizontal bars of negative-review rate per group."""
        data = table.head(top_n)
        fig, ax = plt.subplots(figsize=(9, max(3, 0.4 * len(data) + 1)))
        y_pos = np.arange(len(data))
        ax.barh(y_pos, data['negative_rate'], color=SENTIMENT_PALETTE['negative'])
        ax.set_yticks(y_pos)
        ax.set_yticklabels([str(i) for i in data.index])
        ax.invert_yaxis()
        ax.set_xlabel('Negative review rate')
        ax.set_title(title)
        return self._save(fig, filename)

    def plot_correlation_heatmap(self, corr: pd.DataFrame) -> Path:
        fig, ax = plt.subplots(figsize=(11, 9))
        mask = np.triu(np.ones_like(corr, dtype=bool), k=1)
        sns.heatmap(corr, mask=mask, cmap='coolwarm', center=0, vmin=-1, vmax=1,
                    square=True, linewidths=0.5, cbar_kws={'shrink': 0.7}, ax=ax)
        ax.set_title('Feature correlations')
        return self._save(fig, 'correlation_heatmap.png')

    # ------------------------------------------------------------------
    # Model diagnostics
    # ------------------------------------------------------------------

    def plot_roc_curves(self, y_true: np.ndarray, probabilities: Dict[str, np.ndarray]) -> Path:
        """ROC curves of every model on the test split."""
        fig, ax = plt.subplots(figsize=(7, 6))
        for color, (name, p) in zip(MODEL_COLORS, probabilities.items()):
            fpr, tpr, _ = roc_curve(y_true, p)
            ax.plot(fpr, tpr, color=color, label=f"{name} (AUC={roc_auc_score(y_true, p):.3f})")
        ax.plot([0, 1], [0, 1], color='grey', linestyle='--', linewidth=0.8)
        ax.set_xlabel('False positive rate')
        ax.set_ylabel('True positive rate (negative-review recall)')
        ax.set_title('ROC curves (test split)')
        ax.legend(loc='lower right')
        return self._save(fig, 'roc_curves.png')

    def plot_pr_curves(self, y_true: np.ndarray, probabilities: Dict[str, np.ndarray]) -> Path:
        """Precision-recall curves with the negative-review base rate."""
        fig, ax = plt.subplots(figsize=(7, 6))
        for color, (name, p) in zip(MODEL_COLORS, probabilities.items()):
            precision, recall, _ = precision_recall_curve(y_true, p)
            ax.plot(recall, precision, color=color,
                    label=f"{name} (AP={average_precision_score(y_true, p):.3f})")
        ax.axhline(np.mean(y_true), color='grey', linestyle='--', linewidth=0.8, label='base rate')
        ax.set_xlabel('Recall (negative reviews)')
        ax.set_ylabel('Precision')
        ax.set_title('Precision-recall curves (test split)')
        ax.legend(loc='upper right')
        return self._save(fig, 'pr_curves.png')

    def plot_confusion_matrices(self, reports: List[EvaluationReport]) -> Path:
        """One annotated confusion matrix per (model, threshold)."""
        n = len(reports)
        n_cols = min(n, 2)
        n_rows = int(np.ceil(n / n_cols))
        fig, axes = plt.subplots(n_rows, n_cols, figsize=(5 * n_cols, 4.2 * n_rows), squeeze=False)

        for ax, report in zip(axes.flat, reports):
            sns.heatmap(report.confusion, annot=True, fmt='d', cmap='Blues', cbar=False, ax=ax)
            ax.set_title(report.label)
        for ax in list(axes.flat)[n:]:
            ax.axis('off')

        return self._save(fig, 'confusion_matrices.png')

    def plot_threshold_sweep(self, sweeps: Dict[str, pd.DataFrame], marked: Optional[List[float]] = None) -> Path:
        """Precision and recall of each model against the decision threshold."""
        fig, ax = plt.subplots(figsize=(8, 5))
        for color, (name, sweep) in zip(MODEL_COLORS, sweeps.items()):
            ax.plot(sweep['threshold'], sweep['recall'], color=color, marker='o', label=f"{name} recall")
            ax.plot(sweep['threshold'], sweep['precision'], color=color, marker='s', linestyle='--',
                    label=f"{name} precision")
        for t in marked or []:
            ax.axvline(t, color='grey', linestyle=':', linewidth=0.8)
        ax.set_xlabel('Decision threshold on P(negative)')
        ax.set_ylabel('Score')
        ax.set_title('Precision / recall trade-off')
        ax.legend(fontsize=8)
        return self._save(fig, 'threshold_sweep.png')

    def plot_feature_importance(
        self,
        importance: pd.DataFrame,
        value_col: str,
        title: str,
        filename: str,
        max_display: int = 15
    ) -> Path:
        """Horizontal bars of the top features by value_col."""
        data = importance.head(max_display)
        fig, ax = plt.subplots(figsize=(9, max(3, 0.4 * len(data) + 1)))
        y_pos = np.arange(len(data))
        ax.barh(y_pos, data[value_col], color='#667eea')
        ax.set_yticks(y_pos)
        ax.set_yticklabels(data['feature'])
        ax.invert_yaxis()
        ax.set_xlabel(value_col)
        ax.set_title(title)
        return self._save(fig, filename)
