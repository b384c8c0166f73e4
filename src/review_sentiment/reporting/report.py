"""
Report Builder Module

Assembles the Markdown report (narrative, tables, figures) and the
machine-readable metrics file.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

logger = logging.getLogger(__name__)


class ReportBuilder:
    """
    Incremental Markdown report writer.

    Tables are rendered with DataFrame.to_string() inside code blocks;
    figures are linked relative to the report file.

    Example:
        builder = ReportBuilder('reports')
        builder.add_heading('Data')
        builder.add_table(summary, 'Loaded tables')
        builder.write()
    """

    def __init__(self, output_dir: Union[str, Path], title: str = 'Olist Review Sentiment Report'):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.title = title
        self._blocks: List[str] = []

    def add_heading(self, text: str, level: int = 2) -> 'ReportBuilder':
        self._blocks.append(f"{'#' * level} {text}")
        return self

    def add_text(self, text: str) -> 'ReportBuilder':
        self._blocks.append(text.strip())
        return self

    def add_bullets(self, items: List[str]) -> 'ReportBuilder':
        self._blocks.append("\n".join(f"- {item}" for item in items))
        return self

    def add_table(self, df: pd.DataFrame, caption: str = "", float_format: str = '{:.4f}') -> 'ReportBuilder':
        """Render a DataFrame as a fixed-width text table."""
        body = df.to_string(float_format=float_format.format)
        block = f"```\n{body}\n```"
        if caption:
            block = f"**{caption}**\n\n{block}"
        self._blocks.append(block)
        return self

    def add_figure(self, path: Union[str, Path], caption: str) -> 'ReportBuilder':
        path = Path(path)
        try:
            rel = path.relative_to(self.output_dir)
        except ValueError:
            rel = path
        self._blocks.append(f"![{caption}]({rel.as_posix()})")
        return self

    def render(self) -> str:
        header = f"# {self.title}\n\n_Generated {datetime.now():%Y-%m-%d %H:%M}_"
        return "\n\n".join([header] + self._blocks) + "\n"

    def write(self, filename: str = 'report.md') -> Path:
        path = self.output_dir / filename
        path.write_text(self.render(), encoding='utf-8')
        logger.info(f"Report written to {path}")
        return path

    def write_json(self, payload: Dict[str, Any], filename: str = 'metrics.json') -> Path:
        path = self.output_dir / filename
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, default=_json_default)
        logger.info(f"Metrics written to {path}")
        return path


def _json_default(value):
    # numpy scalars and arrays both expose tolist()
    if hasattr(value, 'tolist'):
        return value.tolist()
    return str(value)


def describe_threshold_tradeoff(comparison: pd.DataFrame, model: str, low: float, high: float) -> str:
    """One-sentence narrative of what lowering the threshold does for a model."""
    rows = comparison[comparison['model'] == model].set_index('threshold')
    if low not in rows.index or high not in rows.index:
        return ""
    hi, lo = rows.loc[high], rows.loc[low]
    return (
        f"For {model}, lowering the threshold from {high:g} to {low:g} moves negative-review recall "
        f"from {hi['recall']:.1%} to {lo['recall']:.1%} while precision goes from "
        f"{hi['precision']:.1%} to {lo['precision']:.1%} (accuracy {hi['accuracy']:.1%} -> {lo['accuracy']:.1%})."
    )


def describe_model_ranking(comparison: pd.DataFrame) -> str:
    """Narrative naming the model with the best ROC-AUC."""
    by_model = comparison.groupby('model')[['roc_auc', 'pr_auc']].first().sort_values('roc_auc', ascending=False)
    best = by_model.index[0]
    parts = [f"{name}: ROC-AUC {row['roc_auc']:.3f}, PR-AUC {row['pr_auc']:.3f}" for name, row in by_model.iterrows()]
    return f"{best} ranks first on the held-out test split ({'; '.join(parts)})."


def describe_lateness_gap(df: pd.DataFrame, target: str = 'is_negative') -> str:
    """Narrative comparing negative rates of late and on-time orders; empty when a group is missing."""
    late_rate = df.loc[df['is_late'] == 1, target].mean()
    on_time_rate = df.loc[df['is_late'] == 0, target].mean()
    if pd.isna(late_rate) or pd.isna(on_time_rate):
        return ""
    return (
        f"Orders delivered after their estimated date are reviewed negatively {late_rate:.1%} "
        f"of the time, against {on_time_rate:.1%} for orders delivered on time."
    )
