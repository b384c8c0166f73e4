"""
Reporting Module

Figures and the Markdown report artifact.
"""

from review_sentiment.reporting.visualization import ReportVisualizer

from review_sentiment.reporting.report import (
    ReportBuilder,
    describe_threshold_tradeoff,
    describe_model_ranking,
    describe_lateness_gap
)

__all__ = [
    'ReportVisualizer',
    'ReportBuilder',
    'describe_threshold_tradeoff',
    'describe_model_ranking',
    'describe_lateness_gap',
]
