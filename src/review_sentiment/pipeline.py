"""
Report Pipeline

End-to-end run: load -> validate -> preprocess -> explore -> engineer ->
split -> tune both classifiers -> evaluate at each threshold -> render report.

Usage:
    review-sentiment-report --data-dir data --output-dir reports
    review-sentiment-report --quick --nrows 20000   # smoke run
"""

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from review_sentiment.analysis.eda import run_eda
from review_sentiment.data.ingestion import load_olist_tables, table_summary
from review_sentiment.data.preprocessing import TARGET, prepare_dataset
from review_sentiment.data.validation import validate_tables
from review_sentiment.explainability.shap_explainer import SHAPExplainer
from review_sentiment.features.feature_engineering import FeatureEngineer, build_model_frames
from review_sentiment.models.base import ReviewClassifier
from review_sentiment.models.boosted_classifier import BoostedReviewClassifier
from review_sentiment.models.evaluator import ModelEvaluator, EvaluationReport, threshold_sweep, validate_threshold
from review_sentiment.models.logistic_classifier import LogisticReviewClassifier
from review_sentiment.models.tuning import TuningConfig
from review_sentiment.reporting.report import (
    ReportBuilder,
    describe_lateness_gap,
    describe_model_ranking,
    describe_threshold_tradeoff,
)
from review_sentiment.reporting.visualization import ReportVisualizer
from review_sentiment.utils.config import Config, DEFAULT_CONFIG_PATH
from review_sentiment.utils.logging import log_stage, setup_logging

logger = logging.getLogger(__name__)

# Small grids for smoke runs
QUICK_GRIDS = {
    'logistic': {'C': [0.1, 1.0], 'l1_ratio': [0.0, 1.0]},
    'boosted': {'n_estimators': [100], 'learning_rate': [0.1], 'num_leaves': [15, 31]},
}
QUICK_CV_FOLDS = 3


@dataclass
class ReportResult:
    """Outputs of a report run."""
    report_path: Path
    metrics_path: Path
    comparison: pd.DataFrame
    best_params: Dict[str, Dict]
    figures: List[Path] = field(default_factory=list)


def _tuning_config(config: Config, family: str, quick: bool) -> TuningConfig:
    default_jobs = 12 if family == 'boosted' else 1
    return TuningConfig(
        cv_folds=QUICK_CV_FOLDS if quick else config.get('tuning.cv_folds', 5),
        scoring=config.get('tuning.scoring', 'roc_auc'),
        n_jobs=config.get(f'tuning.{family}.n_jobs', default_jobs),
        search=config.get('tuning.search', 'grid'),
        n_iter=config.get('tuning.n_iter', 10),
        random_state=config.get('tuning.random_state', 42),
    )


def build_classifiers(config: Config, engineer: FeatureEngineer, quick: bool = False) -> List[ReviewClassifier]:
    """Instantiate both model families from configuration."""
    random_state = config.get('tuning.random_state', 42)

    logistic = LogisticReviewClassifier(
        engineer=engineer,
        param_grid=QUICK_GRIDS['logistic'] if quick else config.get('models.logistic.param_grid'),
        tuning=_tuning_config(config, 'logistic', quick),
        class_weight=config.get('models.logistic.class_weight'),
        max_iter=config.get('models.logistic.max_iter', 2000),
        random_state=random_state,
    )
    boosted = BoostedReviewClassifier(
        engineer=engineer,
        param_grid=QUICK_GRIDS['boosted'] if quick else config.get('models.boosted.param_grid'),
        tuning=_tuning_config(config, 'boosted', quick),
        auto_balance=config.get('models.boosted.auto_balance', False),
        random_state=random_state,
    )
    return [logistic, boosted]


def run_report(
    config: Optional[Config] = None,
    data_dir: Optional[str] = None,
    output_dir: Optional[str] = None,
    nrows: Optional[int] = None,
    quick: bool = False
) -> ReportResult:
    """
    Produce the full report.

    Args:
        config: Loaded configuration (defaults when None)
        data_dir: Overrides data.dir
        output_dir: Overrides report.output_dir
        nrows: Row limit per CSV table
        quick: Small grids and 3-fold CV

    Returns:
        ReportResult with output paths and the model comparison table
    """
    config = config or Config()
    data_dir = data_dir or config.get('data.dir', 'data')
    output_dir = Path(output_dir or config.get('report.output_dir', 'reports'))
    nrows = nrows or config.get('data.nrows')
    thresholds = [validate_threshold(t) for t in config.get('evaluation.thresholds', [0.5, 0.2])]
    top_features = config.get('report.top_features', 15)

    viz = ReportVisualizer(output_dir / 'figures')
    builder = ReportBuilder(output_dir)
    figures: List[Path] = []

    # -- Data ---------------------------------------------------------------
    log_stage(logger, "STEP 1: Load and validate")
    tables = load_olist_tables(data_dir, nrows=nrows)
    validation = validate_tables(tables, strict=True)

    df = prepare_dataset(
        tables,
        max_response_hours=config.get('preprocessing.max_response_hours', 240),
        delivered_only=config.get('preprocessing.delivered_only', True),
        min_class_size=max(2, QUICK_CV_FOLDS if quick else config.get('tuning.cv_folds', 5)),
    )

    builder.add_heading('Data')
    builder.add_text(
        f"Eight Olist tables were loaded from `{data_dir}` and joined into one row per order. "
        f"Only delivered orders with a 1-2 (negative) or 4-5 (positive) review are kept; "
        f"neutral 3-star reviews are dropped, as are survey responses slower than "
        f"{config.get('preprocessing.max_response_hours', 240)} hours. "
        f"The modelling table has {len(df):,} orders, {df[TARGET].mean():.1%} of them negative."
    )
    builder.add_table(table_summary(tables), 'Loaded tables')
    builder.add_table(validation.to_frame().set_index('check'), 'Validation checks')

    # -- Exploratory analysis ------------------------------------------------
    log_stage(logger, "STEP 2: Exploratory analysis")
    eda = run_eda(
        df,
        raw_scores=tables['reviews']['review_score'],
        min_category_orders=config.get('report.min_category_orders', 100),
    )

    builder.add_heading('Exploratory analysis')
    figures.append(viz.plot_score_distribution(eda['score_distribution']))
    builder.add_figure(figures[-1], 'Review score distribution')
    builder.add_table(eda['sentiment_distribution'], 'Sentiment after dropping neutral reviews')

    for column in ('delivery_days', 'delivery_vs_estimate_days', 'payment_value'):
        figures.append(viz.plot_numeric_by_sentiment(df, column))
        builder.add_figure(figures[-1], f'{column} by sentiment')
    builder.add_table(eda['numeric_by_sentiment'], 'Numeric features by sentiment')

    lateness_text = describe_lateness_gap(df, TARGET)
    if lateness_text:
        builder.add_text(lateness_text)
    builder.add_table(eda['negative_rate_by_lateness'], 'Negative rate by delivery timeliness')
    if not eda['negative_rate_by_category'].empty:
        figures.append(viz.plot_negative_rate(
            eda['negative_rate_by_category'], 'Negative review rate by product category',
            'negative_rate_by_category.png', top_n=top_features,
        ))
        builder.add_figure(figures[-1], 'Negative rate by category')
    builder.add_table(eda['negative_rate_by_payment_type'], 'Negative rate by payment type')
    figures.append(viz.plot_correlation_heatmap(eda['correlations']))
    builder.add_figure(figures[-1], 'Correlation heatmap')
    builder.add_table(eda['missing_values'], 'Missing values (median-imputed in the model pipeline)')

    # -- Features & split ----------------------------------------------------
    log_stage(logger, "STEP 3: Feature engineering and split")
    train, test = build_model_frames(
        df, tables,
        test_size=config.get('split.test_size', 0.2),
        random_state=config.get('split.random_state', 42),
    )
    engineer = FeatureEngineer(min_category_frequency=config.get('features.min_category_frequency', 20))
    X_train, y_train = engineer.select(train)
    X_test, y_test = engineer.select(test)

    # -- Models --------------------------------------------------------------
    log_stage(logger, "STEP 4: Cross-validated hyperparameter search")
    classifiers = build_classifiers(config, engineer, quick=quick)
    evaluator = ModelEvaluator()
    reports: List[EvaluationReport] = []
    probabilities: Dict[str, np.ndarray] = {}
    sweeps: Dict[str, pd.DataFrame] = {}
    best_params: Dict[str, Dict] = {}

    builder.add_heading('Models')
    builder.add_text(
        f"Train/test split: {len(train):,} / {len(test):,} orders, stratified on sentiment. "
        f"Both models share median imputation and one-hot encoding; hyperparameters are chosen "
        f"by {classifiers[0].tuning.cv_folds}-fold cross-validated {classifiers[0].tuning.search} search "
        f"on {classifiers[0].tuning.scoring}."
    )

    for clf in classifiers:
        clf.fit(X_train, y_train)
        p_negative = clf.predict_proba(X_test)
        probabilities[clf.name] = p_negative
        reports.extend(evaluator.evaluate_thresholds(y_test, p_negative, thresholds, clf.name))
        sweeps[clf.name] = threshold_sweep(y_test, p_negative, config.get('evaluation.sweep'))
        best_params[clf.name] = clf.best_params_

        builder.add_heading(clf.name.replace('_', ' ').title(), level=3)
        builder.add_text(f"Best CV {clf.tuning.scoring}: {clf.best_score_:.4f} with:")
        builder.add_bullets([f"`{k}` = {v}" for k, v in clf.best_params_.items()])
        builder.add_table(clf.cv_results_.head(10), 'Top parameter combinations')

        importance = clf.get_feature_importance()
        figures.append(viz.plot_feature_importance(
            importance, 'importance', f'{clf.name} feature importance',
            f'{clf.name}_importance.png', max_display=top_features,
        ))
        builder.add_figure(figures[-1], f'{clf.name} feature importance')

    # -- Evaluation ----------------------------------------------------------
    log_stage(logger, "STEP 5: Evaluation")
    comparison = evaluator.compare_models(reports)

    builder.add_heading('Evaluation')
    builder.add_text(describe_model_ranking(comparison))
    builder.add_table(comparison.set_index(['model', 'threshold']), 'Test metrics by model and threshold')
    if len(thresholds) >= 2:
        high, low = max(thresholds), min(thresholds)
        builder.add_text(" ".join(
            describe_threshold_tradeoff(comparison, clf.name, low, high) for clf in classifiers
        ))

    figures.append(viz.plot_roc_curves(y_test, probabilities))
    builder.add_figure(figures[-1], 'ROC curves')
    figures.append(viz.plot_pr_curves(y_test, probabilities))
    builder.add_figure(figures[-1], 'Precision-recall curves')
    figures.append(viz.plot_confusion_matrices(reports))
    builder.add_figure(figures[-1], 'Confusion matrices')
    figures.append(viz.plot_threshold_sweep(sweeps, marked=thresholds))
    builder.add_figure(figures[-1], 'Threshold sweep')

    boosted = next(clf for clf in classifiers if isinstance(clf, BoostedReviewClassifier))
    shap_summary = SHAPExplainer(boosted, random_state=config.get('tuning.random_state', 42)).explain(X_test)
    shap_importance = shap_summary.importance(top_n=top_features)
    figures.append(viz.plot_feature_importance(
        shap_importance, 'mean_abs_shap', 'Mean |SHAP| (gradient boosting)',
        'shap_importance.png', max_display=top_features,
    ))
    builder.add_heading('What drives negative reviews', level=3)
    builder.add_text(
        "Mean absolute SHAP values of the boosted model on the test split; a positive mean "
        "SHAP means the feature pushes predictions towards a negative review on average."
    )
    builder.add_figure(figures[-1], 'SHAP importance')
    builder.add_table(shap_importance.set_index('feature'), 'SHAP importance')

    report_path = builder.write()
    metrics_path = builder.write_json({
        'rows': {'modelling': len(df), 'train': len(train), 'test': len(test)},
        'negative_rate': float(df[TARGET].mean()),
        'best_params': best_params,
        'evaluations': [r.to_dict() for r in reports],
    })

    log_stage(logger, "REPORT COMPLETE")

    return ReportResult(
        report_path=report_path,
        metrics_path=metrics_path,
        comparison=comparison,
        best_params=best_params,
        figures=figures,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the Olist review sentiment report")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to YAML configuration")
    parser.add_argument("--data-dir", default=None, help="Directory with the Olist CSV files")
    parser.add_argument("--output-dir", default=None, help="Directory for the report artifacts")
    parser.add_argument("--nrows", type=int, default=None, help="Row limit per table (for testing)")
    parser.add_argument("--quick", action="store_true", help="Small grids and 3-fold CV")
    parser.add_argument("--log-level", default=None, help="Override logging.level")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """CLI entry point; returns a process exit code."""
    args = parse_args(argv)
    config = Config.from_yaml(args.config)

    setup_logging(
        level=args.log_level or config.get('logging.level', 'INFO'),
        log_file=config.get('logging.file'),
    )

    log_stage(logger, "Olist Review Sentiment Report")
    logger.info(f"Config: {args.config}")
    logger.info(f"N rows: {args.nrows or 'all'}")

    try:
        result = run_report(
            config=config,
            data_dir=args.data_dir,
            output_dir=args.output_dir,
            nrows=args.nrows,
            quick=args.quick,
        )
    except Exception:
        logger.exception("Report run failed")
        raise

    logger.info(f"Report: {result.report_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
