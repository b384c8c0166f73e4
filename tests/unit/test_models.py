"""
Unit tests for hyperparameter search, both classifiers, evaluation and SHAP.

Small grids and 3-fold CV keep fitting fast.
"""

import math

import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import GridSearchCV, RandomizedSearchCV

from review_sentiment.data.preprocessing import prepare_dataset
from review_sentiment.explainability.shap_explainer import SHAPExplainer
from review_sentiment.features.feature_engineering import FeatureEngineer, build_model_frames
from review_sentiment.models.boosted_classifier import BoostedReviewClassifier
from review_sentiment.models.evaluator import (
    ModelEvaluator,
    threshold_sweep,
    validate_threshold,
)
from review_sentiment.models.logistic_classifier import LogisticReviewClassifier
from review_sentiment.models.tuning import ModelTuner, TuningConfig, summarize_cv_results

FAST_TUNING = TuningConfig(cv_folds=3, n_jobs=1)
LOGISTIC_GRID = {'C': [0.1, 1.0], 'l1_ratio': [0.0]}
BOOSTED_GRID = {'n_estimators': [50], 'num_leaves': [7]}


@pytest.fixture
def model_inputs(olist_tables):
    df = prepare_dataset(olist_tables)
    train, test = build_model_frames(df, olist_tables, test_size=0.2, random_state=42)
    engineer = FeatureEngineer(min_category_frequency=5)
    X_train, y_train = engineer.select(train)
    X_test, y_test = engineer.select(test)
    return engineer, X_train, y_train, X_test, y_test


@pytest.fixture
def fitted_logistic(model_inputs):
    engineer, X_train, y_train, _, _ = model_inputs
    return LogisticReviewClassifier(engineer=engineer, param_grid=LOGISTIC_GRID, tuning=FAST_TUNING).fit(
        X_train, y_train
    )


@pytest.fixture
def fitted_boosted(model_inputs):
    engineer, X_train, y_train, _, _ = model_inputs
    return BoostedReviewClassifier(engineer=engineer, param_grid=BOOSTED_GRID, tuning=FAST_TUNING).fit(
        X_train, y_train
    )


# ---------------------------------------------------------------------------
# Tuning
# ---------------------------------------------------------------------------


class TestTuning:
    def test_tuning_config_rejects_unknown_search(self):
        with pytest.raises(ValueError, match='search'):
            TuningConfig(search='bayes')

    def test_tuning_config_rejects_single_fold(self):
        with pytest.raises(ValueError, match='cv_folds'):
            TuningConfig(cv_folds=1)

    def test_tuning_config_from_dict_ignores_unrelated_keys(self):
        config = TuningConfig.from_dict({'cv_folds': 3, 'boosted': {'n_jobs': 12}}, n_jobs=12, search=None)
        assert config.cv_folds == 3
        assert config.n_jobs == 12
        assert config.search == 'grid'

    def test_tuner_grid_keys_are_prefixed(self):
        search = ModelTuner(TuningConfig(n_jobs=12)).build_search(
            LogisticRegression(), {'C': [0.1, 1.0], 'model__l1_ratio': [0.5]}
        )
        assert isinstance(search, GridSearchCV)
        assert set(search.param_grid) == {'model__C', 'model__l1_ratio'}
        assert search.n_jobs == 12
        assert search.scoring == 'roc_auc'

    def test_tuner_random_search_caps_iterations(self):
        search = ModelTuner(TuningConfig(search='random', n_iter=10)).build_search(
            LogisticRegression(), {'C': [0.1, 1.0]}
        )
        assert isinstance(search, RandomizedSearchCV)
        assert search.n_iter == 2

    def test_tuner_uses_shuffled_stratified_folds(self):
        search = ModelTuner(TuningConfig(cv_folds=4, random_state=7)).build_search(
            LogisticRegression(), {'C': [1.0]}
        )
        assert search.cv.n_splits == 4
        assert search.cv.shuffle is True
        assert search.cv.random_state == 7


# ---------------------------------------------------------------------------
# Classifiers
# ---------------------------------------------------------------------------


class TestLogisticClassifier:
    def test_logistic_probabilities_in_unit_interval(self, fitted_logistic, model_inputs):
        _, _, _, X_test, _ = model_inputs
        p = fitted_logistic.predict_proba(X_test)
        assert p.shape == (len(X_test),)
        assert ((p >= 0) & (p <= 1)).all()

    def test_logistic_lower_threshold_flags_more(self, fitted_logistic, model_inputs):
        _, _, _, X_test, _ = model_inputs
        assert fitted_logistic.predict(X_test, threshold=0.2).sum() >= fitted_logistic.predict(X_test).sum()

    @pytest.mark.parametrize('threshold', [0.0, 1.0, 1.5])
    def test_logistic_invalid_threshold_raises(self, fitted_logistic, model_inputs, threshold):
        _, _, _, X_test, _ = model_inputs
        with pytest.raises(ValueError, match='threshold'):
            fitted_logistic.predict(X_test, threshold=threshold)
        with pytest.raises(ValueError, match='threshold'):
            LogisticReviewClassifier(threshold=threshold)

    def test_logistic_best_params_drop_prefix(self, fitted_logistic):
        assert set(fitted_logistic.best_params_) == {'C', 'l1_ratio'}
        assert fitted_logistic.best_params_['C'] in LOGISTIC_GRID['C']

    def test_logistic_cv_results_one_row_per_candidate(self, fitted_logistic):
        results = fitted_logistic.cv_results_
        assert len(results) == 2
        assert {'C', 'l1_ratio', 'mean_test_score', 'rank_test_score'} <= set(results.columns)
        assert results['rank_test_score'].tolist() == sorted(results['rank_test_score'])

    def test_logistic_learns_lateness_signal(self, fitted_logistic):
        assert fitted_logistic.best_score_ > 0.6

    def test_logistic_feature_importance_covers_transformed_features(self, fitted_logistic):
        importance = fitted_logistic.get_feature_importance()
        assert list(importance.columns) == ['feature', 'coefficient', 'importance']
        assert len(importance) == len(fitted_logistic.transformed_feature_names)
        assert (importance['importance'] >= 0).all()

    def test_logistic_uses_elastic_net(self):
        estimator = LogisticReviewClassifier().build_pipeline().named_steps['model']
        assert estimator.solver == 'saga'
        assert estimator.penalty == 'elasticnet'

    def test_logistic_unfitted_predict_raises(self, model_inputs):
        _, _, _, X_test, _ = model_inputs
        with pytest.raises(RuntimeError, match='fitted'):
            LogisticReviewClassifier().predict_proba(X_test)

    def test_logistic_single_class_target_raises(self, model_inputs):
        engineer, X_train, y_train, _, _ = model_inputs
        clf = LogisticReviewClassifier(engineer=engineer, param_grid=LOGISTIC_GRID, tuning=FAST_TUNING)
        with pytest.raises(ValueError, match='single class'):
            clf.fit(X_train, pd.Series(np.zeros(len(y_train), dtype=int)))


class TestBoostedClassifier:
    def test_boosted_probabilities_in_unit_interval(self, fitted_boosted, model_inputs):
        _, _, _, X_test, _ = model_inputs
        p = fitted_boosted.predict_proba(X_test)
        assert ((p >= 0) & (p <= 1)).all()

    def test_boosted_trees_stay_single_threaded(self, fitted_boosted):
        assert fitted_boosted.estimator.get_params()['n_jobs'] == 1

    def test_boosted_gain_importance_sums_to_one(self, fitted_boosted):
        importance = fitted_boosted.get_feature_importance()
        assert importance['importance'].sum() == pytest.approx(1.0)
        assert importance['importance'].is_monotonic_decreasing

    def test_boosted_auto_balance_sets_scale_pos_weight(self, model_inputs):
        engineer, X_train, y_train, _, _ = model_inputs
        clf = BoostedReviewClassifier(
            engineer=engineer, param_grid=BOOSTED_GRID, tuning=FAST_TUNING, auto_balance=True
        ).fit(X_train, y_train)

        expected = (y_train == 0).sum() / (y_train == 1).sum()
        assert clf.params['scale_pos_weight'] == pytest.approx(expected)

    def test_boosted_default_grid_covers_tree_shape(self):
        assert set(BoostedReviewClassifier.DEFAULT_PARAM_GRID) == {
            'n_estimators', 'learning_rate', 'num_leaves', 'min_child_samples'
        }


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


class TestEvaluator:
    y_true = np.array([0, 0, 0, 1, 1])
    p_negative = np.array([0.1, 0.3, 0.6, 0.4, 0.9])

    def test_evaluator_confusion_at_default_threshold(self):
        report = ModelEvaluator().evaluate(self.y_true, self.p_negative, threshold=0.5)
        assert report.confusion.loc['actual_positive'].tolist() == [2, 1]
        assert report.confusion.loc['actual_negative'].tolist() == [1, 1]

    def test_evaluator_metrics_at_default_threshold(self):
        metrics = ModelEvaluator().evaluate(self.y_true, self.p_negative, threshold=0.5).metrics
        assert metrics['accuracy'] == pytest.approx(0.6)
        assert metrics['precision'] == pytest.approx(0.5)
        assert metrics['recall'] == pytest.approx(0.5)
        assert metrics['specificity'] == pytest.approx(2 / 3)
        assert metrics['roc_auc'] == pytest.approx(5 / 6)

    def test_evaluator_lower_threshold_raises_recall(self):
        metrics = ModelEvaluator().evaluate(self.y_true, self.p_negative, threshold=0.2).metrics
        assert metrics['recall'] == pytest.approx(1.0)
        assert metrics['precision'] == pytest.approx(0.5)

    def test_evaluator_probability_equal_to_threshold_is_negative(self):
        report = ModelEvaluator().evaluate([0, 1], [0.2, 0.5], threshold=0.5)
        assert report.confusion.loc['actual_negative', 'pred_negative'] == 1

    def test_evaluator_auc_does_not_depend_on_threshold(self):
        reports = ModelEvaluator().evaluate_thresholds(self.y_true, self.p_negative, (0.5, 0.2))
        assert reports[0].metrics['roc_auc'] == reports[1].metrics['roc_auc']
        assert reports[0].metrics['pr_auc'] == reports[1].metrics['pr_auc']

    @pytest.mark.parametrize('threshold', [0.0, 1.0, 1.5, -0.1])
    def test_evaluator_invalid_threshold_raises(self, threshold):
        with pytest.raises(ValueError, match='threshold'):
            validate_threshold(threshold)

    def test_evaluator_single_class_auc_is_nan(self):
        metrics = ModelEvaluator().evaluate([0, 0, 0], [0.1, 0.6, 0.2]).metrics
        assert math.isnan(metrics['roc_auc'])
        assert math.isnan(metrics['pr_auc'])

    def test_evaluator_compare_models_sorted_by_auc(self):
        evaluator = ModelEvaluator()
        weak = evaluator.evaluate(self.y_true, [0.9, 0.1, 0.5, 0.2, 0.6], model_name='weak')
        strong = evaluator.evaluate(self.y_true, self.p_negative, model_name='strong')

        comparison = evaluator.compare_models([weak, strong])
        assert comparison['model'].tolist() == ['strong', 'weak']
        assert {'threshold', 'roc_auc', 'pr_auc', 'recall'} <= set(comparison.columns)

    def test_evaluator_report_to_dict(self):
        report = ModelEvaluator().evaluate(self.y_true, self.p_negative, model_name='m')
        payload = report.to_dict()
        assert payload['model'] == 'm'
        assert payload['confusion_matrix'] == [[2, 1], [1, 1]]
        assert report.label == 'm @ 0.5'

    def test_evaluator_threshold_sweep_recall_non_increasing(self):
        sweep = threshold_sweep(self.y_true, self.p_negative, [0.1, 0.3, 0.5, 0.7])
        assert list(sweep.columns) == ['threshold', 'precision', 'recall', 'f1', 'flagged_rate']
        assert sweep['recall'].is_monotonic_decreasing
        assert sweep['flagged_rate'].iloc[0] == pytest.approx(1.0)


# ---------------------------------------------------------------------------
# Search summaries and SHAP
# ---------------------------------------------------------------------------


def test_summarize_cv_results_top_n(fitted_logistic):
    summary = summarize_cv_results(fitted_logistic.search_, top_n=1)
    assert len(summary) == 1
    assert summary['rank_test_score'].iloc[0] == 1


def test_shap_explainer_matches_transformed_features(fitted_boosted, model_inputs):
    _, _, _, X_test, _ = model_inputs
    summary = SHAPExplainer(fitted_boosted).explain(X_test)

    assert summary.shap_values.shape == (len(X_test), len(fitted_boosted.transformed_feature_names))
    importance = summary.importance(top_n=5)
    assert list(importance.columns) == ['feature', 'mean_abs_shap', 'mean_shap']
    assert len(importance) == 5
    assert importance['mean_abs_shap'].is_monotonic_decreasing


def test_shap_explainer_samples_large_inputs(fitted_boosted, model_inputs):
    _, _, _, X_test, _ = model_inputs
    summary = SHAPExplainer(fitted_boosted, max_samples=10).explain(X_test)
    assert summary.shap_values.shape[0] == 10
