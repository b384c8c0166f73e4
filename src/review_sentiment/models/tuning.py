"""
Model Tuning Module

Cross-validated hyperparameter search for the review classifiers.
Exhaustive grid search or sampled (randomized) search over the same grid,
parallelized across a fixed-size worker pool by scikit-learn/joblib.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Union

import pandas as pd
from sklearn.model_selection import (
    GridSearchCV,
    ParameterGrid,
    RandomizedSearchCV,
    StratifiedKFold
)

logger = logging.getLogger(__name__)

SEARCH_STRATEGIES = ('grid', 'random')


@dataclass
class TuningConfig:
    """Configuration for hyperparameter search."""
    cv_folds: int = 5
    scoring: str = 'roc_auc'
    n_jobs: Optional[int] = 1
    search: str = 'grid'
    n_iter: int = 10
    random_state: int = 42

    def __post_init__(self):
        if self.search not in SEARCH_STRATEGIES:
            raise ValueError(f"search must be one of {SEARCH_STRATEGIES}, got '{self.search}'")
        if self.cv_folds < 2:
            raise ValueError(f"cv_folds must be >= 2, got {self.cv_folds}")

    @classmethod
    def from_dict(cls, values: Dict[str, Any], **overrides) -> 'TuningConfig':
        """Build from a config section, ignoring unrelated keys."""
        fields = cls.__dataclass_fields__
        merged = {k: v for k, v in (values or {}).items() if k in fields}
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**merged)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ModelTuner:
    """
    Runs cross-validated search over a pipeline's hyperparameters.

    Grid keys are given without the pipeline step prefix; the tuner
    prefixes them with ``step`` (default 'model').

    Example:
        tuner = ModelTuner(TuningConfig(n_jobs=12))
        search = tuner.search(pipeline, {'C': [0.1, 1.0]}, X, y)
        search.best_params_
    """

    def __init__(self, config: TuningConfig = None, step: str = 'model'):
        self.config = config or TuningConfig()
        self.step = step

    def _prefixed(self, param_grid: Dict[str, List]) -> Dict[str, List]:
        return {
            key if '__' in key else f"{self.step}__{key}": list(values)
            for key, values in param_grid.items()
        }

    def build_search(self, estimator, param_grid: Dict[str, List]) -> Union[GridSearchCV, RandomizedSearchCV]:
        """Create the (unfitted) search object."""
        grid = self._prefixed(param_grid)
        cv = StratifiedKFold(
            n_splits=self.config.cv_folds, shuffle=True, random_state=self.config.random_state
        )
        common = dict(
            scoring=self.config.scoring,
            cv=cv,
            n_jobs=self.config.n_jobs,
            refit=True,
            return_train_score=False,
        )

        if self.config.search == 'random':
            n_iter = min(self.config.n_iter, len(ParameterGrid(grid)))
            return RandomizedSearchCV(
                estimator,
                param_distributions=grid,
                n_iter=n_iter,
                random_state=self.config.random_state,
                **common
            )

        return GridSearchCV(estimator, param_grid=grid, **common)

    def search(self, estimator, param_grid: Dict[str, List], X: pd.DataFrame, y: pd.Series):
        """
        Fit the search and refit the best configuration on all of X.

        Returns:
            Fitted GridSearchCV or RandomizedSearchCV
        """
        search = self.build_search(estimator, param_grid)
        n_candidates = (
            search.n_iter if isinstance(search, RandomizedSearchCV)
            else len(ParameterGrid(search.param_grid))
        )

        logger.info(
            f"Starting {self.config.search} search: {n_candidates} candidates x "
            f"{self.config.cv_folds} folds, scoring={self.config.scoring}, n_jobs={self.config.n_jobs}"
        )
        search.fit(X, y)
        logger.info(f"Best CV {self.config.scoring}={search.best_score_:.4f} with {search.best_params_}")

        return search


def summarize_cv_results(search, top_n: Optional[int] = None) -> pd.DataFrame:
    """
    Tidy view of a fitted search: one row per candidate, ranked.

    Parameter columns lose their pipeline step prefix.
    """
    results = pd.DataFrame(search.cv_results_)
    param_cols = [c for c in results.columns if c.startswith('param_')]

    summary = results[param_cols + ['mean_test_score', 'std_test_score', 'rank_test_score', 'mean_fit_time']]
    summary = summary.rename(columns={c: c[len('param_'):].split('__')[-1] for c in param_cols})
    summary = summary.sort_values('rank_test_score').reset_index(drop=True)

    if top_n is not None:
        summary = summary.head(top_n)
    return summary
