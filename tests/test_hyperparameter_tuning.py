import json
import math
import threading

import pytest

from textreg.core.cross_validation import EvaluationResult, vfold_plan
from textreg.errors import AllFoldsFailedError, InvalidConfigurationError
from textreg.experiments.hyperparameter_tuning import (
    GridResult,
    GridRunner,
    grid_dict_product,
    percent_loss,
    run_grid,
    select_best,
    select_by_percent_loss,
)

from .fakes import FailingFitPredict, MeanFitPredict, OffsetFitPredict, TargetEchoPipeline

# mean MAE at each vocabulary size, largest vocabulary first
MAE_BY_TOKENS = [(6000, 9.28), (5000, 9.30), (4000, 9.43), (3000, 10.50)]


def offset_grid():
    return [{"method": "tfidf", "max_tokens": mt, "offset": mae} for mt, mae in MAE_BY_TOKENS]


def offset_factory(params):
    return OffsetFitPredict(params["offset"])


def echo_runner(**kwargs):
    return GridRunner(metric_set=["mae"], pipeline_factory=lambda params: TargetEchoPipeline(), **kwargs)


class TestGridExpansion:
    def test_product_in_key_order(self):
        assert grid_dict_product({"a": [1, 2], "b": ["x"]}) == [{"a": 1, "b": "x"}, {"a": 2, "b": "x"}]


class TestPercentLossSelection:
    def results(self):
        return [
            GridResult(config={"method": "tfidf", "max_tokens": mt}, metrics={"mae": mae}) for mt, mae in MAE_BY_TOKENS
        ]

    def test_simplest_within_two_percent(self):
        assert select_by_percent_loss(self.results(), "mae", 2.0)["max_tokens"] == 4000

    def test_value_exactly_on_the_bound_qualifies(self):
        results = [
            GridResult(config={"max_tokens": 6000}, metrics={"mae": 9.28}),
            GridResult(config={"max_tokens": 3000}, metrics={"mae": 9.28 * 1.02}),
        ]
        assert select_by_percent_loss(results, "mae", 2.0)["max_tokens"] == 3000

    def test_rsq_exactly_on_the_bound_qualifies(self):
        results = [
            GridResult(config={"max_tokens": 6000}, metrics={"rsq": 0.8}),
            GridResult(config={"max_tokens": 3000}, metrics={"rsq": 0.8 * 0.98}),
        ]
        assert select_by_percent_loss(results, "rsq", 2.0)["max_tokens"] == 3000

    def test_zero_tolerance_picks_best(self):
        assert select_by_percent_loss(self.results(), "mae", 0.0)["max_tokens"] == 6000
        assert select_best(self.results(), "mae")["max_tokens"] == 6000

    def test_wide_tolerance_picks_smallest(self):
        assert select_by_percent_loss(self.results(), "mae", 50.0)["max_tokens"] == 3000

    def test_higher_is_better_for_rsq(self):
        results = [
            GridResult(config={"max_tokens": 3000}, metrics={"rsq": 0.90}),
            GridResult(config={"max_tokens": 1000}, metrics={"rsq": 0.89}),
            GridResult(config={"max_tokens": 500}, metrics={"rsq": 0.50}),
        ]
        assert select_by_percent_loss(results, "rsq", 2.0)["max_tokens"] == 1000

    def test_ties_keep_grid_order(self):
        results = [
            GridResult(config={"max_tokens": 100, "C": 0.1}, metrics={"mae": 1.0}),
            GridResult(config={"max_tokens": 100, "C": 1.0}, metrics={"mae": 1.0}),
        ]
        assert select_by_percent_loss(results, "mae", 1.0)["C"] == 0.1

    def test_complexity_by_key(self):
        results = [
            GridResult(config={"max_tokens": 100, "C": 10.0}, metrics={"mae": 1.0}),
            GridResult(config={"max_tokens": 900, "C": 0.1}, metrics={"mae": 1.0}),
        ]
        assert select_by_percent_loss(results, "mae", 1.0, complexity="C")["C"] == 0.1

    def test_hashing_complexity_is_bucket_count(self):
        results = [
            GridResult(config={"method": "hashing", "num_buckets": 4096}, metrics={"mae": 1.0}),
            GridResult(config={"method": "hashing", "num_buckets": 256}, metrics={"mae": 1.01}),
        ]
        assert select_by_percent_loss(results, "mae", 2.0)["num_buckets"] == 256

    def test_failed_and_partial_results_are_skipped(self):
        partial = EvaluationResult(per_fold=[], overall=[], excluded_folds={}, folds=[], cancelled=True)
        results = self.results() + [
            GridResult(config={"max_tokens": 10}, error="AllFoldsFailedError: all 3 folds failed"),
            GridResult(config={"max_tokens": 20}, metrics={"mae": 9.0}, evaluation=partial),
        ]
        assert select_by_percent_loss(results, "mae", 2.0)["max_tokens"] == 4000

    def test_nothing_to_select(self):
        with pytest.raises(InvalidConfigurationError):
            select_by_percent_loss([GridResult(config={}, error="boom")], "mae", 2.0)

    def test_negative_tolerance(self):
        with pytest.raises(InvalidConfigurationError):
            select_by_percent_loss(self.results(), "mae", -1.0)

    def test_percent_loss(self):
        assert percent_loss(9.4656, 9.28) == pytest.approx(2.0)
        assert percent_loss(0.0, 0.0) == 0.0
        assert math.isinf(percent_loss(0.1, 0.0))


class TestGridRunner:
    def test_end_to_end_selection(self, corpus):
        runner = echo_runner()
        results = runner.run(corpus, vfold_plan(len(corpus), k=4), offset_grid(), offset_factory)
        assert [r.metrics["mae"] for r in results] == pytest.approx([mae for _, mae in MAE_BY_TOKENS])
        assert select_by_percent_loss(results, "mae", 2.0)["max_tokens"] == 4000

    def test_dict_grid_is_expanded(self, corpus):
        grid = {"method": ["tfidf"], "max_tokens": [10, 20], "offset": [1.0, 2.0]}
        results = echo_runner().run(corpus, vfold_plan(len(corpus), k=3), grid, offset_factory)
        assert len(results) == 4
        assert [r.config["offset"] for r in results] == [1.0, 2.0, 1.0, 2.0]

    def test_empty_grid(self, corpus):
        with pytest.raises(InvalidConfigurationError):
            echo_runner().run(corpus, vfold_plan(len(corpus), k=3), [], offset_factory)

    def test_failing_config_is_recorded(self, corpus):
        def factory(params):
            return FailingFitPredict() if params["offset"] is None else OffsetFitPredict(params["offset"])

        grid = [{"max_tokens": 10, "offset": None}, {"max_tokens": 20, "offset": 1.5}]
        runner = echo_runner()
        bad, good = runner.run(corpus, vfold_plan(len(corpus), k=3), grid, factory)
        assert not bad.ok
        assert "AllFoldsFailedError" in bad.error
        assert good.ok
        assert select_by_percent_loss(runner.results, "mae", 5.0)["max_tokens"] == 20

    def test_every_config_failing(self, corpus):
        with pytest.raises(AllFoldsFailedError):
            echo_runner().run(corpus, vfold_plan(len(corpus), k=3), [{"a": 1}, {"a": 2}], FailingFitPredict())

    def test_shared_fit_predict_instance(self, corpus):
        fp = MeanFitPredict()
        echo_runner().run(corpus, vfold_plan(len(corpus), k=3), [{"a": 1}, {"a": 2}], fp)
        assert len(fp.fit_sizes) == 6

    def test_parallel_matches_sequential(self, corpus):
        plan = vfold_plan(len(corpus), k=4)
        seq = echo_runner(n_jobs=1).run(corpus, plan, offset_grid(), offset_factory)
        par = echo_runner(n_jobs=3, fold_jobs=2).run(corpus, plan, offset_grid(), offset_factory)
        assert [r.config for r in par] == [r.config for r in seq]
        assert [r.metrics["mae"] for r in par] == pytest.approx([r.metrics["mae"] for r in seq])

    def test_cancelled_before_start(self, corpus):
        cancel = threading.Event()
        cancel.set()
        runner = echo_runner(cancel_event=cancel)
        assert runner.run(corpus, vfold_plan(len(corpus), k=3), offset_grid(), offset_factory) == []
        assert runner.cancelled

    def test_cancelled_mid_grid_keeps_finished_configs(self, corpus):
        cancel = threading.Event()

        def factory(params):
            if params["offset"] == 9.30:
                cancel.set()
            return OffsetFitPredict(params["offset"])

        runner = echo_runner(cancel_event=cancel)
        results = runner.run(corpus, vfold_plan(len(corpus), k=3), offset_grid(), factory)
        assert runner.cancelled
        assert results[0].ok and not results[0].partial
        # the config that tripped the event never gets to a fold
        assert len(results) == 2
        assert select_by_percent_loss(results, "mae", 2.0)["max_tokens"] == 6000

    def test_results_frame_and_json(self, corpus, tmp_path):
        runner = echo_runner()
        runner.run(corpus, vfold_plan(len(corpus), k=3), offset_grid(), offset_factory)
        frame = runner.results_frame()
        assert list(frame["max_tokens"]) == [6000, 5000, 4000, 3000]
        assert {"mean_mae", "std_err_mae", "n_excluded", "error"} <= set(frame.columns)

        runner.save_results(tmp_path / "grid.json")
        saved = json.loads((tmp_path / "grid.json").read_text())
        assert saved["metric_set"] == ["mae"]
        assert len(saved["results"]) == 4

    def test_run_grid_with_real_pipeline(self, corpus):
        grid = [{"method": "tfidf", "max_tokens": 5}, {"method": "hashing", "num_buckets": 16}]
        results = run_grid(corpus, vfold_plan(len(corpus), k=3), grid, MeanFitPredict(), metric_set=["rmse", "mae"])
        assert all(r.ok for r in results)

    @pytest.mark.parametrize(
        "bad",
        [{"method": "hashing", "num_buckets": 0}, {"method": "tfidf", "max_tokens": 0}, {"method": "bag_of_words"}],
    )
    def test_bad_config_fails_before_any_fit(self, corpus, bad):
        fp = MeanFitPredict()
        runner = GridRunner(metric_set=["mae"])
        grid = [{"method": "tfidf", "max_tokens": 5}, bad]
        with pytest.raises(InvalidConfigurationError):
            runner.run(corpus, vfold_plan(len(corpus), k=3), grid, fp)
        assert fp.fit_sizes == []
        assert runner.results == []
