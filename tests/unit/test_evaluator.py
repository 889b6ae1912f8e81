"""Tests for ExperimentEvaluator: metric accumulation, completion, winner rules, reporting."""

from datetime import datetime, timedelta

import pytest

from relief_campaigns.core.config import ExperimentConfig
from relief_campaigns.core.schemas import (
    ABTestConfig,
    Campaign,
    ContentGeneration,
    ContentVariation,
    DisasterType,
    TargetAudience,
)
from relief_campaigns.experiments.evaluator import ExperimentEvaluator, criterion_score

START = datetime(2026, 3, 1, 9, 0, 0)


class FakeClock:
    """Manually advanced clock for deterministic end-time checks."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


def _campaign(campaign_id: str = "campaign_1") -> Campaign:
    return Campaign(
        id=campaign_id,
        name="Hurricane Relief Workers",
        description="Recruiting cleanup crews",
        content=ContentGeneration(prompt="Hurricane cleanup crews needed"),
        target_audience=TargetAudience(
            location="Miami",
            disaster_type=DisasterType(type="hurricane", description="Category 4"),
        ),
    )


def _variations(*ids: str) -> list[ContentVariation]:
    return [ContentVariation(id=vid, name=f"Variation {vid.upper()}") for vid in ids]


def _start(
    evaluator: ExperimentEvaluator,
    criteria: str = "engagement",
    ids: tuple[str, ...] = ("a", "b"),
    duration: float = 24.0,
) -> str:
    config = ABTestConfig(test_duration=duration, winner_criteria=criteria)  # type: ignore[arg-type]
    return evaluator.start(_campaign(), _variations(*ids), config)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def evaluator(clock: FakeClock) -> ExperimentEvaluator:
    return ExperimentEvaluator(ExperimentConfig(), now=clock)


# ---------------------------------------------------------------------------
# start
# ---------------------------------------------------------------------------


class TestStart:
    def test_returns_running_experiment(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.status == "running"
        assert results.campaign_id == "campaign_1"
        assert results.winner is None

    def test_end_time_from_duration(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator, duration=48)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.start_time == START
        assert results.end_time == START + timedelta(hours=48)

    def test_zeroed_record_per_variation(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator, ids=("a", "b", "c"))
        results = evaluator.get_results(test_id)
        assert results is not None
        assert [r.variation.id for r in results.variation_results] == ["a", "b", "c"]
        for r in results.variation_results:
            assert r.performance.impressions == 0
            assert r.performance.engagement == 0
            assert r.performance.clicks == 0
            assert r.performance.shares == 0
            assert r.performance.conversion_rate == 0.0

    def test_fresh_ids(self, evaluator: ExperimentEvaluator) -> None:
        assert _start(evaluator) != _start(evaluator)

    def test_empty_variations_rejected(self, evaluator: ExperimentEvaluator) -> None:
        with pytest.raises(ValueError, match="at least one variation"):
            evaluator.start(_campaign(), [], ABTestConfig())


# ---------------------------------------------------------------------------
# record_metric
# ---------------------------------------------------------------------------


class TestRecordMetric:
    def test_accumulates_by_addition(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator)
        deltas = [3, 7, 1, 12]
        for d in deltas:
            evaluator.record_metric(test_id, "a", "shares", d)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.variation_results[0].performance.shares == sum(deltas)

    def test_order_independent_totals(self, clock: FakeClock) -> None:
        deltas = [("a", "engagement", 4), ("b", "engagement", 2), ("a", "engagement", 9)]
        totals = []
        for ordering in (deltas, list(reversed(deltas))):
            ev = ExperimentEvaluator(now=clock)
            test_id = _start(ev)
            for vid, metric, value in ordering:
                ev.record_metric(test_id, vid, metric, value)
            results = ev.get_results(test_id)
            assert results is not None
            totals.append([r.performance.engagement for r in results.variation_results])
        assert totals[0] == totals[1] == [13, 2]

    def test_conversion_rate_recomputed(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator)
        evaluator.record_metric(test_id, "a", "clicks", 5)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.variation_results[0].performance.conversion_rate == 0.0

        evaluator.record_metric(test_id, "a", "impressions", 20)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.variation_results[0].performance.conversion_rate == pytest.approx(0.25)

    def test_unknown_experiment_ignored(self, evaluator: ExperimentEvaluator) -> None:
        evaluator.record_metric("abtest_missing", "a", "impressions", 1)
        assert evaluator.get_results("abtest_missing") is None

    def test_unknown_variation_ignored(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator)
        evaluator.record_metric(test_id, "zzz", "impressions", 5)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert all(r.performance.impressions == 0 for r in results.variation_results)

    def test_unknown_metric_ignored(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator)
        evaluator.record_metric(test_id, "a", "conversion_rate", 5)
        evaluator.record_metric(test_id, "a", "likes", 5)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.variation_results[0].performance.conversion_rate == 0.0

    def test_ignored_after_completion(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator)
        evaluator.stop(test_id)
        evaluator.record_metric(test_id, "a", "impressions", 50)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.variation_results[0].performance.impressions == 0


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


class TestCompletion:
    def test_not_complete_below_sample_size(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator)
        evaluator.record_metric(test_id, "a", "impressions", 100)
        evaluator.record_metric(test_id, "b", "impressions", 99)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.status == "running"

    def test_completes_when_every_variation_reaches_sample(
        self, evaluator: ExperimentEvaluator, clock: FakeClock,
    ) -> None:
        test_id = _start(evaluator)
        evaluator.record_metric(test_id, "a", "impressions", 100)
        clock.advance(hours=3)
        evaluator.record_metric(test_id, "b", "impressions", 100)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.status == "completed"
        assert results.end_time == START + timedelta(hours=3)

    def test_completes_after_end_time(
        self, evaluator: ExperimentEvaluator, clock: FakeClock,
    ) -> None:
        test_id = _start(evaluator, duration=2)
        clock.advance(hours=2)
        evaluator.record_metric(test_id, "a", "impressions", 1)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.status == "completed"

    def test_explicit_check(self, evaluator: ExperimentEvaluator, clock: FakeClock) -> None:
        test_id = _start(evaluator, duration=1)
        assert evaluator.check_for_winner(test_id) is False
        clock.advance(minutes=61)
        assert evaluator.check_for_winner(test_id) is True
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.status == "completed"

    def test_check_unknown_experiment(self, evaluator: ExperimentEvaluator) -> None:
        assert evaluator.check_for_winner("abtest_missing") is False

    def test_never_returns_to_running(
        self, evaluator: ExperimentEvaluator, clock: FakeClock,
    ) -> None:
        test_id = _start(evaluator, duration=1)
        clock.advance(hours=2)
        evaluator.check_for_winner(test_id)
        clock.current = START
        evaluator.record_metric(test_id, "a", "impressions", 1)
        evaluator.check_for_winner(test_id)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.status == "completed"

    def test_clicks_scenario(self, evaluator: ExperimentEvaluator) -> None:
        """X: 100 impressions / 20 clicks, Y: 100 impressions / 5 clicks -> X wins."""
        test_id = _start(evaluator, criteria="clicks", ids=("x", "y"))
        evaluator.record_metric(test_id, "y", "impressions", 100)
        evaluator.record_metric(test_id, "y", "clicks", 5)
        evaluator.record_metric(test_id, "x", "clicks", 20)
        for _ in range(99):
            evaluator.record_metric(test_id, "x", "impressions", 1)

        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.status == "running"

        evaluator.record_metric(test_id, "x", "impressions", 1)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.status == "completed"
        assert results.winner is not None
        assert results.winner.id == "x"
        flags = {r.variation.id: r.is_winner for r in results.variation_results}
        assert flags == {"x": True, "y": False}


# ---------------------------------------------------------------------------
# Winner determination
# ---------------------------------------------------------------------------


def _stop_with(
    evaluator: ExperimentEvaluator,
    scores: dict[str, int],
    impressions: dict[str, int] | None = None,
) -> str | None:
    """Record engagement scores, stop the test, and return the winner id."""
    test_id = _start(evaluator, criteria="engagement", ids=tuple(scores))
    for vid, score in scores.items():
        evaluator.record_metric(test_id, vid, "impressions", (impressions or {}).get(vid, 50))
        evaluator.record_metric(test_id, vid, "engagement", score)
    evaluator.stop(test_id)
    results = evaluator.get_results(test_id)
    assert results is not None
    return results.winner.id if results.winner else None


class TestWinnerSignificance:
    def test_ratio_exactly_boundary_is_significant(self, evaluator: ExperimentEvaluator) -> None:
        assert _stop_with(evaluator, {"a": 110, "b": 100}) == "a"

    def test_ratio_just_above_boundary(self, evaluator: ExperimentEvaluator) -> None:
        assert _stop_with(evaluator, {"a": 110_000_001, "b": 100_000_000}) == "a"

    def test_ratio_below_boundary_no_winner(self, evaluator: ExperimentEvaluator) -> None:
        assert _stop_with(evaluator, {"a": 109, "b": 100}) is None

    def test_later_variation_can_win(self, evaluator: ExperimentEvaluator) -> None:
        assert _stop_with(evaluator, {"a": 10, "b": 40}) == "b"

    def test_zero_score_competitor_is_beaten(self, evaluator: ExperimentEvaluator) -> None:
        assert _stop_with(evaluator, {"a": 0, "b": 5}) == "b"

    def test_needs_minimum_impressions(self, evaluator: ExperimentEvaluator) -> None:
        winner = _stop_with(evaluator, {"a": 80, "b": 10}, impressions={"a": 29, "b": 50})
        assert winner is None

    def test_must_beat_every_other_variation(self, evaluator: ExperimentEvaluator) -> None:
        assert _stop_with(evaluator, {"a": 50, "b": 48, "c": 10}) is None

    def test_single_variation_never_significant(self, evaluator: ExperimentEvaluator) -> None:
        assert _stop_with(evaluator, {"solo": 500}) is None

    def test_all_zero_scores_first_variation_wins(self, evaluator: ExperimentEvaluator) -> None:
        # Every competitor has score 0, so each variation counts as significant
        # and the earliest one is kept.
        assert _stop_with(evaluator, {"a": 0, "b": 0}) == "a"

    def test_custom_ratio(self, clock: FakeClock) -> None:
        strict = ExperimentEvaluator(ExperimentConfig(significance_ratio=1.5), now=clock)
        assert _stop_with(strict, {"a": 140, "b": 100}) is None
        assert _stop_with(strict, {"a": 150, "b": 100}) == "a"


class TestCriterionScore:
    def test_maps_criteria_to_counters(self) -> None:
        from relief_campaigns.core.schemas import VariationPerformance

        perf = VariationPerformance(impressions=100, engagement=12, clicks=7)
        assert criterion_score(perf, "engagement") == 12
        assert criterion_score(perf, "reach") == 100
        assert criterion_score(perf, "clicks") == 7


# ---------------------------------------------------------------------------
# stop
# ---------------------------------------------------------------------------


class TestStop:
    def test_stop_sets_status_and_end_time(
        self, evaluator: ExperimentEvaluator, clock: FakeClock,
    ) -> None:
        test_id = _start(evaluator)
        clock.advance(hours=5)
        assert evaluator.stop(test_id) is True
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.status == "stopped"
        assert results.end_time == START + timedelta(hours=5)

    def test_stop_without_data_has_no_winner(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator)
        evaluator.stop(test_id)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.winner is None

    def test_stop_unknown(self, evaluator: ExperimentEvaluator) -> None:
        assert evaluator.stop("abtest_missing") is False

    def test_stop_after_completion_marks_stopped(
        self, evaluator: ExperimentEvaluator, clock: FakeClock,
    ) -> None:
        test_id = _start(evaluator, duration=1)
        clock.advance(hours=2)
        evaluator.check_for_winner(test_id)
        evaluator.stop(test_id)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.status == "stopped"


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


class TestResults:
    def test_insights(self, evaluator: ExperimentEvaluator, clock: FakeClock) -> None:
        test_id = _start(evaluator, criteria="clicks")
        evaluator.record_metric(test_id, "a", "impressions", 50)
        evaluator.record_metric(test_id, "a", "clicks", 10)
        evaluator.record_metric(test_id, "a", "engagement", 5)
        evaluator.record_metric(test_id, "b", "impressions", 50)
        evaluator.record_metric(test_id, "b", "clicks", 5)
        clock.advance(hours=2)
        evaluator.stop(test_id)

        results = evaluator.get_results(test_id)
        assert results is not None
        assert results.insights == [
            "Best variation performed 100.0% better than the worst",
            "Winner achieved 10.0% engagement rate",
            "Winner achieved 20.00% click-through rate",
            "Test completed in 2.0 hours",
        ]

    def test_insights_skip_improvement_when_worst_is_zero(
        self, evaluator: ExperimentEvaluator,
    ) -> None:
        test_id = _start(evaluator, criteria="clicks")
        evaluator.record_metric(test_id, "a", "impressions", 10)
        evaluator.record_metric(test_id, "a", "clicks", 2)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert not any(i.startswith("Best variation") for i in results.insights)
        assert "Winner achieved 20.00% click-through rate" in results.insights

    def test_single_variation_only_duration(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator, ids=("solo",))
        evaluator.record_metric(test_id, "solo", "impressions", 10)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert len(results.insights) == 1
        assert results.insights[0].startswith("Test completed in")

    def test_insights_keep_variation_order(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator, criteria="clicks")
        evaluator.record_metric(test_id, "b", "clicks", 9)
        results = evaluator.get_results(test_id)
        assert results is not None
        assert [r.variation.id for r in results.variation_results] == ["a", "b"]

    def test_snapshot_is_a_copy(self, evaluator: ExperimentEvaluator) -> None:
        test_id = _start(evaluator)
        evaluator.record_metric(test_id, "a", "impressions", 3)
        snapshot = evaluator.get_results(test_id)
        assert snapshot is not None
        snapshot.variation_results[0].performance.impressions = 999

        fresh = evaluator.get_results(test_id)
        assert fresh is not None
        assert fresh.variation_results[0].performance.impressions == 3

    def test_unknown_returns_none(self, evaluator: ExperimentEvaluator) -> None:
        assert evaluator.get_results("abtest_missing") is None


class TestActiveTests:
    def test_lists_all_including_finished(
        self, evaluator: ExperimentEvaluator, clock: FakeClock,
    ) -> None:
        running = _start(evaluator)
        stopped = _start(evaluator)
        completed = _start(evaluator, duration=1)
        evaluator.stop(stopped)
        clock.advance(hours=2)
        evaluator.check_for_winner(completed)

        tests = evaluator.get_active_tests()
        assert [t.test_id for t in tests] == [running, stopped, completed]
        assert [t.status for t in tests] == ["running", "stopped", "completed"]

    def test_empty(self, evaluator: ExperimentEvaluator) -> None:
        assert evaluator.get_active_tests() == []
