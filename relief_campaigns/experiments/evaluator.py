"""A/B test evaluation for campaign content variations.

An experiment concludes when every variation has reached the minimum sample
size, or when its end time has passed. The check runs after each recorded
metric (there is no background timer) and can also be triggered explicitly.

Winner rule: score every variation by the configured criterion. A variation
is eligible when it has enough impressions and its score is at least
``significance_ratio`` times every other non-zero score. The highest eligible
score wins; ties go to the earlier variation. No eligible variation means no
winner.

Unknown experiment or variation ids are ignored rather than raised.
"""

import logging
import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta

from relief_campaigns.core.config import ExperimentConfig
from relief_campaigns.core.schemas import (
    METRIC_NAMES,
    ABTestConfig,
    ABTestResults,
    Campaign,
    ContentVariation,
    Experiment,
    VariationPerformance,
    VariationResult,
    WinnerCriteria,
)

logger = logging.getLogger(__name__)


def criterion_score(performance: VariationPerformance, criteria: WinnerCriteria) -> float:
    """Return the counter that ranks variations for ``criteria``."""
    if criteria == "engagement":
        return performance.engagement
    if criteria == "reach":
        return performance.impressions
    if criteria == "clicks":
        return performance.clicks
    return 0


class ExperimentEvaluator:
    """Tracks running experiments and decides their winners.

    Usage::

        evaluator = ExperimentEvaluator()
        test_id = evaluator.start(campaign, variations, ABTestConfig(winner_criteria="clicks"))
        evaluator.record_metric(test_id, "var_a", "impressions", 1)
        results = evaluator.get_results(test_id)
    """

    def __init__(
        self,
        config: ExperimentConfig | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config = config or ExperimentConfig()
        self._now = now
        self._experiments: dict[str, Experiment] = {}
        self._locks: dict[str, threading.Lock] = {}

    def start(
        self,
        campaign: Campaign,
        variations: list[ContentVariation],
        config: ABTestConfig,
    ) -> str:
        """Register a new running experiment and return its id."""
        if not variations:
            msg = "an experiment needs at least one variation"
            raise ValueError(msg)

        test_id = f"abtest_{uuid.uuid4().hex}"
        start_time = self._now()
        experiment = Experiment(
            id=test_id,
            campaign_id=campaign.id,
            variations=[v.model_copy(deep=True) for v in variations],
            config=config.model_copy(deep=True),
            start_time=start_time,
            end_time=start_time + timedelta(hours=config.test_duration),
            results={v.id: VariationPerformance() for v in variations},
        )
        self._locks[test_id] = threading.Lock()
        self._experiments[test_id] = experiment

        logger.info(
            "Started A/B test %s for campaign %s: %d variations, criteria=%s, %.1fh",
            test_id, campaign.id, len(variations), config.winner_criteria, config.test_duration,
        )
        return test_id

    def record_metric(
        self,
        experiment_id: str,
        variation_id: str,
        metric: str,
        value: int,
    ) -> None:
        """Add ``value`` to a variation counter, then re-check for a winner.

        Ignored when the experiment is unknown or finished, or when the
        variation or metric name is unknown.
        """
        experiment = self._experiments.get(experiment_id)
        if experiment is None:
            logger.debug("Metric for unknown test %s ignored", experiment_id)
            return
        if metric not in METRIC_NAMES:
            logger.debug("Unknown metric '%s' for test %s ignored", metric, experiment_id)
            return

        with self._locks[experiment_id]:
            if experiment.status != "running":
                logger.debug("Metric for %s test %s ignored", experiment.status, experiment_id)
                return
            performance = experiment.results.get(variation_id)
            if performance is None:
                logger.debug("Metric for unknown variation %s ignored", variation_id)
                return

            setattr(performance, metric, getattr(performance, metric) + value)
            if performance.impressions > 0:
                performance.conversion_rate = performance.clicks / performance.impressions
            else:
                performance.conversion_rate = 0.0

            self._evaluate(experiment)

    def check_for_winner(self, experiment_id: str) -> bool:
        """Conclude the experiment if it is due. Returns True once it is finished."""
        experiment = self._experiments.get(experiment_id)
        if experiment is None:
            return False
        with self._locks[experiment_id]:
            self._evaluate(experiment)
            return experiment.status != "running"

    def stop(self, experiment_id: str) -> bool:
        """Stop an experiment now and freeze its winner, whatever the sample size."""
        experiment = self._experiments.get(experiment_id)
        if experiment is None:
            return False
        with self._locks[experiment_id]:
            experiment.status = "stopped"
            experiment.end_time = self._now()
            experiment.current_winner = self._determine_winner(experiment)
        logger.info(
            "A/B test %s stopped. Winner: %s",
            experiment_id, _winner_name(experiment.current_winner),
        )
        return True

    def get_results(self, experiment_id: str) -> ABTestResults | None:
        experiment = self._experiments.get(experiment_id)
        if experiment is None:
            return None
        with self._locks[experiment_id]:
            return self._snapshot(experiment)

    def get_active_tests(self) -> list[ABTestResults]:
        """Return snapshots of every registered experiment, including finished ones."""
        results: list[ABTestResults] = []
        for experiment_id in list(self._experiments):
            snapshot = self.get_results(experiment_id)
            if snapshot is not None:
                results.append(snapshot)
        return results

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _evaluate(self, experiment: Experiment) -> None:
        if experiment.status != "running":
            return

        now = self._now()
        if not (self._has_minimum_sample_size(experiment) or now >= experiment.end_time):
            return

        experiment.current_winner = self._determine_winner(experiment)
        experiment.status = "completed"
        experiment.end_time = now
        logger.info(
            "A/B test %s completed. Winner: %s",
            experiment.id, _winner_name(experiment.current_winner),
        )

    def _has_minimum_sample_size(self, experiment: Experiment) -> bool:
        return all(
            r.impressions >= self._config.min_sample_size
            for r in experiment.results.values()
        )

    def _determine_winner(self, experiment: Experiment) -> ContentVariation | None:
        criteria = experiment.config.winner_criteria
        best: ContentVariation | None = None
        best_score = -1.0

        for variation in experiment.variations:
            performance = experiment.results.get(variation.id)
            if performance is None:
                continue
            score = criterion_score(performance, criteria)
            if score > best_score and self._is_significant(experiment, variation.id):
                best_score = score
                best = variation

        return best

    def _is_significant(self, experiment: Experiment, variation_id: str) -> bool:
        """Simplified significance: ratio against every other variation."""
        performance = experiment.results.get(variation_id)
        if performance is None or performance.impressions < self._config.min_impressions:
            return False

        others = [r for vid, r in experiment.results.items() if vid != variation_id]
        if not others:
            return False

        criteria = experiment.config.winner_criteria
        score = criterion_score(performance, criteria)
        for other in others:
            other_score = criterion_score(other, criteria)
            if other_score > 0 and score / other_score < self._config.significance_ratio:
                return False
        return True

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _snapshot(self, experiment: Experiment) -> ABTestResults:
        by_id = {v.id: v for v in experiment.variations}
        winner_id = experiment.current_winner.id if experiment.current_winner else None

        variation_results = [
            VariationResult(
                variation=by_id[vid].model_copy(deep=True),
                performance=performance.model_copy(),
                is_winner=vid == winner_id,
            )
            for vid, performance in experiment.results.items()
        ]

        return ABTestResults(
            test_id=experiment.id,
            campaign_id=experiment.campaign_id,
            status=experiment.status,
            start_time=experiment.start_time,
            end_time=experiment.end_time,
            config=experiment.config.model_copy(deep=True),
            variation_results=variation_results,
            winner=(
                experiment.current_winner.model_copy(deep=True)
                if experiment.current_winner else None
            ),
            insights=self._generate_insights(experiment),
        )

    def _generate_insights(self, experiment: Experiment) -> list[str]:
        insights: list[str] = []
        criteria = experiment.config.winner_criteria
        ranked = sorted(
            experiment.results.values(),
            key=lambda r: criterion_score(r, criteria),
            reverse=True,
        )

        if len(ranked) >= 2:
            best, worst = ranked[0], ranked[-1]
            best_score = criterion_score(best, criteria)
            worst_score = criterion_score(worst, criteria)

            if worst_score > 0:
                improvement = (best_score - worst_score) / worst_score * 100
                insights.append(f"Best variation performed {improvement:.1f}% better than the worst")

            if best.impressions > 0:
                engagement_rate = best.engagement / best.impressions * 100
                insights.append(f"Winner achieved {engagement_rate:.1f}% engagement rate")
                ctr = best.clicks / best.impressions * 100
                insights.append(f"Winner achieved {ctr:.2f}% click-through rate")

        hours = (experiment.end_time - experiment.start_time).total_seconds() / 3600
        insights.append(f"Test completed in {hours:.1f} hours")
        return insights


def _winner_name(winner: ContentVariation | None) -> str:
    return winner.name if winner else "No clear winner"
