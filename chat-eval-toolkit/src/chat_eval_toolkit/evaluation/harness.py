"""
Pass/fail gate applied to evaluation results.

A scenario passes when every declared metric of every evaluator it ran clears
the threshold (logical AND). A metric below the threshold is a normal,
reportable outcome: it is collected as a 'MetricFailure', never raised.

    result = await evaluator.evaluate(messages, response, chat_configuration)
    outcome = gate_metrics(result, [evaluator], scenario_name="Coherence")
    assert outcome.passed, outcome.summary()
"""

from typing import Sequence

from loguru import logger
from pydantic import BaseModel, Field

from chat_eval_toolkit.evaluation.data_models import EvaluationMetric, EvaluationResult, NumericMetric, StringMetric
from chat_eval_toolkit.evaluation.evaluators.base import Evaluator

DEFAULT_PASS_THRESHOLD = 3.0


class MetricFailure(BaseModel):
    """A metric that did not clear the gate."""

    name: str
    value: float | str | None
    reason: str | None = None


class ScenarioOutcome(BaseModel):
    """Aggregated gate decision for one scenario."""

    scenario_name: str
    passed: bool
    threshold: float
    evaluated_metrics: list[str] = Field(default_factory=list)
    failures: list[MetricFailure] = Field(default_factory=list)

    def summary(self) -> str:
        if self.passed:
            return f"{self.scenario_name}: passed ({', '.join(self.evaluated_metrics)})"
        failed = "; ".join(f"{f.name}={f.value!r} ({f.reason})" for f in self.failures)
        return f"{self.scenario_name}: failed, {failed}"


def metric_passes(metric: EvaluationMetric, threshold: float = DEFAULT_PASS_THRESHOLD) -> bool:
    """Numeric metrics pass at or above 'threshold'; other metrics pass unless interpreted as failed."""
    if isinstance(metric, NumericMetric):
        return metric.value is not None and metric.value >= threshold
    return not metric.failed


def show_evaluation_result(metric: EvaluationMetric) -> None:
    """Log the name, reason, value, interpretation and diagnostics of 'metric'."""
    logger.info(f"Evaluation Name: {metric.name}")
    logger.info(f"Evaluation Reason: {metric.reason}")
    if isinstance(metric, NumericMetric):
        logger.info(f"Numeric Metric Value: {metric.value}")
    elif isinstance(metric, StringMetric):
        logger.info(f"String Metric Value: {metric.value}")
    if metric.interpretation is not None:
        i = metric.interpretation
        logger.info(f"Interpretation: {i.rating} failed={i.failed} ({i.reason})")
    if metric.diagnostics:
        logger.info(f"Evaluation Diagnostics: {', '.join(d.message for d in metric.diagnostics)}")


def gate_metrics(
    result: EvaluationResult,
    evaluators: Sequence[Evaluator],
    threshold: float = DEFAULT_PASS_THRESHOLD,
    scenario_name: str = "scenario",
) -> ScenarioOutcome:
    """Apply 'metric_passes' to every metric declared by 'evaluators' and AND the outcomes.

    A declared metric missing from 'result' counts as a failure.
    """
    evaluated: list[str] = []
    failures: list[MetricFailure] = []
    for evaluator in evaluators:
        for name in evaluator.metric_names:
            evaluated.append(name)
            if name not in result:
                failures.append(MetricFailure(name=name, value=None, reason="metric missing from result"))
                continue
            metric = result.get(name)
            show_evaluation_result(metric)
            if not metric_passes(metric, threshold):
                value = metric.value if isinstance(metric, (NumericMetric, StringMetric)) else None
                failures.append(MetricFailure(name=name, value=value, reason=metric.reason))

    outcome = ScenarioOutcome(
        scenario_name=scenario_name,
        passed=not failures,
        threshold=threshold,
        evaluated_metrics=evaluated,
        failures=failures,
    )
    log = logger.info if outcome.passed else logger.warning
    log(outcome.summary())
    return outcome
