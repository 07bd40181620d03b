"""
Evaluation scenarios for the Super Sports Ball chat response.

Each scenario produces the response once, evaluates it, and returns a
'ScenarioOutcome'. loguru logs every metric along the way.

Usage
-----
Run all scenarios against the deployment configured in config/config.env:

    python -m super_sports_ball_eval.evaluation_scenarios

Point at another configuration file or run a single scenario:

    CONFIG_FILE=../config/dev.env python -m super_sports_ball_eval.evaluation_scenarios
    SCENARIO=custom python -m super_sports_ball_eval.evaluation_scenarios

Scenarios at a glance
---------------------
single      single_evaluator_scenario()    Coherence judged by the LLM, >= 3.
multiple    multiple_evaluator_scenario()  Coherence and relevance, both >= 3.
reporting   reporting_scenario()           As 'multiple', persisted to REPORTING_PATH.
custom      custom_evaluator_scenario()    Keyword search, key phrase must be found.
"""

import asyncio
import os
import sys

from loguru import logger

from chat_eval_toolkit.config import EvaluationSettings, load_settings
from chat_eval_toolkit.evaluation import (
    DEFAULT_PASS_THRESHOLD,
    ChatConfiguration,
    CoherenceEvaluator,
    CompositeEvaluator,
    Evaluator,
    KeywordSearchEvaluator,
    MetricFailure,
    NumericMetric,
    RelevanceEvaluator,
    ScenarioOutcome,
    gate_metrics,
    show_evaluation_result,
)
from chat_eval_toolkit.evaluation.reporting import ReportingConfiguration
from chat_eval_toolkit.llms.base import LLM
from super_sports_ball_eval.chat_scenario import ResponseProducer, build_llm

REPORTING_SCENARIO_NAME = "SuperSportsBallEvaluation"
SCENARIO_NAMES = ("single", "multiple", "reporting", "custom")


async def single_evaluator_scenario(
    producer: ResponseProducer,
    judge: LLM,
    threshold: float = DEFAULT_PASS_THRESHOLD,
) -> ScenarioOutcome:
    """Judge the coherence of the response."""
    messages = producer.get_chat_messages()
    response = await producer.get_chat_response()

    coherence_evaluator = CoherenceEvaluator()
    result = await coherence_evaluator.evaluate(messages, response, ChatConfiguration(llm=judge))
    return gate_metrics(result, [coherence_evaluator], threshold, scenario_name="SingleEvaluator")


async def multiple_evaluator_scenario(
    producer: ResponseProducer,
    judge: LLM,
    threshold: float = DEFAULT_PASS_THRESHOLD,
) -> ScenarioOutcome:
    """Judge coherence and relevance in one composite call."""
    messages = producer.get_chat_messages()
    response = await producer.get_chat_response()

    composite = CompositeEvaluator(CoherenceEvaluator(), RelevanceEvaluator())
    result = await composite.evaluate(messages, response, ChatConfiguration(llm=judge))
    return gate_metrics(result, [composite], threshold, scenario_name="MultipleEvaluator")


async def reporting_scenario(
    producer: ResponseProducer,
    judge: LLM,
    reporting_path: str,
    threshold: float = DEFAULT_PASS_THRESHOLD,
    execution_name: str | None = None,
) -> ScenarioOutcome:
    """Judge coherence and relevance and persist the run to the disk-based report store."""
    messages = producer.get_chat_messages()
    response = await producer.get_chat_response()

    reporting_evaluators: list[Evaluator] = [CoherenceEvaluator(), RelevanceEvaluator()]
    configuration = ReportingConfiguration.create_disk_based(
        storage_root=reporting_path,
        evaluators=reporting_evaluators,
        chat_configuration=ChatConfiguration(llm=judge),
        enable_response_caching=True,
        execution_name=execution_name,
    )
    async with configuration.create_scenario_run(REPORTING_SCENARIO_NAME) as scenario_run:
        result = await scenario_run.evaluate(messages, response)
    return gate_metrics(result, reporting_evaluators, threshold, scenario_name=REPORTING_SCENARIO_NAME)


async def custom_evaluator_scenario(producer: ResponseProducer) -> ScenarioOutcome:
    """Check the response for the key phrase. Passes when the metric is present and non-zero."""
    messages = producer.get_chat_messages()
    response = await producer.get_chat_response()

    keyword_evaluator = KeywordSearchEvaluator()
    result = await keyword_evaluator.evaluate(messages, response)

    metric_name = keyword_evaluator.metric_names[0]
    metric = result.get(metric_name, NumericMetric)
    show_evaluation_result(metric)

    passed = metric.value is not None and metric.value != 0
    failures: list[MetricFailure] = []
    if not passed:
        failures.append(MetricFailure(name=metric_name, value=metric.value, reason="Expected key words not found"))
    outcome = ScenarioOutcome(
        scenario_name="CustomEvaluator",
        passed=passed,
        threshold=0,
        evaluated_metrics=[metric_name],
        failures=failures,
    )
    log = logger.info if outcome.passed else logger.warning
    log(outcome.summary())
    return outcome


async def run_all_scenarios(settings: EvaluationSettings, only: str | None = None) -> list[ScenarioOutcome]:
    """Run every scenario (or just 'only') against the configured deployment and return their outcomes."""
    if only is not None and only not in SCENARIO_NAMES:
        raise ValueError(f"Unknown scenario {only!r}. Choose one of {list(SCENARIO_NAMES)}.")

    producer = ResponseProducer.from_settings(settings)
    judge = build_llm(settings)

    scenarios = {
        "single": lambda: single_evaluator_scenario(producer, judge),
        "multiple": lambda: multiple_evaluator_scenario(producer, judge),
        "reporting": lambda: reporting_scenario(producer, judge, settings.reporting_path or "reports"),
        "custom": lambda: custom_evaluator_scenario(producer),
    }

    logger.info("======= Evaluation scenarios: start =======")
    outcomes: list[ScenarioOutcome] = []
    for name, scenario in scenarios.items():
        if only is not None and name != only:
            continue
        logger.info(f"--- Scenario {name} ---")
        outcomes.append(await scenario())
    logger.info("======= Evaluation scenarios: done =======")
    for outcome in outcomes:
        logger.info(outcome.summary())
    return outcomes


if __name__ == "__main__":
    outcomes = asyncio.run(
        run_all_scenarios(
            load_settings(os.getenv("CONFIG_FILE") or None),
            only=os.getenv("SCENARIO") or None,
        )
    )
    sys.exit(0 if all(o.passed for o in outcomes) else 1)
