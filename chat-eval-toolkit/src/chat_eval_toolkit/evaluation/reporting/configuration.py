"""
Reporting configuration and scenario runs.

'ReportingConfiguration' fixes everything shared by the scenarios of one
execution: the evaluators, the judge configuration, the report storage and the
execution name. 'create_scenario_run' hands out a 'ScenarioRun', an async
context manager that evaluates one (conversation, response) pair and persists
the record when the block exits:

    configuration = ReportingConfiguration.create_disk_based(
        storage_root="reports",
        evaluators=[CoherenceEvaluator(), RelevanceEvaluator()],
        chat_configuration=ChatConfiguration(llm=judge),
        enable_response_caching=True,
    )
    async with configuration.create_scenario_run("SuperSportsBallEvaluation") as run:
        result = await run.evaluate(messages, response)
"""

from pathlib import Path
from types import TracebackType
from typing import Sequence

from loguru import logger

from chat_eval_toolkit.evaluation.data_models import EvaluationContext, EvaluationResult
from chat_eval_toolkit.evaluation.evaluators.base import ChatConfiguration, Evaluator
from chat_eval_toolkit.evaluation.evaluators.composite import CompositeEvaluator
from chat_eval_toolkit.evaluation.reporting.storage import (
    DiskReportStorage,
    ReportStorage,
    ScenarioRunResult,
    default_execution_name,
)
from chat_eval_toolkit.llms.base import ChatMessage, ChatResponse
from chat_eval_toolkit.llms.caching import CachingLLM

DEFAULT_ITERATION_NAME = "1"


class ScenarioRun:
    """
    One evaluated scenario iteration.

    'evaluate' may be called once per run; the result is written to storage
    when the 'async with' block exits normally. Nothing is written when the
    block raises or when 'evaluate' was never called.
    """

    def __init__(
        self,
        scenario_name: str,
        iteration_name: str,
        execution_name: str,
        evaluator: CompositeEvaluator,
        chat_configuration: ChatConfiguration | None,
        storage: ReportStorage,
        tags: Sequence[str] = (),
    ) -> None:
        self.scenario_name = scenario_name
        self.iteration_name = iteration_name
        self.execution_name = execution_name
        self.evaluator = evaluator
        self.chat_configuration = chat_configuration
        self.storage = storage
        self.tags = list(tags)
        self.result: ScenarioRunResult | None = None

    async def evaluate(
        self,
        messages: Sequence[ChatMessage],
        response: ChatResponse,
        additional_context: Sequence[EvaluationContext] | None = None,
    ) -> EvaluationResult:
        if self.result is not None:
            raise RuntimeError(f"scenario run {self.scenario_name}/{self.iteration_name} was already evaluated")
        logger.info(f"Scenario {self.scenario_name!r} iteration {self.iteration_name!r}: evaluating")
        evaluation_result = await self.evaluator.evaluate(
            messages, response, self.chat_configuration, additional_context
        )
        self.result = ScenarioRunResult(
            scenario_name=self.scenario_name,
            iteration_name=self.iteration_name,
            execution_name=self.execution_name,
            messages=list(messages),
            model_response=response,
            evaluation_result=evaluation_result,
            tags=self.tags,
        )
        return evaluation_result

    async def __aenter__(self) -> "ScenarioRun":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None or self.result is None:
            return
        await self.storage.write_results([self.result])


class ReportingConfiguration:
    """
    Shared settings for all scenario runs of one execution.

    Attributes:
        evaluators: Evaluators applied to every scenario, run as one 'CompositeEvaluator'.
        chat_configuration: Judge configuration; its LLM is wrapped in a 'CachingLLM' when caching is enabled.
        storage: Where 'ScenarioRunResult' records go.
        execution_name: Groups the records of this execution; timestamped by default.
    """

    def __init__(
        self,
        evaluators: Sequence[Evaluator],
        storage: ReportStorage,
        chat_configuration: ChatConfiguration | None = None,
        execution_name: str | None = None,
        cache_dir: str | Path | None = None,
        tags: Sequence[str] = (),
    ) -> None:
        self.evaluators = list(evaluators)
        self._composite = CompositeEvaluator(*self.evaluators)
        self.storage = storage
        self.execution_name = execution_name or default_execution_name()
        self.tags = list(tags)
        if chat_configuration is not None and cache_dir is not None:
            chat_configuration = ChatConfiguration(llm=CachingLLM(chat_configuration.llm, cache_dir))
        self.chat_configuration = chat_configuration

    @classmethod
    def create_disk_based(
        cls,
        storage_root: str | Path,
        evaluators: Sequence[Evaluator],
        chat_configuration: ChatConfiguration | None = None,
        enable_response_caching: bool = False,
        execution_name: str | None = None,
        tags: Sequence[str] = (),
    ) -> "ReportingConfiguration":
        """Report to a 'DiskReportStorage' at 'storage_root'; cache judge responses under '<storage_root>/cache'."""
        root = Path(storage_root)
        configuration = cls(
            evaluators=evaluators,
            storage=DiskReportStorage(root),
            chat_configuration=chat_configuration,
            execution_name=execution_name,
            cache_dir=root / "cache" if enable_response_caching else None,
            tags=tags,
        )
        logger.info(
            f"Reporting to {root} (execution={configuration.execution_name!r}  caching={enable_response_caching})"
        )
        return configuration

    def create_scenario_run(self, scenario_name: str, iteration_name: str = DEFAULT_ITERATION_NAME) -> ScenarioRun:
        return ScenarioRun(
            scenario_name=scenario_name,
            iteration_name=iteration_name,
            execution_name=self.execution_name,
            evaluator=self._composite,
            chat_configuration=self.chat_configuration,
            storage=self.storage,
            tags=self.tags,
        )
