"""
Composite evaluator.

'CompositeEvaluator' fans one (conversation, response) pair out to several
evaluators and merges their results. The members are dispatched with
'asyncio.gather', so a deterministic check and an LLM judge run side by side;
none of them share state, each call builds its own 'EvaluationResult'.
"""

import asyncio
from typing import Sequence

from loguru import logger

from chat_eval_toolkit.evaluation.data_models import EvaluationContext, EvaluationResult
from chat_eval_toolkit.evaluation.evaluators.base import ChatConfiguration, Evaluator
from chat_eval_toolkit.llms.base import ChatMessage, ChatResponse


class CompositeEvaluator(Evaluator):
    """
    Runs several evaluators over the same input and returns the union of their metrics.

    Metric names must be disjoint across members: a clash is rejected when the
    composite is built, so a result never silently loses a metric.

    Attributes:
        evaluators: The member evaluators, in the order given.
    """

    def __init__(self, *evaluators: Evaluator) -> None:
        seen: dict[str, str] = {}
        for evaluator in evaluators:
            for name in evaluator.metric_names:
                if name in seen:
                    raise ValueError(
                        f"metric name {name!r} is declared by both {seen[name]} and {type(evaluator).__name__}"
                    )
                seen[name] = type(evaluator).__name__
        self.evaluators: tuple[Evaluator, ...] = evaluators

    @property
    def metric_names(self) -> tuple[str, ...]:
        return tuple(name for evaluator in self.evaluators for name in evaluator.metric_names)

    async def evaluate(
        self,
        messages: Sequence[ChatMessage],
        response: ChatResponse,
        chat_configuration: ChatConfiguration | None = None,
        additional_context: Sequence[EvaluationContext] | None = None,
    ) -> EvaluationResult:
        logger.debug(f"CompositeEvaluator: running {len(self.evaluators)} evaluators")
        results = await asyncio.gather(
            *(e.evaluate(messages, response, chat_configuration, additional_context) for e in self.evaluators)
        )
        return self._check_result(EvaluationResult.merge(*results))
