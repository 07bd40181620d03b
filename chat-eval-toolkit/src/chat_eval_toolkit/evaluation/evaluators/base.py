"""
Abstract base class for evaluators.

Every evaluator, whether a deterministic check such as 'KeywordSearchEvaluator'
or an LLM-as-judge evaluator such as 'CoherenceEvaluator', implements this
interface. An evaluator declares its metric names up front and returns exactly
one metric per declared name from every 'evaluate' call.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from pydantic import BaseModel, ConfigDict

from chat_eval_toolkit.evaluation.data_models import EvaluationContext, EvaluationResult
from chat_eval_toolkit.llms.base import LLM, ChatMessage, ChatResponse


class ChatConfiguration(BaseModel):
    """Carries the judge model used by LLM-backed evaluators."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    llm: LLM


class Evaluator(ABC):
    """
    Abstract base for all evaluators.

    Malformed input (an empty response, a conversation without a user turn) is
    reported through an 'unknown' / failed interpretation, never raised.
    Infrastructure errors such as an unreachable judge model propagate.
    """

    @property
    @abstractmethod
    def metric_names(self) -> tuple[str, ...]:
        """Names of the metrics returned by 'evaluate', in declaration order."""

    @abstractmethod
    async def evaluate(
        self,
        messages: Sequence[ChatMessage],
        response: ChatResponse,
        chat_configuration: ChatConfiguration | None = None,
        additional_context: Sequence[EvaluationContext] | None = None,
    ) -> EvaluationResult:
        """Score 'response' to the conversation 'messages' and return one metric per declared name."""

    def _check_result(self, result: EvaluationResult) -> EvaluationResult:
        if sorted(result.names) != sorted(self.metric_names):
            raise RuntimeError(
                f"{type(self).__name__} declared metrics {list(self.metric_names)} but returned {result.names}"
            )
        return result
