"""
Deterministic keyword-search evaluator.

Checks whether the response mentions a fixed key phrase. The check is a
presence test with a fixed weight (3 when the phrase occurs, 0 otherwise), not
a frequency count. The interpretation threshold (value <= 4 is good) predates
the fixed weight, so the 'unacceptable' branch cannot be reached with the
default weight; it is kept so a larger weight still maps to a failure.
"""

from typing import Sequence

from loguru import logger

from chat_eval_toolkit.evaluation.data_models import (
    EvaluationContext,
    EvaluationMetricInterpretation,
    EvaluationRating,
    EvaluationResult,
    NumericMetric,
)
from chat_eval_toolkit.evaluation.evaluators.base import ChatConfiguration, Evaluator
from chat_eval_toolkit.llms.base import ChatMessage, ChatResponse

KEYWORD_SEARCH_METRIC_NAME = "KeyWordSearch"
DEFAULT_KEY_PHRASE = "super sports ball"
DEFAULT_PHRASE_WEIGHT = 3
DEFAULT_MAX_GOOD_VALUE = 4


class KeywordSearchEvaluator(Evaluator):
    """Scores a response by whether it contains 'key_phrase' (case-insensitive).

    Attributes:
        key_phrase: Phrase searched for in the lower-cased response text.
        phrase_weight: Value reported when the phrase is found.
        max_good_value: Largest value still rated 'good'.
    """

    def __init__(
        self,
        key_phrase: str = DEFAULT_KEY_PHRASE,
        phrase_weight: int = DEFAULT_PHRASE_WEIGHT,
        max_good_value: int = DEFAULT_MAX_GOOD_VALUE,
        metric_name: str = KEYWORD_SEARCH_METRIC_NAME,
    ) -> None:
        self.key_phrase = key_phrase.lower()
        self.phrase_weight = phrase_weight
        self.max_good_value = max_good_value
        self._metric_name = metric_name

    @property
    def metric_names(self) -> tuple[str, ...]:
        return (self._metric_name,)

    def check_for_key_words(self, text: str | None) -> int:
        if text is None or not text.strip():
            return 0
        return self.phrase_weight if self.key_phrase in text.lower() else 0

    def interpret(self, metric: NumericMetric) -> NumericMetric:
        if metric.value is None:
            interpretation = EvaluationMetricInterpretation(
                rating=EvaluationRating.UNKNOWN,
                failed=True,
                reason="Failed to identify key words in the response.",
            )
        elif metric.value <= self.max_good_value:
            interpretation = EvaluationMetricInterpretation(rating=EvaluationRating.GOOD, reason="key word(s) found")
        else:
            interpretation = EvaluationMetricInterpretation(
                rating=EvaluationRating.UNACCEPTABLE,
                failed=True,
                reason="key word(s) not found",
            )
        return metric.with_interpretation(interpretation)

    async def evaluate(
        self,
        messages: Sequence[ChatMessage],
        response: ChatResponse,
        chat_configuration: ChatConfiguration | None = None,
        additional_context: Sequence[EvaluationContext] | None = None,
    ) -> EvaluationResult:
        key_phrase_count = self.check_for_key_words(response.text)
        logger.debug(f"{self._metric_name}: {key_phrase_count} for {response.text[:60]!r}")
        metric = NumericMetric(
            name=self._metric_name,
            value=key_phrase_count,
            reason=f"'{self._metric_name}' metric has found {key_phrase_count} key words.",
        )
        return self._check_result(EvaluationResult.from_metrics(self.interpret(metric)))
