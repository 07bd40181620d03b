"""
LLM-as-judge quality evaluators.

Both evaluators send one prompt to the judge model found in the
'ChatConfiguration' and expect a JSON reply '{"reasoning": ..., "score": n}'
with 'n' on a 1 to 5 scale. The score becomes a 'NumericMetric'; it is rated
with 'interpret_score' and fails below 'FAILING_SCORE_BELOW'.

Available evaluators:
    CoherenceEvaluator: how well-organised and logically connected the response is.
    RelevanceEvaluator: how directly the response addresses the user's request.

A reply that cannot be parsed yields an 'unknown' metric with a diagnostic, so
one confused judge answer does not abort a scenario. Transport errors from the
judge propagate.
"""

import json
from abc import abstractmethod
from textwrap import dedent
from typing import Sequence

from loguru import logger

from chat_eval_toolkit.evaluation.data_models import (
    EvaluationContext,
    EvaluationDiagnostic,
    EvaluationMetricInterpretation,
    EvaluationRating,
    EvaluationResult,
    NumericMetric,
)
from chat_eval_toolkit.evaluation.evaluators.base import ChatConfiguration, Evaluator
from chat_eval_toolkit.llms.base import ChatMessage, ChatOptions, ChatResponse, ChatResponseFormat, Roles

COHERENCE_METRIC_NAME = "Coherence"
RELEVANCE_METRIC_NAME = "Relevance"

MIN_SCORE = 1
MAX_SCORE = 5
FAILING_SCORE_BELOW = 3

_SCORE_RATINGS = {
    1: EvaluationRating.UNACCEPTABLE,
    2: EvaluationRating.POOR,
    3: EvaluationRating.AVERAGE,
    4: EvaluationRating.GOOD,
    5: EvaluationRating.EXCEPTIONAL,
}

_DECODER = json.JSONDecoder()

JUDGE_OPTIONS = ChatOptions(temperature=0.0, response_format=ChatResponseFormat.JSON, max_output_tokens=800)

_JUDGE_SYSTEM_PROMPT = (
    "You are an AI assistant that rates the quality of answers given by another AI system. "
    "You always reply with a single JSON object and nothing else."
)


def interpret_score(score: float) -> EvaluationMetricInterpretation:
    """Map a 1-5 judge score to a rating. Scores below 'FAILING_SCORE_BELOW' fail."""
    rating = _SCORE_RATINGS[max(MIN_SCORE, min(MAX_SCORE, round(score)))]
    failed = score < FAILING_SCORE_BELOW
    return EvaluationMetricInterpretation(
        rating=rating,
        failed=failed,
        reason=f"score {score:g} is {'below' if failed else 'at or above'} {FAILING_SCORE_BELOW}",
    )


def _unknown(metric: NumericMetric, diagnostic: EvaluationDiagnostic) -> NumericMetric:
    return metric.with_diagnostic(diagnostic).with_interpretation(
        EvaluationMetricInterpretation(rating=EvaluationRating.UNKNOWN, failed=True, reason=diagnostic.message)
    )


def _first_json_object(content: str) -> dict | None:
    """Return the whole reply if it is a JSON object, else the first object embedded in it."""
    try:
        payload = json.loads(content.strip())
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict):
        return payload
    start = content.find("{")
    while start != -1:
        try:
            payload, _ = _DECODER.raw_decode(content, start)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            return payload
        start = content.find("{", start + 1)
    return None


def parse_judge_reply(content: str) -> tuple[int, str]:
    """Extract '(score, reasoning)' from the judge's JSON reply.

    Raises:
        ValueError: The reply holds no JSON object, or no integer score within 1-5.
    """
    payload = _first_json_object(content)
    if payload is None:
        raise ValueError(f"judge reply contains no JSON object: {content[:120]!r}")
    score = payload.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ValueError(f"judge reply has no numeric 'score': {payload!r}")
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ValueError(f"judge score {score} is outside {MIN_SCORE}-{MAX_SCORE}")
    if score != int(score):
        raise ValueError(f"judge score {score} is not an integer")
    return int(score), str(payload.get("reasoning", ""))


def last_user_message(messages: Sequence[ChatMessage]) -> str | None:
    for message in reversed(messages):
        if message.role == Roles.USER and message.content.strip():
            return message.content
    return None


class _JudgedQualityEvaluator(Evaluator):
    """Shared base for single-metric LLM-judged evaluators. Subclasses provide the metric name and the prompt."""

    metric_name: str

    @property
    def metric_names(self) -> tuple[str, ...]:
        return (self.metric_name,)

    @abstractmethod
    def build_prompt(self, messages: Sequence[ChatMessage], response: ChatResponse) -> str | EvaluationDiagnostic:
        """Return the judge prompt, or a diagnostic when the input cannot be judged."""

    async def evaluate(
        self,
        messages: Sequence[ChatMessage],
        response: ChatResponse,
        chat_configuration: ChatConfiguration | None = None,
        additional_context: Sequence[EvaluationContext] | None = None,
    ) -> EvaluationResult:
        if chat_configuration is None:
            raise ValueError(f"{type(self).__name__} needs a ChatConfiguration with a judge LLM")

        metric = NumericMetric(name=self.metric_name)
        if not response.text.strip():
            metric = _unknown(metric, EvaluationDiagnostic.error("The response to evaluate is empty."))
            return self._check_result(EvaluationResult.from_metrics(metric))

        prompt = self.build_prompt(messages, response)
        if isinstance(prompt, EvaluationDiagnostic):
            return self._check_result(EvaluationResult.from_metrics(_unknown(metric, prompt)))

        judge = chat_configuration.llm
        reply = await judge.generate(
            [
                ChatMessage(role=Roles.SYSTEM, content=_JUDGE_SYSTEM_PROMPT),
                ChatMessage(role=Roles.USER, content=prompt),
            ],
            JUDGE_OPTIONS,
        )
        metadata = {"judge_model": reply.model_id or judge.model_name}

        try:
            score, reasoning = parse_judge_reply(reply.text)
        except ValueError as exc:
            logger.warning(f"{self.metric_name}: could not parse judge reply: {exc}")
            metric = NumericMetric(name=self.metric_name, metadata=metadata)
            metric = _unknown(metric, EvaluationDiagnostic.error(str(exc)))
            return self._check_result(EvaluationResult.from_metrics(metric))

        logger.debug(f"{self.metric_name}: judge scored {score}")
        metric = NumericMetric(name=self.metric_name, value=score, reason=reasoning, metadata=metadata)
        return self._check_result(EvaluationResult.from_metrics(metric.with_interpretation(interpret_score(score))))


class CoherenceEvaluator(_JudgedQualityEvaluator):
    """Rates the logical flow and readability of the response, independent of the question."""

    metric_name = COHERENCE_METRIC_NAME

    _TEMPLATE = dedent("""
        Rate the coherence of the RESPONSE to the QUERY on a scale from 1 to 5.

        Coherence measures how well the response is organised: ideas are presented in a logical
        order, sentences connect naturally, and the reader can follow the answer without effort.

            1: incoherent, disjointed words or phrases with no logical connection
            2: poorly organised, fragmented sentences that are hard to follow
            3: partially coherent, the main point is recognisable but the flow is weak
            4: coherent, logically organised with clear connections between ideas
            5: highly coherent, fluent and well structured throughout

        QUERY: {query}
        RESPONSE: {response}

        Reply with JSON: {{"reasoning": "<one or two sentences>", "score": <integer 1-5>}}
    """)

    def build_prompt(self, messages: Sequence[ChatMessage], response: ChatResponse) -> str | EvaluationDiagnostic:
        query = last_user_message(messages) or ""
        return self._TEMPLATE.format(query=query, response=response.text)


class RelevanceEvaluator(_JudgedQualityEvaluator):
    """Rates how directly the response answers the latest user request."""

    metric_name = RELEVANCE_METRIC_NAME

    _TEMPLATE = dedent("""
        Rate the relevance of the RESPONSE to the QUERY on a scale from 1 to 5.

        Relevance measures how well the response addresses the query: it answers what was asked,
        includes the key information, and leaves out unrelated content.

            1: irrelevant, the response has nothing to do with the query
            2: mostly irrelevant, it touches the topic but does not answer the query
            3: partially relevant, it answers the query incompletely
            4: relevant, it answers the query with the key information
            5: fully relevant, a complete and focused answer to the query

        CONVERSATION:
        {history}

        QUERY: {query}
        RESPONSE: {response}

        Reply with JSON: {{"reasoning": "<one or two sentences>", "score": <integer 1-5>}}
    """)

    def build_prompt(self, messages: Sequence[ChatMessage], response: ChatResponse) -> str | EvaluationDiagnostic:
        query = last_user_message(messages)
        if query is None:
            return EvaluationDiagnostic.error("The conversation contains no user request to judge relevance against.")
        history = "\n".join(f"{m.role}: {m.content}" for m in messages)
        return self._TEMPLATE.format(history=history, query=query, response=response.text)
