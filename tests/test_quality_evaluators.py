"""Unit tests for the LLM-judged coherence and relevance evaluators."""

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from chat_eval_toolkit.evaluation.data_models import DiagnosticSeverity, EvaluationRating, NumericMetric
from chat_eval_toolkit.evaluation.evaluators.base import ChatConfiguration
from chat_eval_toolkit.evaluation.evaluators.quality import (
    COHERENCE_METRIC_NAME,
    RELEVANCE_METRIC_NAME,
    CoherenceEvaluator,
    RelevanceEvaluator,
    interpret_score,
    parse_judge_reply,
)
from chat_eval_toolkit.llms.base import ChatMessage, ChatResponse, ChatResponseFormat, Roles


class TestParseJudgeReply:
    """Tests for parse_judge_reply()."""

    def test_plain_json(self) -> None:
        assert parse_judge_reply('{"reasoning": "clear", "score": 4}') == (4, "clear")

    def test_json_inside_prose(self) -> None:
        content = 'Here is my rating:\n```json\n{"reasoning": "ok", "score": 5}\n```'

        assert parse_judge_reply(content) == (5, "ok")

    def test_first_of_two_json_objects(self) -> None:
        content = '{"reasoning": "first", "score": 2}\n{"reasoning": "second", "score": 5}'

        assert parse_judge_reply(content) == (2, "first")

    def test_braces_in_prose_after_the_object(self) -> None:
        content = 'Rating: {"reasoning": "fine", "score": 4} (scale {1..5}, see {notes})'

        assert parse_judge_reply(content) == (4, "fine")

    def test_skips_braces_before_the_object(self) -> None:
        content = 'Using the rubric {1-5}: {"reasoning": "fine", "score": 3}'

        assert parse_judge_reply(content) == (3, "fine")

    def test_integral_float_score(self) -> None:
        assert parse_judge_reply('{"score": 3.0}') == (3, "")

    @pytest.mark.parametrize(
        "content",
        [
            "no json here",
            "{not json}",
            '{"reasoning": "missing"}',
            '{"score": "four"}',
            '{"score": 3.5}',
            '{"score": true}',
            '{"score": 0}',
            '{"score": 6}',
        ],
        ids=["no-json", "invalid-json", "no-score", "string-score", "fractional", "bool", "too-low", "too-high"],
    )
    def test_rejects_malformed_reply(self, content: str) -> None:
        with pytest.raises(ValueError):
            parse_judge_reply(content)


class TestInterpretScore:
    """Tests for the 1-5 score interpretation."""

    @pytest.mark.parametrize(
        "score,rating,failed",
        [
            (1, EvaluationRating.UNACCEPTABLE, True),
            (2, EvaluationRating.POOR, True),
            (3, EvaluationRating.AVERAGE, False),
            (4, EvaluationRating.GOOD, False),
            (5, EvaluationRating.EXCEPTIONAL, False),
        ],
        ids=["1", "2", "3", "4", "5"],
    )
    def test_scale(self, score: int, rating: EvaluationRating, failed: bool) -> None:
        interpretation = interpret_score(score)

        assert interpretation.rating == rating
        assert interpretation.failed is failed


class TestCoherenceEvaluator:
    """Tests for CoherenceEvaluator.evaluate()."""

    def test_declares_single_metric(self) -> None:
        assert CoherenceEvaluator().metric_names == (COHERENCE_METRIC_NAME,)

    @pytest.mark.asyncio
    async def test_scores_from_judge(
        self, make_llm: Callable, messages: list[ChatMessage], scenario_response: ChatResponse
    ) -> None:
        judge = make_llm('{"reasoning": "Short and logical.", "score": 5}', model_name="judge")

        result = await CoherenceEvaluator().evaluate(messages, scenario_response, ChatConfiguration(llm=judge))

        metric = result.get(COHERENCE_METRIC_NAME, NumericMetric)
        assert metric.value == 5
        assert metric.reason == "Short and logical."
        assert metric.metadata["judge_model"] == "judge"
        assert metric.interpretation is not None
        assert metric.interpretation.rating == EvaluationRating.EXCEPTIONAL

    @pytest.mark.asyncio
    async def test_judge_request_is_deterministic_json(
        self, make_llm: Callable, messages: list[ChatMessage], scenario_response: ChatResponse
    ) -> None:
        judge = make_llm('{"reasoning": "", "score": 4}')

        await CoherenceEvaluator().evaluate(messages, scenario_response, ChatConfiguration(llm=judge))

        conversation, options = judge.calls[0]
        assert options is not None
        assert options.temperature == 0.0
        assert options.response_format == ChatResponseFormat.JSON
        assert conversation[0].role == Roles.SYSTEM
        assert scenario_response.text in conversation[1].content
        assert "Who won the Super Sport Ball 2025?" in conversation[1].content

    @pytest.mark.asyncio
    async def test_empty_response_is_unknown_without_judge_call(
        self, make_llm: Callable, messages: list[ChatMessage]
    ) -> None:
        judge = make_llm('{"score": 5}')

        result = await CoherenceEvaluator().evaluate(
            messages, ChatResponse.from_text("  "), ChatConfiguration(llm=judge)
        )

        metric = result.get(COHERENCE_METRIC_NAME, NumericMetric)
        assert metric.value is None
        assert metric.failed is True
        assert metric.interpretation is not None
        assert metric.interpretation.rating == EvaluationRating.UNKNOWN
        assert metric.diagnostics[0].severity == DiagnosticSeverity.ERROR
        assert judge.calls == []

    @pytest.mark.asyncio
    async def test_unparsable_judge_reply_is_unknown(
        self, make_llm: Callable, messages: list[ChatMessage], scenario_response: ChatResponse
    ) -> None:
        judge = make_llm("I think it is pretty good.")

        result = await CoherenceEvaluator().evaluate(messages, scenario_response, ChatConfiguration(llm=judge))

        metric = result.get(COHERENCE_METRIC_NAME, NumericMetric)
        assert metric.value is None
        assert metric.failed is True
        assert "no JSON object" in metric.diagnostics[0].message
        assert metric.metadata == {"judge_model": "fake-model"}

    @pytest.mark.asyncio
    async def test_requires_chat_configuration(self, messages: list[ChatMessage], scenario_response: ChatResponse) -> None:
        with pytest.raises(ValueError, match="ChatConfiguration"):
            await CoherenceEvaluator().evaluate(messages, scenario_response)

    @pytest.mark.asyncio
    async def test_judge_errors_propagate(self, messages: list[ChatMessage], scenario_response: ChatResponse) -> None:
        judge = MagicMock()
        judge.model_name = "judge"
        judge.generate = AsyncMock(side_effect=ConnectionError("401 Unauthorized"))

        with pytest.raises(ConnectionError, match="401"):
            await CoherenceEvaluator().evaluate(messages, scenario_response, ChatConfiguration.model_construct(llm=judge))


class TestRelevanceEvaluator:
    """Tests for RelevanceEvaluator.evaluate()."""

    def test_declares_single_metric(self) -> None:
        assert RelevanceEvaluator().metric_names == (RELEVANCE_METRIC_NAME,)

    @pytest.mark.asyncio
    async def test_low_score_fails(
        self, make_llm: Callable, messages: list[ChatMessage], scenario_response: ChatResponse
    ) -> None:
        judge = make_llm('{"reasoning": "Off topic.", "score": 2}')

        result = await RelevanceEvaluator().evaluate(messages, scenario_response, ChatConfiguration(llm=judge))

        metric = result.get(RELEVANCE_METRIC_NAME, NumericMetric)
        assert metric.value == 2
        assert metric.failed is True
        assert metric.interpretation is not None
        assert metric.interpretation.rating == EvaluationRating.POOR

    @pytest.mark.asyncio
    async def test_prompt_includes_conversation(
        self, make_llm: Callable, messages: list[ChatMessage], scenario_response: ChatResponse
    ) -> None:
        judge = make_llm('{"score": 4}')

        await RelevanceEvaluator().evaluate(messages, scenario_response, ChatConfiguration(llm=judge))

        prompt = judge.calls[0][0][1].content
        assert "system: You provide answers related to sport events." in prompt
        assert "QUERY: Who won the Super Sport Ball 2025?" in prompt

    @pytest.mark.asyncio
    async def test_no_user_message_is_unknown(self, make_llm: Callable, scenario_response: ChatResponse) -> None:
        judge = make_llm('{"score": 5}')
        system_only = [ChatMessage(role=Roles.SYSTEM, content="Be brief.")]

        result = await RelevanceEvaluator().evaluate(system_only, scenario_response, ChatConfiguration(llm=judge))

        metric = result.get(RELEVANCE_METRIC_NAME, NumericMetric)
        assert metric.value is None
        assert metric.failed is True
        assert judge.calls == []
