"""Unit tests for disk-based reporting and scenario runs."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from chat_eval_toolkit.evaluation.data_models import EvaluationResult, NumericMetric
from chat_eval_toolkit.evaluation.evaluators.base import ChatConfiguration
from chat_eval_toolkit.evaluation.evaluators.keyword import KeywordSearchEvaluator
from chat_eval_toolkit.evaluation.evaluators.quality import CoherenceEvaluator
from chat_eval_toolkit.evaluation.reporting import (
    DiskReportStorage,
    ReportingConfiguration,
    ScenarioRunResult,
    default_execution_name,
)
from chat_eval_toolkit.llms.base import ChatMessage, ChatResponse
from chat_eval_toolkit.llms.caching import CachingLLM


def _run_result(execution: str, scenario: str = "Scenario", iteration: str = "1") -> ScenarioRunResult:
    return ScenarioRunResult(
        scenario_name=scenario,
        iteration_name=iteration,
        execution_name=execution,
        messages=[],
        model_response=ChatResponse.from_text("answer"),
        evaluation_result=EvaluationResult.from_metrics(NumericMetric(name="m", value=1)),
    )


class TestDefaultExecutionName:
    def test_format(self) -> None:
        now = datetime(2025, 6, 1, 14, 30, 5, tzinfo=timezone.utc)

        assert default_execution_name(now) == "Execution-2025-06-01-14-30-05"


class TestDiskReportStorage:
    """Tests for DiskReportStorage."""

    @pytest.mark.asyncio
    async def test_write_then_read(self, tmp_path: Path) -> None:
        storage = DiskReportStorage(tmp_path)
        record = _run_result("Execution-2025-01-01-00-00-00")

        await storage.write_results([record])

        path = tmp_path / "results" / "Execution-2025-01-01-00-00-00" / "Scenario" / "1.json"
        assert path.is_file()
        assert await storage.read_results() == [record]

    @pytest.mark.asyncio
    async def test_read_filters(self, tmp_path: Path) -> None:
        storage = DiskReportStorage(tmp_path)
        await storage.write_results(
            [_run_result("Execution-A", "One"), _run_result("Execution-A", "Two"), _run_result("Execution-B", "One")]
        )

        assert len(await storage.read_results()) == 3
        assert len(await storage.read_results(execution_name="Execution-A")) == 2
        only = await storage.read_results(execution_name="Execution-B", scenario_name="One")
        assert [(r.execution_name, r.scenario_name) for r in only] == [("Execution-B", "One")]

    @pytest.mark.parametrize(
        "scenario,neighbour",
        [("Run[1]", "Run1"), ("Run*", "RunX"), ("Run?", "Run7")],
        ids=["brackets", "star", "question-mark"],
    )
    @pytest.mark.asyncio
    async def test_names_with_glob_characters_are_literal(self, tmp_path: Path, scenario: str, neighbour: str) -> None:
        storage = DiskReportStorage(tmp_path)
        record = _run_result("Execution-A", scenario)
        await storage.write_results([record, _run_result("Execution-A", neighbour)])

        assert await storage.read_results("Execution-A", scenario) == [record]
        assert len(await storage.read_results("Execution-A")) == 2

    @pytest.mark.asyncio
    async def test_filesystem_work_runs_off_the_event_loop(self, tmp_path: Path) -> None:
        storage = DiskReportStorage(tmp_path)

        with patch(
            "chat_eval_toolkit.evaluation.reporting.storage.asyncio.to_thread", wraps=asyncio.to_thread
        ) as to_thread:
            await storage.write_results([_run_result("Execution-A")])
            await storage.read_results()
            await storage.latest_execution_names()
            await storage.delete_results()

        assert to_thread.call_count == 4

    @pytest.mark.asyncio
    async def test_read_empty_store(self, tmp_path: Path) -> None:
        storage = DiskReportStorage(tmp_path / "missing")

        assert await storage.read_results() == []
        assert await storage.latest_execution_names() == []

    @pytest.mark.asyncio
    async def test_latest_execution_names_newest_first(self, tmp_path: Path) -> None:
        storage = DiskReportStorage(tmp_path)
        names = ["Execution-2025-01-01-00-00-00", "Execution-2025-03-01-00-00-00", "Execution-2025-02-01-00-00-00"]
        for name in names:
            await storage.write_results([_run_result(name)])

        assert await storage.latest_execution_names(2) == [
            "Execution-2025-03-01-00-00-00",
            "Execution-2025-02-01-00-00-00",
        ]

    @pytest.mark.asyncio
    async def test_delete_results(self, tmp_path: Path) -> None:
        storage = DiskReportStorage(tmp_path)
        await storage.write_results([_run_result("Execution-A"), _run_result("Execution-B")])

        assert await storage.delete_results("Execution-A") == 1
        assert await storage.latest_execution_names() == ["Execution-B"]
        assert await storage.delete_results() == 1
        assert await storage.read_results() == []

    @pytest.mark.asyncio
    async def test_rejects_path_like_names(self, tmp_path: Path) -> None:
        storage = DiskReportStorage(tmp_path)

        with pytest.raises(ValueError, match="scenario name"):
            await storage.write_results([_run_result("Execution-A", scenario="../escape")])


class TestReportingConfiguration:
    """Tests for ReportingConfiguration and ScenarioRun."""

    @pytest.mark.asyncio
    async def test_scenario_run_persists_on_exit(
        self,
        tmp_path: Path,
        make_llm: Callable,
        messages: list[ChatMessage],
        scenario_response: ChatResponse,
    ) -> None:
        judge = make_llm('{"reasoning": "fine", "score": 4}')
        configuration = ReportingConfiguration.create_disk_based(
            storage_root=tmp_path,
            evaluators=[CoherenceEvaluator(), KeywordSearchEvaluator()],
            chat_configuration=ChatConfiguration(llm=judge),
            execution_name="Execution-Test",
        )

        async with configuration.create_scenario_run("SuperSportsBallEvaluation") as run:
            result = await run.evaluate(messages, scenario_response)

        assert sorted(result.names) == ["Coherence", "KeyWordSearch"]
        stored = await DiskReportStorage(tmp_path).read_results("Execution-Test")
        assert len(stored) == 1
        assert stored[0].scenario_name == "SuperSportsBallEvaluation"
        assert stored[0].iteration_name == "1"
        assert stored[0].messages == messages
        assert stored[0].model_response.text == scenario_response.text
        assert stored[0].evaluation_result == result

    @pytest.mark.asyncio
    async def test_nothing_written_without_evaluation(self, tmp_path: Path) -> None:
        configuration = ReportingConfiguration.create_disk_based(tmp_path, [KeywordSearchEvaluator()])

        async with configuration.create_scenario_run("Idle"):
            pass

        assert await DiskReportStorage(tmp_path).read_results() == []

    @pytest.mark.asyncio
    async def test_nothing_written_when_block_raises(
        self, tmp_path: Path, messages: list[ChatMessage], scenario_response: ChatResponse
    ) -> None:
        configuration = ReportingConfiguration.create_disk_based(tmp_path, [KeywordSearchEvaluator()])

        with pytest.raises(RuntimeError, match="boom"):
            async with configuration.create_scenario_run("Broken") as run:
                await run.evaluate(messages, scenario_response)
                raise RuntimeError("boom")

        assert await DiskReportStorage(tmp_path).read_results() == []

    @pytest.mark.asyncio
    async def test_evaluate_twice_is_rejected(
        self, tmp_path: Path, messages: list[ChatMessage], scenario_response: ChatResponse
    ) -> None:
        configuration = ReportingConfiguration.create_disk_based(tmp_path, [KeywordSearchEvaluator()])
        run = configuration.create_scenario_run("Twice")

        await run.evaluate(messages, scenario_response)
        with pytest.raises(RuntimeError, match="already evaluated"):
            await run.evaluate(messages, scenario_response)

    def test_response_caching_wraps_judge(self, tmp_path: Path, make_llm: Callable) -> None:
        judge = make_llm('{"score": 4}')

        configuration = ReportingConfiguration.create_disk_based(
            tmp_path,
            [CoherenceEvaluator()],
            chat_configuration=ChatConfiguration(llm=judge),
            enable_response_caching=True,
        )

        assert configuration.chat_configuration is not None
        cached = configuration.chat_configuration.llm
        assert isinstance(cached, CachingLLM)
        assert cached.inner is judge
        assert cached.cache_dir == tmp_path / "cache"
        assert configuration.execution_name.startswith("Execution-")

    def test_duplicate_metric_names_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            ReportingConfiguration.create_disk_based(tmp_path, [KeywordSearchEvaluator(), KeywordSearchEvaluator()])
