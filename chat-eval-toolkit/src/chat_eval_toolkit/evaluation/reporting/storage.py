"""
Scenario run records and their storage interface.

A 'ScenarioRunResult' captures one evaluated scenario: the conversation, the
model response and the 'EvaluationResult', keyed by execution, scenario and
iteration name. The 'ReportStorage' ABC is the pluggable storage backend;
'DiskReportStorage' writes one JSON document per record:

    <storage_root>/results/<execution_name>/<scenario_name>/<iteration_name>.json
"""

import asyncio
import shutil
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field

from chat_eval_toolkit.evaluation.data_models import EvaluationResult
from chat_eval_toolkit.llms.base import ChatMessage, ChatResponse

EXECUTION_NAME_FORMAT = "Execution-%Y-%m-%d-%H-%M-%S"


def default_execution_name(now: datetime | None = None) -> str:
    """Timestamped execution identifier, e.g. 'Execution-2025-06-01-14-30-00' (UTC)."""
    return (now or datetime.now(timezone.utc)).strftime(EXECUTION_NAME_FORMAT)


class ScenarioRunResult(BaseModel):
    """Everything recorded about one scenario iteration."""

    scenario_name: str
    iteration_name: str
    execution_name: str
    creation_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    messages: list[ChatMessage]
    model_response: ChatResponse
    evaluation_result: EvaluationResult
    tags: list[str] = Field(default_factory=list)


class ReportStorage(ABC):
    """Abstract repository for 'ScenarioRunResult' records."""

    @abstractmethod
    async def write_results(self, results: list[ScenarioRunResult]) -> None:
        pass

    @abstractmethod
    async def read_results(
        self,
        execution_name: str | None = None,
        scenario_name: str | None = None,
    ) -> list[ScenarioRunResult]:
        pass

    @abstractmethod
    async def latest_execution_names(self, count: int | None = None) -> list[str]:
        pass

    @abstractmethod
    async def delete_results(self, execution_name: str | None = None) -> int:
        pass


def _path_component(value: str, what: str) -> str:
    if not value or value in {".", ".."} or "/" in value or "\\" in value:
        raise ValueError(f"invalid {what} {value!r}")
    return value


class DiskReportStorage(ReportStorage):
    """
    Stores each 'ScenarioRunResult' as a pretty-printed JSON file below 'storage_root'.

    Attributes:
        storage_root: Root directory of the report store.
        results_dir: '<storage_root>/results', one sub-directory per execution.
    """

    def __init__(self, storage_root: str | Path) -> None:
        self.storage_root = Path(storage_root)
        self.results_dir = self.storage_root / "results"

    def _result_path(self, result: ScenarioRunResult) -> Path:
        return (
            self.results_dir
            / _path_component(result.execution_name, "execution name")
            / _path_component(result.scenario_name, "scenario name")
            / f"{_path_component(result.iteration_name, 'iteration name')}.json"
        )

    def _write_sync(self, results: list[ScenarioRunResult]) -> None:
        for result in results:
            path = self._result_path(result)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(result.model_dump_json(indent=2), encoding="utf-8")
            logger.info(f"Report written to {path}")

    async def write_results(self, results: list[ScenarioRunResult]) -> None:
        await asyncio.to_thread(self._write_sync, results)

    @staticmethod
    def _subdirectories(parent: Path, name: str | None, what: str) -> list[Path]:
        # Names are joined literally, never used as glob patterns.
        if name is not None:
            return [parent / _path_component(name, what)]
        if not parent.is_dir():
            return []
        return sorted(p for p in parent.iterdir() if p.is_dir())

    def _read_sync(self, execution_name: str | None, scenario_name: str | None) -> list[ScenarioRunResult]:
        paths: list[Path] = []
        for execution_dir in self._subdirectories(self.results_dir, execution_name, "execution name"):
            for scenario_dir in self._subdirectories(execution_dir, scenario_name, "scenario name"):
                if scenario_dir.is_dir():
                    paths.extend(sorted(p for p in scenario_dir.iterdir() if p.is_file() and p.suffix == ".json"))
        logger.debug(f"Reading {len(paths)} reports from {self.results_dir}")
        return [ScenarioRunResult.model_validate_json(p.read_text(encoding="utf-8")) for p in paths]

    async def read_results(
        self,
        execution_name: str | None = None,
        scenario_name: str | None = None,
    ) -> list[ScenarioRunResult]:
        return await asyncio.to_thread(self._read_sync, execution_name, scenario_name)

    def _execution_names(self) -> list[str]:
        if not self.results_dir.is_dir():
            return []
        return sorted((p.name for p in self.results_dir.iterdir() if p.is_dir()), reverse=True)

    async def latest_execution_names(self, count: int | None = None) -> list[str]:
        """Execution names, newest first. Timestamped names sort chronologically."""
        names = await asyncio.to_thread(self._execution_names)
        return names if count is None else names[:count]

    def _delete_sync(self, execution_name: str | None) -> int:
        if execution_name is not None:
            targets = [self.results_dir / _path_component(execution_name, "execution name")]
        elif self.results_dir.is_dir():
            targets = [p for p in self.results_dir.iterdir() if p.is_dir()]
        else:
            targets = []
        removed = 0
        for target in targets:
            if target.is_dir():
                shutil.rmtree(target)
                removed += 1
        logger.info(f"Deleted {removed} execution(s) from {self.results_dir}")
        return removed

    async def delete_results(self, execution_name: str | None = None) -> int:
        """Delete one execution (or all of them) and return the number of executions removed."""
        return await asyncio.to_thread(self._delete_sync, execution_name)
