from chat_eval_toolkit.evaluation.reporting.configuration import ReportingConfiguration, ScenarioRun
from chat_eval_toolkit.evaluation.reporting.storage import (
    DiskReportStorage,
    ReportStorage,
    ScenarioRunResult,
    default_execution_name,
)

__all__ = [
    "DiskReportStorage",
    "ReportStorage",
    "ReportingConfiguration",
    "ScenarioRun",
    "ScenarioRunResult",
    "default_execution_name",
]
