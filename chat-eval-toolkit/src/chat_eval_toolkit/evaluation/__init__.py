"""
Evaluation module of the chat-eval toolkit.

Evaluators score a (conversation, response) pair and return named metrics with
an interpretation. Deterministic and LLM-as-judge evaluators share one
interface, so they can be composed and gated the same way:

    from chat_eval_toolkit.evaluation import (
        ChatConfiguration, CoherenceEvaluator, CompositeEvaluator,
        KeywordSearchEvaluator, RelevanceEvaluator, gate_metrics,
    )

Disk-based reporting lives in 'chat_eval_toolkit.evaluation.reporting'.
"""

from chat_eval_toolkit.evaluation.data_models import (
    DiagnosticSeverity,
    EvaluationContext,
    EvaluationDiagnostic,
    EvaluationMetric,
    EvaluationMetricInterpretation,
    EvaluationRating,
    EvaluationResult,
    NumericMetric,
    StringMetric,
)
from chat_eval_toolkit.evaluation.evaluators import (
    COHERENCE_METRIC_NAME,
    KEYWORD_SEARCH_METRIC_NAME,
    RELEVANCE_METRIC_NAME,
    ChatConfiguration,
    CoherenceEvaluator,
    CompositeEvaluator,
    Evaluator,
    KeywordSearchEvaluator,
    RelevanceEvaluator,
)
from chat_eval_toolkit.evaluation.harness import (
    DEFAULT_PASS_THRESHOLD,
    MetricFailure,
    ScenarioOutcome,
    gate_metrics,
    metric_passes,
    show_evaluation_result,
)

__all__ = [
    "COHERENCE_METRIC_NAME",
    "DEFAULT_PASS_THRESHOLD",
    "KEYWORD_SEARCH_METRIC_NAME",
    "RELEVANCE_METRIC_NAME",
    "ChatConfiguration",
    "CoherenceEvaluator",
    "CompositeEvaluator",
    "DiagnosticSeverity",
    "EvaluationContext",
    "EvaluationDiagnostic",
    "EvaluationMetric",
    "EvaluationMetricInterpretation",
    "EvaluationRating",
    "EvaluationResult",
    "Evaluator",
    "KeywordSearchEvaluator",
    "MetricFailure",
    "NumericMetric",
    "RelevanceEvaluator",
    "ScenarioOutcome",
    "StringMetric",
    "gate_metrics",
    "metric_passes",
    "show_evaluation_result",
]
