from chat_eval_toolkit.evaluation.evaluators.base import ChatConfiguration, Evaluator
from chat_eval_toolkit.evaluation.evaluators.composite import CompositeEvaluator
from chat_eval_toolkit.evaluation.evaluators.keyword import KEYWORD_SEARCH_METRIC_NAME, KeywordSearchEvaluator
from chat_eval_toolkit.evaluation.evaluators.quality import (
    COHERENCE_METRIC_NAME,
    RELEVANCE_METRIC_NAME,
    CoherenceEvaluator,
    RelevanceEvaluator,
)

__all__ = [
    "COHERENCE_METRIC_NAME",
    "KEYWORD_SEARCH_METRIC_NAME",
    "RELEVANCE_METRIC_NAME",
    "ChatConfiguration",
    "CoherenceEvaluator",
    "CompositeEvaluator",
    "Evaluator",
    "KeywordSearchEvaluator",
    "RelevanceEvaluator",
]
