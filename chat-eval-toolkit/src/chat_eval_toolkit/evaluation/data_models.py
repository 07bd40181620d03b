"""
Data models for the evaluation module.

An evaluator returns an 'EvaluationResult': a mapping from metric name to one
'EvaluationMetric'. Each metric carries its value ('NumericMetric' or
'StringMetric'), a free-text reason, optional diagnostics, and an
'EvaluationMetricInterpretation' that turns the raw value into a rating and a
pass/fail flag.

All models are frozen and their mappings are stored as 'ReadOnlyDict'.
Evaluators build the interpretation with 'with_interpretation', which returns a
copy instead of mutating the metric, so a result is never changed after it has
been handed to the caller.
"""

from enum import StrEnum
from typing import Annotated, Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ReadOnlyDict(dict):
    """A dict that rejects every mutation after construction."""

    def _read_only(self, *args: Any, **kwargs: Any) -> Any:
        raise TypeError(f"{type(self).__name__} is read-only")

    __setitem__ = __delitem__ = __ior__ = _read_only
    clear = pop = popitem = setdefault = update = _read_only

    def __reduce__(self) -> tuple[type["ReadOnlyDict"], tuple[dict[Any, Any]]]:
        return type(self), (dict(self),)


class EvaluationRating(StrEnum):
    """Ordinal quality scale, from 'unknown' (no judgment possible) to 'exceptional'."""

    UNKNOWN = "unknown"
    INCONCLUSIVE = "inconclusive"
    UNACCEPTABLE = "unacceptable"
    POOR = "poor"
    AVERAGE = "average"
    GOOD = "good"
    EXCEPTIONAL = "exceptional"


_ALWAYS_FAILED = frozenset({EvaluationRating.UNKNOWN, EvaluationRating.UNACCEPTABLE})


class EvaluationMetricInterpretation(BaseModel):
    """Qualitative judgment derived from a metric value.

    Attributes:
        rating: Where the value lands on the 'EvaluationRating' scale.
        failed: Whether the value is considered a failure.
        reason: Human-readable explanation of the rating.
    """

    model_config = ConfigDict(frozen=True)

    rating: EvaluationRating
    failed: bool = False
    reason: str | None = None

    @model_validator(mode="after")
    def _unacceptable_ratings_fail(self) -> "EvaluationMetricInterpretation":
        if self.rating in _ALWAYS_FAILED and not self.failed:
            raise ValueError(f"an interpretation rated {self.rating!r} must be marked failed")
        return self


class DiagnosticSeverity(StrEnum):
    INFORMATIONAL = "informational"
    WARNING = "warning"
    ERROR = "error"


class EvaluationDiagnostic(BaseModel):
    """A message attached to a metric, e.g. why a judge reply could not be parsed."""

    model_config = ConfigDict(frozen=True)

    severity: DiagnosticSeverity
    message: str

    @classmethod
    def informational(cls, message: str) -> "EvaluationDiagnostic":
        return cls(severity=DiagnosticSeverity.INFORMATIONAL, message=message)

    @classmethod
    def warning(cls, message: str) -> "EvaluationDiagnostic":
        return cls(severity=DiagnosticSeverity.WARNING, message=message)

    @classmethod
    def error(cls, message: str) -> "EvaluationDiagnostic":
        return cls(severity=DiagnosticSeverity.ERROR, message=message)


_M = TypeVar("_M", bound="EvaluationMetric")


class EvaluationMetric(BaseModel):
    """Base class of every metric.

    Attributes:
        name: Identifier, unique within one evaluator's output.
        reason: Free-text explanation of how the value was obtained.
        interpretation: Rating and pass/fail flag, 'None' until interpreted.
        diagnostics: Messages about problems met while computing the value.
        metadata: Arbitrary annotations, e.g. the judge model id.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    reason: str | None = None
    interpretation: EvaluationMetricInterpretation | None = None
    diagnostics: tuple[EvaluationDiagnostic, ...] = ()
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata", mode="after")
    @classmethod
    def _freeze_metadata(cls, value: dict[str, Any]) -> dict[str, Any]:
        return ReadOnlyDict(value)

    def with_interpretation(self: _M, interpretation: EvaluationMetricInterpretation) -> _M:
        return self.model_copy(update={"interpretation": interpretation})

    def with_diagnostic(self: _M, diagnostic: EvaluationDiagnostic) -> _M:
        return self.model_copy(update={"diagnostics": (*self.diagnostics, diagnostic)})

    @property
    def failed(self) -> bool:
        """True when the interpretation marks the metric as failed."""
        return self.interpretation is not None and self.interpretation.failed


class NumericMetric(EvaluationMetric):
    kind: Literal["numeric"] = "numeric"
    value: float | None = None


class StringMetric(EvaluationMetric):
    kind: Literal["string"] = "string"
    value: str | None = None


Metric = Annotated[NumericMetric | StringMetric, Field(discriminator="kind")]


class EvaluationContext(BaseModel):
    """Additional named text an evaluator may take into account (e.g. a reference answer)."""

    model_config = ConfigDict(frozen=True)

    name: str
    contents: str


class EvaluationResult(BaseModel):
    """Mapping from metric name to metric, produced fresh for every evaluation call."""

    model_config = ConfigDict(frozen=True)

    metrics: dict[str, Metric] = Field(default_factory=dict)

    @field_validator("metrics", mode="after")
    @classmethod
    def _freeze_metrics(cls, value: dict[str, Metric]) -> dict[str, Metric]:
        return ReadOnlyDict(value)

    @model_validator(mode="after")
    def _keys_match_names(self) -> "EvaluationResult":
        for key, metric in self.metrics.items():
            if key != metric.name:
                raise ValueError(f"metric stored under {key!r} is named {metric.name!r}")
        return self

    @classmethod
    def from_metrics(cls, *metrics: NumericMetric | StringMetric) -> "EvaluationResult":
        """Build a result from metrics, rejecting duplicate names."""
        by_name: dict[str, NumericMetric | StringMetric] = {}
        for metric in metrics:
            if metric.name in by_name:
                raise ValueError(f"duplicate metric name {metric.name!r}")
            by_name[metric.name] = metric
        return cls(metrics=by_name)

    @classmethod
    def merge(cls, *results: "EvaluationResult") -> "EvaluationResult":
        """Union of several results. Overlapping metric names raise 'ValueError'."""
        return cls.from_metrics(*(m for r in results for m in r.metrics.values()))

    @property
    def names(self) -> list[str]:
        return list(self.metrics)

    def get(self, name: str, metric_type: type[_M] = EvaluationMetric) -> _M:  # type: ignore[assignment]
        """Return the metric called 'name', checking that it is a 'metric_type'.

        Raises:
            KeyError: No metric with that name.
            TypeError: The metric exists but has a different class.
        """
        metric = self.metrics[name]
        if not isinstance(metric, metric_type):
            raise TypeError(f"metric {name!r} is a {type(metric).__name__}, not a {metric_type.__name__}")
        return metric

    def __contains__(self, name: object) -> bool:
        return name in self.metrics

    def __len__(self) -> int:
        return len(self.metrics)
