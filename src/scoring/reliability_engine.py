# src/scoring/reliability_engine.py
# Motor de fiabilidad
# ===================

"""
Combina las subpuntuaciones que entrega el colaborador de análisis en una
etiqueta de fiabilidad para el lector.

El motor es una función pura: no consulta nada externo ni modifica nada. La
decisión es una lista ordenada de reglas donde gana la primera que se cumple:

1. factualidad ``no_determinable`` → no verificable con fuentes internas
2. caso escalado que bordea un umbral → pendiente de revisión
3. trazabilidad baja y clickbait alto sin escalar → posible bulo / alto riesgo
4. score alto → contrastada
5. score medio → poco contrastada
6. resto → fiabilidad baja (posible bulo)

La regla 2 va antes que la 3 para que ``shouldEscalate`` nunca deje pasar la
etiqueta tajante de bulo.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from config.settings import RELIABILITY_CONFIG
from src.contracts import AnalysisModel, FactualityStatus
from src.errors import ScoreRangeError

SCORE_MIN = 0
SCORE_MAX = 100

SCORE_FIELDS = ("score", "bias_score", "traceability_score", "clickbait_score")
REQUIRED_SCORE_FIELDS = ("score", "traceability_score", "clickbait_score")


class ReliabilityLabel(str, Enum):
    NOT_VERIFIABLE = "not_verifiable"
    PENDING_REVIEW = "pending_review"
    HIGH_RISK = "high_risk"
    CORROBORATED = "corroborated"
    WEAKLY_CORROBORATED = "weakly_corroborated"
    POSSIBLE_HOAX = "possible_hoax"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def display(self) -> str:
        """Texto que ve el lector."""
        return _DISPLAY_TEXT[self]


_DESCRIPTIONS = {
    ReliabilityLabel.NOT_VERIFIABLE: "not verifiable with internal sources",
    ReliabilityLabel.PENDING_REVIEW: "pending review",
    ReliabilityLabel.HIGH_RISK: "possible hoax / high risk",
    ReliabilityLabel.CORROBORATED: "corroborated",
    ReliabilityLabel.WEAKLY_CORROBORATED: "weakly corroborated",
    ReliabilityLabel.POSSIBLE_HOAX: "possible hoax",
}

_DISPLAY_TEXT = {
    ReliabilityLabel.NOT_VERIFIABLE: "No verificable con fuentes internas",
    ReliabilityLabel.PENDING_REVIEW: "Pendiente de revisión",
    ReliabilityLabel.HIGH_RISK: "Posible bulo / alto riesgo",
    ReliabilityLabel.CORROBORATED: "Contrastada",
    ReliabilityLabel.WEAKLY_CORROBORATED: "Poco contrastada",
    ReliabilityLabel.POSSIBLE_HOAX: "Fiabilidad baja",
}


@dataclass(frozen=True)
class ReliabilityThresholds:
    high_risk_max_traceability: int = 20
    high_risk_min_clickbait: int = 60
    corroborated_min_score: int = 70
    weakly_corroborated_min_score: int = 40

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]] = None) -> "ReliabilityThresholds":
        values = dict(RELIABILITY_CONFIG if config is None else config)
        return cls(**{name: int(values[name]) for name in cls.__dataclass_fields__ if name in values})


@dataclass(frozen=True)
class ReliabilityInputs:
    """Validated sub-scores for one article.

    ``bias_score`` is informative only and may be absent; the other scores
    are required integers in 0..100.
    """

    score: int
    traceability_score: int
    clickbait_score: int
    factuality_status: FactualityStatus
    should_escalate: bool = False
    bias_score: Optional[int] = None

    def __post_init__(self) -> None:
        for name in SCORE_FIELDS:
            value = getattr(self, name)
            if value is None and name not in REQUIRED_SCORE_FIELDS:
                continue
            _check_score(name, value)
        object.__setattr__(self, "factuality_status", FactualityStatus(self.factuality_status))
        object.__setattr__(self, "should_escalate", bool(self.should_escalate))

    @classmethod
    def from_analysis(cls, analysis: Union[AnalysisModel, Mapping[str, Any]]) -> "ReliabilityInputs":
        """Build inputs from an analysis payload (camelCase or snake_case keys)."""
        if not isinstance(analysis, AnalysisModel):
            analysis = _parse_analysis(analysis)
        return cls(
            score=analysis.score,
            traceability_score=analysis.traceability_score,
            clickbait_score=analysis.clickbait_score,
            factuality_status=analysis.factuality_status,
            should_escalate=analysis.should_escalate,
            bias_score=analysis.bias_score,
        )


def _check_score(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ScoreRangeError(name, value)
    if not SCORE_MIN <= value <= SCORE_MAX:
        raise ScoreRangeError(name, value)


def _parse_analysis(payload: Mapping[str, Any]) -> AnalysisModel:
    # Booleans would be coerced to 0/1 by pydantic; reject them up front.
    for key, value in payload.items():
        if isinstance(value, bool) and key.lower().endswith("score"):
            raise ScoreRangeError(key, value)
    try:
        return AnalysisModel.model_validate(dict(payload))
    except ValidationError as exc:
        error = exc.errors()[0]
        location = str(error["loc"][0]) if error.get("loc") else "analysis"
        if location.lower().endswith("score"):
            raise ScoreRangeError(location, error.get("input")) from exc
        raise ValueError(f"Invalid analysis payload ({location}): {error['msg']}") from exc


Predicate = Callable[[ReliabilityInputs, ReliabilityThresholds], bool]


def _is_high_risk(inputs: ReliabilityInputs, limits: ReliabilityThresholds) -> bool:
    return (
        inputs.traceability_score <= limits.high_risk_max_traceability
        and inputs.clickbait_score >= limits.high_risk_min_clickbait
    )


def _needs_review(inputs: ReliabilityInputs, limits: ReliabilityThresholds) -> bool:
    if not inputs.should_escalate:
        return False
    return _is_high_risk(inputs, limits) or inputs.score < limits.weakly_corroborated_min_score


@dataclass(frozen=True)
class Rule:
    name: str
    label: ReliabilityLabel
    applies: Predicate


RULES: Tuple[Rule, ...] = (
    Rule(
        "factuality_not_determinable",
        ReliabilityLabel.NOT_VERIFIABLE,
        lambda inputs, _: inputs.factuality_status is FactualityStatus.NO_DETERMINABLE,
    ),
    Rule("escalated_for_review", ReliabilityLabel.PENDING_REVIEW, _needs_review),
    Rule(
        "low_traceability_high_clickbait",
        ReliabilityLabel.HIGH_RISK,
        lambda inputs, limits: not inputs.should_escalate and _is_high_risk(inputs, limits),
    ),
    Rule(
        "score_corroborated",
        ReliabilityLabel.CORROBORATED,
        lambda inputs, limits: inputs.score >= limits.corroborated_min_score,
    ),
    Rule(
        "score_weakly_corroborated",
        ReliabilityLabel.WEAKLY_CORROBORATED,
        lambda inputs, limits: inputs.score >= limits.weakly_corroborated_min_score,
    ),
    Rule("score_low", ReliabilityLabel.POSSIBLE_HOAX, lambda inputs, limits: True),
)


@dataclass(frozen=True)
class ReliabilityVerdict:
    label: ReliabilityLabel
    rule: str
    inputs: ReliabilityInputs

    def storage_fields(self) -> Dict[str, Any]:
        """Columns written on the article."""
        return {
            "reliability_score": self.inputs.score,
            "bias_score": self.inputs.bias_score,
            "traceability_score": self.inputs.traceability_score,
            "clickbait_score": self.inputs.clickbait_score,
            "factuality_status": self.inputs.factuality_status.value,
            "should_escalate": self.inputs.should_escalate,
            "reliability_label": self.label.value,
            "reliability_rule": self.rule,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label.value,
            "description": self.label.description,
            "display": self.label.display,
            "rule": self.rule,
            "should_escalate": self.inputs.should_escalate,
            "factuality_status": self.inputs.factuality_status.value,
        }


class ReliabilityEngine:
    """First-match-wins evaluation of ``RULES``."""

    def __init__(
        self,
        thresholds: Optional[ReliabilityThresholds] = None,
        rules: Tuple[Rule, ...] = RULES,
    ) -> None:
        self.thresholds = thresholds or ReliabilityThresholds.from_config()
        self.rules = rules

    def assess(
        self, inputs: Union[ReliabilityInputs, AnalysisModel, Mapping[str, Any]]
    ) -> ReliabilityVerdict:
        if not isinstance(inputs, ReliabilityInputs):
            inputs = ReliabilityInputs.from_analysis(inputs)
        for rule in self.rules:
            if rule.applies(inputs, self.thresholds):
                return ReliabilityVerdict(label=rule.label, rule=rule.name, inputs=inputs)
        raise LookupError("No reliability rule matched")  # unreachable with RULES

    def label_for(self, inputs: Union[ReliabilityInputs, Mapping[str, Any]]) -> ReliabilityLabel:
        return self.assess(inputs).label
