"""Contracts for analysis sub-scores handed to the reliability engine."""

from __future__ import annotations

from enum import Enum
from typing import Optional, TypedDict

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class FactualityStatus(str, Enum):
    VERIFIED = "verified"
    PLAUSIBLE_BUT_UNVERIFIED = "plausible_but_unverified"
    NO_DETERMINABLE = "no_determinable"


class AnalysisPayload(TypedDict, total=False):
    """Sub-scores as delivered by the analysis collaborator (camelCase keys)."""

    score: int
    reliabilityScore: int
    biasScore: int
    traceabilityScore: int
    clickbaitScore: int
    factualityStatus: str
    shouldEscalate: bool


class AnalysisModel(BaseModel):
    """Parsed analysis payload.

    Range checks live in the reliability engine, which raises
    ``ScoreRangeError``; this model only maps names and types.
    """

    score: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("score", "reliabilityScore", "reliability_score")
    )
    bias_score: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("biasScore", "bias_score")
    )
    traceability_score: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("traceabilityScore", "traceability_score"),
    )
    clickbait_score: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("clickbaitScore", "clickbait_score")
    )
    factuality_status: FactualityStatus = Field(
        validation_alias=AliasChoices("factualityStatus", "factuality_status")
    )
    should_escalate: bool = Field(
        default=False, validation_alias=AliasChoices("shouldEscalate", "should_escalate")
    )

    model_config = ConfigDict(extra="ignore", frozen=True)
