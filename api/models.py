"""Reality Debugger — Pydantic data models."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from report_schema import (
    MAX_ROOT_CAUSE_STEPS,
    MIN_OBSERVATIONS,
    MIN_ROOT_CAUSE_STEPS,
    MIN_TIMELINE_ENTRIES,
    NUM_COUNTERFACTUALS,
)

EvidenceType = Literal["visual", "audio", "text_log", "user_text"]


class Scenario(BaseModel):
    """What kind of failure the report is about."""

    domain: Literal["cooking_failure"]
    failure_summary: str = Field(description="1 sentence summary of what went wrong")


class Observation(BaseModel):
    """A timestamped piece of evidence extracted from the media."""

    t_start_sec: float
    t_end_sec: float
    observation: str = Field(description="Concrete, visible/audible observation")
    evidence_type: EvidenceType
    confidence: float = Field(description="Confidence score, nominally 0..1 (not enforced)")


class RootCauseStep(BaseModel):
    """One link of the causal chain, tied back to observations by index."""

    step: int
    cause: str
    mechanism: str = Field(description="How this cause leads to the next step")
    linked_observation_indices: list[int] = Field(min_length=1)
    confidence: float


class Counterfactual(BaseModel):
    change: str = Field(description="Single controlled change")
    predicted_outcome_change: str
    why_it_changes: str
    confidence: float


class MinimalIntervention(BaseModel):
    action: str = Field(description="Smallest viable fix")
    why_this_is_minimal: str
    expected_effect: str
    risk_tradeoffs: str


class TimelineEntry(BaseModel):
    """Expected vs. observed state at a point in time."""

    t_sec: float
    expected_state: str
    observed_state: str
    divergence_score: float = Field(description="Divergence score, nominally 0..1 (not enforced)")
    notes: str


class RealityDebugReport(BaseModel):
    """The structured causal-analysis report returned by /analyze and /segmentAnalyze."""

    scenario: Scenario
    observations: list[Observation] = Field(min_length=MIN_OBSERVATIONS)
    root_cause_chain: list[RootCauseStep] = Field(
        min_length=MIN_ROOT_CAUSE_STEPS, max_length=MAX_ROOT_CAUSE_STEPS
    )
    counterfactuals: list[Counterfactual] = Field(
        min_length=NUM_COUNTERFACTUALS, max_length=NUM_COUNTERFACTUALS
    )
    minimal_intervention: MinimalIntervention
    timeline: list[TimelineEntry] = Field(min_length=MIN_TIMELINE_ENTRIES)


class UploadResponse(BaseModel):
    """Response from POST /upload."""

    model_config = ConfigDict(populate_by_name=True)

    file_id: str = Field(alias="fileId")
    file_name: str = Field(alias="fileName")
    duration: float = Field(description="Placeholder; not measured server-side")


class AnalyzeRequest(BaseModel):
    """Body of POST /analyze. Presence and length are checked by the handler."""

    model_config = ConfigDict(populate_by_name=True)

    file_id: Optional[str] = Field(default=None, alias="fileId")
    expectation_text: Optional[str] = Field(default=None, alias="expectationText")


class SegmentAnalyzeRequest(AnalyzeRequest):
    """Body of POST /segmentAnalyze."""

    t_start: Optional[float] = Field(default=None, alias="tStart", strict=True)
    t_end: Optional[float] = Field(default=None, alias="tEnd", strict=True)
