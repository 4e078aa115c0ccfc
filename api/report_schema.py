"""Reality Debugger — JSON schema for the structured analysis report.

This dict is handed to Gemini as the generation constraint and is also what
the validator walks, so both always agree on field lists, bounds and enums.
"""

DOMAINS: list[str] = ["cooking_failure"]
EVIDENCE_TYPES: list[str] = ["visual", "audio", "text_log", "user_text"]

MIN_OBSERVATIONS = 5
MIN_ROOT_CAUSE_STEPS = 4
MAX_ROOT_CAUSE_STEPS = 10
NUM_COUNTERFACTUALS = 3
MIN_TIMELINE_ENTRIES = 6

TOP_LEVEL_FIELDS: list[str] = [
    "scenario",
    "observations",
    "root_cause_chain",
    "counterfactuals",
    "minimal_intervention",
    "timeline",
]

_SCORE = {"type": "number", "minimum": 0, "maximum": 1}

SCENARIO_SCHEMA: dict = {
    "type": "object",
    "additionalProperties": False,
    "required": ["domain", "failure_summary"],
    "properties": {
        "domain": {"type": "string", "enum": DOMAINS},
        "failure_summary": {"type": "string", "description": "1 sentence summary of what went wrong."},
    },
}

OBSERVATION_SCHEMA: dict = {
    "type": "object",
    "additionalProperties": False,
    "required": ["t_start_sec", "t_end_sec", "observation", "evidence_type", "confidence"],
    "properties": {
        "t_start_sec": {"type": "number"},
        "t_end_sec": {"type": "number"},
        "observation": {
            "type": "string",
            "description": "Concrete, visible/audible observation. No speculation.",
        },
        "evidence_type": {"type": "string", "enum": EVIDENCE_TYPES},
        "confidence": _SCORE,
    },
}

ROOT_CAUSE_STEP_SCHEMA: dict = {
    "type": "object",
    "additionalProperties": False,
    "required": ["step", "cause", "mechanism", "linked_observation_indices", "confidence"],
    "properties": {
        "step": {"type": "integer", "minimum": 1},
        "cause": {"type": "string"},
        "mechanism": {
            "type": "string",
            "description": "How this cause leads to the next step; must be specific.",
        },
        "linked_observation_indices": {
            "type": "array",
            "minItems": 1,
            "items": {"type": "integer", "minimum": 0},
        },
        "confidence": _SCORE,
    },
}

COUNTERFACTUAL_SCHEMA: dict = {
    "type": "object",
    "additionalProperties": False,
    "required": ["change", "predicted_outcome_change", "why_it_changes", "confidence"],
    "properties": {
        "change": {"type": "string", "description": "Single controlled change."},
        "predicted_outcome_change": {"type": "string", "description": "What would differ in the outcome."},
        "why_it_changes": {"type": "string", "description": "Causal explanation, not generic."},
        "confidence": _SCORE,
    },
}

MINIMAL_INTERVENTION_SCHEMA: dict = {
    "type": "object",
    "additionalProperties": False,
    "required": ["action", "why_this_is_minimal", "expected_effect", "risk_tradeoffs"],
    "properties": {
        "action": {"type": "string", "description": "Smallest viable fix."},
        "why_this_is_minimal": {"type": "string"},
        "expected_effect": {"type": "string"},
        "risk_tradeoffs": {"type": "string"},
    },
}

TIMELINE_ENTRY_SCHEMA: dict = {
    "type": "object",
    "additionalProperties": False,
    "required": ["t_sec", "expected_state", "observed_state", "divergence_score", "notes"],
    "properties": {
        "t_sec": {"type": "number"},
        "expected_state": {"type": "string"},
        "observed_state": {"type": "string"},
        "divergence_score": _SCORE,
        "notes": {"type": "string"},
    },
}

REPORT_SCHEMA: dict = {
    "type": "object",
    "additionalProperties": False,
    "required": TOP_LEVEL_FIELDS,
    "properties": {
        "scenario": SCENARIO_SCHEMA,
        "observations": {
            "type": "array",
            "minItems": MIN_OBSERVATIONS,
            "items": OBSERVATION_SCHEMA,
        },
        "root_cause_chain": {
            "type": "array",
            "minItems": MIN_ROOT_CAUSE_STEPS,
            "maxItems": MAX_ROOT_CAUSE_STEPS,
            "items": ROOT_CAUSE_STEP_SCHEMA,
        },
        "counterfactuals": {
            "type": "array",
            "minItems": NUM_COUNTERFACTUALS,
            "maxItems": NUM_COUNTERFACTUALS,
            "items": COUNTERFACTUAL_SCHEMA,
        },
        "minimal_intervention": MINIMAL_INTERVENTION_SCHEMA,
        "timeline": {
            "type": "array",
            "minItems": MIN_TIMELINE_ENTRIES,
            "items": TIMELINE_ENTRY_SCHEMA,
        },
    },
}
