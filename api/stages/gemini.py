"""Stage 1 — Gemini calls for full-video and segment-scoped analysis."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from errors import MalformedResponseError, MissingApiKeyError, ModelCallError
from report_schema import REPORT_SCHEMA

logger = logging.getLogger(__name__)

FIXTURES_DIR = Path(__file__).resolve().parent.parent / "fixtures"

DEFAULT_ANALYZE_MODEL = "gemini-3-pro-preview"
DEFAULT_SEGMENT_MODEL = "gemini-3-flash-preview"

VIDEO_MIME_TYPES = {
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".m4v": "video/x-m4v",
}

SYSTEM_PROMPT = """\
You are Reality Debugger, a multimodal failure-investigation engine.
Goal: determine WHY a real-world failure happened (causal chain), not just WHAT happened.

Non-negotiables:
- Use evidence grounded in the provided media and user expectations.
- Provide timestamped observations and link every causal step to evidence.
- Produce non-generic, domain-specific reasoning.
- If uncertain, state uncertainty AND list what evidence is missing.
- Do not moralize. Do not be inspirational. Be concise and technical.

Output must EXACTLY match the provided JSON schema.
No markdown. No extra keys. No commentary.
"""

FULL_ANALYSIS_PROMPT_TEMPLATE = """\
Expectation (what should have happened):
{{EXPECTATION_TEXT}}

Task:
1) Extract timestamped observations from the media.
2) Propose multiple plausible causes, then prune to the most likely root cause chain.
3) Provide exactly 3 counterfactuals.
4) Provide the minimal intervention (smallest fix).
5) Build an expectation-vs-reality timeline with divergence scores.

Guardrails:
- Every root_cause_chain step must reference linked_observation_indices.
- If you cannot see key evidence in the video/audio, say so in observations and lower confidence.
- Avoid generic advice; tie claims to observed evidence.
Return ONLY valid JSON per schema."""

SEGMENT_ANALYSIS_PROMPT_TEMPLATE = """\
We are re-checking ONLY this time window:
t_start_sec={{T_START}}
t_end_sec={{T_END}}

Given the same expectation:
{{EXPECTATION_TEXT}}

Task:
- Update observations relevant to this segment.
- Update the timeline entries that fall within [t_start_sec, t_end_sec].
- If this segment changes the most likely root cause chain, reflect it, otherwise keep it consistent.

Return ONLY JSON that matches the SAME schema.
(If fields are unchanged, repeat them exactly; do not omit required fields.)"""


def _is_mock_mode() -> bool:
    return os.environ.get("MOCK_MODE", "").strip().lower() in ("1", "true", "yes", "on")


def get_analyze_model() -> str:
    return os.environ.get("GEMINI_ANALYZE_MODEL", "").strip() or DEFAULT_ANALYZE_MODEL


def get_segment_model() -> str:
    return os.environ.get("GEMINI_SEGMENT_MODEL", "").strip() or DEFAULT_SEGMENT_MODEL


def _video_mime(path: Path) -> str:
    return VIDEO_MIME_TYPES.get(path.suffix.lower(), "video/mp4")


def _format_seconds(value: float) -> str:
    # 5.0 -> "5", 2.5 -> "2.5"
    return f"{value:g}"


def build_full_prompt(expectation_text: str) -> str:
    return FULL_ANALYSIS_PROMPT_TEMPLATE.replace("{{EXPECTATION_TEXT}}", expectation_text)


def build_segment_prompt(expectation_text: str, t_start: float, t_end: float) -> str:
    return (
        SEGMENT_ANALYSIS_PROMPT_TEMPLATE
        .replace("{{T_START}}", _format_seconds(t_start))
        .replace("{{T_END}}", _format_seconds(t_end))
        .replace("{{EXPECTATION_TEXT}}", expectation_text)
    )


def _mock_report() -> dict:
    """Return the canned report from fixtures/report.json."""
    with open(FIXTURES_DIR / "report.json") as f:
        return json.load(f)


def _parse_report_json(text: str) -> Any:
    """Parse model response text as JSON.

    Raises MalformedResponseError if the text is not valid JSON.
    """
    # Strip markdown fences if present
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = [line for line in cleaned.split("\n") if not line.strip().startswith("```")]
        cleaned = "\n".join(lines)

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(str(e), text) from e


def _call_model(model_name: str, user_prompt: str, video_bytes: bytes, mime_type: str) -> str:
    """Send media + prompt to Gemini with the report schema as constraint. Returns raw text."""
    from google import genai
    from google.genai import errors as genai_errors
    from google.genai import types

    api_key = os.environ.get("GEMINI_API_KEY", "").strip()
    if not api_key:
        raise MissingApiKeyError()

    client = genai.Client(api_key=api_key)
    config = types.GenerateContentConfig(
        system_instruction=SYSTEM_PROMPT,
        response_mime_type="application/json",
        response_json_schema=REPORT_SCHEMA,
    )
    contents = [
        types.Part.from_bytes(data=video_bytes, mime_type=mime_type),
        types.Part.from_text(text=user_prompt),
    ]

    try:
        response = client.models.generate_content(
            model=model_name,
            contents=contents,
            config=config,
        )
    except genai_errors.APIError as e:
        raise ModelCallError(f"Gemini request failed: {e}") from e

    return response.text or ""


def generate_report(video_path: str, user_prompt: str, model_name: str) -> Any:
    """Run one generation call over the whole video and return the parsed JSON.

    The result is NOT validated against the schema; callers do that.
    """
    if _is_mock_mode():
        logger.info("MOCK_MODE — returning fixture report instead of calling %s", model_name)
        return _mock_report()

    path = Path(video_path)
    video_bytes = path.read_bytes()
    mime_type = _video_mime(path)

    logger.info("Calling %s with %s (%d bytes, %s)", model_name, path.name, len(video_bytes), mime_type)
    text = _call_model(model_name, user_prompt, video_bytes, mime_type)
    logger.info("Got %d chars from %s", len(text), model_name)

    return _parse_report_json(text)


def analyze_video(video_path: str, expectation_text: str) -> Any:
    """Full analysis on the high-fidelity model tier."""
    return generate_report(video_path, build_full_prompt(expectation_text), get_analyze_model())


def analyze_segment(video_path: str, expectation_text: str, t_start: float, t_end: float) -> Any:
    """Segment re-analysis on the fast model tier.

    The whole video is still sent; the window only exists in the prompt.
    """
    prompt = build_segment_prompt(expectation_text, t_start, t_end)
    return generate_report(video_path, prompt, get_segment_model())
