"""Stage 3 — One-shot repair of a full analysis that failed schema validation."""

import logging

from errors import MalformedResponseError, RepairFailedError
from models import RealityDebugReport
from stages import gemini
from stages.validate import check_report

logger = logging.getLogger(__name__)

REPAIR_PROMPT_SUFFIX = """

IMPORTANT: The previous response did not match the schema.
Please return ONLY valid JSON that exactly matches the provided schema.
- Fix any type mismatches (e.g., strings where numbers are required)
- Ensure all enum values are correct
- Remove any extra keys not in the schema
- Ensure all required fields are present
- Ensure arrays meet minimum length requirements
- Do not include markdown formatting, code blocks, or any text outside the JSON object."""


def build_repair_prompt(expectation_text: str, failure_reason: str) -> str:
    return f"{gemini.build_full_prompt(expectation_text)}{REPAIR_PROMPT_SUFFIX}\n\nPrevious error: {failure_reason}"


def repair_report(video_path: str, expectation_text: str, failure_reason: str) -> RealityDebugReport:
    """Re-run the full analysis once with a repair directive and re-validate.

    Exactly one extra generation call is made. If its output is still not
    parseable or still fails validation, RepairFailedError is raised; there is
    no second retry.
    """
    logger.warning("Attempting repair after schema mismatch: %s", failure_reason)
    prompt = build_repair_prompt(expectation_text, failure_reason)

    try:
        raw = gemini.generate_report(video_path, prompt, gemini.get_analyze_model())
    except MalformedResponseError as e:
        raise RepairFailedError(failure_reason, str(e)) from e

    result = check_report(raw)
    if not result.ok:
        logger.warning("Repaired response still invalid: %s", result.reason)
        raise RepairFailedError(failure_reason, f"Repaired response still does not match schema: {result.reason}")

    logger.info("Repair succeeded")
    return result.report
