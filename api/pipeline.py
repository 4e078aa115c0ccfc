"""Reality Debugger — Pipeline orchestrator.

Full analysis:    Gemini (pro) → validate → [repair once] → report
Segment analysis: Gemini (flash) → validate → report (no repair)
"""

import logging

from errors import SchemaMismatchError
from models import RealityDebugReport
from stages import gemini
from stages.repair import repair_report
from stages.validate import check_report

logger = logging.getLogger(__name__)


def run_analysis(video_path: str, expectation_text: str) -> RealityDebugReport:
    """Run a full analysis, repairing once if the response does not match the schema.

    Raises:
        MalformedResponseError: first response is not JSON (no repair).
        RepairFailedError: repair response is still unusable.
        ModelCallError / MissingApiKeyError: from the Gemini call.
    """
    logger.info("Stage 1: Full analysis of %s", video_path)
    raw = gemini.analyze_video(video_path, expectation_text)

    logger.info("Stage 2: Validating report")
    result = check_report(raw)
    if result.ok:
        return result.report

    logger.warning("Invalid report structure: %s", result.reason)
    logger.info("Stage 3: Repair")
    return repair_report(video_path, expectation_text, result.reason)


def run_segment_analysis(
    video_path: str,
    expectation_text: str,
    t_start: float,
    t_end: float,
) -> RealityDebugReport:
    """Re-analyze the [t_start, t_end] window. The result replaces the previous report.

    Raises:
        SchemaMismatchError: response does not match the schema (never repaired).
    """
    logger.info("Stage 1: Segment analysis of %s [%.2fs, %.2fs]", video_path, t_start, t_end)
    raw = gemini.analyze_segment(video_path, expectation_text, t_start, t_end)

    logger.info("Stage 2: Validating segment report")
    result = check_report(raw)
    if not result.ok:
        logger.warning("Invalid segment report structure: %s", result.reason)
        raise SchemaMismatchError(result.reason)

    return result.report
