"""Stage 2 — Validation of a parsed model response against the report models."""

from typing import Any, NamedTuple, Optional

from pydantic import ValidationError

from models import RealityDebugReport


class ValidationResult(NamedTuple):
    ok: bool
    reason: Optional[str] = None
    report: Optional[RealityDebugReport] = None


def _format_loc(loc: tuple) -> str:
    """('observations', 3, 'evidence_type') -> 'observations[3].evidence_type'"""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or "report"


def check_report(value: Any) -> ValidationResult:
    """Check an already-parsed value against RealityDebugReport in strict mode.

    Strict mode keeps JSON types honest: no str -> number coercion, and
    booleans are never numbers. Score ranges and extra keys are not checked.
    Only the first error is reported, in field declaration order.
    """
    try:
        report = RealityDebugReport.model_validate(value, strict=True)
    except ValidationError as e:
        first = e.errors()[0]
        return ValidationResult(ok=False, reason=f"{_format_loc(first['loc'])}: {first['msg']}")
    return ValidationResult(ok=True, report=report)


def is_valid_report(value: Any) -> bool:
    """Boolean verdict for ``check_report``."""
    return check_report(value).ok
