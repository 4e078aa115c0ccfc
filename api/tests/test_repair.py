"""Tests for the validate → repair flow of full and segment analysis."""

import json
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from errors import MalformedResponseError, RepairFailedError, SchemaMismatchError
from models import RealityDebugReport
from pipeline import run_analysis, run_segment_analysis
from stages.repair import REPAIR_PROMPT_SUFFIX

FIXTURE = os.path.join(os.path.dirname(__file__), "..", "fixtures", "report.json")


class _FakeModel:
    def __init__(self, *replies: str):
        self.replies = list(replies)
        self.calls: list[dict] = []

    def __call__(self, model_name, user_prompt, video_bytes, mime_type):
        self.calls.append({"model_name": model_name, "user_prompt": user_prompt})
        return self.replies.pop(0)


def _report() -> dict:
    with open(FIXTURE) as f:
        return json.load(f)


def _valid() -> str:
    return json.dumps(_report())


def _two_counterfactuals() -> str:
    report = _report()
    report["counterfactuals"] = report["counterfactuals"][:2]
    return json.dumps(report)


def _bad_evidence_type() -> str:
    report = _report()
    report["observations"][0]["evidence_type"] = "smell"
    return json.dumps(report)


@pytest.fixture
def video(tmp_path, monkeypatch):
    monkeypatch.delenv("MOCK_MODE", raising=False)
    monkeypatch.delenv("GEMINI_ANALYZE_MODEL", raising=False)
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"fake video content")
    return str(path)


class TestFullAnalysis:
    def test_valid_first_response_makes_one_call(self, video, monkeypatch):
        fake = _FakeModel(_valid())
        monkeypatch.setattr("stages.gemini._call_model", fake)

        report = run_analysis(video, "Cake should rise evenly")

        assert isinstance(report, RealityDebugReport)
        assert len(fake.calls) == 1

    def test_invalid_then_valid_repairs_with_one_extra_call(self, video, monkeypatch):
        fake = _FakeModel(_two_counterfactuals(), _valid())
        monkeypatch.setattr("stages.gemini._call_model", fake)

        report = run_analysis(video, "Cake should rise evenly")

        assert len(report.counterfactuals) == 3
        assert len(fake.calls) == 2
        repair_prompt = fake.calls[1]["user_prompt"]
        assert REPAIR_PROMPT_SUFFIX in repair_prompt
        assert "Cake should rise evenly" in repair_prompt
        assert "Previous error: counterfactuals: List should have at least 3 items" in repair_prompt
        assert fake.calls[1]["model_name"] == fake.calls[0]["model_name"]

    def test_invalid_twice_fails_terminally(self, video, monkeypatch):
        fake = _FakeModel(_two_counterfactuals(), _bad_evidence_type(), _valid())
        monkeypatch.setattr("stages.gemini._call_model", fake)

        with pytest.raises(RepairFailedError) as exc_info:
            run_analysis(video, "Cake should rise evenly")

        assert len(fake.calls) == 2
        assert "counterfactuals" in exc_info.value.original_reason
        assert "observations[0].evidence_type" in exc_info.value.repair_reason

    def test_malformed_repair_response_fails_terminally(self, video, monkeypatch):
        fake = _FakeModel(_two_counterfactuals(), "I could not produce JSON")
        monkeypatch.setattr("stages.gemini._call_model", fake)

        with pytest.raises(RepairFailedError) as exc_info:
            run_analysis(video, "Cake should rise evenly")

        assert len(fake.calls) == 2
        assert "I could not produce JSON" in exc_info.value.repair_reason

    def test_malformed_first_response_is_not_repaired(self, video, monkeypatch):
        fake = _FakeModel("```\nnot json", _valid())
        monkeypatch.setattr("stages.gemini._call_model", fake)

        with pytest.raises(MalformedResponseError):
            run_analysis(video, "Cake should rise evenly")

        assert len(fake.calls) == 1


class TestSegmentAnalysis:
    def test_valid_segment_response(self, video, monkeypatch):
        fake = _FakeModel(_valid())
        monkeypatch.setattr("stages.gemini._call_model", fake)

        report = run_segment_analysis(video, "Cake should rise evenly", 2.0, 5.0)

        assert isinstance(report, RealityDebugReport)
        assert len(fake.calls) == 1

    def test_schema_mismatch_is_never_repaired(self, video, monkeypatch):
        fake = _FakeModel(_two_counterfactuals(), _valid())
        monkeypatch.setattr("stages.gemini._call_model", fake)

        with pytest.raises(SchemaMismatchError) as exc_info:
            run_segment_analysis(video, "Cake should rise evenly", 2.0, 5.0)

        assert len(fake.calls) == 1
        assert "counterfactuals" in exc_info.value.reason
