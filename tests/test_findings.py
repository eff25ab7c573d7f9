"""Tests for gap report and synthesis models."""
from reason_search.models.findings import FollowUp, GapReport, Limitation


class TestLimitation:
    def test_fractional_severity_is_rounded(self):
        report = GapReport.model_validate(
            {"limitations": [{"type": "coverage", "description": "thin", "severity": 5.5}]}
        )
        assert report.limitations[0].severity == 6

    def test_severity_is_clamped_into_range(self):
        assert Limitation(type="t", description="d", severity=1).severity == 2
        assert Limitation(type="t", description="d", severity=12.4).severity == 10

    def test_confidence_spans_zero_to_one(self):
        assert Limitation(type="t", description="d", severity=2).confidence == 1.0
        assert Limitation(type="t", description="d", severity=10).confidence == 0.0
        assert Limitation(type="t", description="d", severity=4).confidence == 0.75


class TestFollowUp:
    def test_fractional_priority_is_rounded(self):
        report = GapReport.model_validate(
            {"recommended_followup": [{"action": "a", "rationale": "r", "priority": 3.6}]}
        )
        assert report.recommended_followup[0].priority == 4

    def test_priority_is_clamped_into_range(self):
        assert FollowUp(action="a", rationale="r", priority=0).priority == 2
        assert FollowUp(action="a", rationale="r", priority=42).priority == 10
