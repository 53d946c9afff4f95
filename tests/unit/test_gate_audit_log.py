"""
Unit tests for GateAuditLog.

Tests:
- Bounded buffer eviction (oldest dropped first)
- Newest-first listing and limit clamping
- Visibility/source filters
- Statistics and clearing
"""

import pytest

from intel_engine.gate import MAX_LOG_ENTRIES, GateAuditLog
from intel_engine.types import GateVisibility, QualityGateScores

SCORES = QualityGateScores(
    actionability=50, timeliness=50, reliability=50, relevance=50, helpfulness=20,
)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def log():
    return GateAuditLog()


def record(log, source="headlines", visibility=GateVisibility.HIDDEN, score=40.0):
    return log.record(
        source=source,
        visibility=visibility,
        weighted_score=score,
        blockers=["helpfulness_low"],
        scores=SCORES,
    )


# ============================================================================
# Capacity
# ============================================================================

def test_default_capacity(log):
    assert log.max_size == MAX_LOG_ENTRIES == 500


def test_oldest_evicted_after_capacity(log):
    for i in range(501):
        record(log, source=f"src-{i}")

    entries = log.list(limit=1000)
    assert len(log) == 500
    assert len(entries) == 500
    assert entries[0].source == "src-500"
    assert entries[-1].source == "src-1"
    assert all(e.source != "src-0" for e in entries)


def test_stats_report_full_buffer():
    small = GateAuditLog(max_size=3)
    for _ in range(5):
        record(small)

    stats = small.get_stats()
    assert stats["total_entries"] == 3
    assert stats["total_recorded"] == 5
    assert stats["buffer_full"] is True


# ============================================================================
# Listing
# ============================================================================

def test_newest_first(log):
    record(log, source="first")
    record(log, source="second")
    assert [e.source for e in log.list()] == ["second", "first"]


def test_limit(log):
    for _ in range(30):
        record(log)
    assert len(log.list(limit=10)) == 10
    assert len(log.list()) == 30


@pytest.mark.parametrize("limit, expected", [(0, 1), (-5, 1), ("abc", 50), (None, 50)])
def test_limit_sanitized(log, limit, expected):
    for _ in range(60):
        record(log)
    assert len(log.list(limit=limit)) == expected


def test_filter_by_visibility(log):
    record(log, visibility=GateVisibility.HIDDEN)
    record(log, visibility="low_impact")
    record(log, visibility=GateVisibility.LOW_IMPACT)

    low_impact = log.list(visibility="low_impact")
    assert len(low_impact) == 2
    assert all(e.visibility == GateVisibility.LOW_IMPACT for e in low_impact)
    assert len(log.list(visibility=GateVisibility.HIDDEN)) == 1


def test_filter_by_source(log):
    record(log, source="flow")
    record(log, source="events")
    assert [e.source for e in log.list(source="flow")] == ["flow"]


def test_listing_does_not_expose_buffer(log):
    record(log)
    entries = log.list()
    entries.clear()
    assert len(log.list()) == 1


def test_entry_fields(log):
    entry = record(log, score=42.5)

    assert entry.id.startswith("gate-")
    assert entry.weighted_score == 42.5
    assert entry.blockers == ("helpfulness_low",)
    data = entry.to_dict()
    assert data["visibility"] == "hidden"
    assert data["scores"]["helpfulness"] == 20
    assert isinstance(data["created_at"], str)


def test_ids_unique(log):
    ids = {record(log).id for _ in range(50)}
    assert len(ids) == 50


# ============================================================================
# Stats and Clear
# ============================================================================

def test_stats_by_visibility(log):
    record(log, visibility="hidden")
    record(log, visibility="hidden")
    record(log, visibility="low_impact")

    stats = log.get_stats()
    assert stats["by_visibility"] == {"full": 0, "low_impact": 1, "hidden": 2}
    assert stats["buffer_full"] is False


def test_clear(log):
    for _ in range(5):
        record(log)
    log.clear()

    assert log.list() == []
    assert log.get_stats()["total_entries"] == 0
    assert log.get_stats()["total_recorded"] == 5
