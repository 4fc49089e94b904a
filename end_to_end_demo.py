"""
End-to-End Pipeline Demo

Walks one batch of signals through every layer with a fixed clock:
Normalization -> Trend assessment -> Qualification -> Moment memory
-> Lifecycle re-evaluation (healthy, thin, drifted, empty windows)
"""

import json
from datetime import datetime, timezone

from moment_engine.engine import EngineConfig, MomentIntelligenceEngine
from moment_engine.normalization import (
    parse_candidates,
    parse_clusters,
    parse_signal_context,
)
from moment_engine.temporal import LogicalClock


NOW = datetime(2026, 3, 14, 18, 0, tzinfo=timezone.utc)

CLUSTERS = [
    {
        "id": "cluster_desk_bound",
        "key": "desk-bound",
        "label": "Desk-bound summer",
        "description": "Office workers sharing how they fake a summer from their desks",
        "category": "Work culture",
        "signals": [
            {"id": "r1", "source": "reddit", "label": "fake summer desk", "score": 240,
             "timestamp": "2026-03-14T12:10:00Z", "volume": 900,
             "tags": ["subreddit:antiwork", "market:US", "format:shorts"]},
            {"id": "r2", "source": "reddit", "label": "desk beach setup", "score": 210,
             "timestamp": "2026-03-14T15:40:00Z", "volume": 450,
             "tags": ["subreddit:workreform", "market:UK"]},
            {"id": "h1", "source": "hn", "label": "remote summer", "score": 180,
             "timestamp": "2026-03-14T16:05:00Z", "volume": 120, "tags": []},
            {"id": "bad", "source": "hn", "label": "unparseable", "score": 90,
             "timestamp": "not-a-date"},
        ],
    },
]

CANDIDATES = [
    {
        "id": "m_desk_bound_summer",
        "title": "Office workers fake a summer vacation from their desks",
        "keywords": ["summer", "desk", "office", "vacation"],
        "signals": [
            {"id": "s1", "source": "reddit", "createdAt": "2026-03-14T15:05:00Z",
             "title": "Office workers fake summer vacation from desks",
             "entities": ["Slack"]},
            {"id": "s2", "source": "hackernews", "createdAt": "2026-03-14T15:40:00Z",
             "title": "Office workers fake a summer vacation at their desks"},
            {"id": "s3", "source": "tiktok", "createdAt": "2026-03-14T16:20:00Z",
             "title": "Desk summer vacation: office workers fake it"},
            {"id": "s4", "source": "instagram", "createdAt": "2026-03-14T17:10:00Z",
             "title": "Office summer vacation faked from desks"},
            {"id": "s5", "source": "reddit", "createdAt": "2026-03-14T17:45:00Z",
             "title": "Fake summer vacation for office workers at desks"},
        ],
    },
    {
        "id": "m_desk_bound_summer_dup",
        "title": "Summer vacation desk office trend",
        "keywords": ["summer", "desk", "office", "vacation"],
        "signals": [
            {"id": "s6", "source": "youtube", "createdAt": "2026-03-14T17:30:00Z",
             "title": "Office desk summer vacation trend explained"},
        ],
    },
]

WINDOWS = {
    "healthy": {
        "windowLabel": "last 24h",
        "signals": [
            {"source": "reddit", "text": "office summer still going",
             "keywords": ["summer", "office"], "entities": ["Slack"]},
            {"source": "hn", "text": "desk vacation thread",
             "keywords": ["desk", "vacation"], "entities": []},
            {"source": "tiktok", "text": "fake summer at my desk",
             "keywords": ["summer", "desk"], "entities": ["Slack"]},
        ],
    },
    "thin": {
        "windowLabel": "last 24h",
        "signals": [
            {"source": "reddit", "text": "summer desk", "keywords": ["summer", "desk"]},
        ],
    },
    "drifted": {
        "windowLabel": "last 24h",
        "signals": [
            {"source": "reddit", "text": "crypto rally", "keywords": ["bitcoin", "etf"]},
            {"source": "hn", "text": "etf approval", "keywords": ["etf", "sec"]},
            {"source": "x", "text": "halving soon", "keywords": ["halving"]},
        ],
    },
    "empty": {"windowLabel": "last 24h", "signals": []},
}


def banner(title: str):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def main():
    engine = MomentIntelligenceEngine(EngineConfig(max_workers=2), clock=LogicalClock.fixed(NOW))

    banner("LAYER 1: TREND ASSESSMENT (presentation only)")
    clusters = parse_clusters(CLUSTERS, NOW)
    for assessment in engine.assess_clusters(clusters.value):
        print(json.dumps(assessment.to_dict(), indent=2, ensure_ascii=False))

    banner("LAYER 2: QUALIFICATION")
    candidates = parse_candidates(CANDIDATES, NOW)
    outcomes = engine.qualify_candidates(candidates.value)
    for outcome in outcomes:
        q = outcome.qualification
        print(f"{outcome.candidate.id}: pass={q.passed} overall={q.score.overall:.3f}")
        print(f"  merged: {list(outcome.candidate.collapsed_from_ids)}")
        if q.reasons:
            print(f"  reasons: {', '.join(q.reasons)}")
        if outcome.record:
            print(f"  hash: {outcome.record.qualification_hash[:16]}...")

    moment_ids = [o.record.moment_id for o in outcomes if o.record]
    if not moment_ids:
        print("No candidate qualified; nothing to evaluate.")
        return

    banner("LAYER 3: LIFECYCLE RE-EVALUATION")
    moment_id = moment_ids[0]
    for name, window in WINDOWS.items():
        context = parse_signal_context(window, NOW).value
        health = engine.evaluate_moment(moment_id, context).value
        record = engine.store.get(moment_id)
        reason = health.invalid_reason.value if health.invalid_reason else "-"
        print(f"[{name}] {health.state.value} ({reason}) SIS={health.sis} ICS={health.ics} "
              f"status={record.lifecycle_status.value}")
        for line in health.explain.signal + health.explain.identity:
            print(f"    {line}")

    banner("AUDIT REPORT")
    print(json.dumps(engine.get_audit_report(), indent=2))


if __name__ == "__main__":
    main()
