"""
Normalization Layer Tests

Untrusted payloads in, frozen contracts or error data out.
"""

import pytest

from moment_engine.contracts.base import ErrorCode
from moment_engine.contracts.signals import MomentSignalContext, SignalCluster
from moment_engine.normalization import (
    parse_candidates,
    parse_clusters,
    parse_signal_context,
)

from tests.fixtures import NOW


CLUSTER_PAYLOAD = {
    "id": "cluster_001",
    "label": "Desk-bound summer",
    "description": "Office workers faking a summer",
    "category": "Work culture",
    "signals": [
        {"id": "r1", "source": "reddit", "score": 120, "timestamp": "2026-03-14T12:00:00Z",
         "tags": ["subreddit:antiwork", 7, ""]},
        {"id": "h1", "source": "hn", "score": 80, "timestamp": "not-a-date"},
    ],
}


class TestParseClusters:

    def test_list_payload(self):
        result = parse_clusters([CLUSTER_PAYLOAD], NOW)

        assert result.is_success
        (cluster,) = result.value
        assert isinstance(cluster, SignalCluster)
        assert cluster.key == "cluster_001"
        assert cluster.signals[0].tags == ("subreddit:antiwork",)
        # kept raw; the aggregator drops it later
        assert cluster.signals[1].timestamp == "not-a-date"

    def test_wrapped_payload(self):
        assert parse_clusters({"clusters": [CLUSTER_PAYLOAD]}, NOW).is_success

    def test_empty_payload(self):
        result = parse_clusters([], NOW)
        assert result.error.code == ErrorCode.EMPTY_PAYLOAD
        assert result.error.timestamp == NOW

    @pytest.mark.parametrize("payload", [
        "clusters",
        {"clusters": "nope"},
        [{"label": "missing id"}],
        [{"id": "", "signals": []}],
        [{"id": "c1", "signals": [{"id": "s1"}]}],
    ])
    def test_malformed_payload(self, payload):
        result = parse_clusters(payload, NOW)

        assert result.is_failure
        assert result.error.code == ErrorCode.MALFORMED_PAYLOAD
        assert result.error.timestamp == NOW
        assert "detail" in dict(result.error.context)


class TestParseSignalContext:

    def test_camel_and_snake_case_keys(self):
        camel = parse_signal_context({"windowLabel": "last 24h", "signals": []}, NOW)
        snake = parse_signal_context({"window_label": "last 24h", "signals": []}, NOW)
        assert camel.value == snake.value == MomentSignalContext("last 24h", ())

    def test_missing_payload_is_an_empty_window(self):
        result = parse_signal_context(None, NOW)
        assert result.value.window_label == "current window"
        assert result.value.signals == ()

    def test_lenient_signal_lists(self):
        result = parse_signal_context({
            "signals": [
                {"source": "reddit", "text": "t", "keywords": ["summer", None, " ", 3],
                 "entities": "slack"},
                {"source": None, "keywords": ["desk"]},
                "not a signal",
            ],
        }, NOW)

        first, second = result.value.signals
        assert first.keywords == ("summer",)
        assert first.entities == ()
        assert second.source == ""
        assert second.keywords == ("desk",)

    def test_non_list_signals(self):
        result = parse_signal_context({"signals": "oops"}, NOW)
        assert result.value.signals == ()

    def test_non_object_rejected(self):
        result = parse_signal_context(["signals"], NOW)
        assert result.error.code == ErrorCode.MALFORMED_PAYLOAD


class TestParseCandidates:

    def test_camel_case_candidate(self):
        result = parse_candidates({"candidates": [{
            "id": "cand_1",
            "title": "Desk summer",
            "firstSeenAt": "2026-03-14T10:00:00Z",
            "keywords": ["summer", 1],
            "signals": [{"id": "s1", "source": "reddit", "createdAt": "2026-03-14T10:00:00Z",
                         "entities": ["Slack"]}],
        }]}, NOW)

        (candidate,) = result.value
        assert candidate.first_seen_at == "2026-03-14T10:00:00Z"
        assert candidate.keywords == ("summer",)
        assert candidate.signals[0].created_at == "2026-03-14T10:00:00Z"
        assert candidate.signals[0].entities == ("Slack",)

    def test_missing_id_rejected(self):
        result = parse_candidates([{"title": "no id"}], NOW)
        assert result.error.code == ErrorCode.MALFORMED_PAYLOAD

    def test_empty(self):
        assert parse_candidates({"candidates": []}, NOW).error.code == ErrorCode.EMPTY_PAYLOAD
