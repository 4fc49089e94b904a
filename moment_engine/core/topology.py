"""
Moment Topology
===============

Collapse of near-duplicate candidates before qualification.

FENCE POST:
===========
This computes TOPOLOGY (which candidates share an identity), not
IMPORTANCE. Candidates become nodes; an edge means their declared
keyword sets overlap by at least `collapse_threshold` (Jaccard).
Connected components collapse into one candidate.

ALLOWED:
- Connected components (structural grouping)
- Deterministic ordering by candidate id

FORBIDDEN:
- Centrality / ranking of candidates
- Semantic similarity beyond exact token overlap
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple
import networkx as nx

from ..contracts.base import parse_iso_timestamp
from ..contracts.quality import MomentCandidate
from .similarity import jaccard, normalize_tokens


DEFAULT_COLLAPSE_THRESHOLD = 0.6


@dataclass(frozen=True)
class TopologyMetrics:
    """Immutable structural metrics for the candidate graph."""
    node_count: int
    edge_count: int
    component_count: int


class MomentTopology:
    """
    Wraps NetworkX to allow only structural grouping of candidates.
    """

    def __init__(self, collapse_threshold: float = DEFAULT_COLLAPSE_THRESHOLD):
        if not 0.0 < collapse_threshold <= 1.0:
            raise ValueError("collapse_threshold must be in (0.0, 1.0]")
        self._threshold = collapse_threshold
        self._graph = nx.Graph()

    def build_graph(self, candidates: Sequence[MomentCandidate]) -> None:
        """Replace internal graph state with one built from `candidates`."""
        self._graph = nx.Graph()
        keyword_sets: Dict[str, frozenset] = {}

        for candidate in candidates:
            self._graph.add_node(candidate.id)
            keyword_sets[candidate.id] = normalize_tokens(candidate.declared_keywords)

        ids = sorted(keyword_sets)
        for i, left in enumerate(ids):
            for right in ids[i + 1:]:
                a, b = keyword_sets[left], keyword_sets[right]
                # Two candidates with no keywords share nothing, not everything
                if not a or not b:
                    continue
                if jaccard(a, b) >= self._threshold:
                    self._graph.add_edge(left, right)

    def get_components(self) -> List[Tuple[str, ...]]:
        """Components as sorted id tuples, ordered by their first id."""
        components = [tuple(sorted(c)) for c in nx.connected_components(self._graph)]
        return sorted(components)

    def compute_metrics(self) -> TopologyMetrics:
        return TopologyMetrics(
            node_count=self._graph.number_of_nodes(),
            edge_count=self._graph.number_of_edges(),
            component_count=nx.number_connected_components(self._graph),
        )

    def collapse(self, candidates: Sequence[MomentCandidate]) -> List[MomentCandidate]:
        """
        Merge each connected component into one candidate.

        The representative is the lowest id in the component; its title and
        description are kept, signals are unioned (deduplicated by id) and
        the other ids are recorded in `collapsed_from_ids`.
        """
        self.build_graph(candidates)
        by_id = {c.id: c for c in candidates}
        collapsed: List[MomentCandidate] = []

        for component in self.get_components():
            if len(component) == 1:
                collapsed.append(by_id[component[0]])
                continue

            members = [by_id[cid] for cid in component]
            lead = members[0]

            signals = {}
            keywords = {}
            for member in members:
                for signal in member.signals:
                    signals.setdefault(signal.id, signal)
                for keyword in member.keywords:
                    keywords.setdefault(keyword, None)

            first_seen = sorted(
                (m.first_seen_at for m in members if parse_iso_timestamp(m.first_seen_at)),
                key=parse_iso_timestamp,
            )
            merged_from = {cid: None for m in members for cid in m.collapsed_from_ids}
            for cid in component[1:]:
                merged_from.setdefault(cid, None)

            collapsed.append(MomentCandidate(
                id=lead.id,
                signals=tuple(signals.values()),
                title=lead.title,
                description=lead.description,
                keywords=tuple(keywords),
                first_seen_at=first_seen[0] if first_seen else None,
                collapsed_from_ids=tuple(merged_from),
            ))

        return collapsed
