"""Read-only concept index with a precomputed ancestor closure.

The index is built once from snapshot records and never mutated afterwards,
so it can be shared by any number of concurrent query evaluations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import (
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
)

import networkx as nx

from .constants import ROOT_CONCEPT_ID
from .snapshot_loader import ConceptRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Concept:
    """A frozen node of the hierarchy."""

    id: int
    fully_specified_name: str
    parents: FrozenSet[int] = frozenset()
    ancestors: FrozenSet[int] = frozenset()
    attributes: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    def attribute_values(self, attribute_name: str) -> Tuple[str, ...]:
        return self.attributes.get(attribute_name, ())


class ConceptIndex(Protocol):
    """Lookups the query evaluator needs from an index implementation."""

    root_id: int

    def lookup_by_id(self, concept_id: int) -> Optional[Concept]:
        ...

    def lookup_by_ancestor(self, concept_id: int) -> Sequence[Concept]:
        ...

    def count(self) -> int:
        ...


class InMemoryConceptIndex:
    """Dictionary-backed index with an inverted ancestor lookup."""

    def __init__(
        self,
        concepts: Iterable[Concept],
        root_id: int = ROOT_CONCEPT_ID,
        graph: Optional[nx.DiGraph] = None,
    ):
        self.root_id = root_id
        self.graph = graph
        self._concepts: Dict[int, Concept] = {}
        for concept in concepts:
            if concept.id in self._concepts:
                raise ValueError(f"Duplicate concept id {concept.id}")
            self._concepts[concept.id] = concept
        self._descendants = self._invert_ancestors()

    def _invert_ancestors(self) -> Dict[int, Tuple[Concept, ...]]:
        inverted: Dict[int, List[Concept]] = {}
        for concept in self._concepts.values():
            for ancestor_id in concept.ancestors:
                inverted.setdefault(ancestor_id, []).append(concept)
        return {ancestor_id: tuple(members) for ancestor_id, members in inverted.items()}

    def lookup_by_id(self, concept_id: int) -> Optional[Concept]:
        return self._concepts.get(concept_id)

    def lookup_by_ancestor(self, concept_id: int) -> Sequence[Concept]:
        """Every concept whose ancestor closure contains ``concept_id``."""
        return self._descendants.get(concept_id, ())

    def count(self) -> int:
        return len(self._concepts)

    def __len__(self) -> int:
        return len(self._concepts)

    def __contains__(self, concept_id: object) -> bool:
        return concept_id in self._concepts

    def __iter__(self) -> Iterator[Concept]:
        return iter(self._concepts.values())


def build_hierarchy_graph(records: Sequence[ConceptRecord]) -> nx.DiGraph:
    """Create the is-a graph with parent -> child edges."""

    G = nx.DiGraph()
    for record in records:
        if record.id in G:
            raise ValueError(f"Duplicate concept id {record.id}")
        G.add_node(
            record.id,
            kind="concept",
            name=record.fsn,
            attributes={name: list(values) for name, values in record.attributes.items()},
        )

    for record in records:
        for parent_id in record.parents:
            if parent_id not in G:
                raise ValueError(f"Concept {record.id} references unknown parent {parent_id}")
            G.add_edge(parent_id, record.id, rel="IS_A")

    if not nx.is_directed_acyclic_graph(G):
        cycle = nx.find_cycle(G)
        raise ValueError(f"Is-a hierarchy contains a cycle: {cycle}")

    return G


def compute_ancestor_closures(G: nx.DiGraph) -> Dict[int, FrozenSet[int]]:
    """Materialize the transitive parent set of every node.

    Nodes are visited in topological order so each parent's closure is
    complete before its children read it.
    """

    closures: Dict[int, FrozenSet[int]] = {}
    for node in nx.topological_sort(G):
        closure = set()
        for parent in G.predecessors(node):
            closure.add(parent)
            closure.update(closures[parent])
        closures[node] = frozenset(closure)
    return closures


def _infer_root(G: nx.DiGraph) -> int:
    roots = [node for node in G.nodes if G.in_degree(node) == 0]
    if len(roots) == 1:
        return roots[0]
    return ROOT_CONCEPT_ID


def _check_root_covers(G: nx.DiGraph, closures: Dict[int, FrozenSet[int]], root_id: int) -> None:
    """Every concept must be the root or one of its descendants."""
    if G.number_of_nodes() == 0:
        return
    if root_id not in G:
        raise ValueError(f"Root concept {root_id} is not in the snapshot")
    outside = [node for node in G.nodes if node != root_id and root_id not in closures[node]]
    if outside:
        preview = ", ".join(str(node) for node in outside[:5])
        raise ValueError(
            f"{len(outside)} concepts are not descendants of root {root_id}: {preview}"
        )


def build_concept_index(
    records: Sequence[ConceptRecord], root_id: Optional[int] = None
) -> InMemoryConceptIndex:
    """Freeze snapshot records into an index."""

    G = build_hierarchy_graph(records)
    closures = compute_ancestor_closures(G)
    concepts = [
        Concept(
            id=record.id,
            fully_specified_name=record.fsn,
            parents=frozenset(record.parents),
            ancestors=closures[record.id],
            attributes={name: tuple(values) for name, values in record.attributes.items()},
        )
        for record in records
    ]
    if root_id is None:
        root_id = _infer_root(G)
    _check_root_covers(G, closures, root_id)

    index = InMemoryConceptIndex(concepts, root_id=root_id, graph=G)
    logger.info(
        f"Built concept index: {index.count()} concepts, "
        f"{G.number_of_edges()} is-a edges, root {root_id}"
    )
    return index


def summarize_index(index: InMemoryConceptIndex) -> Dict[str, int]:
    """Quick counts for index contents."""

    G = index.graph if index.graph is not None else nx.DiGraph()
    summary = {
        "concepts": index.count(),
        "is_a_edges": G.number_of_edges(),
        "attribute_values": sum(
            len(values) for concept in index for values in concept.attributes.values()
        ),
        "roots": sum(1 for node in G.nodes if G.in_degree(node) == 0),
        "max_depth": nx.dag_longest_path_length(G) if G.number_of_nodes() else 0,
    }
    return summary
