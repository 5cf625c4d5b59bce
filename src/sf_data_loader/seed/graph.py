"""Relation graph inferred from fixture record contents.

There is no declared schema: a collection ``C`` is a child of ``P`` when a
record of ``C`` mentions, as an exact JSON string, the ``id`` of a record of
``P``.  This is a heuristic -- coincidental id collisions produce extra edges
and ids embedded inside longer strings produce none.

The matching rule is a plain predicate so a different strategy can be
plugged in without touching the executor.

Usage:
    from sf_data_loader.seed.graph import build_relation_graph

    graph = build_relation_graph({
        "Account": [{"id": "acc1", "Name": "Acme"}],
        "Contact": [{"id": "con1", "AccountId": "acc1"}],
    })
    graph.parents_of("Contact")   # frozenset({'Account'})
    graph.children_of("Account")  # frozenset({'Contact'})
    graph.creation_order()        # ['Account', 'Contact']
"""

import json
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from sf_data_loader.errors import DependencyCycleError
from sf_data_loader.fixtures.store import ID_FIELD, Record

# (parent record id, serialized child collection) -> is referenced
ReferenceMatcher = Callable[[str, str], bool]


def quoted_id_matcher(record_id: str, serialized: str) -> bool:
    """True if ``record_id`` appears as a complete JSON string in ``serialized``."""
    return f'"{record_id}"' in serialized


@dataclass(frozen=True)
class RelationGraph:
    """Parent/child adjacency between collections.

    Attributes:
        children: Collection name -> names of collections referencing it.
        parents: Collection name -> names of collections it references.
    """

    children: Mapping[str, frozenset[str]] = field(default_factory=dict)
    parents: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def children_of(self, name: str) -> frozenset[str]:
        return self.children.get(name, frozenset())

    def parents_of(self, name: str) -> frozenset[str]:
        return self.parents.get(name, frozenset())

    @property
    def names(self) -> list[str]:
        return list(self.parents)

    def find_cycle(self) -> list[str] | None:
        """Return one cycle along parent edges, or ``None`` if acyclic.

        The returned path starts and ends with the same name, e.g.
        ``["A", "B", "A"]`` when A references B and B references A.
        """
        visited: set[str] = set()

        def visit(name: str, path: list[str]) -> list[str] | None:
            if name in path:
                return path[path.index(name):] + [name]
            if name in visited:
                return None
            path.append(name)
            for parent in sorted(self.parents_of(name)):
                cycle = visit(parent, path)
                if cycle:
                    return cycle
            path.pop()
            visited.add(name)
            return None

        for name in sorted(self.parents):
            cycle = visit(name, [])
            if cycle:
                return cycle
        return None

    def creation_order(self, names: Iterable[str] | None = None) -> list[str]:
        """Topological order: every collection after all of its parents.

        Args:
            names: Collections to order (default: every collection in the
                graph, in insertion order).

        Raises:
            DependencyCycleError: If the graph has a cycle.
        """
        cycle = self.find_cycle()
        if cycle:
            raise DependencyCycleError(cycle)

        ordered: list[str] = []
        done: set[str] = set()

        def visit(name: str) -> None:
            if name in done:
                return
            for parent in sorted(self.parents_of(name)):
                visit(parent)
            done.add(name)
            ordered.append(name)

        for name in (self.names if names is None else names):
            visit(name)
        return ordered

    def deletion_order(self, names: Iterable[str] | None = None) -> list[str]:
        """Reverse of ``creation_order``: children before parents."""
        return list(reversed(self.creation_order(names)))


def build_relation_graph(
    collections: Mapping[str, Sequence[Record]],
    matcher: ReferenceMatcher = quoted_id_matcher,
) -> RelationGraph:
    """Infer parent/child relations between collections from their records.

    For every ordered pair ``(P, C)`` with ``P != C``, ``C`` is a child of
    ``P`` if ``matcher(id, serialized_C)`` holds for the ``id`` of any record
    of ``P``.  Each collection is serialized once; records without an ``id``
    cannot be parents.

    Args:
        collections: Collection name -> records.
        matcher: Predicate deciding whether a parent id is referenced by
            a serialized child collection.

    Returns:
        ``RelationGraph`` with an entry (possibly empty) for every collection.
    """
    serialized = {
        name: json.dumps(records, ensure_ascii=False, default=str)
        for name, records in collections.items()
    }
    record_ids = {
        name: [str(r[ID_FIELD]) for r in records if r.get(ID_FIELD) is not None]
        for name, records in collections.items()
    }

    children: dict[str, set[str]] = {name: set() for name in collections}
    parents: dict[str, set[str]] = {name: set() for name in collections}

    for parent in collections:
        for child in collections:
            if parent == child:
                continue
            if any(matcher(record_id, serialized[child]) for record_id in record_ids[parent]):
                children[parent].add(child)
                parents[child].add(parent)

    return RelationGraph(
        children={name: frozenset(names) for name, names in children.items()},
        parents={name: frozenset(names) for name, names in parents.items()},
    )
