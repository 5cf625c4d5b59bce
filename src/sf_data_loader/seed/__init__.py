"""Dependency-ordered seeding of fixture collections.

Provides the relation graph builder, the field resolver, identity
bookkeeping, and the executor that loads and deletes collections.

Usage:
    from sf_data_loader.seed import (
        build_relation_graph,
        DependencyOrderedExecutor,
        PersistedIdStore,
    )
"""

from sf_data_loader.seed.graph import (
    RelationGraph,
    ReferenceMatcher,
    build_relation_graph,
    quoted_id_matcher,
)
from sf_data_loader.seed.identity import IdentityMap, PersistedIdStore
from sf_data_loader.seed.resolver import EmbeddedQuery, FieldResolver, parse_embedded_query
from sf_data_loader.seed.executor import DependencyOrderedExecutor, RunState, RunTable

__all__ = [
    "RelationGraph",
    "ReferenceMatcher",
    "build_relation_graph",
    "quoted_id_matcher",
    "IdentityMap",
    "PersistedIdStore",
    "EmbeddedQuery",
    "FieldResolver",
    "parse_embedded_query",
    "DependencyOrderedExecutor",
    "RunState",
    "RunTable",
]
