"""Error taxonomy for loading and deleting seed data.

Every failure the seed engine raises on purpose derives from
``DataLoaderError``.  ``PersistedIdsMissing`` is deliberately outside that
hierarchy: it only tells the delete path that a collection has nothing to
delete.
"""

import json
from typing import Any


class DataLoaderError(Exception):
    """Base class for load/delete failures."""

    pass


class LookupNotFound(DataLoaderError):
    """An embedded query field value matched no remote record."""

    def __init__(self, query: str):
        self.query = query
        super().__init__(f"Didn't find any results for query \"{query}\"")


class CreateFailed(DataLoaderError):
    """A batch create reported failure for at least one record."""

    def __init__(self, sobject: str, results: list[dict[str, Any]]):
        self.sobject = sobject
        self.results = results
        super().__init__(
            f"Error creating records for {sobject}: {json.dumps(results, default=str)}"
        )


class DeleteFailed(DataLoaderError):
    """A batch destroy reported failure for at least one record."""

    def __init__(self, sobject: str, results: list[dict[str, Any]]):
        self.sobject = sobject
        self.results = results
        super().__init__(
            f"Error deleting records for {sobject}: {json.dumps(results, default=str)}"
        )


class DependencyCycleError(DataLoaderError):
    """The inferred relation graph contains a cycle.

    Attributes:
        cycle: Collection names along the cycle; the first name is repeated
            at the end (e.g., ``["A", "B", "A"]``).
    """

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(
            f"Inferred dependency cycle between collections: {' -> '.join(cycle)}"
        )


class FixtureError(DataLoaderError, ValueError):
    """A fixture file does not hold a JSON list of record objects."""

    pass


class PersistedIdsMissing(Exception):
    """No persisted id file exists for a collection (nothing to delete)."""

    def __init__(self, sobject: str):
        self.sobject = sobject
        super().__init__(f"No persisted ids for {sobject}")
