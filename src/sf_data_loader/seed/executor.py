"""Dependency-ordered creation and deletion of fixture collections.

Load walks the relation graph parents-first: before a collection's records
are resolved and created, every collection it references has been created
and its ids are in the run's ``IdentityMap``.  Delete walks it children-first,
driven only by the ids persisted during load.

Each collection is processed at most once per run even when it is reached
through several paths; unrelated collections are processed concurrently.
The first failure aborts the run: collections that have not reached their
remote write yet are skipped, and writes already in flight are allowed to
finish and are recorded before the error propagates.  Collections that
completed keep their remote records and persisted id files, so a failed load
can be undone with a delete run.

Usage:
    from sf_data_loader.seed.executor import DependencyOrderedExecutor

    executor = DependencyOrderedExecutor(
        client, store, graph, PersistedIdStore(ids_path),
        tooling_sobjects={"ApexClass"},
    )
    identity = await executor.load_all()
    ...
    await executor.delete_all()
"""

import asyncio
import logging
from collections.abc import Callable, Collection, Coroutine
from enum import Enum
from typing import Any

from sf_data_loader.adapters.base import RecordStoreClient, SObjectHandle, choose_handle
from sf_data_loader.errors import (
    CreateFailed,
    DeleteFailed,
    DependencyCycleError,
    PersistedIdsMissing,
)
from sf_data_loader.fixtures.store import ID_FIELD, RecordStore
from sf_data_loader.seed.graph import RelationGraph
from sf_data_loader.seed.identity import IdentityMap, PersistedIdStore
from sf_data_loader.seed.resolver import FieldResolver

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


class RunTable:
    """Per-run table of collection name -> the one task doing its work.

    ``start()`` creates the task on the first request for a name and hands
    the same task to every later caller, so all of them await one outcome.
    Creation happens before any ``await``, which makes check-and-start
    atomic under asyncio.

    Tasks are never cancelled: a cancelled remote write may still have
    been applied, and its ids would then be lost.  After a failure the
    table is marked ``aborted`` so work that has not reached its remote
    write yet can stop, and ``settle()`` waits for everything else.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task] = {}
        self.aborted = False

    def start(self, name: str, work: Callable[[], Coroutine[Any, Any, None]]) -> asyncio.Task:
        task = self._tasks.get(name)
        if task is None:
            task = asyncio.create_task(work(), name=name)
            self._tasks[name] = task
        return task

    def state(self, name: str) -> RunState:
        task = self._tasks.get(name)
        if task is None:
            return RunState.NOT_STARTED
        if not task.done():
            return RunState.IN_PROGRESS
        if task.cancelled() or task.exception() is not None:
            return RunState.FAILED
        return RunState.COMPLETED

    def states(self) -> dict[str, str]:
        return {name: self.state(name).value for name in self._tasks}

    async def settle(self) -> None:
        """Mark the run aborted and wait until every started task is done.

        Tasks may start further tasks while settling; those are awaited too.
        """
        self.aborted = True
        while True:
            pending = [t for t in self._tasks.values() if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)


class DependencyOrderedExecutor:
    """Create and delete every collection of a ``RecordStore`` in graph order.

    Args:
        client: Logged-in remote store client.
        store: Fixture records per collection.
        graph: Relation graph inferred from ``store``.
        id_store: Where created ids are persisted for later deletion.
        tooling_sobjects: Collection names served by the tooling API.
        resolver: Field resolver (default: one built on ``client``).

    Attributes:
        created: Remote ids created per collection by the last load.
        deleted: Remote ids destroyed per collection by the last delete.
    """

    def __init__(
        self,
        client: RecordStoreClient,
        store: RecordStore,
        graph: RelationGraph,
        id_store: PersistedIdStore,
        tooling_sobjects: Collection[str] = (),
        resolver: FieldResolver | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._graph = graph
        self._id_store = id_store
        self._tooling_sobjects = frozenset(tooling_sobjects)
        self._resolver = resolver or FieldResolver(client, self._tooling_sobjects)
        self.created: dict[str, list[str]] = {}
        self.deleted: dict[str, list[str]] = {}

    def _handle(self, name: str) -> SObjectHandle:
        return choose_handle(self._client, name, self._tooling_sobjects)

    def _check_acyclic(self) -> None:
        cycle = self._graph.find_cycle()
        if cycle:
            raise DependencyCycleError(cycle)

    async def _run_all(self, table: RunTable, start: Callable[[str], asyncio.Task]) -> None:
        try:
            await asyncio.gather(*(start(name) for name in self._store.names))
        except BaseException:
            await table.settle()
            logger.debug("run aborted, collection states: %s", table.states())
            raise

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    async def load_all(self) -> IdentityMap:
        """Create every collection, parents before children.

        Returns:
            The run's ``IdentityMap`` (fixture id -> remote id).

        Raises:
            DependencyCycleError: If the relation graph has a cycle (raised
                before any remote call).
            LookupNotFound: If an embedded query matched nothing.
            CreateFailed: If the remote store rejected any record.
        """
        self._check_acyclic()
        self.created = {}
        identity = IdentityMap()
        table = RunTable()
        await self._run_all(table, lambda name: self._load(table, identity, name))
        return identity

    def _load(self, table: RunTable, identity: IdentityMap, name: str) -> asyncio.Task:
        return table.start(name, lambda: self._load_collection(table, identity, name))

    async def _load_collection(self, table: RunTable, identity: IdentityMap, name: str) -> None:
        logger.debug("creating started %s", name)

        # Parents first -- their ids must be in the identity map
        parents = sorted(self._graph.parents_of(name))
        await asyncio.gather(*(self._load(table, identity, p) for p in parents))

        records = self._store.records(name)
        if not records:
            logger.debug("creating skipped %s (no records)", name)
            return

        resolved = await asyncio.gather(
            *(self._resolver.resolve_record(r, identity) for r in records)
        )

        if table.aborted:
            logger.debug("creating skipped %s (run aborted)", name)
            return

        # 'id' is fixture-only: keep it for remapping but never send it
        old_ids = [r.get(ID_FIELD) for r in records]
        payload = [{k: v for k, v in r.items() if k != ID_FIELD} for r in resolved]

        logger.debug("creating %d record(s) for %s", len(payload), name)
        results = await self._handle(name).create(payload)
        if len(results) != len(payload) or any(not r.get("success") for r in results):
            # Batches committed before the failing one stay deletable
            committed = [r["id"] for r in results if r.get("success") and r.get("id")]
            if committed:
                self._id_store.save(name, committed)
            raise CreateFailed(name, results)

        new_ids = [r["id"] for r in results]
        self._id_store.save(name, new_ids)
        identity.record_many(zip(old_ids, new_ids))
        self.created[name] = new_ids
        logger.debug("creating done %s %s", name, new_ids)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_all(self) -> None:
        """Delete everything a previous load created, children before parents.

        Collections without a persisted id file are skipped.  Each
        collection's id file is removed once its records are destroyed.

        Raises:
            DependencyCycleError: If the relation graph has a cycle.
            DeleteFailed: If the remote store failed to delete any record.
        """
        self._check_acyclic()
        self.deleted = {}
        table = RunTable()
        await self._run_all(table, lambda name: self._delete(table, name))

    def _delete(self, table: RunTable, name: str) -> asyncio.Task:
        return table.start(name, lambda: self._delete_collection(table, name))

    async def _delete_collection(self, table: RunTable, name: str) -> None:
        logger.debug("deleting started %s", name)

        children = sorted(self._graph.children_of(name))
        await asyncio.gather(*(self._delete(table, c) for c in children))

        try:
            ids = self._id_store.load(name)
        except PersistedIdsMissing:
            logger.debug("deleting skipped %s", name)
            return

        if table.aborted:
            logger.debug("deleting skipped %s (run aborted)", name)
            return

        destroyed: list[str] = []
        if ids:
            handle = self._handle(name)
            live = await handle.find({"Id": ids}, ["Id"])
            destroyed = [r["Id"] for r in live]
            if destroyed:
                results = await handle.destroy(destroyed)
                if any(not r.get("success") for r in results):
                    raise DeleteFailed(name, results)

        self._id_store.remove(name)
        self.deleted[name] = destroyed
        logger.debug("deleting done %s %s", name, destroyed)
