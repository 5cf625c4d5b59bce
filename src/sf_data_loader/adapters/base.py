"""Remote store client protocol definitions.

Defines the ``RecordStoreClient`` and ``SObjectHandle`` Protocols that the
seed engine talks to.  All remote operations are ``async def`` -- every one of
them is a network round trip.

Usage:
    from sf_data_loader.adapters.base import RecordStoreClient, choose_handle

    async def do_work(client: RecordStoreClient) -> None:
        await client.login("user@example.com", "secret")
        accounts = choose_handle(client, "Account", tooling_sobjects=set())
        rows = await accounts.find("Name = 'Acme'", "Id, Name", limit=1)
        results = await accounts.create([{"Name": "Acme"}])
        await client.close()
"""

from collections.abc import Collection
from typing import Any, Protocol


class SObjectHandle(Protocol):
    """Operations bound to a single remote object type (a collection).

    A handle is bound to either the standard or the tooling API surface;
    callers never need to know which.
    """

    async def find(
        self,
        conditions: str | dict[str, Any],
        fields: str | list[str],
        limit: int | None = None,
    ) -> list[dict]:
        """Find records of this object type.

        Args:
            conditions: Free-form predicate text (passed through verbatim),
                or a dict of ``{field: value}`` pairs.  A list value means
                ``field IN (...)``.
            fields: Comma-separated field names or a list of field names.
            limit: Optional maximum number of records to return.

        Returns:
            List of record dicts.  Empty list if nothing matches.

        Example:
            rows = await handle.find({"Id": ["001A", "001B"]}, ["Id"])
        """
        ...

    async def create(self, records: list[dict]) -> list[dict]:
        """Create records in one batch.

        Returns:
            One result per input record, in input order.  Each result has
            ``id``, ``success`` and ``errors`` keys.  A store that writes in
            several all-or-none batches may stop after the first failed
            batch and return fewer results.
        """
        ...

    async def destroy(self, ids: list[str]) -> list[dict]:
        """Delete records by id in one batch.

        Returns:
            One result per id, each with ``id``, ``success`` and ``errors``.
        """
        ...


class RecordStoreClient(Protocol):
    """Client interface for the remote record store."""

    async def login(self, user: str, password: str) -> None:
        """Authenticate and bind the session used by every handle."""
        ...

    def sobject(self, name: str, tooling: bool = False) -> SObjectHandle:
        """Return a handle for ``name`` on the standard or tooling API."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...


def choose_handle(
    client: RecordStoreClient,
    name: str,
    tooling_sobjects: Collection[str],
) -> SObjectHandle:
    """Pick the tooling or standard API handle for an object type.

    The selection is driven only by the caller-supplied set of tooling
    object names; nothing is inferred from the name itself.

    Example:
        handle = choose_handle(client, "ApexClass", {"ApexClass"})  # tooling
        handle = choose_handle(client, "Account", {"ApexClass"})    # standard
    """
    return client.sobject(name, tooling=name in tooling_sobjects)
