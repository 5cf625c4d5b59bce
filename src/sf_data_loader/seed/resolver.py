"""Field value resolution at record creation time.

A fixture field value is sent to the remote store as-is unless it is one of:

- an **embedded query** -- text such as
  ``"SELECT Id FROM Profile WHERE Name = 'Standard User'"`` -- which is run
  against the org and replaced by the ``Id`` of the first match;
- the fixture ``id`` of a record created earlier in the same run, which is
  replaced by the id the remote store assigned to it.

Nested records and lists are resolved element by element.

Usage:
    from sf_data_loader.seed.identity import IdentityMap
    from sf_data_loader.seed.resolver import FieldResolver

    identity = IdentityMap({"acc1": "001000000000001AAA"})
    resolver = FieldResolver(client, tooling_sobjects={"ApexClass"})
    record = await resolver.resolve_record(
        {"id": "con1", "AccountId": "acc1", "LastName": "Doe"}, identity
    )
    # {'id': 'con1', 'AccountId': '001000000000001AAA', 'LastName': 'Doe'}
"""

import asyncio
import re
from collections.abc import Collection
from dataclasses import dataclass

from sf_data_loader.adapters.base import RecordStoreClient, choose_handle
from sf_data_loader.errors import LookupNotFound
from sf_data_loader.fixtures.store import ID_FIELD, FieldValue, Record
from sf_data_loader.seed.identity import IdentityMap

EMBEDDED_QUERY_RE = re.compile(
    r"^\s*SELECT\s+(?P<fields>.+?)\s+FROM\s+(?P<sobject>\S+)\s+WHERE\s+(?P<where>.+?)"
    r"(?:\s+ORDER\s+BY\s+.*)?\s*$",
    re.IGNORECASE | re.DOTALL,
)


@dataclass(frozen=True)
class EmbeddedQuery:
    """A query found in a field value."""

    text: str
    fields: str
    sobject: str
    where: str


def parse_embedded_query(text: str) -> EmbeddedQuery | None:
    """Parse ``SELECT <fields> FROM <sobject> WHERE <predicate>`` text.

    A trailing ``ORDER BY`` clause is accepted and ignored.  Returns ``None``
    when ``text`` is an ordinary value.

    Example:
        q = parse_embedded_query("select Id from User where Alias = 'jdoe'")
        q.sobject  # 'User'
        q.where    # "Alias = 'jdoe'"
    """
    match = EMBEDDED_QUERY_RE.match(text)
    if match is None:
        return None
    return EmbeddedQuery(
        text=text,
        fields=match.group("fields"),
        sobject=match.group("sobject"),
        where=match.group("where"),
    )


class FieldResolver:
    """Resolve fixture field values into values for the remote store.

    Args:
        client: Logged-in remote store client used for embedded queries.
        tooling_sobjects: Object names that live on the tooling API.
    """

    def __init__(
        self,
        client: RecordStoreClient,
        tooling_sobjects: Collection[str] = (),
    ) -> None:
        self._client = client
        self._tooling_sobjects = frozenset(tooling_sobjects)

    async def resolve(self, value: FieldValue, identity: IdentityMap) -> FieldValue:
        """Resolve a single field value.

        Raises:
            LookupNotFound: If an embedded query matches no record.
        """
        if isinstance(value, dict):
            return await self._resolve_fields(value, identity)
        if isinstance(value, list):
            return list(await asyncio.gather(*(self.resolve(v, identity) for v in value)))
        if not isinstance(value, str):
            return value

        query = parse_embedded_query(value)
        if query is not None:
            return await self._lookup(query)

        new_id = identity.lookup(value)
        if new_id is not None:
            return new_id
        return value

    async def resolve_record(self, record: Record, identity: IdentityMap) -> Record:
        """Resolve every field of a top-level record.

        The reserved ``id`` field is copied through unchanged.  The input
        record is not modified.
        """
        return await self._resolve_fields(record, identity, keep=(ID_FIELD,))

    async def _resolve_fields(
        self,
        record: Record,
        identity: IdentityMap,
        keep: tuple[str, ...] = (),
    ) -> Record:
        fields = [f for f in record if f not in keep]
        values = await asyncio.gather(*(self.resolve(record[f], identity) for f in fields))
        resolved = dict(record)
        resolved.update(zip(fields, values))
        return resolved

    async def _lookup(self, query: EmbeddedQuery) -> str:
        handle = choose_handle(self._client, query.sobject, self._tooling_sobjects)
        rows = await handle.find(query.where, query.fields, limit=1)
        if not rows:
            raise LookupNotFound(query.text)
        return rows[0]["Id"]
