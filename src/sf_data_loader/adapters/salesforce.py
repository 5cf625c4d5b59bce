"""Async Salesforce adapter.

Provides ``AsyncSalesforceAdapter``, an async implementation of the
``RecordStoreClient`` protocol over the Salesforce SOAP (login) and REST
(query, composite sobjects) APIs using ``httpx``.

The HTTP client is created lazily on first use.  Handles returned by
``sobject()`` share the adapter's session, so ``login()`` must be awaited
before any handle is used.

Usage:
    from sf_data_loader.adapters.salesforce import AsyncSalesforceAdapter

    adapter = AsyncSalesforceAdapter(
        "https://test.salesforce.com",
        version="59.0",
        call_options={"client": "sf-data-loader"},
    )
    await adapter.login("user@example.com", "password+token")

    accounts = adapter.sobject("Account")
    results = await accounts.create([{"Name": "Acme"}])

    classes = adapter.sobject("ApexClass", tooling=True)
    rows = await classes.find("Name = 'MyClass'", "Id", limit=1)

    await adapter.close()
"""

import xml.etree.ElementTree as ET
from typing import Any
from xml.sax.saxutils import escape

import httpx

# Composite sobjects endpoints accept at most 200 records per call
BATCH_SIZE = 200

_PARTNER_NS = "{urn:partner.soap.sforce.com}"

_LOGIN_ENVELOPE = """<?xml version="1.0" encoding="utf-8" ?>
<env:Envelope xmlns:xsd="http://www.w3.org/2001/XMLSchema"
    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
    xmlns:env="http://schemas.xmlsoap.org/soap/envelope/">
  <env:Body>
    <n1:login xmlns:n1="urn:partner.soap.sforce.com">
      <n1:username>{username}</n1:username>
      <n1:password>{password}</n1:password>
    </n1:login>
  </env:Body>
</env:Envelope>"""


class SalesforceApiError(Exception):
    """Raised when the Salesforce API answers with an HTTP error status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Salesforce API error {status_code}: {message}")


class SalesforceLoginError(Exception):
    """Raised when SOAP login is rejected."""

    pass


def soql_literal(value: Any) -> str:
    """Render a Python value as a SOQL literal.

    Example:
        soql_literal("O'Brien")  # "'O\\'Brien'"
        soql_literal(None)       # 'null'
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{text}'"


def build_where(conditions: str | dict[str, Any]) -> str:
    """Build a SOQL WHERE clause body from a predicate string or dict.

    A string is passed through verbatim.  Dict entries are joined with
    ``AND``; list values become ``IN (...)``.

    Example:
        build_where({"Id": ["a", "b"], "IsActive": True})
        # "Id IN ('a', 'b') AND IsActive = true"
    """
    if isinstance(conditions, str):
        return conditions

    parts: list[str] = []
    for field, value in conditions.items():
        if isinstance(value, (list, tuple, set, frozenset)):
            values = ", ".join(soql_literal(v) for v in value)
            parts.append(f"{field} IN ({values})")
        else:
            parts.append(f"{field} = {soql_literal(value)}")
    return " AND ".join(parts)


def _chunks(items: list, size: int = BATCH_SIZE) -> list[list]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class SalesforceSObject:
    """``SObjectHandle`` bound to one object type on one API surface.

    Args:
        adapter: Logged-in adapter providing the HTTP session.
        name: Object API name (e.g., ``"Account"``).
        tooling: When ``True``, requests go to the tooling API.
    """

    def __init__(self, adapter: "AsyncSalesforceAdapter", name: str, tooling: bool = False) -> None:
        self._adapter = adapter
        self.name = name
        self.tooling = tooling

    def __repr__(self) -> str:
        surface = "tooling" if self.tooling else "standard"
        return f"SalesforceSObject({self.name!r}, {surface})"

    async def find(
        self,
        conditions: str | dict[str, Any],
        fields: str | list[str],
        limit: int | None = None,
    ) -> list[dict]:
        """Run a SOQL query against this object type."""
        if isinstance(conditions, dict) and any(
            isinstance(v, (list, tuple, set, frozenset)) and not v
            for v in conditions.values()
        ):
            # IN () is not valid SOQL and can never match
            return []

        select = fields if isinstance(fields, str) else ", ".join(fields)
        soql = f"SELECT {select} FROM {self.name}"
        where = build_where(conditions)
        if where:
            soql += f" WHERE {where}"
        if limit is not None:
            soql += f" LIMIT {limit}"
        return await self._adapter.query(soql, tooling=self.tooling)

    async def create(self, records: list[dict]) -> list[dict]:
        """Create records via the composite sobjects endpoint.

        Each batch is all-or-none: one rejected record rolls the whole batch
        back.  Batches after a failed one are not sent, so the returned list
        is shorter than ``records`` in that case.
        """
        results: list[dict] = []
        for chunk in _chunks(records):
            payload = {
                "allOrNone": True,
                "records": [
                    {"attributes": {"type": self.name}, **record}
                    for record in chunk
                ],
            }
            chunk_results = await self._adapter.request(
                "POST", "/composite/sobjects", tooling=self.tooling, json=payload
            )
            results.extend(chunk_results)
            if any(not r.get("success") for r in chunk_results):
                break
        return results

    async def destroy(self, ids: list[str]) -> list[dict]:
        """Delete records via the composite sobjects endpoint."""
        results: list[dict] = []
        for chunk in _chunks(ids):
            results.extend(
                await self._adapter.request(
                    "DELETE",
                    "/composite/sobjects",
                    tooling=self.tooling,
                    params={"ids": ",".join(chunk), "allOrNone": "false"},
                )
            )
        return results


class AsyncSalesforceAdapter:
    """Async Salesforce implementation of the ``RecordStoreClient`` protocol.

    Args:
        login_url: Login host, e.g. ``https://login.salesforce.com`` or
            ``https://test.salesforce.com`` for sandboxes.
        version: API version without the ``v`` prefix (e.g., ``"59.0"``).
        call_options: Optional call options sent as the
            ``Sforce-Call-Options`` header on every REST call.
        timeout: HTTP timeout in seconds.
        transport: Optional ``httpx`` transport (used by tests).

    Example:
        adapter = AsyncSalesforceAdapter("https://login.salesforce.com", "59.0")
        await adapter.login("user@example.com", "password")
        rows = await adapter.query("SELECT Id FROM Account LIMIT 1")
        await adapter.close()
    """

    def __init__(
        self,
        login_url: str,
        version: str,
        call_options: dict[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.login_url = login_url.rstrip("/")
        self.version = version
        self.call_options = dict(call_options or {})
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.session_id: str | None = None
        self.instance_url: str | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def login(self, user: str, password: str) -> None:
        """Log in with the SOAP partner API and store the session.

        Raises:
            SalesforceLoginError: If Salesforce answers with a SOAP fault or
                the response carries no session.
        """
        client = await self._get_client()
        body = _LOGIN_ENVELOPE.format(username=escape(user), password=escape(password))
        response = await client.post(
            f"{self.login_url}/services/Soap/u/{self.version}",
            content=body.encode("utf-8"),
            headers={"Content-Type": "text/xml; charset=UTF-8", "SOAPAction": "login"},
        )

        try:
            root = ET.fromstring(response.text)
        except ET.ParseError:
            raise SalesforceLoginError(
                f"Login failed for {user}: HTTP {response.status_code} {response.text}"
            )

        if response.status_code != 200:
            fault = root.find(".//faultstring")
            message = fault.text if fault is not None else response.text
            raise SalesforceLoginError(f"Login failed for {user}: {message}")

        session = root.find(f".//{_PARTNER_NS}sessionId")
        server_url = root.find(f".//{_PARTNER_NS}serverUrl")
        if session is None or server_url is None or not server_url.text:
            raise SalesforceLoginError(f"Login failed for {user}: no session in response")

        self.session_id = session.text
        self.instance_url = server_url.text.split("/services/")[0]

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # REST
    # ------------------------------------------------------------------

    def sobject(self, name: str, tooling: bool = False) -> SalesforceSObject:
        """Return a handle for ``name`` on the standard or tooling API."""
        return SalesforceSObject(self, name, tooling=tooling)

    def _base_path(self, tooling: bool) -> str:
        path = f"/services/data/v{self.version}"
        return f"{path}/tooling" if tooling else path

    def _headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.session_id}"}
        if self.call_options:
            headers["Sforce-Call-Options"] = ", ".join(
                f"{k}={v}" for k, v in self.call_options.items()
            )
        return headers

    async def request(
        self,
        method: str,
        path: str,
        tooling: bool = False,
        absolute: bool = False,
        **kwargs: Any,
    ) -> Any:
        """Send an authenticated REST request and return the decoded JSON.

        Args:
            method: HTTP method.
            path: Path relative to the API base (``/services/data/vXX.X``,
                plus ``/tooling`` when ``tooling``), or relative to the
                instance when ``absolute``.
            tooling: Route to the tooling API.
            absolute: Treat ``path`` as an instance-relative path.
            **kwargs: Forwarded to ``httpx.AsyncClient.request``.

        Raises:
            SalesforceApiError: On HTTP status >= 400.
            RuntimeError: If called before ``login()``.
        """
        if self.instance_url is None:
            raise RuntimeError("Not logged in -- call login() first")

        client = await self._get_client()
        url = self.instance_url + (path if absolute else self._base_path(tooling) + path)
        response = await client.request(method, url, headers=self._headers(), **kwargs)

        if response.status_code >= 400:
            raise SalesforceApiError(response.status_code, response.text)
        if not response.content:
            return None
        return response.json()

    async def query(self, soql: str, tooling: bool = False) -> list[dict]:
        """Run a SOQL query, following ``nextRecordsUrl`` pages.

        The ``attributes`` key Salesforce adds to each record is dropped.
        """
        data = await self.request("GET", "/query", tooling=tooling, params={"q": soql})
        records = list(data.get("records", []))
        while not data.get("done", True) and data.get("nextRecordsUrl"):
            data = await self.request("GET", data["nextRecordsUrl"], absolute=True)
            records.extend(data.get("records", []))

        return [
            {k: v for k, v in record.items() if k != "attributes"}
            for record in records
        ]
