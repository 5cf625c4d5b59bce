"""Data loader factory.

Resolves the active profile, logs in to the org, reads the fixture
directory once, infers the relation graph once, and hands back a
``DataLoader`` that can load the fixtures and later delete what it loaded.

Usage:
    from sf_data_loader.factory import get_active_profile, get_data_loader

    name, profile = get_active_profile("sandbox")
    loader = await get_data_loader(profile)
    try:
        identity = await loader.load_data()
        ...
        await loader.delete_loaded_data()
    finally:
        await loader.close()
"""

import logging
import os
from pathlib import Path

from sf_data_loader.adapters.base import RecordStoreClient
from sf_data_loader.adapters.salesforce import AsyncSalesforceAdapter
from sf_data_loader.config.loader import load_loader_config
from sf_data_loader.config.models import LoaderProfile
from sf_data_loader.fixtures.files import RESERVED_PREFIX, ensure_dir
from sf_data_loader.fixtures.store import RecordStore
from sf_data_loader.seed.executor import DependencyOrderedExecutor
from sf_data_loader.seed.graph import RelationGraph, build_relation_graph
from sf_data_loader.seed.identity import IdentityMap, PersistedIdStore

logger = logging.getLogger(__name__)


class ProfileNotFoundError(Exception):
    """Raised when no loader profile is configured."""

    pass


# ============================================================================
# Profile Resolution
# ============================================================================


def get_active_profile_name(
    profile_name: str | None = None,
    available: list[str] | None = None,
    env_prefix: str = "",
) -> str:
    """Get active profile name.

    Priority:
    1. Explicit ``profile_name``
    2. ``{env_prefix}SF_PROFILE`` env var
    3. The only configured profile, when exactly one exists
    4. Raise ProfileNotFoundError

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile can be chosen
    """
    if profile_name:
        return profile_name

    env_profile = os.environ.get(f"{env_prefix}SF_PROFILE")
    if env_profile:
        return env_profile

    if available and len(available) == 1:
        return available[0]

    raise ProfileNotFoundError(
        "No loader profile selected.\n"
        f"Pass --profile <name> or set {env_prefix}SF_PROFILE.\n"
        f"Available profiles: {', '.join(available or []) or '(none)'}"
    )


def get_active_profile(
    profile_name: str | None = None,
    config_path: Path | None = None,
    env_prefix: str = "",
) -> tuple[str, LoaderProfile]:
    """Get active profile name and configuration.

    Returns:
        Tuple of (profile_name, LoaderProfile)

    Raises:
        ProfileNotFoundError: If no profile is selected or it is not in the config
        FileNotFoundError: If the config file does not exist
    """
    config = load_loader_config(config_path)
    name = get_active_profile_name(
        profile_name, available=list(config.profiles), env_prefix=env_prefix
    )

    if name not in config.profiles:
        raise ProfileNotFoundError(
            f"Profile '{name}' not found in config.\n"
            f"Available profiles: {', '.join(config.profiles)}"
        )

    return name, config.profiles[name]


def resolve_password(profile: LoaderProfile, env_prefix: str = "") -> str:
    """Profile password, falling back to the ``{env_prefix}SF_PASSWORD`` env var.

    Raises:
        ProfileNotFoundError: If neither is set.
    """
    password = profile.password or os.environ.get(f"{env_prefix}SF_PASSWORD")
    if not password:
        raise ProfileNotFoundError(
            f"No password for {profile.user}: set 'password' in the profile "
            f"or the {env_prefix}SF_PASSWORD env var"
        )
    return password


# ============================================================================
# Data Loader
# ============================================================================


class DataLoader:
    """Loads a fixture directory into an org and deletes it again.

    Built by ``get_data_loader()``; holds the logged-in client, the fixture
    records, the inferred relation graph, and the executor.
    """

    def __init__(
        self,
        client: RecordStoreClient,
        store: RecordStore,
        graph: RelationGraph,
        id_store: PersistedIdStore,
        tooling_sobjects: list[str] | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self.graph = graph
        self.id_store = id_store
        self.executor = DependencyOrderedExecutor(
            client, store, graph, id_store, tooling_sobjects=tooling_sobjects or []
        )

    async def load_data(self) -> IdentityMap:
        """Create every fixture record; returns fixture id -> remote id."""
        return await self.executor.load_all()

    async def delete_loaded_data(self) -> None:
        """Delete every record a previous load persisted ids for."""
        await self.executor.delete_all()

    async def close(self) -> None:
        await self.client.close()


async def get_data_loader(
    profile: LoaderProfile,
    client: RecordStoreClient | None = None,
    env_prefix: str = "",
    reserved_prefix: str = RESERVED_PREFIX,
) -> DataLoader:
    """Log in, read fixtures, infer the relation graph, and build a DataLoader.

    Args:
        profile: Loader profile (org, credentials, fixture locations).
        client: Remote store client to use.  When ``None``, an
            ``AsyncSalesforceAdapter`` is created from the profile (and
            closed again if login or fixture reading fails).  A client
            passed in stays open on failure; the caller owns it.
        env_prefix: Prefix for the password env var lookup.
        reserved_prefix: Fixture files starting with this are not data.

    Returns:
        Ready-to-use ``DataLoader``.

    Raises:
        ProfileNotFoundError: If no password is available.
        FixtureError: If a fixture file is malformed.
    """
    ids_path = profile.resolved_ids_path
    logger.info("saving generated ids under '%s'", ids_path)

    password = resolve_password(profile, env_prefix)
    ensure_dir(profile.records_path)
    ensure_dir(ids_path)

    owns_client = client is None
    if client is None:
        client = AsyncSalesforceAdapter(
            profile.login_url,
            profile.version,
            call_options=profile.call_options,
        )

    try:
        await client.login(profile.user, password)
        store = RecordStore.from_directory(profile.records_path, reserved_prefix=reserved_prefix)
    except BaseException:
        # No DataLoader reaches the caller, so nobody else can close it
        if owns_client:
            await client.close()
        raise

    graph = build_relation_graph(store.as_mapping())
    logger.debug(
        "inferred parents: %s",
        {name: sorted(graph.parents_of(name)) for name in store.names},
    )

    return DataLoader(
        client,
        store,
        graph,
        PersistedIdStore(ids_path),
        tooling_sobjects=profile.tooling_sobjects,
    )
