"""sf-data-loader: seed an org with interrelated fixture records and remove them again.

Reads one JSON fixture file per object type, infers which collections refer
to which from the record contents, creates everything parents-first (with
embedded-query and id substitution in field values), and records the created
ids so a later run can delete exactly those records, children-first.

Usage:
    from sf_data_loader import get_active_profile, get_data_loader

    _, profile = get_active_profile("sandbox")
    loader = await get_data_loader(profile)
    identity = await loader.load_data()
    await loader.delete_loaded_data()
    await loader.close()
"""

__version__ = "0.1.0"

# Adapters
from sf_data_loader.adapters.base import RecordStoreClient, SObjectHandle, choose_handle
from sf_data_loader.adapters.salesforce import AsyncSalesforceAdapter

# Config
from sf_data_loader.config.loader import load_loader_config
from sf_data_loader.config.models import LoaderConfig, LoaderProfile

# Errors
from sf_data_loader.errors import (
    CreateFailed,
    DataLoaderError,
    DeleteFailed,
    DependencyCycleError,
    FixtureError,
    LookupNotFound,
    PersistedIdsMissing,
)

# Fixtures
from sf_data_loader.fixtures.store import RecordStore

# Seed engine
from sf_data_loader.seed import (
    DependencyOrderedExecutor,
    FieldResolver,
    IdentityMap,
    PersistedIdStore,
    RelationGraph,
    build_relation_graph,
)

# Factory
from sf_data_loader.factory import (
    DataLoader,
    ProfileNotFoundError,
    get_active_profile,
    get_data_loader,
)

__all__ = [
    # Adapters
    "RecordStoreClient",
    "SObjectHandle",
    "choose_handle",
    "AsyncSalesforceAdapter",
    # Config
    "load_loader_config",
    "LoaderConfig",
    "LoaderProfile",
    # Errors
    "DataLoaderError",
    "LookupNotFound",
    "CreateFailed",
    "DeleteFailed",
    "DependencyCycleError",
    "FixtureError",
    "PersistedIdsMissing",
    # Fixtures
    "RecordStore",
    # Seed engine
    "RelationGraph",
    "build_relation_graph",
    "FieldResolver",
    "IdentityMap",
    "PersistedIdStore",
    "DependencyOrderedExecutor",
    # Factory
    "DataLoader",
    "ProfileNotFoundError",
    "get_active_profile",
    "get_data_loader",
]
