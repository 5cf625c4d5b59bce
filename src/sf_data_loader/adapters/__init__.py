"""Remote store adapters package.

Provides the ``RecordStoreClient`` / ``SObjectHandle`` Protocols, the
``choose_handle`` tooling/standard selector, and the async Salesforce
implementation.

Usage:
    from sf_data_loader.adapters import AsyncSalesforceAdapter, choose_handle
"""

from sf_data_loader.adapters.base import RecordStoreClient, SObjectHandle, choose_handle
from sf_data_loader.adapters.salesforce import (
    AsyncSalesforceAdapter,
    SalesforceApiError,
    SalesforceLoginError,
    SalesforceSObject,
)

__all__ = [
    "RecordStoreClient",
    "SObjectHandle",
    "choose_handle",
    "AsyncSalesforceAdapter",
    "SalesforceSObject",
    "SalesforceApiError",
    "SalesforceLoginError",
]
