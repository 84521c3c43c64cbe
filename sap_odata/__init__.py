"""
SAP OData Python client (sap_odata)
===================================

A typed client for SAP OData v2 services. Each request is classified by
HTTP status, and successful bodies are unwrapped from the SAP ``d``
envelope into the type the caller asks for.

Usage
-----
>>> from sap_odata import ConnectionContext
>>>
>>> with ConnectionContext() as conn:
...     url = conn.url("API_MAINTENANCEORDER_SRV", "MaintenanceOrder")
...     orders = conn.client.get_entity_set(url, MaintenanceOrder).result()

Subpackages
-----------
- sap_odata.core: Transport, configuration and error taxonomy
- sap_odata.odata: Envelopes, SAP error payloads and response classification
- sap_odata.persistence: Optional mirroring of entities into a local store

"""

__version__ = "0.3.0"

# Core exports - available at package root
from sap_odata.core.errors import (
    ErrorKind,
    TransportFailure,
    ODataError,
    ODataRequestFailed,
    ODataUpstreamError,
    ODataRedirectError,
    ODataClientError,
    ODataServerError,
    ODataUnknownError,
    ODataParsingError,
    ODataPersistenceError,
    classify_error,
)
from sap_odata.core.session import (
    HttpState,
    ODataConfig,
    ODataCredential,
    SAPODataSession,
)
from sap_odata.core.connection import ConnectionContext
from sap_odata.client import PendingRequest, SAPODataClient

# Convenience re-exports
from sap_odata.odata import (
    EntityEnvelope,
    EntitySetEnvelope,
    ErrorPayload,
    classify_response,
    classify_status,
)
from sap_odata.persistence import PersistenceBridge, SQLAlchemyStore

__all__ = [
    # Version
    "__version__",
    # Errors
    "ErrorKind",
    "TransportFailure",
    "ODataError",
    "ODataRequestFailed",
    "ODataUpstreamError",
    "ODataRedirectError",
    "ODataClientError",
    "ODataServerError",
    "ODataUnknownError",
    "ODataParsingError",
    "ODataPersistenceError",
    "classify_error",
    # Core
    "HttpState",
    "ODataConfig",
    "ODataCredential",
    "SAPODataSession",
    "ConnectionContext",
    "PendingRequest",
    "SAPODataClient",
    # OData
    "EntityEnvelope",
    "EntitySetEnvelope",
    "ErrorPayload",
    "classify_response",
    "classify_status",
    # Persistence
    "PersistenceBridge",
    "SQLAlchemyStore",
]
