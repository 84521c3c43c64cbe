"""
sap_odata.core - Core transport and configuration
==================================================

This module provides the foundational pieces for talking to SAP systems:

- ODataCredential: Basic auth credential used to answer challenges
- ODataConfig: Transport configuration (timeout, headers, TLS, pooling)
- SAPODataSession: Low-level HTTP transport over requests
- HttpState / ResponseCache: Shared cookie jar and response cache
- ConnectionContext: High-level connection manager (hana_ml style)
- Error taxonomy: ODataError and its kinds

"""

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
from sap_odata.core.cache import ResponseCache
from sap_odata.core.session import (
    BasicChallengeAuth,
    HttpState,
    ODataConfig,
    ODataCredential,
    SAPODataSession,
)
from sap_odata.core.connection import ConnectionContext

__all__ = [
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
    "ResponseCache",
    "BasicChallengeAuth",
    "HttpState",
    "ODataConfig",
    "ODataCredential",
    "SAPODataSession",
    "ConnectionContext",
]
