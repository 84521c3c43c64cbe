"""
sap_odata.core.errors - Error taxonomy
======================================

Every failure the client reports is an ``ODataError`` carrying exactly one
``ErrorKind`` tag:

- REQUEST_FAILED: transport failure (connectivity, timeout, TLS)
- REDIRECTION: 3xx response, body not decoded
- CLIENT: 4xx response, optionally with a structured SAP error payload
- SERVER: 5xx response
- UNKNOWN: unclassifiable status or failure
- PARSING: the body did not match the expected envelope
- PERSISTENCE: the persistence store failed to commit

``classify_error`` maps arbitrary exceptions onto this taxonomy.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional

import requests
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

if TYPE_CHECKING:
    from sap_odata.odata.error_payload import ErrorPayload


class ErrorKind(str, Enum):
    REQUEST_FAILED = "request_failed"
    REDIRECTION = "redirection"
    CLIENT = "client"
    SERVER = "server"
    UNKNOWN = "unknown"
    PARSING = "parsing"
    PERSISTENCE = "persistence"


class TransportFailure(str, Enum):
    """Finer reason attached to REQUEST_FAILED errors."""

    TIMEOUT = "timeout"
    CONNECTION = "connection"
    TLS = "tls"
    OTHER = "other"


class ODataError(RuntimeError):
    """Base class for all errors raised by sap_odata."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class ODataRequestFailed(ODataError):
    """
    The request never produced an HTTP response.

    Attributes
    ----------
    failure : TransportFailure
        Timeout, connection, TLS or other transport failure
    url : str, optional
        Requested URL, when known
    """

    kind = ErrorKind.REQUEST_FAILED

    def __init__(
        self,
        message: str,
        *,
        failure: TransportFailure = TransportFailure.OTHER,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.failure = failure
        self.url = url


class ODataUpstreamError(ODataError):
    """
    The SAP OData service answered with a non-success HTTP status.

    Attributes
    ----------
    status : int
        HTTP status code from SAP
    body : str
        Response body (truncated for display)
    url : str
        The URL that was called
    headers : dict
        Response headers
    response : requests.Response, optional
        The raw response
    """

    def __init__(
        self,
        status: int,
        body: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        *,
        response: Optional[requests.Response] = None,
    ):
        snippet = (body or "")[:1200]
        super().__init__(f"OData upstream error {status} for {url}: {snippet}")
        self.status = status
        self.body = body or ""
        self.url = url
        self.headers = headers or {}
        self.response = response

    @classmethod
    def from_response(cls, response: requests.Response, **kwargs) -> "ODataUpstreamError":
        return cls(
            response.status_code,
            response.text,
            response.url or "",
            dict(response.headers),
            response=response,
            **kwargs,
        )


class ODataRedirectError(ODataUpstreamError):
    kind = ErrorKind.REDIRECTION

    @property
    def location(self) -> Optional[str]:
        return self.headers.get("Location") or self.headers.get("location")


class ODataClientError(ODataUpstreamError):
    """4xx response. ``payload`` is None when the body was not a SAP error."""

    kind = ErrorKind.CLIENT

    def __init__(self, *args, payload: Optional["ErrorPayload"] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.payload = payload


class ODataServerError(ODataUpstreamError):
    kind = ErrorKind.SERVER


class ODataUnknownError(ODataError):
    """
    Catch-all for statuses outside 200-599 and failures that fit no other kind.

    ``status`` is set when the failure came from an HTTP response.
    """

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str = "Unknown OData failure", *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ODataParsingError(ODataError):
    """The response body did not have the expected shape."""

    kind = ErrorKind.PARSING


class ODataPersistenceError(ODataError):
    """The persistence store failed to merge or commit decoded entities."""

    kind = ErrorKind.PERSISTENCE


def _transport_failure(exc: requests.RequestException) -> TransportFailure:
    # SSLError subclasses ConnectionError, check it first
    if isinstance(exc, requests.exceptions.SSLError):
        return TransportFailure.TLS
    if isinstance(exc, requests.exceptions.Timeout):
        return TransportFailure.TIMEOUT
    if isinstance(exc, requests.exceptions.ConnectionError):
        return TransportFailure.CONNECTION
    return TransportFailure.OTHER


def classify_error(exc: BaseException) -> ODataError:
    """
    Map any exception raised while serving a request onto the error taxonomy.

    Parameters
    ----------
    exc : BaseException
        Transport, decoding, persistence or already-classified failure

    Returns
    -------
    ODataError
        ``exc`` itself when it is already an ODataError, otherwise a new
        error of the matching kind with ``exc`` as its cause
    """
    if isinstance(exc, ODataError):
        return exc

    if isinstance(exc, requests.RequestException):
        url = exc.request.url if exc.request is not None else None
        err: ODataError = ODataRequestFailed(
            str(exc) or exc.__class__.__name__,
            failure=_transport_failure(exc),
            url=url,
        )
    elif isinstance(exc, ValidationError):
        err = ODataParsingError(str(exc))
    elif isinstance(exc, SQLAlchemyError):
        err = ODataPersistenceError(str(exc))
    else:
        err = ODataUnknownError(f"{exc.__class__.__name__}: {exc}")

    err.__cause__ = exc
    return err
