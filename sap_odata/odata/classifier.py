"""
sap_odata.odata.classifier - HTTP response classification
==========================================================

Maps one HTTP response onto exactly one outcome:

- 2xx: ``Decoded`` - body decoded into the caller's type
- 3xx: ``Redirection`` - body left untouched
- 4xx: ``ClientError`` - with the SAP error payload when one could be read
- 5xx: ``ServerError``
- anything else: ``Unknown``

Decode failures on a 2xx are raised as ``ODataParsingError``; they are never
turned into client or server errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from requests import Response

from sap_odata.core.errors import (
    ODataClientError,
    ODataRedirectError,
    ODataServerError,
    ODataUnknownError,
)
from sap_odata.odata.error_payload import ErrorPayload, decode_error_payload

T = TypeVar("T")


class StatusClass(str, Enum):
    SUCCESS = "success"
    REDIRECTION = "redirection"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


def classify_status(status: int) -> StatusClass:
    """
    Bucket an HTTP status code.

    Examples
    --------
    >>> classify_status(204)
    <StatusClass.SUCCESS: 'success'>
    >>> classify_status(199)
    <StatusClass.UNKNOWN: 'unknown'>
    """
    if 200 <= status <= 299:
        return StatusClass.SUCCESS
    if 300 <= status <= 399:
        return StatusClass.REDIRECTION
    if 400 <= status <= 499:
        return StatusClass.CLIENT_ERROR
    if 500 <= status <= 599:
        return StatusClass.SERVER_ERROR
    return StatusClass.UNKNOWN


@dataclass(frozen=True)
class Decoded(Generic[T]):
    value: T


@dataclass(frozen=True)
class Redirection:
    response: Response


@dataclass(frozen=True)
class ClientError:
    response: Response
    payload: Optional[ErrorPayload] = None


@dataclass(frozen=True)
class ServerError:
    response: Response


@dataclass(frozen=True)
class Unknown:
    response: Optional[Response] = None


ClassifiedOutcome = Union[Decoded, Redirection, ClientError, ServerError, Unknown]


def classify_response(response: Response, decode: Callable[[bytes], T]) -> ClassifiedOutcome:
    """
    Classify ``response`` and decode its body on success.

    Parameters
    ----------
    response : requests.Response
        Raw HTTP response
    decode : callable
        Turns the body bytes into the caller's value; may raise
        ``ODataParsingError`` or ``ODataPersistenceError``

    Returns
    -------
    ClassifiedOutcome
        Exactly one of Decoded, Redirection, ClientError, ServerError, Unknown
    """
    bucket = classify_status(response.status_code)

    if bucket is StatusClass.SUCCESS:
        return Decoded(decode(response.content))
    if bucket is StatusClass.REDIRECTION:
        return Redirection(response)
    if bucket is StatusClass.CLIENT_ERROR:
        return ClientError(response, decode_error_payload(response.content))
    if bucket is StatusClass.SERVER_ERROR:
        return ServerError(response)
    return Unknown(response)


def unwrap(outcome: ClassifiedOutcome) -> Any:
    """Return the decoded value, or raise the error matching the outcome."""
    if isinstance(outcome, Decoded):
        return outcome.value
    if isinstance(outcome, Redirection):
        raise ODataRedirectError.from_response(outcome.response)
    if isinstance(outcome, ClientError):
        raise ODataClientError.from_response(outcome.response, payload=outcome.payload)
    if isinstance(outcome, ServerError):
        raise ODataServerError.from_response(outcome.response)
    status = outcome.response.status_code if outcome.response is not None else None
    raise ODataUnknownError(f"Unclassifiable HTTP status {status}", status=status)
