"""
sap_odata.odata.error_payload - SAP OData error bodies
======================================================

Pydantic models for the SAP Gateway error document::

    {"error": {"code": ..., "message": {"lang": ..., "value": ...},
               "innererror": {...}}}

and the best-effort decoder used for 4xx responses.
"""

from __future__ import annotations

from typing import List, Optional, Union
import logging

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("sap_odata.error_payload")


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ErrorMessage(_WireModel):
    language: str = Field(alias="lang")
    value: str


class ErrorApplication(_WireModel):
    component_id: str
    service_namespace: str
    service_id: str
    service_version: str


class ErrorResolution(_WireModel):
    transaction: str = Field(alias="SAP_Transaction")
    note: str = Field(alias="SAP_Note")


class ErrorDetail(_WireModel):
    """One field-level message from ``innererror.errordetails``."""

    code: str
    message: str
    property_ref: str = Field(alias="propertyref")
    severity: str
    transition: bool
    target: str


class InnerError(_WireModel):
    application: ErrorApplication
    transaction_id: str = Field(alias="transactionid")
    timestamp: str
    resolution: ErrorResolution = Field(alias="Error_Resolution")
    details: List[ErrorDetail] = Field(alias="errordetails")


class ODataErrorBody(_WireModel):
    code: str
    message: ErrorMessage
    inner: InnerError = Field(alias="innererror")


class ErrorPayload(_WireModel):
    """
    Structured SAP error response.

    Examples
    --------
    >>> payload = decode_error_payload(response.content)
    >>> if payload is not None:
    ...     print(payload.error.code, payload.error.message.value)
    """

    error: ODataErrorBody


def decode_error_payload(body: Union[bytes, str, None]) -> Optional[ErrorPayload]:
    """
    Decode a SAP error body, or return None if it is not one.

    Non-JSON bodies, HTML error pages and incomplete error documents all
    yield None so that callers still get the HTTP status.
    """
    if not body:
        return None
    try:
        return ErrorPayload.model_validate_json(body)
    except ValueError as exc:
        logger.debug("discarding undecodable error payload: %s", exc)
        return None
