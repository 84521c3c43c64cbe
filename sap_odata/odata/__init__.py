"""
sap_odata.odata - OData response handling
==========================================

- EntityEnvelope / EntitySetEnvelope: the SAP ``d`` JSON envelopes
- ErrorPayload: structured SAP error bodies
- classify_status / classify_response / unwrap: status-range classification
- EnvelopeDecoder / PersistingDecoder: decoding with optional persistence

"""

from sap_odata.odata.envelope import (
    EntityEnvelope,
    EntitySetEnvelope,
    decode_entity,
    decode_entity_set,
    encode_entity,
    encode_entity_set,
)
from sap_odata.odata.error_payload import ErrorPayload, decode_error_payload
from sap_odata.odata.classifier import (
    StatusClass,
    ClassifiedOutcome,
    Decoded,
    Redirection,
    ClientError,
    ServerError,
    Unknown,
    classify_status,
    classify_response,
    unwrap,
)
from sap_odata.odata.decoder import (
    EnvelopeDecoder,
    PersistingDecoder,
    build_decoder,
    decode_image,
)

__all__ = [
    "EntityEnvelope",
    "EntitySetEnvelope",
    "decode_entity",
    "decode_entity_set",
    "encode_entity",
    "encode_entity_set",
    "ErrorPayload",
    "decode_error_payload",
    "StatusClass",
    "ClassifiedOutcome",
    "Decoded",
    "Redirection",
    "ClientError",
    "ServerError",
    "Unknown",
    "classify_status",
    "classify_response",
    "unwrap",
    "EnvelopeDecoder",
    "PersistingDecoder",
    "build_decoder",
    "decode_image",
]
