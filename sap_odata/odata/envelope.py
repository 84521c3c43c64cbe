"""
sap_odata.odata.envelope - OData v2 JSON envelopes
==================================================

SAP Gateway wraps JSON payloads in a ``d`` envelope::

    {"d": {...entity...}}                  single entity
    {"d": {"results": [{...}, {...}]}}     entity set

``EntityEnvelope`` and ``EntitySetEnvelope`` are generic pydantic models, so
the same decode works for any type pydantic can validate: BaseModel
subclasses, dataclasses, TypedDicts or plain builtins.
"""

from __future__ import annotations

from typing import Any, Generic, List, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel, ValidationError

from sap_odata.core.errors import ODataParsingError

T = TypeVar("T")

Body = Union[bytes, str]


class EntityEnvelope(BaseModel, Generic[T]):
    """Single entity: ``{"d": <T>}``."""

    d: T

    @property
    def entity(self) -> T:
        return self.d


class EntityResults(BaseModel, Generic[T]):
    results: List[T]


class EntitySetEnvelope(BaseModel, Generic[T]):
    """Entity set: ``{"d": {"results": [<T>, ...]}}``. Server order is kept."""

    d: EntityResults[T]

    @property
    def entities(self) -> List[T]:
        return list(self.d.results)


def _type_name(type_: Any) -> str:
    return getattr(type_, "__name__", None) or repr(type_)


def decode_entity(body: Body, type_: Any) -> Any:
    """
    Decode a single-entity envelope.

    Parameters
    ----------
    body : bytes or str
        Raw JSON response body
    type_ : type
        Target type of the entity

    Returns
    -------
    object
        The validated entity

    Raises
    ------
    ODataParsingError
        If the body is not JSON, lacks ``d``, or ``d`` does not match ``type_``
    """
    try:
        return EntityEnvelope[type_].model_validate_json(body).entity
    except ValidationError as exc:
        raise ODataParsingError(
            f"Invalid entity envelope for {_type_name(type_)}: {exc}"
        ) from exc


def decode_entity_set(body: Body, type_: Any) -> List[Any]:
    """
    Decode an entity-set envelope into a list, preserving server order.

    An empty ``results`` array yields an empty list.

    Raises
    ------
    ODataParsingError
        If ``d`` or ``d.results`` is missing, ``results`` is not an array, or
        any element does not match ``type_``
    """
    try:
        return EntitySetEnvelope[type_].model_validate_json(body).entities
    except ValidationError as exc:
        raise ODataParsingError(
            f"Invalid entity set envelope for {_type_name(type_)}: {exc}"
        ) from exc


def encode_entity(value: Any, type_: Optional[Any] = None) -> str:
    """Serialize ``value`` into a single-entity envelope using wire aliases."""
    model = EntityEnvelope[type_ if type_ is not None else type(value)]
    return model(d=value).model_dump_json(by_alias=True)


def encode_entity_set(values: Sequence[Any], type_: Any) -> str:
    """Serialize ``values`` into an entity-set envelope using wire aliases."""
    model = EntitySetEnvelope[type_]
    return model(d={"results": list(values)}).model_dump_json(by_alias=True)
