"""
sap_odata.odata.decoder - Body decoders used on 2xx responses
==============================================================
"""

from __future__ import annotations

from typing import Any, List, Optional
import io

from PIL import Image, UnidentifiedImageError

from sap_odata.core.errors import ODataParsingError
from sap_odata.odata.envelope import Body, decode_entity, decode_entity_set
from sap_odata.persistence.base import PersistenceBridge, PersistenceStore


class EnvelopeDecoder:
    """Pure envelope decoder; no side effects."""

    def decode_entity(self, body: Body, type_: Any) -> Any:
        return decode_entity(body, type_)

    def decode_entity_set(self, body: Body, type_: Any) -> List[Any]:
        return decode_entity_set(body, type_)


class PersistingDecoder:
    """
    Envelope decoder that mirrors every decoded entity into a store.

    Parameters
    ----------
    inner : EnvelopeDecoder
        Decoder doing the actual envelope work
    bridge : PersistenceBridge
        Opens, merges into and commits one context per decode
    """

    def __init__(self, inner: EnvelopeDecoder, bridge: PersistenceBridge) -> None:
        self.inner = inner
        self.bridge = bridge

    def decode_entity(self, body: Body, type_: Any) -> Any:
        return self.bridge.persist_entity(lambda: self.inner.decode_entity(body, type_))

    def decode_entity_set(self, body: Body, type_: Any) -> List[Any]:
        return self.bridge.persist_entity_set(lambda: self.inner.decode_entity_set(body, type_))


def build_decoder(store: Optional[PersistenceStore] = None):
    """Plain decoder, or a persisting one when a store is configured."""
    decoder = EnvelopeDecoder()
    if store is None:
        return decoder
    return PersistingDecoder(decoder, PersistenceBridge(store))


def decode_image(body: bytes) -> Image.Image:
    """
    Decode an image body (PNG, JPEG, GIF, ...).

    Raises
    ------
    ODataParsingError
        If the bytes are not a readable image
    """
    try:
        img = Image.open(io.BytesIO(body))
        img.load()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        EOFError,
        ValueError,
    ) as exc:
        raise ODataParsingError(f"Invalid image payload: {exc}") from exc
    return img
