"""
sap_odata.client - Typed SAP OData client
==========================================

High-level client: sends one request, classifies the response and decodes
the ``d`` envelope into the caller's type.

Every request runs on a worker thread and returns a ``PendingRequest``
immediately; call ``result()`` to wait, or attach a callback.
"""

from __future__ import annotations

from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Any, Callable, Generic, List, Optional, Type, TypeVar
import logging
import threading

from PIL import Image

from sap_odata.core.errors import ODataError, classify_error
from sap_odata.core.session import (
    HttpState,
    ODataConfig,
    ODataCredential,
    RequestTarget,
    SAPODataSession,
)
from sap_odata.odata.classifier import classify_response, unwrap
from sap_odata.odata.decoder import build_decoder, decode_image
from sap_odata.persistence.base import PersistenceStore

T = TypeVar("T")

logger = logging.getLogger("sap_odata.client")


class PendingRequest(Generic[T]):
    """
    Handle for one in-flight request.

    ``result()`` returns the decoded value or raises an ``ODataError``
    (or ``CancelledError`` after ``cancel()``).
    """

    def __init__(self, url: Optional[str] = None) -> None:
        self.url = url
        self._state_lock = threading.Lock()
        self._cancel_requested = threading.Event()
        self._decoding = False
        self._future: "Future[T]" = Future()

    def _bind(self, future: "Future[T]") -> None:
        self._future = future

    def cancel(self) -> bool:
        """
        Cancel the request.

        A request still waiting for the network is dropped once the response
        arrives: it is neither decoded nor persisted. Returns False if the
        request had already finished or its response is being decoded.
        """
        with self._state_lock:
            if self._decoding or (self._future.done() and not self._future.cancelled()):
                return False
            self._cancel_requested.set()
        self._future.cancel()
        return True

    def _start_decoding(self) -> bool:
        with self._state_lock:
            if self._cancel_requested.is_set():
                return False
            self._decoding = True
            return True

    def cancelled(self) -> bool:
        return self._cancel_requested.is_set() or self._future.cancelled()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> T:
        return self._future.result(timeout)

    def exception(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        return self._future.exception(timeout)

    def add_done_callback(self, fn: Callable[["PendingRequest[T]"], None]) -> None:
        self._future.add_done_callback(lambda _f: fn(self))


class SAPODataClient:
    """
    Typed client for SAP OData v2 services.

    Parameters
    ----------
    credential : ODataCredential
        Answer for HTTP basic auth challenges
    config : ODataConfig, optional
        Transport settings; defaults to ``ODataConfig.default()``
    store : PersistenceStore, optional
        When given, decoded entities are merged into it and committed
    http_state : HttpState, optional
        Cookie jar and response cache; ``logout()`` clears it

    Examples
    --------
    >>> client = SAPODataClient(ODataCredential("USER", "PASS"))
    >>> order = client.get_entity(
    ...     "https://host/sap/opu/odata/sap/API_MAINTENANCEORDER_SRV/"
    ...     "MaintenanceOrder('4000001')",
    ...     MaintenanceOrder,
    ... ).result()
    """

    def __init__(
        self,
        credential: ODataCredential,
        config: Optional[ODataConfig] = None,
        store: Optional[PersistenceStore] = None,
        http_state: Optional[HttpState] = None,
    ) -> None:
        self.config = config or ODataConfig.default()
        self.store = store
        self.transport = SAPODataSession(credential, self.config, http_state)
        self.decoder = build_decoder(store)
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="sap-odata",
        )

    @property
    def http_state(self) -> HttpState:
        return self.transport.http_state

    def close(self) -> None:
        """Wait for in-flight requests and release the connection pool."""
        self._executor.shutdown(wait=True)
        self.transport.close()

    def __enter__(self) -> "SAPODataClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- public ops ----------------

    def get_entity(self, target: RequestTarget, type_: Type[T]) -> "PendingRequest[T]":
        """
        Fetch a single entity (``{"d": {...}}``).

        Parameters
        ----------
        target : str, requests.Request or requests.PreparedRequest
            URL of the entity, or a fully built request
        type_ : type
            Type the ``d`` object is decoded into
        """
        return self._submit(target, lambda body: self.decoder.decode_entity(body, type_))

    def get_entity_set(self, target: RequestTarget, type_: Type[T]) -> "PendingRequest[List[T]]":
        """Fetch an entity set (``{"d": {"results": [...]}}``) in server order."""
        return self._submit(target, lambda body: self.decoder.decode_entity_set(body, type_))

    def get_image(self, target: RequestTarget) -> "PendingRequest[Image.Image]":
        """Fetch a binary image resource, e.g. a ``$value`` media stream."""
        return self._submit(target, decode_image)

    def logout(self) -> None:
        """Clear all cached responses and all stored cookies."""
        self.transport.logout()

    # ---------------- internals ----------------

    def _submit(self, target: RequestTarget, decode: Callable[[bytes], Any]) -> PendingRequest:
        url = target if isinstance(target, str) else getattr(target, "url", None)
        pending: PendingRequest = PendingRequest(url)
        pending._bind(self._executor.submit(self._execute, pending, target, decode))
        return pending

    def _execute(self, pending: PendingRequest, target: RequestTarget, decode: Callable[[bytes], Any]) -> Any:
        try:
            response = self.transport.send(target)
            if not pending._start_decoding():
                logger.debug("request to %s cancelled, response dropped", pending.url)
                raise CancelledError()
            return unwrap(classify_response(response, decode))
        except (ODataError, CancelledError):
            raise
        except Exception as exc:
            raise classify_error(exc) from exc
