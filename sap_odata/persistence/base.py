"""
sap_odata.persistence.base - Persistence bridge
================================================

Optional mirroring of decoded entities into a local store. A store hands out
one transactional context per decode; the bridge merges every decoded entity
into it and commits before the decoded value is returned.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Protocol, TypeVar
import logging

from sap_odata.core.errors import ODataPersistenceError

T = TypeVar("T")

logger = logging.getLogger("sap_odata.persistence")


class PersistenceContext(Protocol):
    """Unit of work scoped to a single decode."""

    def merge(self, entity: Any) -> None:
        """Merge ``entity`` into the store; newer property values win."""
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def close(self) -> None:
        ...


class PersistenceStore(Protocol):
    def new_context(self) -> PersistenceContext:
        ...


class PersistenceBridge:
    """
    Wrap a decode in a fresh persistence context.

    Parameters
    ----------
    store : PersistenceStore
        Store that hands out contexts; contexts are never reused

    Notes
    -----
    If merging or committing fails the context is rolled back and an
    ``ODataPersistenceError`` is raised. The decoded entities are not kept.
    """

    def __init__(self, store: PersistenceStore) -> None:
        self.store = store

    def persist_entity(self, decode: Callable[[], T]) -> T:
        return self._persist(decode, lambda value: [value])

    def persist_entity_set(self, decode: Callable[[], List[T]]) -> List[T]:
        return self._persist(decode, lambda values: values)

    def _persist(self, decode: Callable[[], T], entities_of: Callable[[T], Iterable[Any]]) -> T:
        try:
            ctx = self.store.new_context()
        except Exception as exc:
            raise ODataPersistenceError(f"Could not open persistence context: {exc}") from exc

        try:
            value = decode()
            try:
                for entity in entities_of(value):
                    ctx.merge(entity)
                ctx.commit()
            except ODataPersistenceError:
                self._discard(ctx)
                raise
            except Exception as exc:
                self._discard(ctx)
                raise ODataPersistenceError(f"Could not persist decoded entities: {exc}") from exc
            return value
        finally:
            ctx.close()

    @staticmethod
    def _discard(ctx: PersistenceContext) -> None:
        logger.warning("discarding persistence context after failure")
        try:
            ctx.rollback()
        except Exception:
            logger.exception("rollback failed")
