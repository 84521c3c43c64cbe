"""
sap_odata.persistence.sqlalchemy_store - SQLAlchemy-backed store
================================================================

Mirrors decoded entities into relational tables. Each decoded type is
registered against an ORM class; merging relies on ``Session.merge`` so the
row with the same primary key is updated column by column with the newly
decoded values.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Union
import dataclasses
import logging

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger("sap_odata.persistence")


def _entity_fields(entity: Any) -> Dict[str, Any]:
    if isinstance(entity, BaseModel):
        return entity.model_dump()
    if dataclasses.is_dataclass(entity) and not isinstance(entity, type):
        return dataclasses.asdict(entity)
    if isinstance(entity, dict):
        return dict(entity)
    return dict(vars(entity))


class SQLAlchemyContext:
    """One SQLAlchemy session, used for a single decode."""

    def __init__(self, session: Session, registry: Dict[type, type]) -> None:
        self.session = session
        self._registry = registry

    def _orm_type(self, entity_type: type) -> Optional[type]:
        for klass in entity_type.__mro__:
            if klass in self._registry:
                return self._registry[klass]
        return None

    def merge(self, entity: Any) -> None:
        orm_type = self._orm_type(type(entity))
        if orm_type is None:
            logger.debug("no table registered for %s, not persisted", type(entity).__name__)
            return
        columns = {attr.key for attr in sa_inspect(orm_type).column_attrs}
        values = {k: v for k, v in _entity_fields(entity).items() if k in columns}
        self.session.merge(orm_type(**values))

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def close(self) -> None:
        self.session.close()


class SQLAlchemyStore:
    """
    Persistence store handing out a fresh SQLAlchemy session per decode.

    Parameters
    ----------
    bind : Engine or sessionmaker
        Database engine, or a configured session factory

    Examples
    --------
    >>> engine = create_engine("sqlite:///cache.db")
    >>> store = SQLAlchemyStore(engine)
    >>> store.register(MaintenanceOrder, MaintenanceOrderRow)
    >>> client = SAPODataClient(credential, store=store)
    """

    def __init__(self, bind: Union[Engine, sessionmaker]) -> None:
        if isinstance(bind, sessionmaker):
            self._factory = bind
        else:
            self._factory = sessionmaker(bind=bind)
        self._registry: Dict[type, type] = {}

    def register(self, entity_type: type, orm_type: type) -> None:
        """Persist decoded ``entity_type`` values as rows of ``orm_type``."""
        self._registry[entity_type] = orm_type

    def new_context(self) -> SQLAlchemyContext:
        return SQLAlchemyContext(self._factory(), dict(self._registry))
