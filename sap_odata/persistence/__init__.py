"""
sap_odata.persistence - Optional local mirroring of decoded entities
=====================================================================
"""

from sap_odata.persistence.base import PersistenceBridge, PersistenceContext, PersistenceStore
from sap_odata.persistence.sqlalchemy_store import SQLAlchemyContext, SQLAlchemyStore

__all__ = [
    "PersistenceBridge",
    "PersistenceContext",
    "PersistenceStore",
    "SQLAlchemyContext",
    "SQLAlchemyStore",
]
