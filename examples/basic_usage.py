"""
Example: Basic usage of sap_odata
=================================

Reads a maintenance order and its item list, mirroring both into a local
SQLite database.
"""

from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy import String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from sap_odata import (
    ConnectionContext,
    ODataClientError,
    ODataError,
    SQLAlchemyStore,
)


class MaintenanceOrder(BaseModel):
    order: str = Field(alias="MaintenanceOrder")
    order_type: str = Field(alias="MaintenanceOrderType")
    description: Optional[str] = Field(default=None, alias="MaintenanceOrderDesc")


class Base(DeclarativeBase):
    pass


class MaintenanceOrderRow(Base):
    __tablename__ = "maintenance_orders"

    order: Mapped[str] = mapped_column(String(12), primary_key=True)
    order_type: Mapped[str] = mapped_column(String(4))
    description: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)


def example_read_order():
    """Read one order and handle the typed errors."""

    engine = create_engine("sqlite:///orders.db")
    Base.metadata.create_all(engine)
    store = SQLAlchemyStore(engine)
    store.register(MaintenanceOrder, MaintenanceOrderRow)

    # reads S4_BASE_URL / S4_USER / S4_PASS from the environment or .env
    with ConnectionContext(store=store) as conn:
        url = conn.url("API_MAINTENANCEORDER", "MaintenanceOrder('4000001')")
        try:
            order = conn.client.get_entity(url, MaintenanceOrder).result()
            print("Order:", order.order, order.description)
        except ODataClientError as exc:
            if exc.payload is not None:
                print("SAP rejected the request:", exc.payload.error.message.value)
            else:
                print("SAP rejected the request with status", exc.status)
        except ODataError as exc:
            print(f"{exc.kind.value}: {exc}")


def example_read_orders_concurrently():
    """Issue two reads at once and collect them."""

    with ConnectionContext() as conn:
        url = conn.url("API_MAINTENANCEORDER", "MaintenanceOrder")
        released = conn.client.get_entity_set(url + "?$filter=MaintenanceOrderType eq 'PM01'", MaintenanceOrder)
        planned = conn.client.get_entity_set(url + "?$filter=MaintenanceOrderType eq 'PM02'", MaintenanceOrder)
        print(len(released.result()), "PM01 orders")
        print(len(planned.result()), "PM02 orders")

        conn.client.logout()


if __name__ == "__main__":
    example_read_order()
    example_read_orders_concurrently()
