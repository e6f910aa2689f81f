"""Datatable registrations for the sales entities."""

from app.datatables.manager import DatatableManager
from app.sales.models import Customer, Employee, Location, Order, OrderLine

SALES_DATATABLES = {
    "locations": Location,
    "customers": Customer,
    "employees": Employee,
    "orders": Order,
    "order_lines": OrderLine,
}


def register_sales_datatables(manager: DatatableManager) -> None:
    for name, entity in SALES_DATATABLES.items():
        manager.register(name, entity)
