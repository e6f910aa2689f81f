# app/sales/__init__.py

from .models import Customer, Employee, Location, Order, OrderLine

__all__ = [
    "Location",
    "Customer",
    "Employee",
    "Order",
    "OrderLine",
]
