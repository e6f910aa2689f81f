"""Sample sales data for development databases."""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.sales.models import Customer, Employee, Location, Order, OrderLine

logger = logging.getLogger(__name__)


def create_sample_data(session: Session) -> None:
    """Seed locations, customers, employees and orders unless data already exists."""
    existing = session.execute(select(func.count(Customer.id))).scalar_one()
    if existing > 0:
        logger.info("Sample data already exists (%s customers). Skipping creation.", existing)
        return

    try:
        locations = [
            Location(id=1, name="Head office", address="1 Main Street", city="Springfield", country="US"),
            Location(id=2, name="Warehouse", address="42 Dock Road", city="Rotterdam", country="NL"),
            Location(id=3, name="Shop", address="7 Market Square", city="Ghent", country="BE"),
        ]
        session.add_all(locations)

        employees = [
            Employee(id=1, name="Grace Hopper", title="Sales Director"),
            Employee(id=2, name="Alan Turing", title="Account Manager", manager_id=1),
            Employee(id=3, name="Ada Lovelace", title="Account Manager", manager_id=1),
            Employee(id=4, name="Edsger Dijkstra", title="Sales Assistant", manager_id=2),
        ]
        session.add_all(employees)

        customers = [
            Customer(id=1, first_name="John", last_name="Smith", email="john@example.com", location_id=1),
            Customer(id=2, first_name="Joanna", last_name="Jones", email="joanna@example.com", location_id=2),
            Customer(id=3, first_name="Pieter", last_name="de Vries", email="pieter@example.nl", location_id=2),
            Customer(id=4, first_name="Marie", last_name="Peeters", email="marie@example.be", location_id=3),
        ]
        session.add_all(customers)

        orders = [
            Order(id=1, reference="SO-1001", status="shipped", total=120.0, customer_id=1, sales_rep_id=2),
            Order(id=2, reference="SO-1002", status="open", total=75.5, customer_id=1, sales_rep_id=2),
            Order(id=3, reference="SO-1003", status="open", total=310.0, customer_id=2, sales_rep_id=3),
            Order(id=4, reference="SO-1004", status="cancelled", total=12.0, customer_id=4, sales_rep_id=4),
        ]
        session.add_all(orders)

        lines = [
            OrderLine(order_id=1, line_no=1, product="Keyboard", quantity=2),
            OrderLine(order_id=1, line_no=2, product="Mouse", quantity=2),
            OrderLine(order_id=2, line_no=1, product="Monitor", quantity=1),
            OrderLine(order_id=3, line_no=1, product="Laptop", quantity=1),
            OrderLine(order_id=4, line_no=1, product="Cable", quantity=3),
        ]
        session.add_all(lines)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Error creating sample data")
        raise

    logger.info(
        "Sample data created: %s locations, %s customers, %s employees, %s orders",
        len(locations), len(customers), len(employees), len(orders),
    )
