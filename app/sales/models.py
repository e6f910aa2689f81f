"""Database models for the sales module."""

from sqlalchemy import Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Location(Base):
    """Postal location shared by customers."""

    __tablename__ = "location"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    address = Column(String(200), nullable=False)
    city = Column(String(100), nullable=False)
    country = Column(String(2), nullable=False)

    customers = relationship("Customer", back_populates="location")


class Customer(Base):
    __tablename__ = "customer"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(200), nullable=False)
    location_id = Column(Integer, ForeignKey("location.id"), nullable=True)

    location = relationship("Location", back_populates="customers")
    orders = relationship("Order", back_populates="customer")


class Employee(Base):
    """Sales employee; `manager` and `reports` form the reporting hierarchy."""

    __tablename__ = "employee"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    title = Column(String(100), nullable=False)
    manager_id = Column(Integer, ForeignKey("employee.id"), nullable=True)

    manager = relationship("Employee", remote_side=[id], back_populates="reports")
    reports = relationship("Employee", back_populates="manager")
    orders = relationship("Order", back_populates="sales_rep")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    reference = Column(String(20), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="open")
    total = Column(Float, nullable=False, default=0.0)
    customer_id = Column(Integer, ForeignKey("customer.id"), nullable=False)
    sales_rep_id = Column(Integer, ForeignKey("employee.id"), nullable=True)

    customer = relationship("Customer", back_populates="orders")
    sales_rep = relationship("Employee", back_populates="orders")
    lines = relationship("OrderLine", back_populates="order", cascade="all, delete-orphan")


class OrderLine(Base):
    """Order line keyed by its order and position."""

    __tablename__ = "order_line"

    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), primary_key=True)
    line_no: Mapped[int] = mapped_column(Integer, primary_key=True)
    product: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    order = relationship("Order", back_populates="lines")
