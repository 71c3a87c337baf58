"""Application models package."""

from qrorder.models.audit_log import AuditLog
from qrorder.models.menu import MenuItem
from qrorder.models.order import Order, OrderItem
from qrorder.models.table import DiningTable
from qrorder.models.user import User

__all__ = ["AuditLog", "DiningTable", "MenuItem", "Order", "OrderItem", "User"]
