"""
API 路由模块
"""
from frontdesk.routers import reconciliation, reservations, rooms

__all__ = ["reconciliation", "reservations", "rooms"]
