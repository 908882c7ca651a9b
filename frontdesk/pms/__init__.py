"""
酒店登记系统 (PMS) 与身份核验服务的协作方层
"""
from frontdesk.pms.interfaces import (
    FrontDeskCollaborators,
    IdentityService,
    ReservationStore,
    RoomStore,
)
from frontdesk.pms.factory import build_collaborators, prepare_sql_backend

__all__ = [
    "FrontDeskCollaborators",
    "IdentityService",
    "ReservationStore",
    "RoomStore",
    "build_collaborators",
    "prepare_sql_backend",
]
