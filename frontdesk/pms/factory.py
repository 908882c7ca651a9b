"""
协作方装配 - 进程启动时按配置一次性选定实现

PMS_BACKEND:      memory | sql
IDENTITY_BACKEND: mock | http
"""
import logging
from typing import Optional

from frontdesk.config import Settings
from frontdesk.pms.interfaces import FrontDeskCollaborators, IdentityService
from frontdesk.pms.memory import (
    InMemoryPmsState, InMemoryReservationStore, InMemoryRoomStore, MockIdentityService,
)

logger = logging.getLogger(__name__)


def build_identity_service(settings: Settings) -> IdentityService:
    """按配置创建身份核验服务"""
    backend = settings.IDENTITY_BACKEND.lower()
    if backend == "mock":
        return MockIdentityService()
    if backend == "http":
        from frontdesk.pms.identity_client import HttpIdentityService
        return HttpIdentityService(settings.IDENTITY_SERVICE_URL, timeout=settings.IDENTITY_TIMEOUT_SECONDS)
    raise ValueError(f"未知的身份核验后端: {settings.IDENTITY_BACKEND}")


def build_collaborators(settings: Settings, session_factory=None,
                        memory_state: Optional[InMemoryPmsState] = None) -> FrontDeskCollaborators:
    """
    按配置装配协作方

    Args:
        settings: 应用设置
        session_factory: PMS_BACKEND=sql 时使用的会话工厂，默认 frontdesk.database.SessionLocal
        memory_state: PMS_BACKEND=memory 时使用的内存数据，默认新建
    """
    backend = settings.PMS_BACKEND.lower()
    if backend == "memory":
        state = memory_state or InMemoryPmsState()
        if memory_state is None and settings.SEED_DEMO_DATA:
            from frontdesk.pms.demo_data import seed_memory
            seed_memory(state)
        reservations, rooms = InMemoryReservationStore(state), InMemoryRoomStore(state)
    elif backend == "sql":
        from frontdesk.pms.sql import SqlReservationStore, SqlRoomStore
        if session_factory is None:
            from frontdesk.database import SessionLocal
            session_factory = SessionLocal
        reservations, rooms = SqlReservationStore(session_factory), SqlRoomStore(session_factory)
    else:
        raise ValueError(f"未知的 PMS 后端: {settings.PMS_BACKEND}")

    logger.info(f"Collaborators ready: pms={backend}, identity={settings.IDENTITY_BACKEND}")
    return FrontDeskCollaborators(
        reservations=reservations,
        rooms=rooms,
        identity=build_identity_service(settings),
    )


def prepare_sql_backend(settings: Settings, session_factory=None) -> None:
    """PMS_BACKEND=sql 时建表，并按配置写入演示数据"""
    if settings.PMS_BACKEND.lower() != "sql":
        return
    from frontdesk.database import SessionLocal, init_db
    from frontdesk.pms.demo_data import seed_database

    factory = session_factory or SessionLocal
    db = factory()
    try:
        init_db(bind=db.get_bind())
        if settings.SEED_DEMO_DATA:
            seed_database(db)
    finally:
        db.close()
