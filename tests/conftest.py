"""
Pytest 配置和共享 fixtures
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from typing import List, Optional

from frontdesk.config import Settings
from frontdesk.core.engine.reconciliation import ReconciliationLog
from frontdesk.core.errors import ReplyTimeout
from frontdesk.core.notification.channel import INotificationChannel, NotificationChannelRegistry
from frontdesk.database import Base
from frontdesk.models import ontology  # noqa
from frontdesk.models.session import FrontDeskSession
from frontdesk.notification.notifier import StaffNotifier
from frontdesk.pms.demo_data import seed_memory
from frontdesk.pms.interfaces import FrontDeskCollaborators
from frontdesk.pms.memory import (
    InMemoryPmsState, InMemoryReservationStore, InMemoryRoomStore, MockIdentityService,
)
from frontdesk.services.conversation import GuestConversation


# ============== 数据库 ==============

@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """创建会话工厂"""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """创建数据库会话"""
    session = session_factory()
    yield session
    session.close()


# ============== 内存 PMS ==============

@pytest.fixture
def pms_state():
    """带演示数据的内存 PMS"""
    return seed_memory(InMemoryPmsState())


@pytest.fixture
def identity():
    """默认通过核验的身份服务（证件姓名 张伟）"""
    return MockIdentityService()


@pytest.fixture
def collaborators(pms_state, identity):
    return FrontDeskCollaborators(
        reservations=InMemoryReservationStore(pms_state),
        rooms=InMemoryRoomStore(pms_state),
        identity=identity,
    )


@pytest.fixture
def test_settings():
    """测试设置：不读取 .env，回复不超时"""
    return Settings(_env_file=None, REPLY_TIMEOUT_SECONDS=None, STAFF_WEBHOOK_URL=None)


@pytest.fixture
def reconciliation():
    return ReconciliationLog()


@pytest.fixture
def front_session():
    return FrontDeskSession()


# ============== 对话 / 通知替身 ==============

class ScriptedConversation(GuestConversation):
    """按脚本回复的客人；脚本项为 None 时模拟超时"""

    def __init__(self, replies: Optional[List[Optional[str]]] = None):
        self.replies = list(replies or [])
        self.messages: List[str] = []
        self.prompts: List[str] = []

    def send_message(self, text: str) -> None:
        self.messages.append(text)

    def wait_for_reply(self, prompt: str, timeout: Optional[float] = None) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise ReplyTimeout(prompt, timeout)
        reply = self.replies.pop(0)
        if reply is None:
            raise ReplyTimeout(prompt, timeout)
        return reply

    @property
    def transcript(self) -> str:
        return "\n".join(self.messages)


class RecordingChannel(INotificationChannel):
    """记录所有通知的渠道"""

    def __init__(self):
        self.sent = []

    def send(self, recipient, subject, content, extra=None) -> bool:
        self.sent.append({"recipient": recipient, "subject": subject, "content": content, "extra": extra})
        return True

    def get_channel_type(self) -> str:
        return "recording"


@pytest.fixture
def staff_channel():
    return RecordingChannel()


@pytest.fixture
def notifier(staff_channel):
    registry = NotificationChannelRegistry()
    registry.register(staff_channel)
    return StaffNotifier(registry)


@pytest.fixture
def conversation_factory():
    return ScriptedConversation
