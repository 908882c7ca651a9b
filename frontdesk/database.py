"""
数据库配置 - 酒店登记系统 (PMS) 持久化层
PMS_BACKEND=sql 时，预订、房间、房卡、消费与出入住记录都保存在这里
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from frontdesk.config import settings

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """依赖注入：获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """初始化数据库表"""
    from frontdesk.models import ontology  # noqa
    Base.metadata.create_all(bind=bind or engine)
