"""
应用配置
从环境变量 / .env 读取配置，进程启动时一次性选定协作方实现
"""
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "FrontDesk"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./frontdesk.db"

    # 酒店登记系统 (PMS) 后端: memory | sql
    PMS_BACKEND: str = "memory"
    SEED_DEMO_DATA: bool = True

    # 身份核验服务: mock | http
    IDENTITY_BACKEND: str = "mock"
    IDENTITY_SERVICE_URL: str = "http://localhost:5000"
    IDENTITY_TIMEOUT_SECONDS: int = 30

    # 流程参数
    MAX_SCAN_ATTEMPTS: int = 2
    REPLY_TIMEOUT_SECONDS: Optional[float] = 120.0
    OPERATOR_ID: str = "agent:hotel-front-desk"

    # 员工通知
    DUTY_MANAGER: str = "duty-manager"
    TECH_SUPPORT: str = "tech-support"
    STAFF_WEBHOOK_URL: Optional[str] = None

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# 全局设置实例
settings = Settings()
