"""
前台后台管理 API 入口
房态看板、预订查询、在住查询与对账队列
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from frontdesk import __version__
from frontdesk.config import settings
from frontdesk.core.engine.reconciliation import reconciliation_log
from frontdesk.core.errors import TransportError
from frontdesk.pms.factory import build_collaborators, prepare_sql_backend
from frontdesk.routers import reconciliation, reservations, rooms

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理：初始化日志、数据库与协作方"""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    prepare_sql_backend(settings)
    app.state.collaborators = build_collaborators(settings)
    app.state.reconciliation_log = reconciliation_log
    logger.info(f"{settings.APP_NAME} started (pms={settings.PMS_BACKEND}, identity={settings.IDENTITY_BACKEND})")

    yield


# 创建应用
app = FastAPI(
    title="FrontDesk - 酒店前台出入住",
    description="入住/退房编排的后台管理接口",
    version=__version__,
    lifespan=lifespan,
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TransportError)
async def transport_error_handler(request: Request, exc: TransportError):
    """后端不可达统一返回 503"""
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=503, content={"detail": "PMS 系统暂时不可用", **exc.to_dict()})


# 注册路由
app.include_router(rooms.router)
app.include_router(reservations.router)
app.include_router(reconciliation.router)


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy", "version": __version__}
