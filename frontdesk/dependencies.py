"""
FastAPI 依赖 - 从 app.state 取出启动时装配的协作方与对账日志
"""
from fastapi import Request

from frontdesk.config import settings
from frontdesk.core.engine.reconciliation import ReconciliationLog, reconciliation_log
from frontdesk.pms.factory import build_collaborators
from frontdesk.pms.interfaces import FrontDeskCollaborators


def get_collaborators(request: Request) -> FrontDeskCollaborators:
    collaborators = getattr(request.app.state, "collaborators", None)
    if collaborators is None:
        collaborators = build_collaborators(settings)
        request.app.state.collaborators = collaborators
    return collaborators


def get_reconciliation_log(request: Request) -> ReconciliationLog:
    log = getattr(request.app.state, "reconciliation_log", None)
    if log is None:
        log = reconciliation_log
        request.app.state.reconciliation_log = log
    return log
