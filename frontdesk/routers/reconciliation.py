"""
对账队列路由 - 查看与处理入账后不一致
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from frontdesk.core.engine.reconciliation import ReconciliationLog
from frontdesk.dependencies import get_reconciliation_log
from frontdesk.models.schemas import ReconciliationIssueResponse, ResolveIssueRequest

router = APIRouter(prefix="/reconciliation", tags=["对账"])


@router.get("", response_model=List[ReconciliationIssueResponse])
def list_issues(
    open_only: bool = True,
    log: ReconciliationLog = Depends(get_reconciliation_log),
):
    """获取对账问题，默认只返回未处理的"""
    return log.list_open() if open_only else log.list_all()


@router.post("/{issue_id}/resolve", response_model=ReconciliationIssueResponse)
def resolve_issue(
    issue_id: str,
    data: ResolveIssueRequest,
    log: ReconciliationLog = Depends(get_reconciliation_log),
):
    """标记对账问题已处理"""
    issue = log.resolve(issue_id, data.resolved_by)
    if issue is None:
        raise HTTPException(status_code=404, detail="对账问题不存在")
    return issue
