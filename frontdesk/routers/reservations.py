"""
预订查询路由
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from frontdesk.dependencies import get_collaborators
from frontdesk.models.schemas import ReservationLookup
from frontdesk.pms.interfaces import FrontDeskCollaborators
from frontdesk.services.reservation_resolver import ReservationResolver

router = APIRouter(prefix="/reservations", tags=["预订查询"])


@router.get("", response_model=ReservationLookup)
def find_reservations(
    guest_name: str = Query(..., min_length=1, max_length=100),
    collaborators: FrontDeskCollaborators = Depends(get_collaborators),
):
    """按客人姓名查询待入住（confirmed）预订"""
    lookup = ReservationResolver(collaborators.reservations).find_confirmed(guest_name)
    if lookup.guest is None:
        raise HTTPException(status_code=404, detail=f"未找到客人 {guest_name}")
    return lookup
