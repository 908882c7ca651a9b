"""
房间看板路由 - 房态、可用房统计、按房间号查询在住信息与客房服务工单
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from frontdesk.dependencies import get_collaborators
from frontdesk.models.ontology import RoomStatus, RoomType
from frontdesk.models.schemas import Occupancy, Room, RoomAvailabilityResponse, ServiceOrder
from frontdesk.pms.interfaces import FrontDeskCollaborators
from frontdesk.services.reservation_resolver import ReservationResolver
from frontdesk.services.room_allocator import RoomAllocator

router = APIRouter(prefix="/rooms", tags=["房间看板"])


@router.get("", response_model=List[Room])
def list_rooms(
    status: Optional[RoomStatus] = Query(default=None),
    room_type: Optional[RoomType] = Query(default=None),
    collaborators: FrontDeskCollaborators = Depends(get_collaborators),
):
    """获取房间列表，可按状态、房型过滤"""
    rooms = collaborators.rooms.list_rooms()
    if status is not None:
        rooms = [r for r in rooms if r.status == status]
    if room_type is not None:
        rooms = [r for r in rooms if r.room_type == room_type]
    return rooms


@router.get("/availability", response_model=RoomAvailabilityResponse)
def get_availability(collaborators: FrontDeskCollaborators = Depends(get_collaborators)):
    """按房型统计可用房间"""
    allocator = RoomAllocator(collaborators.rooms)
    return RoomAvailabilityResponse(availability=allocator.availability())


@router.get("/{room_number}/occupancy", response_model=Occupancy)
def get_occupancy(room_number: str, collaborators: FrontDeskCollaborators = Depends(get_collaborators)):
    """查询房间在住客人、在住预订与有效房卡"""
    occupancy = ReservationResolver(collaborators.reservations).find_occupancy(room_number)
    if occupancy is None:
        raise HTTPException(status_code=404, detail=f"房间 {room_number} 当前无人入住")
    return occupancy


@router.get("/{room_number}/service-orders", response_model=List[ServiceOrder])
def list_service_orders(room_number: str, collaborators: FrontDeskCollaborators = Depends(get_collaborators)):
    """查询房间的客房服务工单"""
    return collaborators.reservations.list_service_orders(room_number)
