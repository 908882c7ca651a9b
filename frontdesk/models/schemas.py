"""
Pydantic 模式定义
协作方（PMS、身份核验服务）之间传递的数据结构，以及 API 响应
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, ConfigDict
from frontdesk.models.ontology import (
    RoomType, RoomStatus, ReservationStatus, ReservationSource, GuestTier, ChargeCategory,
    ServiceType, ServicePriority, ServiceOrderStatus,
)


# ============== 客人 / 预订 ==============

class Guest(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    id_number: Optional[str] = None          # 脱敏证件号
    email: Optional[str] = None
    tier: Optional[GuestTier] = None
    registered_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class Reservation(BaseModel):
    reservation_id: str
    guest_id: str
    guest_name: str
    room_type: RoomType
    check_in_date: date
    check_out_date: date
    status: ReservationStatus = ReservationStatus.CONFIRMED
    total_price: Decimal = Field(..., ge=0)
    source: ReservationSource = ReservationSource.ONLINE
    special_requests: Optional[str] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ReservationLookup(BaseModel):
    """按姓名查询的结果：客人 + 状态为 confirmed 的预订"""
    guest: Optional[Guest] = None
    reservations: List[Reservation] = Field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.guest is not None and len(self.reservations) > 0


# ============== 房间 / 房卡 ==============

class Room(BaseModel):
    room_number: str
    floor: int
    room_type: RoomType
    status: RoomStatus = RoomStatus.AVAILABLE
    price: Decimal = Field(..., ge=0)
    features: List[str] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


class RoomCard(BaseModel):
    card_id: str
    room_number: str
    guest_id: str
    issued_at: datetime
    expires_at: date
    is_active: bool = True
    model_config = ConfigDict(from_attributes=True)


class Occupancy(BaseModel):
    """按房间号查询的在住信息"""
    guest: Guest
    reservation: Reservation
    card: RoomCard


class RoomAvailability(BaseModel):
    total: int = 0
    available: int = 0


# ============== 消费 / 出入住记录 ==============

class ChargeItem(BaseModel):
    id: str
    room_number: str
    category: ChargeCategory
    description: str = ""
    amount: Decimal
    charged_at: datetime = Field(default_factory=datetime.now)
    model_config = ConfigDict(from_attributes=True)


class CheckInRecord(BaseModel):
    reservation_id: str
    guest_id: str
    room_number: str
    card_id: str
    id_verified: bool
    face_verified: bool
    check_in_time: datetime
    operated_by: str
    model_config = ConfigDict(from_attributes=True)


class CheckOutRecord(BaseModel):
    reservation_id: str
    guest_id: str
    room_number: str
    card_id: str
    check_out_time: datetime
    total_charges: Decimal
    paid_amount: Decimal
    refund_amount: Decimal = Decimal("0")
    payment_method: Optional[str] = None
    operated_by: str
    model_config = ConfigDict(from_attributes=True)


# ============== 客房服务 ==============

class ServiceOrder(BaseModel):
    order_id: str
    room_number: str
    guest_name: str
    service_type: ServiceType
    priority: ServicePriority
    description: str = ""
    status: ServiceOrderStatus = ServiceOrderStatus.PENDING
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== 身份核验 ==============

class IdScanResult(BaseModel):
    success: bool
    name: str = ""
    id_number: str = ""
    gender: Optional[str] = None
    birth_date: Optional[date] = None
    address: str = ""
    photo_base64: str = ""
    expiry_date: Optional[date] = None


class FaceVerifyResult(BaseModel):
    is_match: bool
    match_score: float = Field(0.0, ge=0, le=100)
    live_detection: bool = False
    captured_photo_base64: str = ""


# ============== API 响应 ==============

class RoomAvailabilityResponse(BaseModel):
    availability: Dict[str, RoomAvailability]


class ReconciliationIssueResponse(BaseModel):
    issue_id: str
    flow: str
    step: str
    reservation_id: Optional[str] = None
    room_number: Optional[str] = None
    card_id: Optional[str] = None
    error: str
    created_at: datetime
    resolved: bool
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ResolveIssueRequest(BaseModel):
    resolved_by: str = Field(..., min_length=1, max_length=50)
