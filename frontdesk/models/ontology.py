"""
本体对象定义 (Ontology Objects)
前台涉及的实体：客人、预订、房间、房卡、消费、出入住记录、客房服务工单
实体从不删除，状态转换是唯一的修改方式
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, JSON,
    ForeignKey, Text, Enum as SQLEnum, Boolean, Numeric
)
from sqlalchemy.orm import relationship
from frontdesk.database import Base


# ============== 枚举定义 ==============

class RoomType(str, Enum):
    """房型"""
    STANDARD = "standard"              # 标准间
    DELUXE = "deluxe"                  # 豪华房
    SUITE = "suite"                    # 套房
    PRESIDENTIAL = "presidential"      # 总统套房


class RoomStatus(str, Enum):
    """房间状态枚举"""
    AVAILABLE = "available"            # 空闲可售
    OCCUPIED = "occupied"              # 入住中
    CLEANING = "cleaning"              # 待清洁
    MAINTENANCE = "maintenance"        # 维修中
    RESERVED = "reserved"              # 已分配，待入住确认


class ReservationStatus(str, Enum):
    """预订状态枚举"""
    CONFIRMED = "confirmed"    # 已确认
    CHECKED_IN = "checked_in"  # 已入住
    CHECKED_OUT = "checked_out"  # 已退房
    CANCELLED = "cancelled"    # 已取消
    NO_SHOW = "no_show"        # 未到店


class ReservationSource(str, Enum):
    """预订渠道"""
    ONLINE = "online"
    PHONE = "phone"
    WALK_IN = "walk-in"
    OTA = "ota"


class GuestTier(str, Enum):
    """客户等级"""
    NORMAL = "normal"       # 普通
    SILVER = "silver"       # 银卡
    GOLD = "gold"           # 金卡
    PLATINUM = "platinum"   # 白金


class ChargeCategory(str, Enum):
    """消费类别"""
    ROOM = "room"              # 房费
    MINIBAR = "minibar"        # 迷你吧
    RESTAURANT = "restaurant"  # 餐饮
    LAUNDRY = "laundry"        # 洗衣
    SPA = "spa"                # 水疗
    DAMAGE = "damage"          # 损坏赔偿
    OTHER = "other"            # 其他


class ServiceType(str, Enum):
    """客房服务类型"""
    CLEANING = "cleaning"      # 客房清洁
    REPAIR = "repair"          # 设施维修
    DINING = "dining"          # 送餐
    SUPPLIES = "supplies"      # 补充用品
    OTHER = "other"            # 其他需求


class ServicePriority(str, Enum):
    """工单优先级"""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class ServiceOrderStatus(str, Enum):
    """工单状态"""
    PENDING = "pending"            # 待处理
    IN_PROGRESS = "in_progress"    # 处理中
    COMPLETED = "completed"        # 已完成


# ============== 本体对象定义 ==============

class GuestModel(Base):
    """
    客人对象
    在登记系统注册时创建，出入住流程中只读
    """
    __tablename__ = "guests"

    id = Column(String(20), primary_key=True)
    name = Column(String(100), nullable=False, index=True)   # 姓名
    phone = Column(String(20))                               # 手机号
    id_number = Column(String(50))                           # 证件号码（脱敏）
    email = Column(String(100))
    tier = Column(SQLEnum(GuestTier), default=GuestTier.NORMAL)
    registered_at = Column(DateTime, default=datetime.now)

    reservations = relationship("ReservationModel", back_populates="guest")


class ReservationModel(Base):
    """
    预订对象 - 出入住流程的锚点实体
    状态：confirmed → checked_in → checked_out（另有 cancelled / no_show 分支）
    """
    __tablename__ = "reservations"

    reservation_id = Column(String(30), primary_key=True)
    guest_id = Column(String(20), ForeignKey("guests.id"), nullable=False, index=True)
    guest_name = Column(String(100), nullable=False)
    room_type = Column(SQLEnum(RoomType), nullable=False)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    status = Column(SQLEnum(ReservationStatus), default=ReservationStatus.CONFIRMED, index=True)
    total_price = Column(Numeric(10, 2), nullable=False)     # 约定总价（视为预付房费）
    source = Column(SQLEnum(ReservationSource), default=ReservationSource.ONLINE)
    special_requests = Column(Text)
    created_at = Column(DateTime, default=datetime.now)

    guest = relationship("GuestModel", back_populates="reservations")


class RoomModel(Base):
    """房间对象 - 房间号为唯一键"""
    __tablename__ = "rooms"

    room_number = Column(String(10), primary_key=True)
    floor = Column(Integer, nullable=False)
    room_type = Column(SQLEnum(RoomType), nullable=False, index=True)
    status = Column(SQLEnum(RoomStatus), default=RoomStatus.AVAILABLE, index=True)
    price = Column(Numeric(10, 2), nullable=False)           # 每晚价格
    features = Column(JSON, default=list)                    # 特征(如 city-view)

    cards = relationship("RoomCardModel", back_populates="room")


class RoomCardModel(Base):
    """
    房卡对象
    退房时置为失效，不删除（保留审计）
    """
    __tablename__ = "room_cards"

    card_id = Column(String(20), primary_key=True)
    room_number = Column(String(10), ForeignKey("rooms.room_number"), nullable=False, index=True)
    guest_id = Column(String(20), ForeignKey("guests.id"), nullable=False)
    issued_at = Column(DateTime, default=datetime.now)
    expires_at = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, index=True)

    room = relationship("RoomModel", back_populates="cards")


class ChargeItemModel(Base):
    """消费记录 - 只追加，不修改"""
    __tablename__ = "charge_items"

    id = Column(String(30), primary_key=True)
    room_number = Column(String(10), ForeignKey("rooms.room_number"), nullable=False, index=True)
    category = Column(SQLEnum(ChargeCategory), nullable=False)
    description = Column(String(200), default="")
    amount = Column(Numeric(10, 2), nullable=False)
    charged_at = Column(DateTime, default=datetime.now)


class CheckInRecordModel(Base):
    """入住记录 - 一次写入，"入住是否发生" 的记录依据"""
    __tablename__ = "check_in_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reservation_id = Column(String(30), ForeignKey("reservations.reservation_id"), nullable=False, index=True)
    guest_id = Column(String(20), nullable=False)
    room_number = Column(String(10), nullable=False)
    card_id = Column(String(20), nullable=False, index=True)
    id_verified = Column(Boolean, nullable=False)
    face_verified = Column(Boolean, nullable=False)
    check_in_time = Column(DateTime, nullable=False)
    operated_by = Column(String(50), nullable=False)


class CheckOutRecordModel(Base):
    """退房记录 - 一次写入"""
    __tablename__ = "check_out_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reservation_id = Column(String(30), ForeignKey("reservations.reservation_id"), nullable=False, index=True)
    guest_id = Column(String(20), nullable=False)
    room_number = Column(String(10), nullable=False)
    card_id = Column(String(20), nullable=False)
    check_out_time = Column(DateTime, nullable=False)
    total_charges = Column(Numeric(10, 2), nullable=False)
    paid_amount = Column(Numeric(10, 2), nullable=False)
    refund_amount = Column(Numeric(10, 2), nullable=False, default=0)
    payment_method = Column(String(20))
    operated_by = Column(String(50), nullable=False)


class ServiceOrderModel(Base):
    """客房服务工单"""
    __tablename__ = "service_orders"

    order_id = Column(String(20), primary_key=True)
    room_number = Column(String(10), nullable=False, index=True)
    guest_name = Column(String(100), nullable=False)
    service_type = Column(SQLEnum(ServiceType), nullable=False)
    priority = Column(SQLEnum(ServicePriority), nullable=False)
    description = Column(Text, default="")
    status = Column(SQLEnum(ServiceOrderStatus), default=ServiceOrderStatus.PENDING, index=True)
    created_at = Column(DateTime, default=datetime.now)
