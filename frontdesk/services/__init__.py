"""
前台服务层 - 预订查询、身份核验、房间分配、账单核算、出入住编排与客房服务
"""
from frontdesk.services.billing_service import Bill, BillingReconciler, Settlement, SettlementKind
from frontdesk.services.checkin_service import CheckInResult, CheckInService, CheckInStatus
from frontdesk.services.checkout_service import CheckOutResult, CheckOutService, CheckOutStatus
from frontdesk.services.conversation import ConsoleConversation, GuestConversation
from frontdesk.services.identity_gate import (
    IdentityVerificationGate, VerificationFailure, VerificationOutcome,
)
from frontdesk.services.reservation_resolver import ReservationResolver
from frontdesk.services.room_allocator import RoomAllocator
from frontdesk.services.room_service import RoomServiceResult, RoomServiceService, RoomServiceStatus

__all__ = [
    "Bill",
    "BillingReconciler",
    "Settlement",
    "SettlementKind",
    "CheckInResult",
    "CheckInService",
    "CheckInStatus",
    "CheckOutResult",
    "CheckOutService",
    "CheckOutStatus",
    "ConsoleConversation",
    "GuestConversation",
    "IdentityVerificationGate",
    "VerificationFailure",
    "VerificationOutcome",
    "ReservationResolver",
    "RoomAllocator",
    "RoomServiceResult",
    "RoomServiceService",
    "RoomServiceStatus",
]
