"""
实体生命周期 - 预订、房间、身份核验的状态机定义

存储层写入状态前调用 ensure_transition 校验，保证状态不会跳跃。
"""
from enum import Enum

from frontdesk.core.engine.state_machine import StateMachineConfig, StateTransition
from frontdesk.models.ontology import ReservationStatus, RoomStatus


# ============== 预订状态机 ==============

RESERVATION_LIFECYCLE = StateMachineConfig(
    name="Reservation",
    states=[s.value for s in ReservationStatus],
    transitions=[
        StateTransition(ReservationStatus.CONFIRMED.value, ReservationStatus.CHECKED_IN.value, "check_in"),
        StateTransition(ReservationStatus.CHECKED_IN.value, ReservationStatus.CHECKED_OUT.value, "check_out"),
        StateTransition(ReservationStatus.CONFIRMED.value, ReservationStatus.CANCELLED.value, "cancel"),
        StateTransition(ReservationStatus.CONFIRMED.value, ReservationStatus.NO_SHOW.value, "mark_no_show"),
    ],
    initial_state=ReservationStatus.CONFIRMED.value,
    final_states=[
        ReservationStatus.CHECKED_OUT.value,
        ReservationStatus.CANCELLED.value,
        ReservationStatus.NO_SHOW.value,
    ],
)


# ============== 房间状态机 ==============
# available → reserved 由 assign_room 原子完成；
# 入住只会把房间置为 occupied，退房只会置为 cleaning。
# 清洁/维修相关转换属于客房部，出入住流程不触发。

ROOM_LIFECYCLE = StateMachineConfig(
    name="Room",
    states=[s.value for s in RoomStatus],
    transitions=[
        StateTransition(RoomStatus.AVAILABLE.value, RoomStatus.RESERVED.value, "assign"),
        StateTransition(RoomStatus.RESERVED.value, RoomStatus.OCCUPIED.value, "check_in"),
        StateTransition(RoomStatus.OCCUPIED.value, RoomStatus.CLEANING.value, "check_out"),
        StateTransition(RoomStatus.CLEANING.value, RoomStatus.AVAILABLE.value, "mark_clean"),
        StateTransition(RoomStatus.AVAILABLE.value, RoomStatus.MAINTENANCE.value, "mark_maintenance"),
        StateTransition(RoomStatus.CLEANING.value, RoomStatus.MAINTENANCE.value, "mark_maintenance"),
        StateTransition(RoomStatus.MAINTENANCE.value, RoomStatus.AVAILABLE.value, "complete_maintenance"),
        StateTransition(RoomStatus.RESERVED.value, RoomStatus.AVAILABLE.value, "release"),
    ],
    initial_state=RoomStatus.AVAILABLE.value,
)


# ============== 身份核验状态机 ==============

class VerificationState(str, Enum):
    """身份核验状态"""
    NOT_STARTED = "not_started"
    SCAN_PENDING = "scan_pending"
    SCAN_FAILED = "scan_failed"
    SCAN_OK = "scan_ok"
    FACE_FAILED = "face_failed"
    FACE_OK = "face_ok"


VERIFICATION_LIFECYCLE = StateMachineConfig(
    name="Verification",
    states=[s.value for s in VerificationState],
    transitions=[
        StateTransition(VerificationState.NOT_STARTED.value, VerificationState.SCAN_PENDING.value, "start_scan"),
        StateTransition(VerificationState.SCAN_PENDING.value, VerificationState.SCAN_OK.value, "scan_ok"),
        StateTransition(VerificationState.SCAN_PENDING.value, VerificationState.SCAN_FAILED.value, "scan_failed"),
        # 扫描失败允许重试一次，由核验闸门的重试策略决定是否触发
        StateTransition(VerificationState.SCAN_FAILED.value, VerificationState.SCAN_PENDING.value, "retry_scan"),
        StateTransition(VerificationState.SCAN_OK.value, VerificationState.FACE_OK.value, "face_ok"),
        StateTransition(VerificationState.SCAN_OK.value, VerificationState.FACE_FAILED.value, "face_failed"),
        # 证件姓名不符：扫描成功但核验终止
        StateTransition(VerificationState.SCAN_OK.value, VerificationState.SCAN_FAILED.value, "name_mismatch"),
    ],
    initial_state=VerificationState.NOT_STARTED.value,
    final_states=[VerificationState.FACE_OK.value, VerificationState.FACE_FAILED.value],
)
