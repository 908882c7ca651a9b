"""
测试 core.engine.state_machine 及预订/房间/核验生命周期定义
"""
import pytest

from frontdesk.core.engine.state_machine import StateMachine, StateMachineConfig, StateTransition
from frontdesk.core.errors import InvalidTransitionError
from frontdesk.models.lifecycle import (
    RESERVATION_LIFECYCLE, ROOM_LIFECYCLE, VERIFICATION_LIFECYCLE, VerificationState,
)
from frontdesk.models.ontology import ReservationStatus, RoomStatus


def _simple_config():
    return StateMachineConfig(
        name="Door",
        states=["closed", "open", "locked"],
        transitions=[
            StateTransition("closed", "open", "open"),
            StateTransition("open", "closed", "close"),
            StateTransition("closed", "locked", "lock"),
        ],
        initial_state="closed",
        final_states=["locked"],
    )


class TestStateMachine:
    def test_initial_state(self):
        """测试初始状态"""
        machine = StateMachine(_simple_config())
        assert machine.current_state == "closed"
        assert not machine.is_final

    def test_fire_records_history(self):
        """测试触发动作并记录历史"""
        machine = StateMachine(_simple_config())
        assert machine.fire("open") == "open"
        assert machine.fire("close") == "closed"

        history = machine.get_history()
        assert [tuple(h.transition) for h in history] == [
            ("closed", "open", "open"),
            ("open", "closed", "close"),
        ]

    def test_fire_unknown_trigger_raises(self):
        """测试当前状态下不存在的触发动作"""
        machine = StateMachine(_simple_config())
        with pytest.raises(InvalidTransitionError):
            machine.fire("close")
        assert machine.current_state == "closed"

    def test_final_state(self):
        machine = StateMachine(_simple_config())
        assert machine.can_fire("lock")
        machine.fire("lock")
        assert machine.is_final
        assert not machine.can_fire("open")

    def test_resume_from_state(self):
        """测试从已有状态继续驱动"""
        machine = StateMachine(_simple_config(), initial_state="open")
        assert machine.fire("close") == "closed"

    def test_ensure_transition(self):
        config = _simple_config()
        assert config.ensure_transition("closed", "open").trigger == "open"
        with pytest.raises(InvalidTransitionError) as exc_info:
            config.ensure_transition("open", "locked")
        assert exc_info.value.machine == "Door"
        assert exc_info.value.from_state == "open"
        assert exc_info.value.to_state == "locked"
        # 同时是 ValueError，便于调用方统一处理
        assert isinstance(exc_info.value, ValueError)


class TestReservationLifecycle:
    @pytest.mark.parametrize("from_state,to_state", [
        (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN),
        (ReservationStatus.CHECKED_IN, ReservationStatus.CHECKED_OUT),
        (ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED),
        (ReservationStatus.CONFIRMED, ReservationStatus.NO_SHOW),
    ])
    def test_allowed(self, from_state, to_state):
        assert RESERVATION_LIFECYCLE.is_valid_transition(from_state.value, to_state.value)

    @pytest.mark.parametrize("from_state,to_state", [
        (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_OUT),
        (ReservationStatus.CHECKED_OUT, ReservationStatus.CHECKED_IN),
        (ReservationStatus.CHECKED_IN, ReservationStatus.CONFIRMED),
        (ReservationStatus.CANCELLED, ReservationStatus.CHECKED_IN),
        (ReservationStatus.CHECKED_IN, ReservationStatus.CHECKED_IN),
    ])
    def test_rejected(self, from_state, to_state):
        """测试不允许跳过状态或回退"""
        with pytest.raises(InvalidTransitionError):
            RESERVATION_LIFECYCLE.ensure_transition(from_state.value, to_state.value)


class TestRoomLifecycle:
    def test_check_in_path(self):
        machine = StateMachine(ROOM_LIFECYCLE)
        machine.fire("assign")
        machine.fire("check_in")
        assert machine.current_state == RoomStatus.OCCUPIED.value
        machine.fire("check_out")
        assert machine.current_state == RoomStatus.CLEANING.value

    def test_available_cannot_become_occupied_directly(self):
        """入住只能从 reserved 进入 occupied"""
        assert not ROOM_LIFECYCLE.is_valid_transition(RoomStatus.AVAILABLE.value, RoomStatus.OCCUPIED.value)

    def test_occupied_cannot_become_available(self):
        """退房只会把房间置为 cleaning"""
        assert not ROOM_LIFECYCLE.is_valid_transition(RoomStatus.OCCUPIED.value, RoomStatus.AVAILABLE.value)

    def test_shared_trigger_follows_current_state(self):
        machine = StateMachine(ROOM_LIFECYCLE, initial_state=RoomStatus.CLEANING.value)
        assert machine.fire("mark_maintenance") == RoomStatus.MAINTENANCE.value
        assert machine.fire("complete_maintenance") == RoomStatus.AVAILABLE.value

    def test_housekeeping_transitions(self):
        assert ROOM_LIFECYCLE.is_valid_transition(RoomStatus.CLEANING.value, RoomStatus.AVAILABLE.value)
        assert ROOM_LIFECYCLE.is_valid_transition(RoomStatus.AVAILABLE.value, RoomStatus.MAINTENANCE.value)
        assert ROOM_LIFECYCLE.is_valid_transition(RoomStatus.MAINTENANCE.value, RoomStatus.AVAILABLE.value)


class TestVerificationLifecycle:
    def test_one_retry_then_success(self):
        machine = StateMachine(VERIFICATION_LIFECYCLE)
        for trigger in ("start_scan", "scan_failed", "retry_scan", "scan_ok", "face_ok"):
            machine.fire(trigger)
        assert machine.current_state == VerificationState.FACE_OK.value
        assert machine.is_final

    def test_face_failed_is_terminal(self):
        machine = StateMachine(VERIFICATION_LIFECYCLE)
        for trigger in ("start_scan", "scan_ok", "face_failed"):
            machine.fire(trigger)
        assert machine.is_final
        assert not machine.can_fire("face_ok")

    def test_name_mismatch_ends_in_scan_failed(self):
        machine = StateMachine(VERIFICATION_LIFECYCLE)
        machine.fire("start_scan")
        machine.fire("scan_ok")
        machine.fire("name_mismatch")
        assert machine.current_state == VerificationState.SCAN_FAILED.value

    def test_face_requires_scan_ok(self):
        machine = StateMachine(VERIFICATION_LIFECYCLE)
        machine.fire("start_scan")
        with pytest.raises(InvalidTransitionError):
            machine.fire("face_ok")
