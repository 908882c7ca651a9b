"""
测试退房编排服务
"""
from decimal import Decimal
from unittest.mock import patch

import pytest

from frontdesk.core.errors import TransportError
from frontdesk.models.ontology import ChargeCategory, ReservationStatus, RoomStatus
from frontdesk.services.billing_service import SettlementKind
from frontdesk.services.checkin_service import CheckInService, CheckInStatus
from frontdesk.services.checkout_service import CheckOutService, CheckOutStatus


@pytest.fixture
def make_service(collaborators, notifier, front_session, reconciliation, test_settings, conversation_factory):
    def _make(replies, service_class=CheckOutService):
        conversation = conversation_factory(replies)
        service = service_class(collaborators, conversation, notifier, session=front_session,
                                reconciliation=reconciliation, settings=test_settings)
        return service, conversation
    return _make


@pytest.fixture
def room_1203_with_charge(pms_state):
    """1203：房费 388，仅一笔 120 的额外消费"""
    pms_state.charges = [c for c in pms_state.charges if c.room_number != "1203"]
    pms_state.charges.append(pms_state.charges[0].model_copy(update={
        "id": "CHG-0120", "room_number": "1203", "category": ChargeCategory.MINIBAR,
        "description": "红酒", "amount": Decimal("120"),
    }))
    return pms_state


class TestCheckOutCompleted:
    def test_scenario_c_amount_due(self, make_service, room_1203_with_charge, front_session):
        pms_state = room_1203_with_charge
        service, conversation = make_service(["1203", "确认", "微信"])

        result = service.run()

        assert result.status == CheckOutStatus.COMPLETED
        assert not result.reconciliation_required
        assert result.bill.total_amount == Decimal("508")
        assert result.bill.balance == Decimal("120")
        assert result.settlement.kind == SettlementKind.COLLECT
        assert result.settlement.amount == Decimal("120")

        record = pms_state.check_out_records[-1]
        assert record.total_charges == Decimal("508")
        assert record.paid_amount == Decimal("508")
        assert record.refund_amount == Decimal("0")
        assert record.payment_method == "微信"
        assert record.card_id == "CARD-0901"

        assert pms_state.rooms["1203"].status == RoomStatus.CLEANING
        assert pms_state.cards["CARD-0901"].is_active is False
        assert pms_state.reservations["RSV-20260224-003"].status == ReservationStatus.CHECKED_OUT
        assert not front_session.has_stay
        assert "合计: ¥508.00" in conversation.transcript
        assert "已通过微信收取 ¥120.00" in conversation.transcript
        assert "退房完成" in conversation.transcript

    def test_scenario_d_refund(self, make_service, pms_state):
        """额外消费为负：退还差额"""
        pms_state.charges.append(pms_state.charges[1].model_copy(update={
            "id": "CHG-CREDIT", "category": ChargeCategory.OTHER, "description": "服务补偿",
            "amount": Decimal("-500"),
        }))
        service, conversation = make_service(["1502", "确认"])

        result = service.run()

        assert result.status == CheckOutStatus.COMPLETED
        assert result.bill.balance == Decimal("-242")
        record = pms_state.check_out_records[-1]
        assert record.refund_amount == Decimal("242")
        assert record.total_charges == Decimal("3598")
        assert record.payment_method is None
        assert "需退还 ¥242.00" in conversation.transcript
        # 只问了房间号与账单确认
        assert len(conversation.prompts) == 2

    def test_zero_balance(self, make_service, pms_state):
        pms_state.charges = [c for c in pms_state.charges if c.room_number != "1203"]
        service, conversation = make_service(["1203", "确认"])

        result = service.run()

        assert result.status == CheckOutStatus.COMPLETED
        assert result.settlement.kind == SettlementKind.NONE
        assert pms_state.check_out_records[-1].refund_amount == Decimal("0")

    def test_payment_method_timeout(self, make_service, room_1203_with_charge, staff_channel):
        """支付方式未回复：记为 unspecified 并通知员工"""
        service, _ = make_service(["1203", "确认", None])

        result = service.run()

        assert result.status == CheckOutStatus.COMPLETED
        assert result.settlement.payment_method == "unspecified"
        assert room_1203_with_charge.check_out_records[-1].payment_method == "unspecified"
        assert staff_channel.sent[0]["recipient"] == "duty-manager"

    def test_bookkeeping_failure_not_surfaced(self, make_service, collaborators, pms_state,
                                              reconciliation, staff_channel):
        """结算确认后的入账失败只写对账日志，退房仍然完成"""
        service, conversation = make_service(["1502", "确认", "现金"])
        with patch.object(collaborators.rooms, "set_room_status", side_effect=TransportError("PMS down")):
            result = service.run()

        assert result.status == CheckOutStatus.COMPLETED
        assert result.reconciliation_required
        assert pms_state.cards["CARD-0902"].is_active is False
        assert pms_state.rooms["1502"].status == RoomStatus.OCCUPIED
        assert pms_state.check_out_records[-1].room_number == "1502"
        assert pms_state.reservations["RSV-20260223-004"].status == ReservationStatus.CHECKED_OUT
        assert [i.step for i in reconciliation.list_open()] == ["mark_room_cleaning"]
        assert "不会影响您的退房" in conversation.transcript
        assert "退房完成" in conversation.transcript

    def test_already_revoked_card(self, make_service, collaborators, pms_state):
        """房卡已被注销时仍能完成退房"""
        service, _ = make_service(["1203", "确认", "微信"])
        occupancy = collaborators.reservations.find_by_room("1203")
        with patch.object(service.resolver, "find_occupancy", return_value=occupancy):
            collaborators.rooms.revoke_card("CARD-0901")
            result = service.run()

        assert result.status == CheckOutStatus.COMPLETED
        assert not result.reconciliation_required


class TestCheckOutRejected:
    def test_not_found(self, make_service, pms_state):
        service, conversation = make_service(["1201"])

        result = service.run()

        assert result.status == CheckOutStatus.NOT_FOUND
        assert pms_state.check_out_records == []
        assert "未查询到 1201 房间的入住记录" in conversation.transcript

    @pytest.mark.parametrize("reply", ["有异议", "房费不对", None, ""])
    def test_dispute_mutates_nothing(self, make_service, pms_state, staff_channel, reply):
        """账单异议、确认超时或空回复：通知值班经理，不修改任何数据"""
        service, conversation = make_service(["1203", reply])

        result = service.run()

        assert result.status == CheckOutStatus.DISPUTED
        assert pms_state.cards["CARD-0901"].is_active is True
        assert pms_state.rooms["1203"].status == RoomStatus.OCCUPIED
        assert pms_state.reservations["RSV-20260224-003"].status == ReservationStatus.CHECKED_IN
        assert pms_state.check_out_records == []
        assert staff_channel.sent[0]["recipient"] == "duty-manager"
        assert "值班经理" in conversation.transcript

    def test_blank_confirmation_is_not_consent(self, make_service, room_1203_with_charge, staff_channel):
        """只回车不算确认账单：不进入结算，转值班经理"""
        service, conversation = make_service(["1203", "   ", "微信"])

        result = service.run()

        assert result.status == CheckOutStatus.DISPUTED
        assert result.settlement is None
        assert "支付方式：" not in conversation.prompts
        assert room_1203_with_charge.cards["CARD-0901"].is_active is True
        assert "未获确认" in staff_channel.sent[0]["content"]

    def test_charges_transport_error(self, make_service, collaborators, pms_state, staff_channel):
        """消费查询失败：不猜测账单，直接转人工"""
        service, _ = make_service(["1203", "确认"])
        with patch.object(collaborators.reservations, "list_charges", side_effect=TransportError("timeout")):
            result = service.run()

        assert result.status == CheckOutStatus.SYSTEM_UNAVAILABLE
        assert result.occupancy.card.card_id == "CARD-0901"
        assert pms_state.cards["CARD-0901"].is_active is True
        assert staff_channel.sent[0]["recipient"] == "tech-support"

    def test_lookup_transport_error(self, make_service, collaborators):
        service, _ = make_service(["1203"])
        with patch.object(collaborators.reservations, "find_by_room", side_effect=TransportError("timeout")):
            assert service.run().status == CheckOutStatus.SYSTEM_UNAVAILABLE

    def test_no_room_number(self, make_service):
        service, _ = make_service([None])
        assert service.run().status == CheckOutStatus.ABANDONED


class TestFullStay:
    def test_check_in_then_check_out(self, make_service, pms_state, front_session):
        """入住后可按房间号退房，房卡与房态保持一致"""
        check_in, _ = make_service(["张伟"], service_class=CheckInService)
        stay = check_in.run()
        assert stay.status == CheckInStatus.COMPLETED
        assert front_session.has_stay

        check_out, _ = make_service([stay.room.room_number, "确认"])
        result = check_out.run()

        assert result.status == CheckOutStatus.COMPLETED
        assert result.occupancy.reservation.reservation_id == "RSV-20260225-001"
        assert pms_state.reservations["RSV-20260225-001"].status == ReservationStatus.CHECKED_OUT
        assert pms_state.rooms[stay.room.room_number].status == RoomStatus.CLEANING
        assert pms_state.cards[stay.card.card_id].is_active is False
        assert not front_session.has_stay

    def test_stale_card_never_checks_out_another_stay(self, make_service, collaborators, pms_state):
        """注销失败留下的旧房卡不会把客人在别的房间的新入住退掉"""
        first_stay, _ = make_service(["张伟"], service_class=CheckInService)
        first = first_stay.run()
        stale_room = first.room.room_number

        check_out, _ = make_service([stale_room, "确认"])
        with patch.object(collaborators.rooms, "revoke_card", side_effect=TransportError("card encoder offline")):
            assert check_out.run().status == CheckOutStatus.COMPLETED
        assert pms_state.cards[first.card.card_id].is_active is True

        pms_state.add_reservation(pms_state.reservations["RSV-20260225-001"].model_copy(update={
            "reservation_id": "RSV-20260301-001",
            "status": ReservationStatus.CONFIRMED,
        }))
        second_stay, _ = make_service(["张伟"], service_class=CheckInService)
        second = second_stay.run()
        assert second.status == CheckInStatus.COMPLETED
        assert second.room.room_number != stale_room

        again, conversation = make_service([stale_room, "确认"])
        result = again.run()

        assert result.status == CheckOutStatus.NOT_FOUND
        assert pms_state.reservations["RSV-20260301-001"].status == ReservationStatus.CHECKED_IN
        assert pms_state.rooms[second.room.room_number].status == RoomStatus.OCCUPIED
        assert pms_state.cards[second.card.card_id].is_active is True
