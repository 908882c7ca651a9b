"""
测试预订查询、房间分配与账单核算服务
"""
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import patch

import pytest

from frontdesk.core.errors import CapacityError, InvalidSelectionError, TransportError
from frontdesk.models.ontology import ChargeCategory, ReservationStatus, RoomStatus, RoomType
from frontdesk.models.schemas import ChargeItem, Guest, Reservation
from frontdesk.pms.memory import InMemoryReservationStore, InMemoryRoomStore
from frontdesk.services.billing_service import BillingReconciler, SettlementKind
from frontdesk.services.reservation_resolver import ReservationResolver
from frontdesk.services.room_allocator import RoomAllocator


def _reservation(total_price="388"):
    return Reservation(
        reservation_id="RSV-TEST-001", guest_id="G004", guest_name="陈静", room_type=RoomType.STANDARD,
        check_in_date=date(2026, 2, 24), check_out_date=date(2026, 2, 25),
        status=ReservationStatus.CHECKED_IN, total_price=Decimal(total_price),
    )


def _charge(amount, category=ChargeCategory.MINIBAR, description="矿泉水"):
    return ChargeItem(id=f"CHG-{amount}", room_number="1203", category=category,
                      description=description, amount=Decimal(amount), charged_at=datetime(2026, 2, 24, 22, 0))


# ============== 预订查询 ==============

class TestReservationResolver:
    @pytest.fixture
    def resolver(self, pms_state):
        return ReservationResolver(InMemoryReservationStore(pms_state))

    def test_find_confirmed_strips_name(self, resolver):
        lookup = resolver.find_confirmed("  张伟 ")
        assert lookup.found
        assert lookup.reservations[0].reservation_id == "RSV-20260225-001"

    def test_find_confirmed_empty_name(self, resolver):
        assert not resolver.find_confirmed("   ").found

    def test_find_confirmed_is_case_sensitive(self, pms_state):
        pms_state.add_guest(Guest(id="G010", name="Zhang Wei"))
        resolver = ReservationResolver(InMemoryReservationStore(pms_state))
        assert resolver.find_confirmed("Zhang Wei").guest.id == "G010"
        assert resolver.find_confirmed("zhang wei").guest is None

    def test_select(self, resolver):
        reservations = [_reservation("100"), _reservation("200")]
        assert resolver.select(reservations, 2).total_price == Decimal("200")
        assert resolver.select(reservations, " 1 ").total_price == Decimal("100")

    @pytest.mark.parametrize("ordinal", [0, 3, "-1", "abc", ""])
    def test_select_invalid(self, resolver, ordinal):
        with pytest.raises(InvalidSelectionError) as exc_info:
            resolver.select([_reservation(), _reservation()], ordinal)
        assert exc_info.value.count == 2

    def test_find_occupancy(self, resolver):
        assert resolver.find_occupancy(" 1502 ").guest.name == "刘洋"
        assert resolver.find_occupancy("1201") is None
        assert resolver.find_occupancy("") is None

    def test_transport_error_propagates(self, resolver):
        """后端不可达与 "未找到" 区分开"""
        with patch.object(resolver.store, "find_by_guest_name", side_effect=TransportError("PMS down")):
            with pytest.raises(TransportError):
                resolver.find_confirmed("张伟")


# ============== 房间分配 ==============

class TestRoomAllocator:
    @pytest.fixture
    def allocator(self, pms_state):
        return RoomAllocator(InMemoryRoomStore(pms_state))

    def test_assign_room(self, allocator):
        room = allocator.assign_room(RoomType.PRESIDENTIAL)
        assert room.room_number == "1801"
        with pytest.raises(CapacityError):
            allocator.assign_room(RoomType.PRESIDENTIAL)

    def test_issue_card(self, allocator, pms_state):
        room = allocator.assign_room(RoomType.DELUXE)
        card = allocator.issue_card(room, pms_state.guests["G001"], date(2026, 2, 28))
        assert card.room_number == room.room_number
        assert card.guest_id == "G001"
        assert card.expires_at == date(2026, 2, 28)
        assert card.is_active

    def test_revoke_card_accepts_card_or_id(self, allocator, pms_state):
        card = pms_state.cards["CARD-0901"]
        allocator.revoke_card(card)
        allocator.revoke_card("CARD-0901")
        assert pms_state.cards["CARD-0901"].is_active is False

    def test_mark_occupied_then_cleaning(self, allocator):
        room = allocator.assign_room(RoomType.SUITE)
        assert allocator.mark_occupied(room.room_number).status == RoomStatus.OCCUPIED
        assert allocator.mark_cleaning(room.room_number).status == RoomStatus.CLEANING

    def test_mark_is_noop_when_already_in_status(self, allocator):
        """已处于目标状态时不再写入"""
        assert allocator.mark_cleaning("1210").status == RoomStatus.CLEANING
        assert allocator.mark_occupied("1203").status == RoomStatus.OCCUPIED

    def test_availability(self, allocator):
        allocator.assign_room(RoomType.DELUXE)
        assert allocator.availability()["deluxe"].available == 1


# ============== 账单核算 ==============

class TestBillingReconciler:
    @pytest.fixture
    def billing(self):
        return BillingReconciler()

    def test_empty_charges(self, billing):
        bill = billing.compute(_reservation("388"), "1203", [])
        assert bill.total_amount == Decimal("388")
        assert bill.balance == Decimal("0")
        assert bill.settlement_kind == SettlementKind.NONE

    def test_amount_due(self, billing):
        bill = billing.compute(_reservation("388"), "1203", [_charge("120")])
        assert bill.room_charge == Decimal("388")
        assert bill.paid_amount == Decimal("388")
        assert bill.total_amount == Decimal("508")
        assert bill.balance == Decimal("120")
        assert bill.amount_due == Decimal("120")
        assert bill.refund_amount == Decimal("0")

    def test_refund(self, billing):
        bill = billing.compute(_reservation("388"), "1203", [_charge("50"), _charge("-80", ChargeCategory.OTHER)])
        assert bill.extra_charges == Decimal("-30")
        assert bill.total_amount == Decimal("358")
        assert bill.balance == Decimal("-30")
        assert bill.refund_amount == Decimal("30")
        assert bill.amount_due == Decimal("0")
        assert bill.settlement_kind == SettlementKind.REFUND

    def test_decimal_exactness(self, billing):
        bill = billing.compute(_reservation("0.10"), "1203", [_charge("0.20"), _charge("0.10")])
        assert bill.total_amount == Decimal("0.40")

    def test_settle(self, billing):
        due = billing.compute(_reservation("388"), "1203", [_charge("120")])
        settlement = billing.settle(due, payment_method="支付宝")
        assert settlement.kind == SettlementKind.COLLECT
        assert settlement.amount == Decimal("120")
        assert settlement.payment_method == "支付宝"

        refund = billing.compute(_reservation("388"), "1203", [_charge("-88")])
        settlement = billing.settle(refund, payment_method="支付宝")
        assert settlement.kind == SettlementKind.REFUND
        assert settlement.amount == Decimal("88")
        assert settlement.payment_method is None

    @pytest.mark.parametrize("reply,expected", [
        ("有异议", True),
        ("金额不对", True),
        ("算错了", True),
        ("确认", False),
        ("好的", False),
    ])
    def test_is_dispute(self, billing, reply, expected):
        assert billing.is_dispute(reply) is expected

    def test_render(self, billing):
        bill = billing.compute(_reservation("388"), "1203", [
            _charge("68"), _charge("52", ChargeCategory.LAUNDRY, "衬衫"),
        ])
        text = billing.render(bill)
        assert "房费: ¥388.00" in text
        assert "迷你吧: 矿泉水 — ¥68.00" in text
        assert "洗衣: 衬衫 — ¥52.00" in text
        assert "合计: ¥508.00" in text
