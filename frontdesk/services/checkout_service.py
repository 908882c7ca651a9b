"""
退房编排服务

流程：询问房间号 → 查询在住信息 → 查询消费 → 账单确认 → 结算
      → 注销房卡 → 房间置为 cleaning → 写入退房记录 → 预订置为 checked_out → 清空会话

客人确认账单并完成结算后，退房即视为完成；
之后的入账失败只写入对账日志，不向客人报错。
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from frontdesk.core.engine.reconciliation import ReconciliationIssue
from frontdesk.core.errors import ReplyTimeout, TransportError
from frontdesk.models.ontology import ReservationStatus
from frontdesk.models.schemas import CheckOutRecord, Occupancy
from frontdesk.services.base import FrontDeskFlow
from frontdesk.services.billing_service import Bill, BillingReconciler, Settlement, SettlementKind
from frontdesk.services.reservation_resolver import ReservationResolver
from frontdesk.services.room_allocator import RoomAllocator

logger = logging.getLogger(__name__)

PAYMENT_METHOD_UNSPECIFIED = "unspecified"


class CheckOutStatus(str, Enum):
    """退房结果"""
    COMPLETED = "completed"
    NOT_FOUND = "not_found"
    DISPUTED = "disputed"                  # 账单有异议（或未获确认），转值班经理
    SYSTEM_UNAVAILABLE = "system_unavailable"
    ABANDONED = "abandoned"                # 未提供房间号


@dataclass
class CheckOutResult:
    status: CheckOutStatus
    occupancy: Optional[Occupancy] = None
    bill: Optional[Bill] = None
    settlement: Optional[Settlement] = None
    issues: List[ReconciliationIssue] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == CheckOutStatus.COMPLETED

    @property
    def reconciliation_required(self) -> bool:
        return len(self.issues) > 0


class CheckOutService(FrontDeskFlow):
    """退房编排服务"""

    flow_name = "check_out"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.resolver = ReservationResolver(self.collaborators.reservations)
        self.allocator = RoomAllocator(self.collaborators.rooms)
        self.billing = BillingReconciler()

    def run(self) -> CheckOutResult:
        """与客人完成一次退房对话"""
        self._say("🏨 好的，为您办理退房。\n请问您的房间号是多少？")
        try:
            room_number = self._ask("请输入房间号：")
        except ReplyTimeout:
            logger.info("Check-out abandoned: no room number")
            return CheckOutResult(status=CheckOutStatus.ABANDONED)
        return self.check_out(room_number)

    def check_out(self, room_number: str) -> CheckOutResult:
        """按房间号办理退房"""
        self._say(f"正在查询 {room_number} 房间信息... 🔍")
        try:
            occupancy = self.resolver.find_occupancy(room_number)
        except TransportError as e:
            return self._system_unavailable("find_occupancy", e)
        if occupancy is None:
            self._say(f"❌ 未查询到 {room_number} 房间的入住记录。请确认房间号是否正确。")
            return CheckOutResult(status=CheckOutStatus.NOT_FOUND)

        guest, reservation = occupancy.guest, occupancy.reservation
        room_number = occupancy.card.room_number
        self._say(
            f"✅ 查询到入住信息：\n👤 {guest.name}\n🚪 房间 {room_number}\n"
            f"📅 入住 {reservation.check_in_date} ~ {reservation.check_out_date}\n\n"
            "请将房卡放在前台，我来为您核查账单。"
        )

        try:
            charges = self.collaborators.reservations.list_charges(room_number)
        except TransportError as e:
            return self._system_unavailable("list_charges", e, occupancy=occupancy)

        bill = self.billing.compute(reservation, room_number, charges)
        self._say(self.billing.render(bill) + "\n\n请确认账单是否正确？(确认/有异议)")
        try:
            confirmation = self._ask("请确认：")
        except ReplyTimeout:
            confirmation = None
        # 空回复与超时一样不算确认
        if not confirmation or self.billing.is_dispute(confirmation):
            return self._disputed(occupancy, bill, unconfirmed=not confirmation)

        settlement = self._settle(bill)
        return self._commit(occupancy, bill, settlement)

    def _settle(self, bill: Bill) -> Settlement:
        if bill.settlement_kind == SettlementKind.COLLECT:
            self._say(f"💳 额外消费 ¥{bill.amount_due:.2f} 需要补缴。\n请选择支付方式（微信/支付宝/现金/银行卡）：")
            try:
                method = self._ask("支付方式：") or PAYMENT_METHOD_UNSPECIFIED
            except ReplyTimeout:
                method = PAYMENT_METHOD_UNSPECIFIED
            if method == PAYMENT_METHOD_UNSPECIFIED:
                self._notify_staff(
                    self.settings.DUTY_MANAGER,
                    f"房间 {bill.room_number} 补缴 ¥{bill.amount_due:.2f} 未选择支付方式，请核实收款",
                )
                self._say(f"✅ 已记录补缴 ¥{bill.amount_due:.2f}，工作人员将与您确认支付方式。")
            else:
                self._say(f"✅ 已通过{method}收取 ¥{bill.amount_due:.2f}。")
            return self.billing.settle(bill, payment_method=method)
        if bill.settlement_kind == SettlementKind.REFUND:
            self._say(f"💰 需退还 ¥{bill.refund_amount:.2f}，将原路退回。")
        return self.billing.settle(bill)

    def _commit(self, occupancy: Occupancy, bill: Bill, settlement: Settlement) -> CheckOutResult:
        """结算已确认：注销房卡并尽力完成入账"""
        guest, reservation, card = occupancy.guest, occupancy.reservation, occupancy.card
        issues: List[ReconciliationIssue] = []
        refs = {
            "reservation_id": reservation.reservation_id,
            "room_number": bill.room_number,
            "card_id": card.card_id,
        }

        try:
            self.allocator.revoke_card(card)
        except Exception as e:
            self._reconcile(issues, "revoke_card", e, **refs)

        try:
            self.allocator.mark_cleaning(bill.room_number)
        except Exception as e:
            self._reconcile(issues, "mark_room_cleaning", e, **refs)

        try:
            self.collaborators.reservations.append_check_out_record(CheckOutRecord(
                reservation_id=reservation.reservation_id,
                guest_id=guest.id,
                room_number=bill.room_number,
                card_id=card.card_id,
                check_out_time=datetime.now(),
                total_charges=bill.total_amount,
                paid_amount=bill.total_amount,
                refund_amount=bill.refund_amount,
                payment_method=settlement.payment_method,
                operated_by=self.settings.OPERATOR_ID,
            ))
        except Exception as e:
            self._reconcile(issues, "append_check_out_record", e, **refs)

        try:
            self.collaborators.reservations.set_reservation_status(
                reservation.reservation_id, ReservationStatus.CHECKED_OUT
            )
        except Exception as e:
            self._reconcile(issues, "set_reservation_checked_out", e, **refs)

        self.session.clear()

        lines = ["🎉 退房完成！", ""]
        if issues:
            lines = ["⚠️ 系统更新异常，我已记录，请放心不会影响您的退房。", ""] + lines
        lines.extend([
            f"👤 {guest.name}",
            f"🚪 房间 {bill.room_number} 已释放",
            "🔑 房卡已注销",
            f"💰 总计 ¥{bill.total_amount:.2f}",
            "",
            "感谢您的入住！期待下次再见！🌟",
        ])
        self._say("\n".join(lines))
        logger.info(
            f"Check-out completed: {reservation.reservation_id} room {bill.room_number} "
            f"total={bill.total_amount} refund={bill.refund_amount} issues={len(issues)}"
        )
        return CheckOutResult(status=CheckOutStatus.COMPLETED, occupancy=occupancy, bill=bill,
                              settlement=settlement, issues=issues)

    def _disputed(self, occupancy: Occupancy, bill: Bill, unconfirmed: bool) -> CheckOutResult:
        reason = "账单未获确认（超时或空回复）" if unconfirmed else "客人对账单有异议"
        self._notify_staff(
            self.settings.DUTY_MANAGER,
            f"{reason}：房间 {bill.room_number}，预订 {bill.reservation_id}，合计 ¥{bill.total_amount:.2f}",
            extra={"reservation_id": bill.reservation_id, "room_number": bill.room_number},
        )
        self._say("好的，我已通知值班经理为您核查。请稍候片刻，马上会有工作人员来协助您。🙏")
        logger.info(f"Check-out for room {bill.room_number} escalated: {reason}")
        return CheckOutResult(status=CheckOutStatus.DISPUTED, occupancy=occupancy, bill=bill)

    def _system_unavailable(self, step: str, error: TransportError,
                            occupancy: Optional[Occupancy] = None) -> CheckOutResult:
        logger.error(f"Check-out {step} failed: {error}")
        self._notify_staff(self.settings.TECH_SUPPORT, f"退房流程 {step} 后端不可用：{error}")
        self._say("⚠️ 系统查询暂时不可用，已通知工作人员协助，请稍候。")
        return CheckOutResult(status=CheckOutStatus.SYSTEM_UNAVAILABLE, occupancy=occupancy)
