"""
账单核算服务

总额 = 房费（预订约定总价，视为已预付） + Σ 额外消费
余额 = 总额 - 已付
余额 > 0 需补缴；< 0 需退还；= 0 无需处理
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from frontdesk.models.ontology import ChargeCategory
from frontdesk.models.schemas import ChargeItem, Reservation

logger = logging.getLogger(__name__)

CATEGORY_LABELS = {
    ChargeCategory.ROOM: "房费",
    ChargeCategory.MINIBAR: "迷你吧",
    ChargeCategory.RESTAURANT: "餐饮",
    ChargeCategory.LAUNDRY: "洗衣",
    ChargeCategory.SPA: "水疗",
    ChargeCategory.DAMAGE: "损坏赔偿",
    ChargeCategory.OTHER: "其他",
}

# 客人回复中包含这些词视为对账单有异议
DISPUTE_KEYWORDS = ("异议", "不对", "错")


class SettlementKind(str, Enum):
    """结算类型"""
    COLLECT = "collect"    # 补缴
    REFUND = "refund"      # 退还
    NONE = "none"          # 无需处理


@dataclass
class Bill:
    """
    退房账单

    Attributes:
        reservation_id: 预订号
        room_number: 房间号
        room_charge: 房费（预付）
        charges: 额外消费明细
        paid_amount: 已付金额
    """

    reservation_id: str
    room_number: str
    room_charge: Decimal
    charges: List[ChargeItem] = field(default_factory=list)
    paid_amount: Decimal = Decimal("0")

    @property
    def extra_charges(self) -> Decimal:
        return sum((c.amount for c in self.charges), Decimal("0"))

    @property
    def total_amount(self) -> Decimal:
        return self.room_charge + self.extra_charges

    @property
    def balance(self) -> Decimal:
        return self.total_amount - self.paid_amount

    @property
    def settlement_kind(self) -> SettlementKind:
        if self.balance > 0:
            return SettlementKind.COLLECT
        if self.balance < 0:
            return SettlementKind.REFUND
        return SettlementKind.NONE

    @property
    def amount_due(self) -> Decimal:
        return self.balance if self.balance > 0 else Decimal("0")

    @property
    def refund_amount(self) -> Decimal:
        return -self.balance if self.balance < 0 else Decimal("0")


@dataclass
class Settlement:
    """结算记录（只记录方式与金额，不对接支付网关）"""

    kind: SettlementKind
    amount: Decimal
    payment_method: Optional[str] = None


class BillingReconciler:
    """账单核算服务"""

    def compute(self, reservation: Reservation, room_number: str, charges: List[ChargeItem]) -> Bill:
        """根据预订与额外消费生成账单"""
        bill = Bill(
            reservation_id=reservation.reservation_id,
            room_number=room_number,
            room_charge=Decimal(reservation.total_price),
            charges=list(charges),
            paid_amount=Decimal(reservation.total_price),
        )
        logger.info(
            f"Bill for {reservation.reservation_id}: total={bill.total_amount} "
            f"paid={bill.paid_amount} balance={bill.balance}"
        )
        return bill

    def settle(self, bill: Bill, payment_method: Optional[str] = None) -> Settlement:
        """按余额生成结算记录"""
        kind = bill.settlement_kind
        if kind == SettlementKind.COLLECT:
            return Settlement(kind=kind, amount=bill.amount_due, payment_method=payment_method)
        if kind == SettlementKind.REFUND:
            return Settlement(kind=kind, amount=bill.refund_amount)
        return Settlement(kind=kind, amount=Decimal("0"))

    @staticmethod
    def is_dispute(reply: str) -> bool:
        """客人回复是否表示对账单有异议"""
        return any(keyword in reply for keyword in DISPUTE_KEYWORDS)

    @staticmethod
    def render(bill: Bill) -> str:
        """生成账单明细文本"""
        lines = ["📋 **退房账单**", "", f"🛏️ 房费: ¥{bill.room_charge:.2f}"]
        if bill.charges:
            lines.append("")
            lines.append("📦 额外消费:")
            for charge in bill.charges:
                label = CATEGORY_LABELS.get(charge.category, charge.category.value)
                lines.append(f"  • {label}: {charge.description} — ¥{charge.amount:.2f}")
        lines.append("")
        lines.append("━━━━━━━━━━━━━━━━")
        lines.append(f"💰 **合计: ¥{bill.total_amount:.2f}**")
        return "\n".join(lines)
