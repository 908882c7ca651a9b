"""
入住编排服务

流程：询问姓名 → 查询预订 → (多条时选择) → 身份核验 → 分配房间
      → 发放房卡 → 房间置为 occupied → 写入入住记录 → 预订置为 checked_in → 写入会话

分配房间之后不回滚：房卡一旦交到客人手中就无法撤回，
之后的任何入账失败都写入对账日志，客人看到的是 "入住完成"。
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from frontdesk.core.engine.reconciliation import ReconciliationIssue
from frontdesk.core.errors import CapacityError, InvalidSelectionError, ReplyTimeout, TransportError
from frontdesk.models.ontology import ReservationStatus
from frontdesk.models.schemas import CheckInRecord, Guest, Reservation, Room, RoomCard
from frontdesk.services.base import ROOM_TYPE_LABELS, FrontDeskFlow
from frontdesk.services.identity_gate import (
    IdentityVerificationGate, VerificationFailure, VerificationOutcome,
)
from frontdesk.services.reservation_resolver import ReservationResolver
from frontdesk.services.room_allocator import RoomAllocator

logger = logging.getLogger(__name__)


class CheckInStatus(str, Enum):
    """入住结果"""
    COMPLETED = "completed"
    COMPLETED_DEGRADED = "completed_degraded"      # 入住完成，但有入账失败待对账
    HELD_FOR_STAFF = "held_for_staff"              # 房间已占用但房卡未发出，等待员工处理
    NOT_FOUND = "not_found"
    INVALID_SELECTION = "invalid_selection"
    VERIFICATION_FAILED = "verification_failed"
    NO_CAPACITY = "no_capacity"
    SYSTEM_UNAVAILABLE = "system_unavailable"
    ABANDONED = "abandoned"                        # 客人未回复


@dataclass
class CheckInResult:
    status: CheckInStatus
    guest: Optional[Guest] = None
    reservation: Optional[Reservation] = None
    room: Optional[Room] = None
    card: Optional[RoomCard] = None
    verification: Optional[VerificationOutcome] = None
    issues: List[ReconciliationIssue] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status in (CheckInStatus.COMPLETED, CheckInStatus.COMPLETED_DEGRADED)

    @property
    def reconciliation_required(self) -> bool:
        return len(self.issues) > 0


FAILURE_MESSAGES = {
    VerificationFailure.SCAN_ERROR: "❌ 身份证多次读取失败，已通知工作人员前来协助。",
    VerificationFailure.SCAN_UNREADABLE: "身份证信息读取异常，请联系工作人员协助。",
    VerificationFailure.FACE_SERVICE_ERROR: "人脸识别服务异常，请联系工作人员协助。",
}


class CheckInService(FrontDeskFlow):
    """入住编排服务"""

    flow_name = "check_in"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.resolver = ReservationResolver(self.collaborators.reservations)
        self.gate = IdentityVerificationGate(
            self.collaborators.identity, max_scan_attempts=self.settings.MAX_SCAN_ATTEMPTS
        )
        self.allocator = RoomAllocator(self.collaborators.rooms)

    def run(self) -> CheckInResult:
        """与客人完成一次入住对话"""
        self._say("🏨 您好，欢迎光临！\n请问您贵姓？是否有提前预订？")
        try:
            guest_name = self._ask("请告诉我您的姓名：")
        except ReplyTimeout:
            return self._abandoned()
        return self.check_in(guest_name)

    def check_in(self, guest_name: str) -> CheckInResult:
        """按客人姓名办理入住"""
        self._say("正在为您查询预订信息，请稍候... 🔍")
        try:
            lookup = self.resolver.find_confirmed(guest_name)
        except TransportError as e:
            return self._system_unavailable("find_reservation", e)

        if not lookup.found:
            self._say(
                f"抱歉，未查询到 **{guest_name}** 的预订信息。\n\n"
                "您可以：\n1️⃣ 确认预订姓名后重新查询\n2️⃣ 提供预订确认号\n3️⃣ 现场办理散客入住"
            )
            return CheckInResult(status=CheckInStatus.NOT_FOUND)

        guest = lookup.guest
        reservation = lookup.reservations[0]
        if len(lookup.reservations) > 1:
            lines = [f"查到您有 {len(lookup.reservations)} 条预订记录：", ""]
            for i, r in enumerate(lookup.reservations, start=1):
                lines.append(
                    f"{i}. 预订号: {r.reservation_id} | 房型: {ROOM_TYPE_LABELS[r.room_type]} | "
                    f"{r.check_in_date} ~ {r.check_out_date}"
                )
            self._say("\n".join(lines))
            try:
                reservation = self.resolver.select(lookup.reservations, self._ask("请输入序号选择："))
            except ReplyTimeout:
                return self._abandoned(guest)
            except InvalidSelectionError as e:
                logger.info(f"Check-in selection rejected: {e}")
                self._say("选择无效，请重新办理。")
                return CheckInResult(status=CheckInStatus.INVALID_SELECTION, guest=guest)

        self._say(
            f"✅ 预订确认：\n📋 {reservation.reservation_id}\n🛏️ {ROOM_TYPE_LABELS[reservation.room_type]}\n"
            f"📅 {reservation.check_in_date} ~ {reservation.check_out_date}\n\n"
            "接下来进行身份验证：\n📋 请将身份证放置在前台扫描区域。"
        )
        verification = self.gate.verify(reservation.guest_name, listener=self._on_verification_event)
        if not verification.passed:
            return self._verification_failed(guest, reservation, verification)
        self._say(f"✅ 人脸验证通过！匹配度 {verification.face.match_score}%")

        self._say("🏠 正在分配房间...")
        try:
            room = self.allocator.assign_room(reservation.room_type)
        except CapacityError:
            self._say(f"抱歉，{ROOM_TYPE_LABELS[reservation.room_type]}暂无可用房间，工作人员将为您另行安排。")
            self._notify_staff(
                self.settings.DUTY_MANAGER,
                f"{reservation.room_type.value} 无可用房间，预订 {reservation.reservation_id} 无法入住",
            )
            return CheckInResult(status=CheckInStatus.NO_CAPACITY, guest=guest,
                                 reservation=reservation, verification=verification)
        except TransportError as e:
            return self._system_unavailable("assign_room", e, guest=guest, reservation=reservation)

        return self._commit(guest, reservation, room, verification)

    def _commit(self, guest: Guest, reservation: Reservation, room: Room,
                verification: VerificationOutcome) -> CheckInResult:
        """房间已分配：发卡并尽力完成入账"""
        issues: List[ReconciliationIssue] = []
        refs = {"reservation_id": reservation.reservation_id, "room_number": room.room_number}

        try:
            card = self.allocator.issue_card(room, guest, reservation.check_out_date)
        except Exception as e:
            # 房间保持 reserved，由员工线下制卡或释放
            self._reconcile(issues, "issue_card", e, **refs)
            self._say(f"房间 {room.room_number} 已为您保留，制卡系统暂时异常，工作人员马上为您制作房卡。")
            return CheckInResult(status=CheckInStatus.HELD_FOR_STAFF, guest=guest, reservation=reservation,
                                 room=room, verification=verification, issues=issues)
        refs["card_id"] = card.card_id

        try:
            room = self.allocator.mark_occupied(room.room_number)
        except Exception as e:
            self._reconcile(issues, "mark_room_occupied", e, **refs)

        try:
            self.collaborators.reservations.append_check_in_record(CheckInRecord(
                reservation_id=reservation.reservation_id,
                guest_id=guest.id,
                room_number=room.room_number,
                card_id=card.card_id,
                id_verified=True,
                face_verified=True,
                check_in_time=datetime.now(),
                operated_by=self.settings.OPERATOR_ID,
            ))
        except Exception as e:
            self._reconcile(issues, "append_check_in_record", e, **refs)

        try:
            reservation = self.collaborators.reservations.set_reservation_status(
                reservation.reservation_id, ReservationStatus.CHECKED_IN
            )
        except Exception as e:
            self._reconcile(issues, "set_reservation_checked_in", e, **refs)

        self.session.current_guest = guest
        self.session.current_room = room
        self.session.current_reservation = reservation
        self.session.active_card = card

        lines = [
            "🎉 入住完成！", "",
            f"👤 {guest.name}",
            f"🚪 房间 **{room.room_number}**（{room.floor}楼）",
            f"🛏️ {ROOM_TYPE_LABELS[room.room_type]}",
            f"🔑 房卡号 {card.card_id}",
            f"📅 离店 {reservation.check_out_date}",
        ]
        if issues:
            lines.extend(["", "ℹ️ 部分登记信息稍后由工作人员补录，不影响您入住。"])
        lines.extend(["", "祝您入住愉快！🌟"])
        self._say("\n".join(lines))

        status = CheckInStatus.COMPLETED_DEGRADED if issues else CheckInStatus.COMPLETED
        logger.info(f"Check-in {status.value}: {reservation.reservation_id} -> room {room.room_number}")
        return CheckInResult(status=status, guest=guest, reservation=reservation, room=room,
                             card=card, verification=verification, issues=issues)

    def _on_verification_event(self, event: str, attempts: int) -> None:
        if event == "scan_retry":
            self._say("❌ 身份证读取失败，请重新放置。")
        elif event == "scan_ok":
            self._say("✅ 身份证读取成功！")
        elif event == "face_start":
            self._say("📷 请面向摄像头，进行人脸识别。")

    def _verification_failed(self, guest: Guest, reservation: Reservation,
                             verification: VerificationOutcome) -> CheckInResult:
        failure = verification.failure
        if failure == VerificationFailure.NAME_MISMATCH:
            self._say(f"⚠️ 身份证姓名（{verification.scan.name}）与预订姓名不一致，已通知值班经理。")
            self._notify_staff(
                self.settings.DUTY_MANAGER,
                f"证件姓名不符：预订 {reservation.reservation_id} 姓名 {reservation.guest_name}，"
                f"证件姓名 {verification.scan.name}",
                extra={"reservation_id": reservation.reservation_id},
            )
        elif failure in (VerificationFailure.FACE_MISMATCH, VerificationFailure.LIVENESS_FAILED):
            self._say(f"❌ 人脸验证未通过（匹配度 {verification.face.match_score}%）。请摘下帽子/墨镜后重试。")
        else:
            self._say(FAILURE_MESSAGES[failure])
            if failure == VerificationFailure.SCAN_ERROR:
                self._notify_staff(
                    self.settings.DUTY_MANAGER,
                    f"证件扫描连续失败 {verification.scan_attempts} 次，预订 {reservation.reservation_id} 需要人工协助",
                )
        logger.info(f"Check-in verification failed for {reservation.reservation_id}: {failure.value}")
        return CheckInResult(status=CheckInStatus.VERIFICATION_FAILED, guest=guest,
                             reservation=reservation, verification=verification)

    def _system_unavailable(self, step: str, error: TransportError, guest: Optional[Guest] = None,
                            reservation: Optional[Reservation] = None) -> CheckInResult:
        logger.error(f"Check-in {step} failed: {error}")
        self._notify_staff(self.settings.TECH_SUPPORT, f"入住流程 {step} 后端不可用：{error}")
        self._say("⚠️ 查询系统暂时不可用，我已通知技术人员。请您稍候片刻。")
        return CheckInResult(status=CheckInStatus.SYSTEM_UNAVAILABLE, guest=guest, reservation=reservation)

    def _abandoned(self, guest: Optional[Guest] = None) -> CheckInResult:
        logger.info("Check-in abandoned: no reply from guest")
        return CheckInResult(status=CheckInStatus.ABANDONED, guest=guest)
