"""
身份核验闸门 - 证件扫描 + 人脸比对

1. 证件扫描：读卡故障允许重试（最多 max_scan_attempts 次），
   证件姓名必须与预订姓名完全一致（区分大小写，不做模糊匹配）
2. 人脸比对：匹配且活体检测通过才算成功，失败不自动重试

状态：not_started → scan_pending → scan_failed(可重试一次) → scan_ok → face_failed | face_ok
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from frontdesk.core.engine.state_machine import StateMachine
from frontdesk.core.errors import FaceServiceError, ScanError
from frontdesk.models.lifecycle import VERIFICATION_LIFECYCLE, VerificationState
from frontdesk.models.schemas import FaceVerifyResult, IdScanResult
from frontdesk.pms.interfaces import IdentityService

logger = logging.getLogger(__name__)


class VerificationFailure(str, Enum):
    """核验失败原因"""
    SCAN_ERROR = "scan_error"              # 读卡故障，重试后仍失败
    SCAN_UNREADABLE = "scan_unreadable"    # 读到证件但信息异常
    NAME_MISMATCH = "name_mismatch"        # 证件姓名与预订不一致
    FACE_MISMATCH = "face_mismatch"        # 人脸不匹配
    LIVENESS_FAILED = "liveness_failed"    # 活体检测未通过
    FACE_SERVICE_ERROR = "face_service_error"


@dataclass
class VerificationOutcome:
    """
    核验结果

    Attributes:
        passed: 是否通过（证件与人脸均通过）
        state: 最终状态
        failure: 失败原因
        scan: 证件扫描结果
        face: 人脸比对结果
        scan_attempts: 实际扫描次数
    """

    passed: bool
    state: VerificationState
    failure: Optional[VerificationFailure] = None
    scan: Optional[IdScanResult] = None
    face: Optional[FaceVerifyResult] = None
    scan_attempts: int = 0

    @property
    def requires_staff(self) -> bool:
        """需要人工介入：姓名不符（可能冒用）或读卡彻底失败"""
        return self.failure in (VerificationFailure.NAME_MISMATCH, VerificationFailure.SCAN_ERROR)


# 流程事件回调：(事件名, 扫描次数)
# 事件: scan_retry, scan_ok, face_start
VerificationListener = Callable[[str, int], None]


class IdentityVerificationGate:
    """身份核验闸门"""

    def __init__(self, identity: IdentityService, max_scan_attempts: int = 2):
        if max_scan_attempts < 1:
            raise ValueError("max_scan_attempts 必须大于等于 1")
        self.identity = identity
        self.max_scan_attempts = max_scan_attempts

    def verify(self, expected_name: str, listener: Optional[VerificationListener] = None) -> VerificationOutcome:
        """
        对预订客人执行完整核验

        Args:
            expected_name: 预订上的客人姓名
            listener: 可选的流程事件回调（用于向客人播报进度）
        """
        machine = StateMachine(VERIFICATION_LIFECYCLE)
        emit = listener or (lambda event, attempts: None)

        scan, attempts = self._scan(machine, emit)
        if scan is None:
            return self._fail(machine, VerificationFailure.SCAN_ERROR, attempts=attempts)
        if not scan.success:
            return self._fail(machine, VerificationFailure.SCAN_UNREADABLE, scan=scan, attempts=attempts)

        machine.fire("scan_ok")
        if scan.name != expected_name:
            machine.fire("name_mismatch")
            logger.warning(f"ID name mismatch: scanned={scan.name!r} reservation={expected_name!r}")
            return self._fail(machine, VerificationFailure.NAME_MISMATCH, scan=scan, attempts=attempts)
        emit("scan_ok", attempts)

        emit("face_start", attempts)
        try:
            face = self.identity.match_face(scan.photo_base64)
        except FaceServiceError as e:
            logger.error(f"Face verification service error: {e}")
            machine.fire("face_failed")
            return self._fail(machine, VerificationFailure.FACE_SERVICE_ERROR, scan=scan, attempts=attempts)

        if not face.is_match or not face.live_detection:
            machine.fire("face_failed")
            failure = VerificationFailure.FACE_MISMATCH if not face.is_match else VerificationFailure.LIVENESS_FAILED
            logger.info(f"Face verification failed: match={face.is_match} score={face.match_score} "
                        f"live={face.live_detection}")
            return self._fail(machine, failure, scan=scan, face=face, attempts=attempts)

        machine.fire("face_ok")
        logger.info(f"Identity verified for {expected_name!r} (score {face.match_score})")
        return VerificationOutcome(
            passed=True,
            state=VerificationState(machine.current_state),
            scan=scan,
            face=face,
            scan_attempts=attempts,
        )

    def _scan(self, machine: StateMachine, emit: VerificationListener):
        """有界重试的证件扫描，返回 (结果或 None, 扫描次数)"""
        machine.fire("start_scan")
        attempts = 0
        while True:
            attempts += 1
            try:
                return self.identity.scan_document(), attempts
            except ScanError as e:
                logger.warning(f"ID scan attempt {attempts}/{self.max_scan_attempts} failed: {e}")
                machine.fire("scan_failed")
                if attempts >= self.max_scan_attempts:
                    return None, attempts
                emit("scan_retry", attempts)
                machine.fire("retry_scan")

    def _fail(self, machine: StateMachine, failure: VerificationFailure,
              scan: Optional[IdScanResult] = None, face: Optional[FaceVerifyResult] = None,
              attempts: int = 0) -> VerificationOutcome:
        if machine.current_state == VerificationState.SCAN_PENDING.value:
            machine.fire("scan_failed")
        return VerificationOutcome(
            passed=False,
            state=VerificationState(machine.current_state),
            failure=failure,
            scan=scan,
            face=face,
            scan_attempts=attempts,
        )
