"""
身份核验服务客户端
对接身份核验微服务（身份证读卡器 + 人脸比对）

读卡与摄像头取像由该服务负责，本客户端只调用其接口，
并把失败统一转换为 ScanError / FaceServiceError。
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from frontdesk.core.errors import FaceServiceError, ScanError
from frontdesk.models.schemas import FaceVerifyResult, IdScanResult
from frontdesk.pms.interfaces import IdentityService

logger = logging.getLogger(__name__)


class HttpIdentityService(IdentityService):
    """
    身份核验微服务客户端

    接口：
    - POST /api/id-card/scan  -> IdScanResult
    - POST /api/face/verify   -> FaceVerifyResult
    """

    def __init__(self, base_url: str, timeout: int = 30, client: Optional[httpx.Client] = None):
        """
        Args:
            base_url: 身份核验服务地址
            timeout: 请求超时秒数（读卡可能较慢）
            client: 可选的 httpx 客户端，测试时注入
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = client or httpx.Client()
        logger.info(f"Identity service client initialized with base URL: {self.base_url}")

    def health_check(self) -> bool:
        try:
            response = self.http.get(f"{self.base_url}/health", timeout=5)
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"Identity service health check failed: {e}")
            return False

    def scan_document(self) -> IdScanResult:
        """
        触发一次身份证读取

        Returns:
            IdScanResult: success=False 表示读到了证件但数据不可用

        Raises:
            ScanError: 设备或网络故障，或响应格式错误
        """
        try:
            response = self.http.post(f"{self.base_url}/api/id-card/scan", json={}, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.error(f"ID card scan request failed: {e}")
            raise ScanError(f"证件读取失败: {e}")

        if response.status_code != 200:
            logger.error(f"ID card scan returned HTTP {response.status_code}")
            raise ScanError(f"证件读取返回 HTTP {response.status_code}",
                            {"status_code": response.status_code})
        try:
            return IdScanResult.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Invalid ID card scan payload: {e}")
            raise ScanError(f"证件读取结果格式错误: {e}")

    def match_face(self, reference_photo: str) -> FaceVerifyResult:
        """
        将摄像头实时画面与证件照比对

        Raises:
            FaceServiceError: 网络故障或响应格式错误
        """
        try:
            response = self.http.post(
                f"{self.base_url}/api/face/verify",
                json={'reference_photo': reference_photo},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"Face verification request failed: {e}")
            raise FaceServiceError(f"人脸比对失败: {e}")

        if response.status_code != 200:
            logger.error(f"Face verification returned HTTP {response.status_code}")
            raise FaceServiceError(f"人脸比对返回 HTTP {response.status_code}",
                                   {"status_code": response.status_code})
        try:
            return FaceVerifyResult.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Invalid face verification payload: {e}")
            raise FaceServiceError(f"人脸比对结果格式错误: {e}")
