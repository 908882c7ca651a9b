"""
预订查询服务
按姓名查找 confirmed 预订（入住），按房间号查找在住信息（退房）

后端异常 (TransportError) 原样抛出，由编排器决定上报；
"未找到" 是正常结果，返回空查询结果或 None。
"""
import logging
from typing import List, Optional, Union

from frontdesk.core.errors import InvalidSelectionError
from frontdesk.models.schemas import Occupancy, Reservation, ReservationLookup
from frontdesk.pms.interfaces import ReservationStore

logger = logging.getLogger(__name__)


class ReservationResolver:
    """预订查询服务"""

    def __init__(self, store: ReservationStore):
        self.store = store

    def find_confirmed(self, guest_name: str) -> ReservationLookup:
        """按客人姓名查询 confirmed 状态的预订"""
        name = guest_name.strip()
        if not name:
            return ReservationLookup()
        lookup = self.store.find_by_guest_name(name)
        logger.info(
            f"Reservation lookup for {name!r}: guest={'yes' if lookup.guest else 'no'}, "
            f"confirmed={len(lookup.reservations)}"
        )
        return lookup

    def select(self, reservations: List[Reservation], ordinal: Union[int, str]) -> Reservation:
        """
        按序号选择预订（从 1 开始）

        Raises:
            InvalidSelectionError: 序号无法解析或超出范围
        """
        try:
            index = int(str(ordinal).strip())
        except ValueError:
            raise InvalidSelectionError(ordinal, len(reservations))
        if index < 1 or index > len(reservations):
            raise InvalidSelectionError(ordinal, len(reservations))
        return reservations[index - 1]

    def find_occupancy(self, room_number: str) -> Optional[Occupancy]:
        """按房间号查询在住客人、在住预订与有效房卡"""
        number = room_number.strip()
        if not number:
            return None
        occupancy = self.store.find_by_room(number)
        if occupancy is None:
            logger.info(f"No occupancy found for room {number}")
        return occupancy
