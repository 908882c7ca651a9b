"""
自助机终端 - 在命令行中办理一次入住、退房或客房服务

用法：
    frontdesk-kiosk check-in
    frontdesk-kiosk check-out --reply-timeout 60
    frontdesk-kiosk room-service
"""
import logging
from enum import Enum
from typing import Optional

import typer

from frontdesk.config import settings
from frontdesk.pms.factory import build_collaborators, prepare_sql_backend
from frontdesk.notification.notifier import build_staff_notifier
from frontdesk.services.checkin_service import CheckInService
from frontdesk.services.checkout_service import CheckOutService
from frontdesk.services.conversation import ConsoleConversation
from frontdesk.services.room_service import RoomServiceService

logger = logging.getLogger(__name__)


class KioskFlow(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"
    ROOM_SERVICE = "room-service"


FLOWS = {
    KioskFlow.CHECK_IN: CheckInService,
    KioskFlow.CHECK_OUT: CheckOutService,
    KioskFlow.ROOM_SERVICE: RoomServiceService,
}

app = typer.Typer(
    name="frontdesk-kiosk",
    help="酒店前台自助办理：入住、退房或客房服务。",
    add_completion=False,
)


@app.command()
def main(
    flow: KioskFlow = typer.Argument(..., help="办理类型"),
    reply_timeout: Optional[float] = typer.Option(
        None,
        "--reply-timeout",
        help="等待客人回复的秒数（默认读取 REPLY_TIMEOUT_SECONDS）",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="日志级别（默认读取 LOG_LEVEL）",
    ),
):
    """与一位客人完成一次入住、退房或客房服务对话。"""
    from rich.console import Console
    console = Console()

    run_settings = settings
    if reply_timeout is not None:
        run_settings = settings.model_copy(update={"REPLY_TIMEOUT_SECONDS": reply_timeout})
    logging.basicConfig(
        level=log_level or run_settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    prepare_sql_backend(run_settings)
    service = FLOWS[flow](
        build_collaborators(run_settings),
        ConsoleConversation(),
        build_staff_notifier(run_settings),
        settings=run_settings,
    )
    result = service.run()
    logger.info(f"{flow.value} finished: {result.status.value}")

    if not result.succeeded:
        console.print(f"[red]{flow.value}:[/red] {result.status.value}")
        raise typer.Exit(code=1)
    console.print(f"[green]{flow.value}:[/green] {result.status.value}")


if __name__ == "__main__":
    app()
