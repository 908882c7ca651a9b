"""
客人对话端口

编排器与客人之间唯一的交互方式：发送消息、等待回复。
等待回复是阻塞点，超时抛出 ReplyTimeout。
"""
import logging
import queue
import sys
import threading
from abc import ABC, abstractmethod
from typing import Optional, TextIO

from frontdesk.core.errors import ReplyTimeout

logger = logging.getLogger(__name__)


class GuestConversation(ABC):
    """客人对话接口"""

    @abstractmethod
    def send_message(self, text: str) -> None:
        """向客人发送一条消息"""

    @abstractmethod
    def wait_for_reply(self, prompt: str, timeout: Optional[float] = None) -> str:
        """
        提示并等待客人回复

        Args:
            prompt: 输入提示
            timeout: 超时秒数，None 表示一直等待

        Raises:
            ReplyTimeout: 超时未回复
        """


class ConsoleConversation(GuestConversation):
    """终端对话：stdout 输出，stdin 读取回复"""

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._replies: "queue.Queue[Optional[str]]" = queue.Queue()
        self._reader: Optional[threading.Thread] = None

    def send_message(self, text: str) -> None:
        self._stdout.write(f"{text}\n\n")
        self._stdout.flush()

    def wait_for_reply(self, prompt: str, timeout: Optional[float] = None) -> str:
        self._stdout.write(prompt)
        self._stdout.flush()
        self._ensure_reader()
        try:
            reply = self._replies.get(timeout=timeout)
        except queue.Empty:
            self._stdout.write("\n")
            raise ReplyTimeout(prompt, timeout)
        if reply is None:
            # 输入流已关闭，等同于客人离开
            raise ReplyTimeout(prompt, timeout)
        return reply

    def _ensure_reader(self) -> None:
        # 读线程在超时后继续等待输入，下一次提问直接取用
        if self._reader is not None and self._reader.is_alive():
            return
        self._reader = threading.Thread(target=self._read_lines, daemon=True)
        self._reader.start()

    def _read_lines(self) -> None:
        for line in self._stdin:
            self._replies.put(line.rstrip("\n"))
        self._replies.put(None)
