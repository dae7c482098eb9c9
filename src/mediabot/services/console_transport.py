"""Terminal chat transport: reads commands from stdin, delivers media to an outbox folder."""

import asyncio
import logging
import shutil
import threading
from pathlib import Path
from typing import Awaitable, Callable, Hashable, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from mediabot.models.message import IncomingMessage, ReplyChannel
from mediabot.utils.errors import ErrorCode, TransportError
from mediabot.utils.formatting import format_megabytes

logger = logging.getLogger(__name__)

QUOTE_SEPARATOR = " || "
PROMPT = "[bold cyan]> [/bold cyan]"

MessageCallback = Callable[[IncomingMessage, ReplyChannel], Awaitable[None]]


class ConsoleReplyChannel:
    """Reply channel bound to one console conversation."""

    def __init__(self, transport: 'ConsoleTransport'):
        self.transport = transport

    def _ensure_connected(self) -> None:
        if not self.transport.connected:
            raise TransportError(ErrorCode.TRANSPORT_NOT_CONNECTED, "Console transport is closed.")

    async def reply_text(self, text: str) -> None:
        self._ensure_connected()
        try:
            self.transport.console.print(Panel(Text(text), title="mediabot", title_align="left", expand=False))
        except OSError as e:
            raise TransportError(ErrorCode.SEND_TEXT_FAILED, f"Could not print reply: {e}")

    async def reply_audio(self, file_path: Path, caption: str) -> None:
        await self._deliver(file_path, caption, ErrorCode.SEND_AUDIO_FAILED)

    async def reply_video(self, file_path: Path, caption: str) -> None:
        await self._deliver(file_path, caption, ErrorCode.SEND_VIDEO_FAILED)

    async def _deliver(self, file_path: Path, caption: str, failure_code: ErrorCode) -> None:
        self._ensure_connected()
        source = Path(file_path)
        size = source.stat().st_size if source.exists() else 0

        max_bytes = self.transport.max_send_bytes
        if max_bytes and size > max_bytes:
            raise TransportError(failure_code, f"Media too big: {size} bytes (413)")

        try:
            destination = await asyncio.to_thread(self.transport.store, source)
        except OSError as e:
            raise TransportError(failure_code, f"Could not deliver {source.name}: {e}")

        self.transport.console.print(
            f"[green]Delivered[/green] {escape(caption)} -> {escape(str(destination))} ({format_megabytes(size)})"
        )


class ConsoleTransport:
    """Line-oriented transport for running the bot from a terminal.

    A line of the form ``<quoted text> || <message>`` is delivered as a reply
    to a quoted message, e.g. ``never gonna give you up || /play``.
    """

    def __init__(
        self,
        outbox_path: str,
        conversation_id: Hashable = "console",
        console: Optional[Console] = None,
        max_send_bytes: Optional[int] = None,
    ):
        self.outbox_path = Path(outbox_path)
        self.outbox_path.mkdir(parents=True, exist_ok=True)
        self.conversation_id = conversation_id
        self.console = console or Console()
        self.max_send_bytes = max_send_bytes
        self.connected = False
        self.channel = ConsoleReplyChannel(self)
        self._want_line = threading.Event()

    def store(self, source: Path) -> Path:
        """Copy a finished file into the outbox, keeping existing files."""
        destination = self.outbox_path / source.name
        counter = 1
        while destination.exists():
            destination = self.outbox_path / f"{source.stem}_{counter}{source.suffix}"
            counter += 1
        shutil.copy2(source, destination)
        return destination

    @staticmethod
    def parse_line(line: str) -> tuple:
        """Split a raw line into (text, quoted_text)."""
        if QUOTE_SEPARATOR in line:
            quoted, _, text = line.partition(QUOTE_SEPARATOR)
            return text.strip(), quoted.strip() or None
        return line.strip(), None

    async def run(self, on_message: MessageCallback) -> None:
        """Feed stdin lines to ``on_message`` until EOF, ``close`` or cancellation."""
        loop = asyncio.get_running_loop()
        lines: asyncio.Queue = asyncio.Queue()
        self.connected = True
        self.console.print("[bold]mediabot[/bold] ready. Type /help, Ctrl-D to quit.")

        # Daemon thread, so a read blocked in input() never delays interpreter exit
        reader = threading.Thread(
            target=self._read_lines, args=(loop, lines), name="console-reader", daemon=True
        )
        reader.start()

        try:
            while self.connected:
                self._want_line.set()
                line = await lines.get()
                if line is None:
                    break

                text, quoted_text = self.parse_line(line)
                if not text:
                    continue

                message = IncomingMessage(self.conversation_id, text, quoted_text)
                try:
                    await on_message(message, self.channel)
                except Exception as e:
                    logger.error(f"Error while handling console message: {e}")
        finally:
            self.close()

    def _read_lines(self, loop: asyncio.AbstractEventLoop, lines: asyncio.Queue) -> None:
        """Reader thread body. Reads one line each time ``run`` asks for one; None marks EOF."""
        while True:
            self._want_line.wait()
            self._want_line.clear()
            if not self.connected:
                return

            try:
                line = self.console.input(PROMPT)
            except EOFError:
                line = None
            except (OSError, ValueError) as e:
                logger.error(f"Console input failed: {e}")
                line = None

            try:
                loop.call_soon_threadsafe(lines.put_nowait, line)
            except RuntimeError:
                # Event loop already closed
                return
            if line is None:
                return

    def close(self) -> None:
        if self.connected:
            logger.info("Console transport closed")
        self.connected = False
        self._want_line.set()
