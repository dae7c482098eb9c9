"""Main application entry point for mediabot."""

import asyncio
import logging
import signal
import sys
from typing import Optional

from mediabot.request_handler import RequestHandler
from mediabot.services.console_transport import ConsoleTransport
from mediabot.utils.config import load_config, setup_logging, validate_config

logger = logging.getLogger(__name__)


class MediaBotApp:
    """Main application class for mediabot."""

    def __init__(self):
        self.handler: Optional[RequestHandler] = None
        self.transport: Optional[ConsoleTransport] = None
        self._transport_task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.running = False

    async def start(self) -> None:
        """Start the bot and serve the console until EOF or a signal."""
        config = load_config()
        setup_logging(config['log_level'], config['log_file'])
        logger.info("Starting mediabot...")

        errors = validate_config(config)
        if errors:
            for error in errors:
                logger.error(f"Configuration error: {error}")
            raise ValueError("Invalid configuration")

        self.handler = RequestHandler(config)
        self.handler.media_downloader.cleanup_stale_downloads()

        self.transport = ConsoleTransport(config['outbox_path'])
        self._loop = asyncio.get_running_loop()

        # Setup signal handlers for graceful shutdown
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        self.running = True
        logger.info("mediabot started successfully")

        self._transport_task = asyncio.create_task(self.transport.run(self.handler.handle_message))
        try:
            await self._transport_task
        except asyncio.CancelledError:
            logger.info("Console loop stopped")
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Close the transport and drain the job queue."""
        if not self.running:
            return
        self.running = False

        if self.transport:
            self.transport.close()
        if self.handler:
            await self.handler.shutdown()

        logger.info("mediabot stopped")

    def _signal_handler(self, signum, _):
        """Handle shutdown signals gracefully."""
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        if self._loop and self._transport_task:
            self._loop.call_soon_threadsafe(self._transport_task.cancel)


def main():
    """Main entry point."""
    app = MediaBotApp()

    try:
        asyncio.run(app.start())
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
