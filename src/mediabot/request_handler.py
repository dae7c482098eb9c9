"""Central orchestrator turning chat messages into queued media jobs."""

import asyncio
import functools
import logging
from typing import Any, Callable, Dict, Optional

from mediabot.models.job import QueueTicket
from mediabot.models.media import Candidate, MediaLimits, MediaResult, MediaType
from mediabot.models.message import IncomingMessage, ReplyChannel
from mediabot.models.selection import PendingSelection, SelectionChoice, SelectionMode
from mediabot.services import replies
from mediabot.services.command_parser import EMPTY_QUERY, CommandType, parse_command
from mediabot.services.job_queue import JobQueue
from mediabot.services.media_downloader import MediaDownloader
from mediabot.services.media_policy import assert_duration_for_media, max_search_duration
from mediabot.services.selection_store import SelectionStore, parse_selection_choice
from mediabot.services.youtube_service import YouTubeService
from mediabot.utils.config import load_config
from mediabot.utils.errors import DownloadError, ErrorCode, TransportError, YouTubeLookupError
from mediabot.utils.urls import is_likely_url

logger = logging.getLogger(__name__)


def _log_job_outcome(completion: asyncio.Future) -> None:
    if completion.cancelled():
        logger.warning("Queued job was cancelled before it finished")
        return
    error = completion.exception()
    if error is not None:
        logger.debug(f"Queued job finished with {error!r}")


class RequestHandler:
    """Routes incoming messages through selection, the job queue and the downloader."""

    def __init__(
        self,
        config: Optional[Dict] = None,
        youtube_service: Optional[YouTubeService] = None,
        media_downloader: Optional[MediaDownloader] = None,
        job_queue: Optional[JobQueue] = None,
        selection_store: Optional[SelectionStore] = None,
    ):
        """Initialize the handler and any services not injected."""
        self.config = config or load_config()
        self.limits = MediaLimits.from_config(self.config)
        self.video_height = self.config.get("video_max_height", 720)
        self.selection_timeout = self.config.get("selection_timeout_seconds", 120)

        self.youtube_service = youtube_service or YouTubeService()
        self.media_downloader = media_downloader or MediaDownloader(self.config)
        self.job_queue = job_queue or JobQueue()
        self.selection_store = selection_store or SelectionStore(self.selection_timeout)

        logger.info("Request handler initialized")

    async def handle_message(self, message: IncomingMessage, channel: ReplyChannel) -> None:
        """Handle one incoming text message."""
        conversation_id = message.conversation_id
        text = (message.text or "").strip()
        pending = self.selection_store.get_pending(conversation_id)
        parsed = parse_command(text)

        if parsed.type == CommandType.CANCEL:
            if pending is None:
                await channel.reply_text(replies.NOTHING_TO_CANCEL_MESSAGE)
                return
            self.selection_store.clear_pending(conversation_id)
            await channel.reply_text(replies.SELECTION_CANCELLED_MESSAGE)
            return

        if pending is not None:
            choice = parse_selection_choice(text, pending.default_media_type)
            if choice is not None:
                try:
                    await self._handle_pending_selection(message, channel, pending, choice)
                except Exception as e:
                    logger.error(f"Error while handling selection from {conversation_id}: {e}")
                    await self._reply_error(channel, e)
                return

            if not text.startswith("/"):
                await channel.reply_text(replies.SELECTION_PROMPT)
                return

        if parsed.type == CommandType.NONE:
            return

        if parsed.type == CommandType.HELP:
            await channel.reply_text(replies.build_help_text(self.limits, self.video_height))
            return

        if parsed.type == CommandType.UNKNOWN:
            await channel.reply_text(replies.UNKNOWN_COMMAND_MESSAGE)
            return

        query = parsed.query
        if parsed.error == EMPTY_QUERY:
            query = (message.quoted_text or "").strip()
            if not query:
                await channel.reply_text(replies.usage_line(parsed.type.value))
                return

        default_media_type = MediaType.VIDEO if parsed.type == CommandType.VIDEO else MediaType.AUDIO

        try:
            await self.handle_play_command(message, channel, query, default_media_type)
        except Exception as e:
            logger.error(f"Error in /{parsed.type.value} for '{query}': {e}")
            await self._reply_error(channel, e)

    async def handle_play_command(
        self,
        message: IncomingMessage,
        channel: ReplyChannel,
        query: str,
        default_media_type: MediaType,
    ) -> None:
        """Resolve a link directly or present search options."""
        conversation_id = message.conversation_id
        self.selection_store.clear_pending(conversation_id)
        search_ceiling = max_search_duration(self.limits)

        if is_likely_url(query):
            await channel.reply_text("🔎 Checking link...")
            try:
                candidate = await self._run_blocking(
                    self.youtube_service.get_video_from_input, query, search_ceiling
                )
            except YouTubeLookupError as e:
                if e.code == ErrorCode.PLAYLIST_URL_DETECTED:
                    await self.show_playlist_tracks(message, channel, query, default_media_type)
                    return
                raise

            assert_duration_for_media(candidate, default_media_type, self.limits)
            await self.enqueue_media_job(channel, candidate, default_media_type)
            return

        await channel.reply_text("🔎 Searching YouTube...")

        max_options = self.config.get("max_search_options", 8)
        options = await self._run_blocking(
            self.youtube_service.search_media_options,
            query,
            max_duration=search_ceiling,
            max_video_results=max_options,
            max_playlist_results=max_options,
            max_total_options=max_options,
        )

        self.selection_store.set_pending(
            conversation_id,
            SelectionMode.SEARCH_RESULTS,
            options,
            default_media_type,
        )
        await channel.reply_text(replies.build_search_options_text(
            query, options, default_media_type, self.limits, self.selection_timeout, self.video_height
        ))

    async def show_playlist_tracks(
        self,
        message: IncomingMessage,
        channel: ReplyChannel,
        playlist_input: str,
        default_media_type: MediaType,
    ) -> None:
        """List a playlist's tracks and open a selection over them."""
        await channel.reply_text("📚 Loading playlist items...")

        playlist, tracks = await self._run_blocking(
            self.youtube_service.get_playlist_options,
            playlist_input,
            max_duration=max_search_duration(self.limits),
            max_items=self.config.get("max_playlist_items", 10),
        )

        self.selection_store.set_pending(
            message.conversation_id,
            SelectionMode.PLAYLIST_TRACKS,
            tracks,
            default_media_type,
        )
        await channel.reply_text(replies.build_playlist_options_text(
            playlist, tracks, default_media_type, self.limits, self.selection_timeout, self.video_height
        ))

    async def _handle_pending_selection(
        self,
        message: IncomingMessage,
        channel: ReplyChannel,
        pending: PendingSelection,
        choice: SelectionChoice,
    ) -> None:
        conversation_id = message.conversation_id
        option = pending.option_at(choice.index)

        if option is None:
            await channel.reply_text(replies.invalid_option_message(len(pending.options)))
            return

        if option.is_playlist:
            self.selection_store.clear_pending(conversation_id)
            await self.show_playlist_tracks(message, channel, option.url, choice.media_type)
            return

        # Policy failures keep the selection open so another option/type can be picked
        assert_duration_for_media(option, choice.media_type, self.limits)
        self.selection_store.clear_pending(conversation_id)
        await self.enqueue_media_job(channel, option, choice.media_type)

    async def enqueue_media_job(
        self,
        channel: ReplyChannel,
        candidate: Candidate,
        media_type: MediaType,
    ) -> QueueTicket:
        """Queue a download job and report its position."""
        ticket = self.job_queue.add(
            lambda: self.process_selected_media(candidate, media_type, channel)
        )
        ticket.completion.add_done_callback(_log_job_outcome)

        logger.info(f"Queued {media_type.value} for '{candidate.title}' at position {ticket.position}")
        await channel.reply_text(f"⏳ Request received. Queue position: {ticket.position}")
        return ticket

    async def process_selected_media(
        self,
        candidate: Candidate,
        media_type: MediaType,
        channel: ReplyChannel,
    ) -> MediaResult:
        """Job body: acquire, send and always release the file.

        Failures are reported to the user here and then re-raised so the
        job's completion carries them.
        """
        result: Optional[MediaResult] = None
        label = replies.media_label(media_type, self.video_height)

        try:
            await channel.reply_text(
                f"⬇️ Downloading {label}: {candidate.title} ({candidate.duration_text})"
            )
            result = await self._run_blocking(self.media_downloader.acquire, candidate, media_type)
            await self._send_media(channel, result, candidate, media_type)
            await channel.reply_text(f"✅ {label} sent.")
            return result

        except Exception as e:
            logger.error(f"Media job failed for '{candidate.title}': {e}")
            await self._reply_error(channel, e)
            raise

        finally:
            self.media_downloader.release(result)

    async def _send_media(
        self,
        channel: ReplyChannel,
        result: MediaResult,
        candidate: Candidate,
        media_type: MediaType,
    ) -> None:
        try:
            if media_type == MediaType.VIDEO:
                await channel.reply_video(result.file_path, f"🎬 {candidate.title}")
            else:
                await channel.reply_audio(result.file_path, f"🎵 {candidate.title}")

        except Exception as send_error:
            if replies.is_transport_size_error(send_error):
                raise DownloadError(
                    ErrorCode.FILE_TOO_LARGE,
                    "File is over the transport's upload limit.",
                    {"size": result.file_size}
                ) from send_error

            if isinstance(send_error, TransportError) and send_error.code == ErrorCode.TRANSPORT_NOT_CONNECTED:
                raise

            code = ErrorCode.SEND_VIDEO_FAILED if media_type == MediaType.VIDEO else ErrorCode.SEND_AUDIO_FAILED
            raise TransportError(
                code,
                f"Failed to send {media_type.value}.",
                {"error": str(send_error)}
            ) from send_error

    async def _reply_error(self, channel: ReplyChannel, error: BaseException) -> None:
        try:
            await channel.reply_text(f"❌ {replies.map_error_to_message(error, self.limits)}")
        except Exception as reply_error:
            logger.error(f"Could not report error to user: {reply_error}")

    async def _run_blocking(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    async def shutdown(self) -> None:
        await self.job_queue.shutdown()
