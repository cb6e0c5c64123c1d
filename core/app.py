import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from core.context import SessionContext
from runtime.version import as_string
from services.chat.composer import ChatComposer
from services.chat.room import ChatRoomView
from services.feed.client import FULL_HISTORY, FeedClient
from services.lists.notifications import NotificationView
from services.lists.rooms import RoomListView
from services.lists.users import UserListView
from services.snapshots.client import SnapshotClient
from shared.config.client import load_client_config
from shared.logging.logger import get_logger

log = get_logger("core.app")


# ----------------------------------------------------------------------
# MARKUP SINKS
# ----------------------------------------------------------------------

def _emit_markup(markup: str) -> None:
    print(markup, flush=True)


def _emit_list(title: str):
    def _sink(items: List[str]) -> None:
        print(f"<!-- {title}: {len(items)} item(s) -->", flush=True)
        for item in items:
            print(item, flush=True)

    return _sink


def _report_composer(composer: ChatComposer) -> None:
    if composer.error:
        print(f"! {composer.error}", file=sys.stderr, flush=True)


# ----------------------------------------------------------------------
# SESSIONS
# ----------------------------------------------------------------------

async def _pump_stdin(composer: ChatComposer, stop_event: asyncio.Event) -> None:
    """Send each stdin line as a chat message until EOF."""
    loop = asyncio.get_running_loop()
    while not stop_event.is_set():
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if line == "":
            log.info("stdin closed — shutdown initiated")
            stop_event.set()
            return

        composer.set_text(line.rstrip("\r\n"))
        task = composer.send()
        if task is not None:
            await task


async def main(stop_event: asyncio.Event, args: argparse.Namespace):
    # --------------------------------------------------
    # ENV + CONFIG
    # --------------------------------------------------
    load_dotenv()
    log.info(f"{as_string()} booting")

    config = load_client_config(path=Path(args.config) if args.config else None)
    if args.url:
        config.server.base_url = args.url
    if args.user:
        config.server.username = args.user

    session = SessionContext.from_config(config, room=args.room)
    log.info(f"Session user={session.username} room={session.room or '<home>'}")

    feed = FeedClient(session)
    snapshots: Optional[SnapshotClient] = None
    views = []
    background: List[asyncio.Task] = []

    # --------------------------------------------------
    # START VIEWS
    # --------------------------------------------------
    if session.room:
        room_view = ChatRoomView(session, feed, on_message=_emit_markup)
        room_view.start(since_time=args.since or FULL_HISTORY)
        views.append(room_view)

        composer = ChatComposer(session, feed, on_state_change=_report_composer)
        background.append(asyncio.create_task(_pump_stdin(composer, stop_event)))
    else:
        snapshots = SnapshotClient(session)
        views.append(RoomListView(session, snapshots, on_change=_emit_list("rooms")))
        views.append(UserListView(session, snapshots, on_change=_emit_list("users")))
        for view in views:
            view.start()

        notifications = NotificationView(session, feed, on_change=_emit_list("notifications"))
        notifications.start(since_time=args.since or FULL_HISTORY)
        views.append(notifications)

    # --------------------------------------------------
    # BLOCK UNTIL SHUTDOWN SIGNAL
    # --------------------------------------------------
    await stop_event.wait()

    log.info("Shutdown initiated")

    # --------------------------------------------------
    # ORDERLY SHUTDOWN (VIEWS FIRST)
    # --------------------------------------------------
    for task in background:
        task.cancel()
    if background:
        await asyncio.gather(*background, return_exceptions=True)

    for view in views:
        try:
            await view.stop()
        except Exception as e:
            log.warning(f"View shutdown error ignored: {e}")

    await feed.aclose()
    if snapshots:
        await snapshots.aclose()

    log.info("BasicChat client stopped")


# ----------------------------------------------------------------------
# SIGNAL HANDLING (WINDOWS-SAFE)
# ----------------------------------------------------------------------

def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    stop_event: asyncio.Event,
):
    def _handler(signum, frame):
        try:
            loop.call_soon_threadsafe(stop_event.set)
        except RuntimeError:
            stop_event.set()

    try:
        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
    except (ValueError, OSError) as e:
        log.debug(f"Signal handlers not installed: {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="basicchat",
        description="Long-poll chat client: follow a room or the home lists.",
    )
    parser.add_argument("--url", help="Server base URL (overrides BASICCHAT_URL)")
    parser.add_argument("--user", help="Username (overrides BASICCHAT_USERNAME)")
    parser.add_argument("--room", help="Room category to join; omit for the home view")
    parser.add_argument("--config", help="Path to a client.json config file")
    parser.add_argument(
        "--since",
        type=int,
        default=None,
        help="Replay events from this epoch-ms timestamp (default: full history)",
    )
    return parser


# ----------------------------------------------------------------------
# ENTRYPOINT
# ----------------------------------------------------------------------

def run(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)
    stop_event = asyncio.Event()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    _install_signal_handlers(loop, stop_event)

    try:
        loop.run_until_complete(main(stop_event, args))

    except KeyboardInterrupt:
        log.info("KeyboardInterrupt received — shutdown initiated")
        stop_event.set()

    finally:
        # --------------------------------------------------
        # CANCEL REMAINING TASKS (CLEANLY)
        # --------------------------------------------------
        pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in pending:
            task.cancel()

        if pending:
            loop.run_until_complete(
                asyncio.gather(*pending, return_exceptions=True)
            )

        loop.run_until_complete(loop.shutdown_asyncgens())
        asyncio.set_event_loop(None)
        loop.close()


if __name__ == "__main__":
    run()
    sys.exit(0)
