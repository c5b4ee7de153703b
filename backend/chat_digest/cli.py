"""Command-line entry point

Usage examples:
    chat-digest init-db
    chat-digest chats --days-back 14
    chat-digest register 19:abc@thread.v2 --name "Project Alpha"
    chat-digest sync 19:abc@thread.v2
    chat-digest summarize 19:abc@thread.v2 --start 2024-01-15 --end 2024-01-16 --provider claude
    chat-digest latest 19:abc@thread.v2
"""

import argparse
import json
import logging
import sys
from collections.abc import Sequence

from pydantic import ValidationError as SettingsValidationError

from chat_digest.core.config import LOG_LEVELS, Settings, get_settings
from chat_digest.core.db import build_engine, build_sessionmaker, init_models
from chat_digest.core.errors import AppError
from chat_digest.services.conversation_client import build_conversation_client
from chat_digest.services.message_cache import MessageCache
from chat_digest.services.pipeline import SummaryPipeline

logger = logging.getLogger(__name__)

GRAPH_COMMANDS = frozenset({"chats", "sync", "summarize"})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chat-digest", description="Cache Teams chats and summarize them")
    parser.add_argument("--access-token", help="Microsoft Graph access token (default: GRAPH_ACCESS_TOKEN)")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the cache database schema")

    chats = sub.add_parser("chats", help="List recently active chats and monitored ones")
    chats.add_argument("--days-back", type=int)
    chats.add_argument("--max-results", type=int)

    register = sub.add_parser("register", help="Start monitoring a chat")
    register.add_argument("chat_id")
    register.add_argument("--name")
    register.add_argument("--type", dest="chat_type", choices=["oneOnOne", "group", "meeting"])
    register.add_argument("--ignore", action="store_true", help="Register the chat as ignored")

    deactivate = sub.add_parser("deactivate", help="Stop monitoring a chat")
    deactivate.add_argument("chat_id")

    sync = sub.add_parser("sync", help="Fetch new messages into the cache")
    sync.add_argument("chat_id")

    summarize = sub.add_parser("summarize", help="Summarize cached messages for a date range")
    summarize.add_argument("chat_id")
    summarize.add_argument("--start", required=True, help="YYYY-MM-DD")
    summarize.add_argument("--end", help="YYYY-MM-DD (default: same as --start)")
    summarize.add_argument("--provider", help="ollama or claude (default: AI_PROVIDER)")

    latest = sub.add_parser("latest", help="Show the most recent summary of a chat")
    latest.add_argument("chat_id")

    return parser


def _emit(payload: object) -> None:
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(mode="json")
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def run(args: argparse.Namespace, settings: Settings) -> int:
    engine = build_engine(settings.database_url)
    init_models(engine)
    if args.command == "init-db":
        logger.info(f"Database initialised at {settings.database_url}")
        engine.dispose()
        return 0

    cache = MessageCache(build_sessionmaker(engine))
    client = None
    if args.command in GRAPH_COMMANDS:
        client = build_conversation_client(settings, args.access_token or settings.graph_access_token)
    pipeline = SummaryPipeline(client, cache, settings)
    try:
        if args.command == "chats":
            _emit(pipeline.list_available_conversations(args.days_back, args.max_results))
        elif args.command == "register":
            status = "ignored" if args.ignore else "active"
            _emit(pipeline.register_conversation(args.chat_id, args.name, args.chat_type, status))
        elif args.command == "deactivate":
            pipeline.deactivate_conversation(args.chat_id)
            _emit({"chat_id": args.chat_id, "message": "Chat monitoring stopped"})
        elif args.command == "sync":
            _emit(pipeline.sync_messages(args.chat_id))
        elif args.command == "summarize":
            _emit(pipeline.summarize(args.chat_id, args.start, args.end or args.start, args.provider))
        elif args.command == "latest":
            item = pipeline.get_latest_summary(args.chat_id)
            _emit(item if item is not None else {"chat_id": args.chat_id, "summary": None})
    finally:
        pipeline.close()
        engine.dispose()
    return 0


def main(argv: Sequence[str] | None = None, settings: Settings | None = None) -> int:
    args = build_parser().parse_args(argv)

    if settings is None:
        try:
            settings = get_settings()
        except SettingsValidationError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 2

    logging.basicConfig(
        level=args.log_level or settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return run(args, settings)
    except AppError as e:
        logger.debug(f"Command failed: {e!r}", exc_info=True)
        print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
