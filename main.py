#!/usr/bin/env python3
"""Voice Assistant CLI."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from config.settings import Settings
from conversation import ConversationSession, NoticeBoard, build_dashboard, start_user_session
from memory import create_store
from providers import create_provider_gateway


def print_dashboard(store):
    """Print the usage summary."""
    summary = build_dashboard(store)
    print("\n" + "=" * 60)
    print("DASHBOARD")
    print("=" * 60)
    print(f"Total interactions:  {summary.total_interactions}")
    print(f"Total users:         {summary.total_users}")
    print(f"Total conversations: {summary.total_conversations}")
    print(f"FAQs created:        {summary.faq_count}")

    if summary.topic_frequency:
        print("\nCommon topics:")
        for topic, count in sorted(summary.topic_frequency.items(), key=lambda item: -item[1]):
            print(f"  {topic}: {count}")

    if summary.faqs:
        print("\nFrequently asked questions:")
        for faq in summary.faqs:
            times = "time" if faq.count == 1 else "times"
            print(f"  [{faq.count} {times}] {faq.question}")
    print()


async def run_session(settings: Settings, store, name: str, email: str, audio_paths: list) -> int:
    """Greet the user, then play one turn per recorded audio file."""
    notices = NoticeBoard(listener=lambda notice: print(f"[{notice.level.value}] {notice.message}"))
    gateway = create_provider_gateway(settings, on_notice=notices.info)
    session = ConversationSession(
        name=name,
        email=email,
        store=store,
        gateway=gateway,
        settings=settings,
        notices=notices,
    )

    try:
        if not await session.load_conversation():
            print("Could not start the conversation.", file=sys.stderr)
            return 1

        print(f"ASSISTANT: {session.messages[0].content}")
        await session.wait_until_quiet()

        for path in audio_paths:
            reply = await session.handle_audio_submission(Path(path).read_bytes())
            if reply is None:
                continue
            print(f"USER: {session.messages[-2].content}")
            print(f"ASSISTANT: {reply}")
            await session.wait_until_quiet()
    finally:
        session.cleanup()

    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Voice Assistant - talk to an AI assistant with recorded audio"
    )
    parser.add_argument(
        "audio",
        nargs="*",
        help="Recorded utterances to submit, one turn per file"
    )
    parser.add_argument("--name", "-n", type=str, help="Your name (default: last session)")
    parser.add_argument("--email", "-e", type=str, help="Your email (default: last session)")
    parser.add_argument(
        "--dashboard",
        "-d",
        action="store_true",
        help="Print usage analytics and exit"
    )
    parser.add_argument(
        "--storage",
        choices=["sqlite", "memory"],
        default="sqlite",
        help="Storage backend (default: sqlite)"
    )
    parser.add_argument("--db-path", type=str, default="data/assistant.db", help="SQLite database path")
    parser.add_argument(
        "--llm-provider",
        choices=["openai", "anthropic"],
        default="openai",
        help="Reply generation provider (default: openai)"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    settings = Settings(
        storage_backend=args.storage,
        db_path=args.db_path,
        llm_provider=args.llm_provider,
        verbose=args.verbose,
    )
    store = create_store(settings.storage_backend, settings.db_path)

    if args.dashboard:
        print_dashboard(store)
        return

    name, email = args.name, args.email
    if not (name and email):
        last = store.read_last_session()
        if last is None:
            parser.error("--name and --email are required for the first session")
        name, email = name or last.name, email or last.email

    try:
        returning = start_user_session(store, name, email)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    print(f"Welcome{' back' if returning else ''}, {name}!")

    try:
        exit_code = asyncio.run(run_session(settings, store, name, email, args.audio))
    except Exception as e:
        print(f"Error running session: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
