# SPDX-License-Identifier: CC0-1.0
import argparse
import logging
from typing import Optional

from .config import Settings
from .events import EventLog
from .llm import Completer, LLMCompleter
from .pipeline import AIDisabledError, resolve_answer
from .store import FAQStore, StoreUnavailableError, create_store_engine, init_db, make_session_factory

EXIT_COMMANDS = ("/exit", "exit", "/quit", "quit")


def handle_user_input(
        user_input: str,
        company_id: int,
        store: FAQStore,
        completer: Completer,
        settings: Settings,
        events: Optional[EventLog] = None,
        verbose: bool = False,
) -> tuple[bool, str | None]:
    if not user_input:
        return False, None

    if user_input.lower() in EXIT_COMMANDS:
        return True, "Goodbye!"

    events = events or EventLog()
    try:
        result = resolve_answer(
            user_input,
            company_id=company_id,
            store=store,
            completer=completer,
            settings=settings,
            events=events,
        )
    except AIDisabledError as e:
        return False, str(e)
    except StoreUnavailableError:
        return False, "Database connection error. Please try again later."

    reply = result.answer.answer
    if verbose:
        tier = result.matches.tier.value
        reply += f"\n[tier={tier} source={result.answer.source} confidence={result.answer.confidence:.2f}]"
    return False, reply


def run_console(
        company_id: int,
        settings: Settings,
        session_factory,
        completer: Completer,
        input_fn=input,
        print_fn=print,
        verbose: bool = False,
):
    print_fn(f"faqdesk console for company {company_id}. /exit to quit.")

    session = session_factory()
    store = FAQStore(session)
    events = EventLog(settings.event_log_path)
    try:
        while True:
            try:
                user_input = input_fn("You: ").strip()
            except (EOFError, KeyboardInterrupt):
                print_fn("\nBot: Goodbye!")
                break

            should_exit, reply = handle_user_input(
                user_input,
                company_id=company_id,
                store=store,
                completer=completer,
                settings=settings,
                events=events,
                verbose=verbose,
            )
            if reply is not None:
                print_fn(f"Bot: {reply}")
            if should_exit:
                break
    finally:
        session.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="faqdesk", description="FAQ answer service for the support widget")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    console = sub.add_parser("console", help="ask questions from the terminal")
    console.add_argument("--company-id", type=int, required=True)
    console.add_argument("-v", "--verbose", action="store_true", help="show tier, source and confidence")

    sub.add_parser("init-db", help="create missing tables")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    settings = Settings.load()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = create_store_engine(settings.database_url)

    if args.command == "init-db":
        init_db(engine)
        return

    if args.command == "serve":
        import uvicorn

        from .api import create_app

        # create_all only adds missing tables
        init_db(engine)
        app = create_app(settings=settings, session_factory=make_session_factory(engine))
        uvicorn.run(app, host=args.host, port=args.port)
        return

    run_console(
        company_id=args.company_id,
        settings=settings,
        session_factory=make_session_factory(engine),
        completer=LLMCompleter.from_settings(settings),
        verbose=args.verbose,
    )


if __name__ == "__main__":
    main()
