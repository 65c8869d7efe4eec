"""Command-line entry point.

Commands
--------
- ``init-db``             create the pgvector extension and documents table
- ``ingest PATH``         ingest a PDF or text file
- ``ask QUESTION``        stream an answer to stdout
"""

from __future__ import annotations

import argparse
import logging
import sys

from ragstream.config import configure_logging, settings
from ragstream.errors import RagError

logger = logging.getLogger(__name__)


def _init_db(args: argparse.Namespace) -> int:
    from ragstream.retrieval.pgvector_store import PgVectorStore

    store = PgVectorStore(settings.embedding_dim, settings.distance_metric, database_url=settings.database_url)
    try:
        store.create_schema()
    finally:
        store.dispose()
    print(f"Table '{store.table.name}' ready (dim={settings.embedding_dim}).")
    return 0


def _ingest(args: argparse.Namespace) -> int:
    from ragstream.ingestion.loader import extract_text
    from ragstream.serving.dependencies import get_services

    report = get_services().pipeline.ingest(extract_text(args.path))
    print(f"Saved {report.chunks_saved}/{report.chunks_total} chunk(s) from {args.path}.")
    for failure in report.failures:
        print(f"  skipped chunk {failure.index + 1} (offset {failure.source_offset}): {failure.reason}")
    return 0


def _ask(args: argparse.Namespace) -> int:
    from ragstream.chat.orchestrator import AnswerFragment, StreamError
    from ragstream.serving.dependencies import get_services

    status = 0
    for event in get_services().orchestrator.answer_stream(args.session, args.question):
        if isinstance(event, AnswerFragment):
            sys.stdout.write(event.text)
            sys.stdout.flush()
        elif isinstance(event, StreamError):
            print(f"\nerror: {event.message}", file=sys.stderr)
            status = 1
    print()
    return status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ragstream", description="Document RAG with streaming chat")
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init-db", help="Create the pgvector schema")
    p_init.set_defaults(func=_init_db)

    p_ingest = sub.add_parser("ingest", help="Ingest a PDF or text file")
    p_ingest.add_argument("path", help="Path to the document")
    p_ingest.set_defaults(func=_ingest)

    p_ask = sub.add_parser("ask", help="Ask a question")
    p_ask.add_argument("question")
    p_ask.add_argument("--session", default=settings.default_session_id, help="Session id")
    p_ask.set_defaults(func=_ask)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    try:
        return args.func(args)
    except RagError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
