#!/usr/bin/env python3
"""
CLI for the RAG pipeline.

Usage:
    rag init [--overwrite]
    rag ingest --file notes.txt [--chunk-size 16 --overlap 4]
    rag ingest --text "The cat sat. The dog ran."
    rag ask "Where did the cat sit?" [--no-retrieval] [--top-k 3]
    rag list
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .config.config_loader import RagConfig, build_orchestrator, build_store, load_config
from .core.exceptions import RagError
from .core.logging import configure_logging
from .storage import format_records


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, structured: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    configure_logging(level=level, structured=structured)


def cmd_init(args: argparse.Namespace, config: RagConfig) -> int:
    """Create the vector store schema."""
    store = build_store(config)
    store.initialize(overwrite=args.overwrite)

    action = "Reinitialized" if args.overwrite else "Initialized"
    print(f"{action} vector store ({config.store_backend}, "
          f"dimension={config.embedding_dimensions}, metric={config.distance_metric})")
    return 0


def cmd_ingest(args: argparse.Namespace, config: RagConfig) -> int:
    """Chunk, embed and store text from a file or the command line."""
    if args.file:
        text = Path(args.file).read_text(encoding="utf-8")
    else:
        text = args.text

    store = build_store(config)
    store.initialize()
    orchestrator = build_orchestrator(config, store=store)

    report = orchestrator.ingest_with_report(
        text,
        chunk_size=args.chunk_size,
        overlap=args.overlap,
    )

    print(f"Stored {report.chunks_stored} chunks")
    return 0


def cmd_ask(args: argparse.Namespace, config: RagConfig) -> int:
    """Answer a question, grounded in stored chunks unless disabled."""
    orchestrator = build_orchestrator(config)
    top_k = args.top_k if args.top_k is not None else config.top_k

    answer = orchestrator.answer(
        args.question,
        use_retrieval=not args.no_retrieval,
        top_k=top_k,
    )

    print(answer)
    return 0


def cmd_list(args: argparse.Namespace, config: RagConfig) -> int:
    """Show every stored record."""
    store = build_store(config)
    records = store.list_all()

    if not records:
        print("No records stored")
        return 0

    print(format_records(records, max_text_length=args.width))
    print(f"\n{len(records)} records")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rag",
        description="Chat retrieval-augmented generation CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", help="YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON-structured logs")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Create the vector store schema")
    init_parser.add_argument(
        "--overwrite", action="store_true", help="Delete all stored vectors first"
    )
    init_parser.set_defaults(func=cmd_init)

    # ingest command
    ingest_parser = subparsers.add_parser("ingest", help="Ingest text into the vector store")
    source = ingest_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", help="UTF-8 text file to ingest")
    source.add_argument("--text", help="Text to ingest")
    ingest_parser.add_argument("--chunk-size", type=int, help="Sentences per chunk")
    ingest_parser.add_argument("--overlap", type=int, help="Sentences shared between chunks")
    ingest_parser.set_defaults(func=cmd_ingest)

    # ask command
    ask_parser = subparsers.add_parser("ask", help="Ask a question")
    ask_parser.add_argument("question", help="Question to answer")
    ask_parser.add_argument(
        "--no-retrieval", action="store_true", help="Answer without stored context"
    )
    ask_parser.add_argument("--top-k", type=int, help="Number of chunks to retrieve")
    ask_parser.set_defaults(func=cmd_ask)

    # list command
    list_parser = subparsers.add_parser("list", help="List stored records")
    list_parser.add_argument(
        "--width", type=int, default=40, help="Characters of text shown per record"
    )
    list_parser.set_defaults(func=cmd_list)

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.json_logs)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
        return args.func(args, config)
    except RagError as e:
        logger.debug(f"Command '{args.command}' failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
