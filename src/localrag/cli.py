"""
Command-line entry point.

    localrag index DOCS_DIR [--rebuild]   build or update the index
    localrag chat [-k K]                  interactive questions on stdin
    localrag ask "QUESTION" [-k K]        one-shot answer
    localrag stats                        index statistics

Global options go before the subcommand:
    localrag --index-dir ./my_index -vv index docs/

Exit codes: 0 ok, 1 some files failed to load (or a backend call failed),
2 bad configuration or missing document directory.
"""

import argparse
import sys
from typing import Iterator, Optional

import structlog

from localrag import __version__
from localrag.config import RagConfig, validate_top_k
from localrag.exceptions import ConfigError, EmbeddingError, GenerationError, LoadError, RagError
from localrag.log import configure_logging
from localrag.techniques.simple import SimpleRAG

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_CONFIG = 2

PROMPT = "> "


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="localrag",
        description="Answer questions about a folder of documents with a local model.",
    )
    parser.add_argument("--version", action="version", version=f"localrag {__version__}")
    parser.add_argument(
        "--index-dir",
        help="Vector index directory (default: LOCALRAG_INDEX_DIR or ./rag_index)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="More logging on stderr (-v info, -vv debug)",
    )
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON lines")

    subparsers = parser.add_subparsers(dest="command", required=True)

    index_parser = subparsers.add_parser("index", help="Load, chunk and index a directory")
    index_parser.add_argument("directory", help="Folder with .pdf, .txt and .md files")
    index_parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Delete the existing index before indexing",
    )

    chat_parser = subparsers.add_parser("chat", help="Ask questions interactively")
    chat_parser.add_argument("-k", type=int, help="Chunks to retrieve per question")

    ask_parser = subparsers.add_parser("ask", help="Answer a single question")
    ask_parser.add_argument("question")
    ask_parser.add_argument("-k", type=int, help="Chunks to retrieve")

    subparsers.add_parser("stats", help="Show index statistics")

    return parser


def stdin_lines(prompt: str = PROMPT) -> Iterator[str]:
    """Lines typed by the user, until end of input."""
    while True:
        try:
            yield input(prompt)
        except EOFError:
            return


def cmd_index(rag: SimpleRAG, args: argparse.Namespace) -> int:
    result = rag.build_index(args.directory, rebuild=args.rebuild)
    report = result.load_report

    print(f"Files loaded:   {len(report.loaded_files)}")
    print(f"Files skipped:  {len(report.skipped_files)}")
    print(f"Files failed:   {len(report.failed_files)}")
    for path, error in report.failed_files.items():
        print(f"  {path}: {error}")
    print(f"Chunks added:   {result.added}")
    print(f"Chunks skipped: {result.skipped}")
    print(f"Index total:    {result.total}")

    return EXIT_PARTIAL if report.failed_files else EXIT_OK


def cmd_chat(rag: SimpleRAG, args: argparse.Namespace) -> int:
    print("Ask a question about your documents. Type 'exit' or 'quit' to stop.")
    session = rag.session(k=args.k)
    session.run(stdin_lines())
    return EXIT_OK


def cmd_ask(rag: SimpleRAG, args: argparse.Namespace) -> int:
    try:
        response = rag.query(args.question, k=args.k)
    except (EmbeddingError, GenerationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_PARTIAL

    print(response.answer)
    if response.generation and response.generation.sources:
        print("Sources: " + ", ".join(response.generation.sources))
    return EXIT_OK


def cmd_stats(rag: SimpleRAG, args: argparse.Namespace) -> int:
    for key, value in rag.stats().items():
        print(f"{key}: {value}")
    return EXIT_OK


COMMANDS = {
    "index": cmd_index,
    "chat": cmd_chat,
    "ask": cmd_ask,
    "stats": cmd_stats,
}


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbosity=args.verbose, json=args.json_logs)

    try:
        config = RagConfig.from_env()
        if args.index_dir:
            config.vector_store.persist_directory = args.index_dir
        k = getattr(args, "k", None)
        if k is not None:
            validate_top_k(k)

        rag = SimpleRAG(config)
        return COMMANDS[args.command](rag, args)

    except (ConfigError, LoadError) as e:
        logger.error("fatal_error", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    except RagError as e:
        logger.error("command_failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_PARTIAL


if __name__ == "__main__":
    sys.exit(main())
