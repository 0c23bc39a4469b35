"""
CLI commands - entry points for searching the corpus and chatting.

Each command follows a consistent pattern:
1. Parse arguments
2. Build components from Settings
3. Run one operation
4. Print results (text or --json)
5. Return exit code

The commands are thin wrappers: all behaviour lives in the retrieval,
query and assistant modules so it stays testable without the CLI.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from typing import Sequence

from dotenv import load_dotenv

from climate_rag.config.settings import Settings, get_settings
from climate_rag.core.errors import RetrievalError
from climate_rag.logging_utils import setup_logging
from climate_rag.observability import init_phoenix, shutdown_phoenix


def _load_env() -> None:
    """Load environment variables from .env file."""
    load_dotenv()


def _settings(offline: bool) -> Settings:
    """Global settings, or a copy with mock embeddings for --offline."""
    settings = get_settings()
    if offline:
        return replace(settings, embedding=replace(settings.embedding, use_mock=True))
    return settings


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def run_search_cli(argv: Sequence[str] | None = None) -> int:
    """Hybrid search over the corpus."""
    from climate_rag.assistant.factory import build_search_engine

    parser = argparse.ArgumentParser(prog="climate-rag search", description="Search the research corpus")
    parser.add_argument("query", help="Search text")
    parser.add_argument("--limit", type=int, default=5, help="Maximum results (default: 5)")
    parser.add_argument("--threshold", type=float, default=0.5, help="Minimum fused score (default: 0.5)")
    parser.add_argument("--offline", action="store_true", help="Use mock embeddings")
    parser.add_argument("--json", action="store_true", help="Print JSON")
    args = parser.parse_args(argv)

    engine = build_search_engine(_settings(args.offline))
    results = engine.search(args.query, limit=args.limit, threshold=args.threshold)

    if args.json:
        _print_json([
            {**r.to_citation(), "vector_score": r.vector_score, "keyword_score": r.keyword_score}
            for r in results
        ])
        return 0

    if not results:
        print("No documents found.")
        return 0

    for i, r in enumerate(results, start=1):
        print(
            f"{i}. [{r.similarity:.1%} = vec {r.vector_score:.1%} + kwd {r.keyword_score:.1%}] "
            f"{r.title}"
        )
        if r.url:
            print(f"   {r.url}")
    return 0


def run_normalize_cli(argv: Sequence[str] | None = None) -> int:
    """Show how a message is understood (small talk, correction, rewrite)."""
    from climate_rag.assistant.factory import build_normalizer

    parser = argparse.ArgumentParser(prog="climate-rag normalize", description="Run query understanding")
    parser.add_argument("message", help="User message")
    parser.add_argument(
        "--history",
        help="JSON file with prior turns: [{\"role\": ..., \"content\": ...}]",
    )
    parser.add_argument("--offline", action="store_true", help="Rules only, no LLM calls")
    args = parser.parse_args(argv)

    history = _read_history(args.history)
    normalizer = build_normalizer(_settings(args.offline), offline=args.offline)
    _print_json(normalizer.normalize(args.message, history).to_dict())
    return 0


def run_ask_cli(argv: Sequence[str] | None = None) -> int:
    """Answer one question with sources."""
    from climate_rag.assistant.factory import build_assistant

    parser = argparse.ArgumentParser(prog="climate-rag ask", description="Ask the research assistant")
    parser.add_argument("message", help="Question")
    parser.add_argument("--history", help="JSON file with prior turns")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="No LLM calls: print the retrieved sources and system prompt instead of an answer",
    )
    args = parser.parse_args(argv)

    history = _read_history(args.history)
    assistant = build_assistant(_settings(args.offline), offline=args.offline)

    if args.offline:
        turn = assistant.prepare_turn(args.message, history)
        print(turn.system_prompt)
        sources = turn.sources
    else:
        reply = assistant.respond(args.message, history)
        print(reply.text)
        sources = reply.sources

    if sources:
        print("\nSources:")
        for i, source in enumerate(sources, start=1):
            year = f" ({source['year']})" if source.get("year") else ""
            url = f" - {source['url']}" if source.get("url") else ""
            print(f"  [{i}] {source['title']}{year}{url}")
    return 0


def _read_history(path: str | None) -> list[dict]:
    if not path:
        return []
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("History file must contain a JSON list of messages")
    return data


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main CLI entry point with subcommands.

    Usage:
        climate-rag search "BECCS"            # Ranked documents with scores
        climate-rag normalize "who are they?" --history turns.json
        climate-rag ask "What is KTH doing with BECCS?"
    """
    _load_env()
    setup_logging()

    # Initialize Phoenix observability (if enabled)
    init_phoenix()

    parser = argparse.ArgumentParser(
        description="Climate research retrieval assistant",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  search      Hybrid vector + keyword search over the corpus
  normalize   Show small-talk / spelling / rewrite results for a message
  ask         Answer a question with cited sources

Examples:
  climate-rag search "carbon capture" --offline
  climate-rag ask "hi"
        """,
    )
    parser.add_argument(
        "command",
        choices=["search", "normalize", "ask"],
        help="Command to run",
    )

    # Parse just the command first
    args, remaining = parser.parse_known_args(argv)

    commands = {
        "search": run_search_cli,
        "normalize": run_normalize_cli,
        "ask": run_ask_cli,
    }

    try:
        return commands[args.command](remaining)
    except RetrievalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    finally:
        shutdown_phoenix()


if __name__ == "__main__":
    sys.exit(main())
