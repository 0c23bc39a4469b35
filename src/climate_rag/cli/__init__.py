"""
CLI module - command-line interface.

Provides entry points for:
- Searching the corpus (`climate-rag search`)
- Inspecting query understanding (`climate-rag normalize`)
- Asking the assistant (`climate-rag ask`)
"""

from climate_rag.cli.commands import (
    main,
    run_ask_cli,
    run_normalize_cli,
    run_search_cli,
)

__all__ = [
    "main",
    "run_ask_cli",
    "run_normalize_cli",
    "run_search_cli",
]
