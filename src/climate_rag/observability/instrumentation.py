"""
OpenInference Auto-Instrumentation

Registers auto-instrumentors for the OpenAI client (embeddings) and
LangChain (chat completions), so every provider call is traced without
code changes.
"""

from __future__ import annotations

import importlib
import logging

logger = logging.getLogger(__name__)

# (name, module, instrumentor class)
INSTRUMENTORS = (
    ("openai", "openinference.instrumentation.openai", "OpenAIInstrumentor"),
    ("langchain", "openinference.instrumentation.langchain", "LangChainInstrumentor"),
)

_instrumented = False


def _load(module_name: str, class_name: str):
    return getattr(importlib.import_module(module_name), class_name)


def register_instrumentors() -> bool:
    """
    Register OpenInference auto-instrumentors.

    Call once at startup, before any provider call.

    Returns:
        True if any instrumentors were registered, False otherwise
    """
    global _instrumented
    if _instrumented:
        return True

    registered = []
    for name, module_name, class_name in INSTRUMENTORS:
        try:
            _load(module_name, class_name)().instrument()
            registered.append(name)
        except ImportError:
            logger.debug(f"{name} instrumentor not available")
        except Exception as e:
            logger.warning(f"Failed to instrument {name}: {e}")

    if registered:
        logger.info(f"Registered instrumentors: {', '.join(registered)}")
        _instrumented = True
    return _instrumented


def uninstrument() -> None:
    """Remove all instrumentors (useful for testing)."""
    global _instrumented

    for name, module_name, class_name in INSTRUMENTORS:
        try:
            _load(module_name, class_name)().uninstrument()
        except ImportError:
            continue
        except Exception as e:
            logger.debug(f"Failed to uninstrument {name}: {e}")

    _instrumented = False
