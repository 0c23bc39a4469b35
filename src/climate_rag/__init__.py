"""
climate_rag - hybrid retrieval and query understanding for a climate
research assistant.

Layers (leaf-first):
- core: protocols, shared dataclasses, exceptions
- config: settings from env, curated vocabulary
- embeddings / llm: provider adapters
- query: keywords, small talk, spelling, rewrite, routing
- retrieval: scorer, filters, lookups, HybridSearchEngine
- web: web search fallback
- assistant: one chat turn end to end
"""

__version__ = "0.1.0"
