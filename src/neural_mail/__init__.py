"""
Neural Mail core: AI-augmented local mail store.

Persists mail in a local SQLite file and augments it with an on-device
assistant served by an Ollama-compatible endpoint:
- Automatic categorization of newly fetched mail (background worker)
- Summaries, reply drafts and inbox-wide chat (request-scoped orchestrators)
- Result delivery back onto a single-threaded presentation context

Architecture: SQLAlchemy store + httpx gateway + asyncio background runtime
"""

__version__ = "0.1.0"
