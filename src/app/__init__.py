# src/app/__init__.py
"""
Application entrypoints for the companion.

Exposes:
- create_app: FastAPI observer surface bound to an EventBus (+ runtime)
- main: CLI entry that loads config and serves everything with uvicorn
"""

from __future__ import annotations
