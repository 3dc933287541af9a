# src/iatirollup/adapters/__init__.py
"""
Adapters Layer - External Interfaces

This package contains all adapters for external systems:
- XML (streaming IATI parser)
- Sources (files and URLs)
- Persistence (FX rate tables)
- Formatting (output)
"""

__all__ = []
