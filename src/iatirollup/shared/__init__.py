# src/iatirollup/shared/__init__.py
"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Validation
- Logging configuration
"""

from iatirollup.shared.validators import (
    PARSE_POLICIES,
    is_url,
    validate_currency_code,
    validate_log_level,
    validate_parse_policy,
)
from iatirollup.shared.logging_conf import setup_logging

__all__ = [
    "PARSE_POLICIES",
    "is_url",
    "validate_currency_code",
    "validate_log_level",
    "validate_parse_policy",
    "setup_logging",
]
