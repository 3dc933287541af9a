# src/iatirollup/shared/validators.py
"""
Input Validation Utilities - Configuration and Input Validation

This module provides validation functions for configuration values and
document locations: currency codes, log levels, parse policies and URLs.

Files that USE this module:
- iatirollup.config.settings (uses validation functions in Settings field validators)
- iatirollup.adapters.sources (uses is_url to pick a loader)

Files that this module USES:
- None (pure utility functions)
"""
import logging
import re
from urllib.parse import urlparse

PARSE_POLICIES = ("collect", "fail_fast")


def validate_currency_code(code: str) -> bool:
    """
    Validate an ISO 4217 style currency code (three ASCII letters).

    Args:
        code: Currency code to validate, any case

    Returns:
        True if valid, False otherwise
    """
    if not code:
        return False
    return bool(re.fullmatch(r'[A-Za-z]{3}', code.strip()))


def validate_log_level(level: str) -> bool:
    """
    Validate a logging level name such as INFO or debug.

    Args:
        level: Level name to validate

    Returns:
        True if the logging module knows the level, False otherwise
    """
    if not level:
        return False
    return isinstance(logging.getLevelName(level.strip().upper()), int)


def validate_parse_policy(policy: str) -> bool:
    if not policy:
        return False
    return policy.strip().lower() in PARSE_POLICIES


def is_url(location: str) -> bool:
    """
    Check whether a document location is an http(s) URL rather than a path.

    Args:
        location: File path or URL

    Returns:
        True for http:// and https:// URLs with a host, False otherwise
    """
    if not location:
        return False
    parsed = urlparse(location.strip())
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)
