"""
Constants Package

Validation limits and planning defaults shared across the application.
"""

from .validation import (
    VALID_PERMISSIONS,
    EMAIL_RE,
    VIDEO_HOSTS,
    SHARE_TOKEN_ALPHABET,
    SHARE_TOKEN_LENGTH,
    MAX_LENGTHS,
)

from .planning import (
    DEFAULT_DAY_NAMES,
    DEFAULT_PLAN_TITLE,
    FEATURED_PLAN_SETTING,
    CUISINE_SUGGESTIONS,
)

__all__ = [
    'VALID_PERMISSIONS',
    'EMAIL_RE',
    'VIDEO_HOSTS',
    'SHARE_TOKEN_ALPHABET',
    'SHARE_TOKEN_LENGTH',
    'MAX_LENGTHS',
    'DEFAULT_DAY_NAMES',
    'DEFAULT_PLAN_TITLE',
    'FEATURED_PLAN_SETTING',
    'CUISINE_SUGGESTIONS',
]
