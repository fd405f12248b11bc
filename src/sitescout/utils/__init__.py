"""
Utilities Package.

Provides injectable human-like timing for browser actions.
"""

from .human_timing import (
    HumanTiming,
    HumanTimingConfig,
    create_human_timing,
)

__all__ = [
    'HumanTiming',
    'HumanTimingConfig',
    'create_human_timing',
]
