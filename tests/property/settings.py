# tests/property/settings.py
"""Standardized Hypothesis settings profiles for property tests.

Import these instead of using inline @settings(max_examples=...).

Usage:
    from tests.property.settings import SLOW_SETTINGS

    @given(workflows=archived_workflows())
    @SLOW_SETTINGS
    def test_something(workflows):
        ...

Tiers:
- STANDARD_SETTINGS: 100 examples - Pure functions (parsing, predicates)
- SLOW_SETTINGS: 50 examples - Real database round trips
"""

from hypothesis import HealthCheck, settings

STANDARD_SETTINGS = settings(max_examples=100)

# Each example builds and populates a fresh in-memory database
SLOW_SETTINGS = settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.too_slow])
