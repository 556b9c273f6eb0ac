"""
newsmux - News aggregation and resilience layer

Fans out to many unreliable, rate-limited news providers (REST JSON APIs and
RSS/Atom feeds), rotates API keys on auth and rate-limit failures, and merges
the results into one fresh, de-duplicated, ranked feed.
"""

__version__ = "0.1.0"
__author__ = "newsmux contributors"
