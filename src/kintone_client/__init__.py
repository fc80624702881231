"""
kintone client - typed asyncio access layer for the kintone REST API.

Provides record, comment and workflow operations on kintone apps, plus
cursor-based retrieval of record sets larger than a single response page.
"""

__version__ = "0.1.0"
