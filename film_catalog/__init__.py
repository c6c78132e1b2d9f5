"""
In-memory film and series catalog: thread-safe entity stores, bulk text ingestion
and predicate-based search.
"""

__version__ = '1.0.0'
