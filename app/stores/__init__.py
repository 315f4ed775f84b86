"""Data stores for persistence, caching and search.

Stores handle:
- PostgreSQL: DB session, post repository, transactions
- Redis: read-through caching with TTL
- Elasticsearch: denormalized post index for text and tag search

No coordination logic in stores - keeping them consistent belongs in services.
"""
