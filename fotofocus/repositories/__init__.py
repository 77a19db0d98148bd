"""
Persistence adapters.

Each repository wraps a Database store client and exposes the queries one
area of the app needs. Services depend on repositories rather than on
SQLAlchemy sessions; the cascade deletion engine is the one exception because
it must compose many statements into a single transaction.
"""
