"""
PostgreSQL warehouse access: connection pool, DDL and bulk loaders.
"""
