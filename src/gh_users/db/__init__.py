"""Postgres access: connection pool, user persistence store, and SQL migrations."""
