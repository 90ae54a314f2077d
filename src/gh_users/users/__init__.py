"""User records and the CRUD command layer."""
