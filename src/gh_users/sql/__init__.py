"""Parameterized SQL construction for user retrieval."""
