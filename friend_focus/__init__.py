"""
Backend package for Friend Focus.

A FastAPI service for tracking friends, closeness tiers, activities,
events, notes and photos, backed by a SQLAlchemy store.
"""
