"""Alembic scripts for the homepage backend database, shipped as package data."""
