"""Shared infrastructure: exceptions, logging, database pool and migrations."""
