"""
Apps package - FastAPI services.

- homepage_backend: Homepage API (health, metrics, example) backed by
  PostgreSQL, Redis/ValKey and Vault-managed credentials
"""
