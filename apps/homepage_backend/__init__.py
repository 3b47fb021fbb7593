"""
Homepage backend service.

Bootstraps database credentials from Vault, opens the database pool and
cache connection, applies schema migrations and serves a small HTTP API
(root, health, metrics, example). When mTLS is enabled a watcher flags
certificate file changes.
"""

__version__ = "0.1.0"
