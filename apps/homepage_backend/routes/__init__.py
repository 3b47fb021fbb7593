"""HTTP routers for the homepage backend."""
