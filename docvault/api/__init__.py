"""HTTP API routers for DocVault."""
