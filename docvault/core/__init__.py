"""Core utilities shared across DocVault modules."""
