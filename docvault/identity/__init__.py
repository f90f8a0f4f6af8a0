"""Decentralized identities and user profiles."""

from docvault.identity.service import IdentityService, make_did
from docvault.identity.store import UserStore

__all__ = ["IdentityService", "UserStore", "make_did"]
