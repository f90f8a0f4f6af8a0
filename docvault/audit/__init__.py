"""Event logging for DocVault operations."""

from docvault.audit.log import EventLog, RequestContext

__all__ = ["EventLog", "RequestContext"]
