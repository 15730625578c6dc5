"""API module for contact-relay.

This module provides the HTTP endpoints and the real-time broadcast channel.
"""

from contact_relay.api.app import create_app
from contact_relay.api.contact import router as contact_router

__all__ = ["create_app", "contact_router"]
