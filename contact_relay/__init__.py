"""
contact-relay - contact form API with real-time notifications
"""
from contact_relay.version import __version__

__all__ = ["__version__"]
