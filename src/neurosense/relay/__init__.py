"""
HTTP relay between the assessment client and the external speech providers.
"""

from neurosense.relay.app_factory import create_app

__all__ = ["create_app"]
