"""
server/ - Republishes the valid-provider file over HTTP.
"""

from server.app import create_app

__all__ = ["create_app"]
