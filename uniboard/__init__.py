"""
UniBoard - University notice board API.

This package contains the authentication and role-authorization service.
"""

__version__ = "1.0.0"
