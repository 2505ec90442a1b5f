"""
Service functions shared by the Lambda handlers.

This package contains runtime configuration loading (environment and SSM).
"""

__all__ = ['settings']
