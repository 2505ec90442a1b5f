"""
Domain layer for the send-email endpoint.

This layer contains:
- Data models (request, response and outbound message structures)
- Business logic (method check, decode, validate, send pipeline)
"""
