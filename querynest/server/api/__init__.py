"""
HTTP API for QueryNest.
"""
