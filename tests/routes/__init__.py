"""
Route tests for the QueryNest API.
"""
