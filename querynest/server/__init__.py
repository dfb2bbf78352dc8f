"""
FastAPI server for QueryNest.
"""
