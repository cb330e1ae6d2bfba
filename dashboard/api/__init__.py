"""
API Layer Module

FastAPI application serving the dashboard JSON routes under /api.
"""
