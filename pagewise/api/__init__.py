"""
API module.

FastAPI application factory, routers and dependencies.
"""
