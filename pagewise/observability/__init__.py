"""
Observability package.

Logging configuration and structured-context logging helpers.
"""
