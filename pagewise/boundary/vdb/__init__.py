"""
Vector index boundary.
"""
