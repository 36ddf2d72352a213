"""
Document text extraction boundary.
"""
