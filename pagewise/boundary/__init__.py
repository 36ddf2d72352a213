"""
Boundary layer for external system integrations.

Handles all interactions with external systems (relational store, vector
index, lexical index, language-model provider, PDF text extraction).
"""
