"""
Language-model provider boundary.
"""
