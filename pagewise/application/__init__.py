"""
Application layer: services orchestrating core logic for the API.
"""
