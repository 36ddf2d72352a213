"""
Pydantic schemas.

Structured-output schemas for the language-model provider, streaming
event payloads and API request/response contracts.
"""
