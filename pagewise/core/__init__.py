"""
Core domain logic.

Scheduling, ingestion units of work, retrieval fusion and history compaction.
"""
