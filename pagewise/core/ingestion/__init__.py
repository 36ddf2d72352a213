"""
Ingestion units of work.

Document ingestion (chapters and job creation), chapter chunking, and the
per-job-type handlers executed by the scheduler.
"""
