"""
PageWise: document ingestion and retrieval-augmented question answering.

Ingests long PDF documents into chapters and chunks through a background
job scheduler, and answers questions against them with hybrid retrieval.
"""
