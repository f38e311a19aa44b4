"""Adapters that implement the core ports (storage, job queue, collaborators)."""
