"""Core domain package for feedingest.

Core contains feed decoding, the entry state machine, and reference
resolution without any storage or queue-specific code, keeping the
ingestion logic portable.
"""
