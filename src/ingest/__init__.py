"""Event Log File ingestion pipeline.

This package downloads log files, decodes their rows against the column
type manifest, and builds routed events for the output queue.
"""
