"""Event output layer.

This package serializes built log events and drains event queues into
JSONL files for downstream indexing.
"""
