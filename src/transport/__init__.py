"""Download capabilities for log file content.

This package streams Event Log File content from the CRM instance over
HTTP or from a local export directory into scratch buffers.
"""
