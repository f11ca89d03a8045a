"""
Shared helpers: platform directories, formatting, and structured logging.
"""
