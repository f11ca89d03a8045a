"""
signaler: launcher and run supervisor for the page-audit engine.
"""

__version__ = "1.0.0"
