# load_diagnostics/__init__.py - StarRocks load diagnostics package
"""
Import frequency and load phase diagnostics for StarRocks.
"""

__version__ = "0.1.0"
