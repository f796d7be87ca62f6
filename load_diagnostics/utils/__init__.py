# load_diagnostics/utils/__init__.py - Utilities module
"""
Utility functions and helpers.

This module provides:
- config.py: Configuration and analysis rules
- logger.py: Logging setup
- helpers.py: Formatting and parsing helpers
"""
