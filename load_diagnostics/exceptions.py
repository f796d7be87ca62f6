# load_diagnostics/exceptions.py - Error taxonomy
"""
Custom exceptions for load diagnostics.

Error codes:
- LD000: Base/unknown error
- LD001: Upstream row fetch failure
- LD002: Configuration error
"""


class LoadDiagnosticsError(Exception):
    """Base exception for load diagnostics errors."""
    error_code = 'LD000'


class UpstreamDataError(LoadDiagnosticsError):
    """Raised when load rows cannot be fetched from the metadata store."""
    error_code = 'LD001'


class ConfigurationError(LoadDiagnosticsError):
    """Raised when configuration values are invalid."""
    error_code = 'LD002'
