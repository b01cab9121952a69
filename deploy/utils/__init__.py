"""Utility modules for the deploy providers."""

from deploy.utils.http import HttpClient, HttpResponse
from deploy.utils.shell import ShellError, obfuscate, run, strip_ansi

__all__ = [
    # Shell utilities
    "run",
    "strip_ansi",
    "obfuscate",
    "ShellError",
    # HTTP utilities
    "HttpClient",
    "HttpResponse",
]
