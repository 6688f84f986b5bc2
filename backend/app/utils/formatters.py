"""
Data formatting utilities.
"""

from typing import Any, Dict, Optional


def format_file_size(size_bytes: Optional[int]) -> str:
    """
    Format file size in bytes to human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.50 MB")
    """
    if size_bytes is None:
        return "Unknown"

    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PB"


def format_ref_number(ref_number: Optional[int]) -> Optional[str]:
    """Render a document reference number as ``DOC-00042``."""
    if ref_number is None:
        return None
    return f"DOC-{ref_number:05d}"


def mask_secret(value: str, visible: int = 4) -> str:
    """Mask all but the last ``visible`` characters of a secret."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


def format_error_response(error: Exception, status_code: int = 500) -> Dict[str, Any]:
    """
    Format error response for API.

    Args:
        error: Exception object
        status_code: HTTP status code

    Returns:
        Formatted error response dictionary
    """
    response = {
        "error": error.__class__.__name__,
        "detail": str(error),
        "status_code": status_code,
    }

    # Add additional details for custom exceptions
    if getattr(error, 'detail', None):
        response["detail"] = error.detail

    if getattr(error, 'field', None):
        response["field"] = error.field

    if getattr(error, 'rule', None):
        response["rule"] = error.rule

    return response
