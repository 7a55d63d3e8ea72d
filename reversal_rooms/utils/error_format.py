"""Safe error message formatting utilities.

Ensures exceptions always have useful display messages, even when
their str() representation is empty (e.g., KeyboardInterrupt).
"""

from __future__ import annotations

from rich.markup import escape as _escape_markup

# Friendly messages for specific exception types known to have empty str()
FRIENDLY_MESSAGES: dict[type, str] = {
    KeyboardInterrupt: "Operation interrupted by user.",
    PermissionError: "Permission denied.",
    FileNotFoundError: "File or directory not found.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a useful display message.

    Args:
        e: The exception to format
        include_type: Whether to include the exception type name

    Returns:
        A non-empty, user-friendly error message

    Examples:
        >>> format_error_message(KeyboardInterrupt())
        'KeyboardInterrupt: Operation interrupted by user.'

        >>> format_error_message(ValueError("invalid input"), include_type=False)
        'invalid input'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if include_type and error_type not in error_str:
            return f"{error_type}: {error_str}"
        return error_str

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}"

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a value for safe interpolation into Rich markup strings.

    Module names, file paths and exception messages may contain brackets
    that Rich would otherwise read as markup tags.
    """
    return _escape_markup(str(value))
