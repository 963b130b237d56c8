"""
Display formatting shared by the web pages and the terminal player.
"""

from typing import Optional, Union


def format_time(seconds: Optional[Union[int, float]]) -> str:
    """
    Format a playback offset or duration as minutes and zero-padded seconds.

    Args:
        seconds: Offset in seconds; None and negative values render as 0:00.

    Returns:
        str: The offset as "m:ss".

    Examples:
        >>> format_time(0)
        '0:00'
        >>> format_time(75.6)
        '1:15'
        >>> format_time(3600)
        '60:00'
    """
    total = max(0, int(seconds or 0))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"
