"""Link headers for paginated responses."""

from typing import Any, Dict, Optional
from urllib.parse import urlencode


def create_link_header(
    base_url: str,
    params: Dict[str, Any],
    next_cursor: Optional[str] = None
) -> Optional[str]:
    """Create a Link header for the next page as per RFC 8288.

    Args:
        base_url: Base URL for the resource
        params: Current query parameters; any existing cursor is replaced
        next_cursor: Cursor for the next page

    Returns:
        Link header value or None if there is no next page
    """
    if not next_cursor:
        return None

    next_params = {k: v for k, v in params.items() if v is not None}
    next_params["cursor"] = next_cursor
    return f'<{base_url}?{urlencode(next_params)}>; rel="next"'
