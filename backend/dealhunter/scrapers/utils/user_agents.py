"""Request headers for polite scraping.

Vendors see a single identifying user-agent instead of a rotated browser
string, and every request asks intermediaries not to serve a cached page.
"""

from typing import Dict, Optional

from dealhunter.config import settings


ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


def get_user_agent() -> str:
    """Get the identifying user-agent string from settings."""
    return settings.USER_AGENT


def get_request_headers(user_agent: Optional[str] = None) -> Dict[str, str]:
    """Build the header set sent with every vendor request.

    Args:
        user_agent: Override for the configured user-agent

    Returns:
        Dict of HTTP headers
    """
    return {
        "User-Agent": user_agent or get_user_agent(),
        "Accept": ACCEPT_HTML,
        "Accept-Language": "en-US,en;q=0.5",
        "Accept-Encoding": "gzip, deflate",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }
