"""
User-Agent parsing for visit records.
"""
from typing import Any

from user_agents import parse as parse_ua

from app.core.logging import get_logger

logger = get_logger(__name__)


def parse_user_agent(user_agent: str) -> dict[str, Any]:
    """
    Extract device type, browser and OS family from a User-Agent string.

    Args:
        user_agent: User-Agent header string

    Returns:
        Dictionary with device_type, browser and os
    """
    try:
        ua = parse_ua(user_agent or "")

        if ua.is_bot:
            device_type = "bot"
        elif ua.is_mobile:
            device_type = "mobile"
        elif ua.is_tablet:
            device_type = "tablet"
        elif ua.is_pc:
            device_type = "desktop"
        else:
            device_type = "unknown"

        return {
            "device_type": device_type,
            "browser": ua.browser.family,
            "os": ua.os.family,
        }
    except Exception as e:
        logger.error("user_agent_parse_failed", error=str(e), user_agent=user_agent)
        return {
            "device_type": "unknown",
            "browser": "Unknown",
            "os": "Unknown",
        }
