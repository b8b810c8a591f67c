"""Listing source factory and exports."""

import logging
from typing import Any, Dict

from portals.base import ListingSource

logger = logging.getLogger(__name__)


def get_source(config: Dict[str, Any]) -> ListingSource:
    """
    Factory function to get the listing source for the configured portal.

    Args:
        config: Configuration dictionary from config.json

    Returns:
        Listing source instance (SuumoSource)

    Raises:
        ValueError: If portal is not supported

    Example:
        >>> source = get_source({"portal": "suumo"})
        >>> print(source.get_portal_name())
        "suumo"
    """
    portal = config.get("portal", "suumo").lower()

    if portal == "suumo":
        from portals.suumo.adapter import SuumoSource

        logger.info("Initializing SUUMO source")
        return SuumoSource(config)

    else:
        raise ValueError(f"Unsupported portal: {portal}. Supported portals: 'suumo'")


__all__ = ["get_source", "ListingSource"]
