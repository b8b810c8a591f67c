"""Abstract base class for listing sources."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from models.building import Building


class ListingSource(ABC):
    """
    Abstract base class for rental listing sites.

    Each site implements this interface to handle site-specific logic like
    URL building, pagination and extraction of buildings with their
    apartments. Buildings come back without coordinates; geocoding is done
    by the shared Geocoder.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize source with configuration.

        Args:
            config: Full configuration dictionary from config.json
        """
        self.config = config

    @abstractmethod
    def get_portal_name(self) -> str:
        """
        Return portal identifier.

        Returns:
            Portal name (e.g., "suumo")
        """

    @abstractmethod
    def build_search_url(self, page: int = 1) -> str:
        """
        Build search URL for a listing results page.

        Args:
            page: Page number (1-indexed)

        Returns:
            Full search URL with filters and pagination
        """

    @abstractmethod
    def extract_total_count(self, html: str) -> int:
        """
        Extract the total number of listed apartments from a results page.

        Raises:
            ScrapeError: Count element missing
            ParseError: Count not numeric
        """

    @abstractmethod
    def extract_page_count(self, html: str) -> int:
        """
        Extract the number of result pages.

        Raises:
            ScrapeError: Pagination element missing
            ParseError: Page number not numeric
        """

    @abstractmethod
    def extract_buildings(self, html: str) -> List[Building]:
        """
        Extract buildings and their apartments from a results page.

        Args:
            html: Search results page HTML

        Returns:
            Buildings without coordinates

        Raises:
            ScrapeError: A required element is missing
        """

    def get_search_crawler_config(self) -> Dict[str, Any]:
        """
        Get crawler configuration for search results pages.

        Returns:
            Dict with crawl4ai configuration parameters
        """
        return {
            "wait_for": "css:body",
            "delay_before_return_html": 1.0,
        }
