"""SUUMO (suumo.jp) rental listing source."""

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from bs4 import BeautifulSoup, Tag

from models.building import Apartment, Building
from portals.base import ListingSource
from portals.suumo.constants import BASE_URL, DEFAULT_SEARCH_URL, EMPTY_VALUE, SELECTORS
from traveltime.errors import ParseError, ScrapeError

logger = logging.getLogger(__name__)


class SuumoSource(ListingSource):
    """Adapter for SUUMO rental search result pages."""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.search_url = config.get("search_url") or DEFAULT_SEARCH_URL

    def get_portal_name(self) -> str:
        """Return portal identifier."""
        return "suumo"

    def build_search_url(self, page: int = 1) -> str:
        """Add (or replace) the page parameter of the configured search URL."""
        parts = urlsplit(self.search_url)
        query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "page"]
        if page > 1:
            query.append(("page", str(page)))
        return urlunsplit(parts._replace(query=urlencode(query)))

    def extract_total_count(self, html: str) -> int:
        """Total hits, e.g. ``1,234`` in the pagination header."""
        soup = BeautifulSoup(html, "html.parser")
        element = soup.select_one(SELECTORS["total"])
        if element is None:
            raise ScrapeError("count not found")
        text = next(element.stripped_strings, None)
        if text is None:
            raise ScrapeError("number not found")
        digits = re.sub(r"[,\s]", "", text)
        match = re.match(r"\d+", digits)
        if not match:
            raise ParseError(f"Invalid listing count: {text!r}")
        return int(match.group(0))

    def extract_page_count(self, html: str) -> int:
        """Number shown on the last pagination link."""
        soup = BeautifulSoup(html, "html.parser")
        pagination = soup.select_one(SELECTORS["pagination"])
        if pagination is None:
            raise ScrapeError("pagination not found")
        items = pagination.find_all(recursive=False)
        if not items:
            raise ScrapeError("last page not found")
        text = items[-1].get_text(strip=True)
        try:
            return int(text)
        except ValueError as e:
            raise ParseError(f"Invalid page count: {text!r}") from e

    def extract_buildings(self, html: str) -> List[Building]:
        """Extract every building block with its apartment rows."""
        soup = BeautifulSoup(html, "html.parser")
        buildings = []

        for block in soup.select(SELECTORS["building"]):
            name = self._find_text(block, "name", "title")
            address = self._find_text(block, "address", "address")
            apartments = [
                self._extract_apartment(row, name)
                for row in block.select(SELECTORS["apartment"])
            ]
            buildings.append(Building(name=name, address=address, apartments=apartments))

        logger.debug(f"Extracted {len(buildings)} buildings from page")
        return buildings

    def _extract_apartment(self, row: Tag, building_name: str) -> Apartment:
        prefix = f"{building_name}: "

        plan = self._find_attr(row, "plan", "rel", prefix)
        href = self._find_attr(row, "url", "href", prefix)
        unit_id = self._find_attr(row, "id", "value", prefix).strip()
        try:
            parsed_id = int(unit_id)
        except ValueError as e:
            raise ParseError(f"{prefix}invalid unit id {unit_id!r}") from e

        return Apartment(
            id=parsed_id,
            rent=self._find_text(row, "rent", "rent", prefix),
            fees=self._optional(self._find_text(row, "fees", "fees", prefix)),
            deposit=self._optional(self._find_text(row, "deposit", "deposit", prefix)),
            key_money=self._optional(self._find_text(row, "key_money", "key_money", prefix)),
            kind=self._find_text(row, "kind", "kind", prefix),
            area=self._find_text(row, "area", "area", prefix),
            plan=plan,
            url=f"{BASE_URL}{href}",
        )

    @staticmethod
    def _find_text(element: Tag, selector: str, label: str, prefix: str = "") -> str:
        found = element.select_one(SELECTORS[selector])
        if found is None:
            raise ScrapeError(f"{prefix}{label} not found")
        return found.get_text(strip=True)

    @staticmethod
    def _find_attr(element: Tag, selector: str, attr: str, prefix: str = "") -> str:
        found = element.select_one(SELECTORS[selector])
        if found is None:
            raise ScrapeError(f"{prefix}{selector} not found")
        value = found.get(attr)
        if value is None:
            raise ScrapeError(f"{prefix}{attr} not found")
        if isinstance(value, list):
            value = " ".join(value)
        return value

    @staticmethod
    def _optional(value: str) -> Optional[str]:
        return None if value == EMPTY_VALUE else value
