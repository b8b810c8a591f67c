"""Apartment reachability crawler: scrape listings, keep buildings within travel-time budgets."""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from crawl4ai import AsyncWebCrawler

from cache import Store, get_store
from models.building import Building, reachable_buildings
from models.credentials import Credentials
from models.criterion import Criterion
from portals import ListingSource, get_source
from traveltime import (
    GeocodeError,
    Geocoder,
    MatrixBatcher,
    ResolutionError,
    TravelTimeResolver,
)
from utils.markdown_generator import MarkdownGenerator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# httpx logs every request at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)


class ReachabilityCrawler:
    """Scrapes a listing site and keeps the buildings reachable under all criteria."""

    def __init__(
        self,
        config: Dict[str, Any],
        store: Optional[Store] = None,
        source: Optional[ListingSource] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the crawler with configuration.

        Args:
            config: Configuration dictionary from config.json
            store: Persistent store (default: from config)
            source: Listing source (default: from config)
            client: Shared httpx client for the geocoding and routing APIs
        """
        self.config = config
        self.store = store or get_store(config)
        self.source = source or get_source(config)

        # Generate timestamped run folder
        self.run_timestamp = datetime.now()
        self.run_id = self.run_timestamp.strftime("%Y-%m-%d-%H%M%S")

        self.credentials = self._load_credentials()
        self.criteria = self._load_criteria()

        # Travel-time components
        geocoding_config = config.get("geocoding", {})
        routing_config = config.get("routing", {})
        self.geocode_concurrency = geocoding_config.get(
            "concurrency", Geocoder.DEFAULT_CONCURRENCY
        )
        self.geocoder = Geocoder(
            self.credentials,
            self.store,
            client=client,
            timeout=geocoding_config.get("timeout", Geocoder.DEFAULT_TIMEOUT),
        )
        self.batcher = MatrixBatcher(
            self.credentials,
            self.store,
            client=client,
            timeout=routing_config.get("timeout", MatrixBatcher.DEFAULT_TIMEOUT),
            max_concurrent_chunks=routing_config.get(
                "max_concurrent_chunks", MatrixBatcher.DEFAULT_MAX_CONCURRENT_CHUNKS
            ),
        )
        self.resolver = TravelTimeResolver(
            self.geocoder, self.batcher, strict=routing_config.get("strict", True)
        )

        # Output
        output_folder = config.get("output_folder", "output")
        self.run_folder = Path(output_folder) / f"reachable_{self.run_id}"
        self.md_generator = MarkdownGenerator(output_dir=str(self.run_folder))

        # Scraping limits
        self.max_pages = config.get("max_pages", 1)
        rate_config = config.get("rate_limiting", {})
        self.delay_page = rate_config.get("delay_page", 1.0)

        # Progress
        self.total_apartments = 0
        self.scraped_apartments = 0

    def _load_credentials(self) -> Credentials:
        """Use configured credentials (saving them) or fall back to stored ones."""
        configured = self.config.get("credentials") or {}
        if configured.get("api_key"):
            credentials = Credentials(
                app_id=configured.get("app_id", ""), api_key=configured["api_key"]
            )
            self.store.save_credentials(credentials)
            return credentials

        stored = self.store.get_credentials()
        if stored is None:
            raise ValueError(
                "No API credentials: set 'credentials.api_key' in config.json"
            )
        logger.info("Using stored API credentials")
        return stored

    def _load_criteria(self) -> List[Criterion]:
        """
        Load criteria from config.json, or from the store if none are configured.

        Configured criteria without an id or color inherit them from a stored
        criterion with the same address and mode, so cached associations and
        map colors survive edits to config.json.
        """
        stored = self.store.get_criteria()
        configured = self.config.get("criteria")

        if not configured:
            if not stored:
                raise ValueError("No criteria configured and none stored")
            logger.info(f"Using {len(stored)} stored criteria")
            return stored

        by_key = {(c.address, c.mode): c for c in stored}
        criteria = []
        for data in configured:
            criterion = Criterion.from_dict(data)
            previous = by_key.pop((criterion.address, criterion.mode), None)
            if previous is not None:
                if not data.get("id"):
                    criterion.id = previous.id
                if not data.get("color"):
                    criterion.color = previous.color
            criteria.append(criterion)

        self.store.set_criteria(criteria)
        return criteria

    async def scrape_page(self, crawler: AsyncWebCrawler, page: int) -> List[Building]:
        """
        Scrape and geocode a single page of listings.

        Args:
            crawler: The web crawler instance
            page: Page number to scrape

        Returns:
            Buildings with coordinates. Buildings whose address cannot be
            geocoded are dropped.
        """
        url = self.source.build_search_url(page)
        logger.info(f"Scraping page {page}: {url}")

        result = await crawler.arun(url=url, **self.source.get_search_crawler_config())
        if not result.success:
            logger.error(f"Failed to scrape page {page}: {result.error_message}")
            return []

        if page == 1:
            self.total_apartments = self.source.extract_total_count(result.html)
            pages = self.source.extract_page_count(result.html)
            logger.info(f"{self.total_apartments} apartments on {pages} pages")
            if not self.max_pages or self.max_pages > pages:
                self.max_pages = pages

        buildings = self.source.extract_buildings(result.html)
        semaphore = asyncio.Semaphore(max(1, self.geocode_concurrency))

        async def _locate(building: Building) -> Optional[Building]:
            async with semaphore:
                try:
                    building.coordinates = await self.geocoder.resolve(building.address)
                except GeocodeError as e:
                    logger.warning(f"Dropping {building.name}: {e}")
                    return None
            self.scraped_apartments += len(building.apartments)
            if self.total_apartments:
                progress = self.scraped_apartments / self.total_apartments * 100
                logger.info(
                    f"  {building.name}: {len(building.apartments)} apartments "
                    f"({progress:.0f}%)"
                )
            return building

        located = await asyncio.gather(*(_locate(b) for b in buildings))
        return [b for b in located if b is not None]

    async def scrape(self) -> List[Building]:
        """Scrape all pages up to the configured limit."""
        buildings: List[Building] = []
        page = 1

        async with AsyncWebCrawler(headless=True, verbose=False) as crawler:
            while True:
                page_buildings = await self.scrape_page(crawler, page)
                buildings.extend(page_buildings)
                logger.info(
                    f"Page {page}: {len(page_buildings)} buildings (Total: {len(buildings)})"
                )

                if not self.max_pages or page >= self.max_pages:
                    break

                # Rate limiting between pages
                await asyncio.sleep(self.delay_page)
                page += 1

        return buildings

    async def run(self) -> List[Building]:
        """
        Run scraping and travel-time resolution, then write the report.

        Returns:
            Buildings reachable under all criteria

        Raises:
            ResolutionError: Travel times could not be resolved. A report of
                the partial results is still written.
        """
        logger.info(
            f"Starting run with {len(self.criteria)} criteria "
            f"(max_pages: {self.max_pages or 'all'})"
        )
        buildings = await self.scrape()
        logger.info(f"Scraping complete: {len(buildings)} buildings")

        try:
            resolved = await self.resolver.resolve(self.criteria, buildings)
        except ResolutionError as e:
            self._write_report(e.buildings, partial=True)
            raise

        self._write_report(resolved)
        return reachable_buildings(resolved, self.criteria)

    def _write_report(self, buildings: List[Building], partial: bool = False) -> None:
        filename = "reachable_partial.md" if partial else "reachable.md"
        path = self.md_generator.save_report(
            self.criteria, buildings, self.run_timestamp, filename=filename
        )
        logger.info(
            f"Report saved: {path} "
            f"({len(reachable_buildings(buildings, self.criteria))} reachable buildings)"
        )


async def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from config.json"""
    config_path = config_path or Path(__file__).parent / "config.json"
    with open(config_path, "r", encoding="utf-8") as f:
        config = json.load(f)

    # Validate required fields
    if "portal" not in config:
        raise ValueError("Missing required field 'portal' in config.json")

    criteria = config.get("criteria")
    if criteria is not None:
        if not isinstance(criteria, list):
            raise ValueError("'criteria' in config.json must be a list")
        for i, entry in enumerate(criteria):
            missing = [k for k in ("mode", "address", "time") if k not in entry]
            if missing:
                raise ValueError(f"Criterion {i + 1} is missing {', '.join(missing)}")

    return config


async def main():
    """Main entry point for the reachability crawler."""
    store = None
    crawler = None
    try:
        config = await load_config()
        store = get_store(config)

        crawler = ReachabilityCrawler(config, store=store)
        reachable = await crawler.run()

        logger.info(f"Done! {len(reachable)} buildings reachable under all criteria.")

    except FileNotFoundError:
        logger.error("config.json not found")
    except ResolutionError as e:
        criteria = crawler.criteria if crawler else []
        reachable = reachable_buildings(e.buildings, criteria)
        logger.error(
            f"Resolution failed: {e}. Partial report covers {len(reachable)} buildings."
        )
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        import traceback

        traceback.print_exc()
    finally:
        if store is not None:
            store.close()


if __name__ == "__main__":
    asyncio.run(main())
