"""Tests for the SUUMO listing source."""

import sys
from pathlib import Path

# Add parent directory to path to import project modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from urllib.parse import parse_qs, urlsplit

import pytest
from portals import get_source
from portals.suumo.adapter import SuumoSource
from traveltime.errors import ParseError, ScrapeError

APARTMENT_ROW = """
<tr class="js-cassette_link">
  <td><input id="bukken_0" type="checkbox" value="{id}"></td>
  <td><span class="cassetteitem_price--rent">{rent}</span></td>
  <td><span class="cassetteitem_price--administration">{fees}</span></td>
  <td><span class="cassetteitem_price--deposit">-</span></td>
  <td><span class="cassetteitem_price--gratuity">8万円</span></td>
  <td><span class="cassetteitem_madori">1LDK</span></td>
  <td><span class="cassetteitem_menseki">40.5m2</span></td>
  <td><img class="casssetteitem_other-thumbnail-img" rel="https://img.example/plan.jpg"></td>
  <td><a class="cassetteitem_other-linktext" href="/chintai/jnc_{id}/">detail</a></td>
</tr>
"""

BUILDING_BLOCK = """
<div class="cassetteitem">
  <div class="cassetteitem_content-title">{name}</div>
  <ul><li class="cassetteitem_detail-col1">{address}</li></ul>
  <table>{rows}</table>
</div>
"""

PAGE = """
<html><body>
  <div class="paginate_set-hit">1,234<span>件</span></div>
  {blocks}
  <ol class="pagination-parts">
    <li><a>1</a></li><li><a>2</a></li><li><a>25</a></li>
  </ol>
</body></html>
"""


def make_page(blocks=None):
    if blocks is None:
        blocks = [
            BUILDING_BLOCK.format(
                name="Maison Shibuya",
                address="東京都渋谷区神南1",
                rows=APARTMENT_ROW.format(id=101, rent="12万円", fees="5000円")
                + APARTMENT_ROW.format(id=102, rent="13万円", fees="-"),
            ),
            BUILDING_BLOCK.format(
                name="Villa Meguro",
                address="東京都目黒区目黒2",
                rows=APARTMENT_ROW.format(id=201, rent="9万円", fees="3000円"),
            ),
        ]
    return PAGE.format(blocks="".join(blocks))


@pytest.fixture
def source():
    return SuumoSource({"search_url": "https://suumo.jp/jj/chintai/ichiran/?ar=030&pc=50"})


class TestSearchUrl:
    """Test search URL pagination."""

    def test_first_page_has_no_page_param(self, source):
        url = source.build_search_url(1)
        assert "page" not in parse_qs(urlsplit(url).query)

    def test_page_param_added(self, source):
        query = parse_qs(urlsplit(source.build_search_url(2)).query)
        assert query["page"] == ["2"]
        assert query["ar"] == ["030"]

    def test_existing_page_param_replaced(self):
        source = SuumoSource({"search_url": "https://suumo.jp/x/?page=4&ar=030"})
        query = parse_qs(urlsplit(source.build_search_url(3)).query)
        assert query["page"] == ["3"]

    def test_default_search_url(self):
        source = SuumoSource({})
        assert source.build_search_url(1).startswith("https://suumo.jp/")


class TestCounts:
    """Test total and page count extraction."""

    def test_total_count_strips_separators(self, source):
        assert source.extract_total_count(make_page()) == 1234

    def test_page_count_from_last_link(self, source):
        assert source.extract_page_count(make_page()) == 25

    def test_missing_total_raises(self, source):
        with pytest.raises(ScrapeError, match="count not found"):
            source.extract_total_count("<html><body></body></html>")

    def test_non_numeric_total_raises(self, source):
        html = '<div class="paginate_set-hit">many</div>'
        with pytest.raises(ParseError):
            source.extract_total_count(html)

    def test_missing_pagination_raises(self, source):
        with pytest.raises(ScrapeError, match="pagination not found"):
            source.extract_page_count("<html></html>")


class TestExtractBuildings:
    """Test building and apartment extraction."""

    def test_buildings_and_apartments(self, source):
        buildings = source.extract_buildings(make_page())

        assert [b.name for b in buildings] == ["Maison Shibuya", "Villa Meguro"]
        assert buildings[0].address == "東京都渋谷区神南1"
        assert buildings[0].coordinates is None
        assert [a.id for a in buildings[0].apartments] == [101, 102]
        assert len(buildings[1].apartments) == 1

    def test_apartment_fields(self, source):
        apartment = source.extract_buildings(make_page())[0].apartments[0]

        assert apartment.rent == "12万円"
        assert apartment.fees == "5000円"
        assert apartment.key_money == "8万円"
        assert apartment.kind == "1LDK"
        assert apartment.area == "40.5m2"
        assert apartment.plan == "https://img.example/plan.jpg"
        assert apartment.url == "https://suumo.jp/chintai/jnc_101/"

    def test_dash_becomes_none(self, source):
        apartments = source.extract_buildings(make_page())[0].apartments
        assert apartments[0].deposit is None
        assert apartments[1].fees is None

    def test_missing_address_raises(self, source):
        block = '<div class="cassetteitem"><div class="cassetteitem_content-title">X</div></div>'
        with pytest.raises(ScrapeError, match="address not found"):
            source.extract_buildings(make_page([block]))

    def test_missing_rent_names_building(self, source):
        row = APARTMENT_ROW.format(id=1, rent="", fees="-").replace(
            "cassetteitem_price--rent", "other"
        )
        block = BUILDING_BLOCK.format(name="Broken", address="Somewhere", rows=row)
        with pytest.raises(ScrapeError, match="Broken: rent not found"):
            source.extract_buildings(make_page([block]))

    def test_invalid_unit_id_raises(self, source):
        row = APARTMENT_ROW.format(id="abc", rent="1万円", fees="-")
        block = BUILDING_BLOCK.format(name="Odd", address="Somewhere", rows=row)
        with pytest.raises(ParseError):
            source.extract_buildings(make_page([block]))

    def test_empty_page(self, source):
        assert source.extract_buildings(make_page([])) == []


class TestFactory:
    """Test listing source factory."""

    def test_suumo_is_default(self):
        assert get_source({}).get_portal_name() == "suumo"

    def test_case_insensitive(self):
        assert isinstance(get_source({"portal": "SUUMO"}), SuumoSource)

    def test_unsupported_portal(self):
        with pytest.raises(ValueError, match="Unsupported portal"):
            get_source({"portal": "willhaben"})

    def test_crawler_config(self, source):
        assert source.get_search_crawler_config()["wait_for"] == "css:body"
