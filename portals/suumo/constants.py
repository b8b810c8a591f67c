"""SUUMO-specific constants."""

BASE_URL = "https://suumo.jp"

# Default rental search: Tokyo, selected wards, 50 results per page
DEFAULT_SEARCH_URL = (
    "https://suumo.jp/jj/chintai/ichiran/FR301FC001/"
    "?url=%2Fchintai%2Fichiran%2FFR301FC001%2F&ar=030&bs=040&pc=50&smk=&po1=25&po2=99"
    "&tc=0400501&tc=0400902&shkr1=03&shkr2=03&shkr3=03&shkr4=03&cb=0.0&ct=13.0"
    "&md=03&md=04&md=05&md=06&md=07&md=08&md=09&md=10&md=11&md=12&md=13&md=14"
    "&et=9999999&mb=25&mt=9999999&cn=9999999&ta=13"
    "&sc=13103&sc=13104&sc=13113&sc=13110&sc=13112"
)

# Placeholder SUUMO uses for empty price fields
EMPTY_VALUE = "-"

SELECTORS = {
    "total": "div.paginate_set-hit",
    "pagination": "ol.pagination-parts",
    "building": "div.cassetteitem",
    "name": "div.cassetteitem_content-title",
    "address": "li.cassetteitem_detail-col1",
    "apartment": "tr.js-cassette_link",
    "rent": "span.cassetteitem_price--rent",
    "fees": "span.cassetteitem_price--administration",
    "deposit": "span.cassetteitem_price--deposit",
    "key_money": "span.cassetteitem_price--gratuity",
    "kind": "span.cassetteitem_madori",
    "area": "span.cassetteitem_menseki",
    "plan": "img.casssetteitem_other-thumbnail-img",
    "url": "a.cassetteitem_other-linktext",
    "id": "input#bukken_0",
}
