from brandscape.errors import SourceUnavailable
from brandscape.services.search import SerpApiClient
from brandscape.services.trademark_risk import DISCLAIMER, TrademarkRiskAnalyzer
from brandscape.services.trademarks import (
    EuipoSource,
    TrademarkScreener,
    UkIpoSource,
    WebTrademarkSource,
    WhoisXmlSource,
    dedupe_hits,
)
from brandscape.utils.cache import TTLCache
from conftest import FakeSearch, StaticSource, run


def test_every_source_unavailable_still_produces_notes():
    sources = [
        StaticSource("EUIPO API", error=SourceUnavailable("EUIPO API", "status 503")),
        UkIpoSource(enabled=False),
        WebTrademarkSource(SerpApiClient(api_key="")),
        WhoisXmlSource(api_key=""),
    ]
    screener = TrademarkScreener(sources, TTLCache(600))

    result = run(screener.check_trademarks("Acme Yarns", "hand dyed yarn"))
    assert result.hits == []
    assert result.warnings == [
        "EUIPO API: status 503",
        "SerpAPI: No search provider available (set SERPAPI_KEY); skipping web search layer.",
        "WhoisXMLAPI: WHOISXMLAPI_KEY not set",
    ]

    notes = TrademarkRiskAnalyzer().analyze("Acme Yarns", result, "hand dyed yarn")
    assert 'The exact name "Acme Yarns" was not found' in notes
    assert notes.endswith(DISCLAIMER)


def test_unexpected_source_errors_become_warnings():
    screener = TrademarkScreener([StaticSource("Broken", error=RuntimeError("boom"))], TTLCache(600))
    result = run(screener.check_trademarks("Acme Yarns"))
    assert result.warnings == ["Broken error: boom"]


def test_hits_are_merged_and_deduplicated(hit):
    shared = hit(title="Acme Yarns", url="https://www.ipo.gov.uk/x")
    first = StaticSource("A", hits=[shared, hit(title="Other", url="https://other.test")])
    second = StaticSource("B", hits=[shared.model_copy(update={"title": "ACME YARNS"})])
    result = run(TrademarkScreener([first, second], TTLCache(600)).check_trademarks("Acme Yarns"))
    assert [h.title for h in result.hits] == ["Acme Yarns", "Other"]


def test_dedupe_is_idempotent_and_keeps_blank_hits(hit):
    hits = [hit(title="A", url="u"), hit(title="a", url="U"), hit(), hit()]
    once = dedupe_hits(hits)
    assert len(once) == 3
    assert dedupe_hits(once) == once


def test_cached_result_skips_sources(hit):
    source = StaticSource("A", hits=[hit(title="Acme Yarns", url="https://a.test")])
    screener = TrademarkScreener([source], TTLCache(600))

    first = run(screener.check_trademarks("Acme Yarns"))
    second = run(screener.check_trademarks("  acme   YARNS "))
    assert source.calls == 1
    assert not first.cached
    assert second.cached
    assert second.hits == first.hits


def test_web_source_query_failures_are_warnings():
    source = WebTrademarkSource(FakeSearch(fail=True))
    report = run(source.search("Acme Yarns", uk_only=True))
    assert report.hits == []
    assert len(report.warnings) == 4
    assert report.warnings[0] == "SerpAPI query failed: HTTP 500: boom"


def test_web_source_query_sets():
    uk = WebTrademarkSource.queries_for("Acme", uk_only=True)
    broad = WebTrademarkSource.queries_for("Acme", uk_only=False)
    assert uk[0] == '"Acme" trademark site:ipo.gov.uk'
    assert any("euipo.europa.eu" in q for q in broad)
    assert not any("euipo.europa.eu" in q for q in uk)


def test_euipo_transform_results():
    data = {"results": [{
        "markText": "ACME YARNS", "id": "018123", "status": "Registered",
        "classes": [23, 24], "owner": "Acme Ltd",
    }]}
    hits = EuipoSource.transform_results(data, "Acme Yarns")
    assert hits[0].title == "ACME YARNS"
    assert hits[0].url == "https://euipo.europa.eu/eSearch/#details/trademarks/018123"
    assert hits[0].snippet == "Status: Registered | Classes: 23, 24 | Owner: Acme Ltd"
    assert hits[0].source == "euipo_api"
    assert EuipoSource.transform_results("oops", "x") == []


def test_whoisxml_unknown_shape_kept_as_raw_hit():
    hits = WhoisXmlSource.transform_body({"message": "quota"})
    assert len(hits) == 1
    assert hits[0].raw == {"message": "quota"}
    records = WhoisXmlSource.transform_body({"trademarks": [{"name": "Acme", "status": "LIVE"}]})
    assert records[0].title == "Acme"
    assert records[0].snippet == "LIVE"


def test_uk_ipo_disabled_returns_nothing():
    report = run(UkIpoSource(enabled=False).search("Acme Yarns"))
    assert report.hits == [] and report.warnings == []


def test_uk_ipo_page_parsing():
    source = UkIpoSource(enabled=True, url="https://www.ipo.gov.uk/tmtext")
    text = 'Search results\nTrade mark "WOOLLY NEST" Application number: UK00003456789\nFooter'
    hits = source.parse_page(text, "Woolly Nest")
    assert hits[0].title == "WOOLLY NEST"
    assert hits[0].url.endswith("textquery=UK00003456789")
    assert hits[0].source == "uk_ipo_web"

    fallback = source.parse_page("Your search for acme yarns returned rows", "Acme Yarns")
    assert fallback[0].snippet.startswith("Found in UK IPO search results")


def test_callers_cannot_change_cached_results(hit):
    source = StaticSource("A", hits=[hit(title="Acme Yarns", url="https://a.test")])
    screener = TrademarkScreener([source], TTLCache(600))

    first = run(screener.check_trademarks("Acme Yarns"))
    first.hits.clear()
    first.warnings.append("edited by caller")
    second = run(screener.check_trademarks("Acme Yarns"))
    second.hits.append(hit(title="Extra"))
    third = run(screener.check_trademarks("Acme Yarns"))

    assert [h.title for h in second.hits] == ["Acme Yarns", "Extra"]
    assert [h.title for h in third.hits] == ["Acme Yarns"]
    assert third.warnings == []
