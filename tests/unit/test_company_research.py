"""Unit tests for company research: section fan-out, partial failure, listing detection, report rendering."""
import asyncio
import json

import httpx
import pytest
from unittest.mock import MagicMock, patch

from valyu_tools.company_research import (
    SECTIONS,
    CompanyReport,
    CompanyResearchConfig,
    CompanyResearcher,
    SectionOutcome,
    detect_listing,
    make_company_research_tool,
    select_sections,
)
from valyu_tools.errors import MissingCredential, ToolValidationError, UpstreamError
from valyu_tools.registry import ToolRegistry
from valyu_tools.resolver import ConfigResolver
from valyu_tools.transport import ValyuTransport


def _result(title, url, content="Some content."):
    return {"title": title, "url": url, "content": content, "source": "web"}


def _handler(fail_when=None):
    """Succeeds with one result per section, echoing the query; 500 when `fail_when` is in the query."""
    def handle(request):
        body = json.loads(request.content)
        if fail_when and fail_when in body["query"]:
            return httpx.Response(500, text="rate limited")
        return httpx.Response(
            200,
            json={"success": True, "results": [_result(body["query"], f"https://ex.com/{len(body['query'])}")]},
        )
    return handle


def _tool(transport, detector=lambda company, search: True, **config):
    return make_company_research_tool(
        config, transport=transport, api_key_provider=lambda: "k", listing_detector=detector
    )


def test_one_failing_section_does_not_abort(fake_api, transport):
    fake_api.handler = _handler(fail_when="revenue")
    report = _tool(transport).execute(company="Acme Corp", sections=["summary", "financials"])
    assert "## Company Overview" in report
    assert "Acme Corp company overview" in report
    assert "## Financials" in report
    assert "_Section failed:" in report
    assert "rate limited" in report
    assert report.index("## Company Overview") < report.index("## Financials")
    assert fake_api.calls == 2


def test_one_failing_section_async(fake_api, transport):
    fake_api.handler = _handler(fail_when="revenue")
    report = asyncio.run(_tool(transport).aexecute(company="Acme Corp", sections=["financials", "summary"]))
    assert "Acme Corp company overview" in report
    assert "_Section failed:" in report


def test_outcomes_carry_status(fake_api, transport):
    fake_api.handler = _handler(fail_when="revenue")
    researcher = CompanyResearcher(
        CompanyResearchConfig(), transport, ConfigResolver(lambda: "k"), lambda company, search: True
    )
    report = researcher.research("Acme", ["summary", "financials"])
    assert report.outcome("summary").status == "succeeded"
    failed = report.outcome("financials")
    assert failed.status == "failed"
    assert failed.error.section == "financials"
    assert isinstance(failed.error.cause, UpstreamError)


def test_all_sections_by_default(fake_api, transport):
    fake_api.handler = _handler()
    report = _tool(transport).execute(company="Acme")
    for section in SECTIONS.values():
        assert f"## {section.title}" in report
    assert fake_api.calls == len(SECTIONS)


def test_section_bodies(fake_api, transport):
    fake_api.handler = _handler()
    _tool(transport, dataMaxPrice=50, max_num_results=2).execute(company="Acme", sections=["filings", "news"])
    bodies = {b["query"]: b for b in fake_api.bodies()}
    filings = bodies["Acme latest 10-K, 10-Q and 8-K filings"]
    assert filings == {
        "query": "Acme latest 10-K, 10-Q and 8-K filings",
        "search_type": "proprietary",
        "max_num_results": 2,
        "included_sources": ["valyu/valyu-sec-filings"],
        "max_price": 50,
    }
    news = bodies["Acme latest news"]
    assert news["search_type"] == "web"
    assert "included_sources" not in news


def test_private_company_skips_public_sections(fake_api, transport):
    fake_api.handler = _handler()
    report = _tool(transport, detector=lambda company, search: False).execute(
        company="Tiny Startup", sections=["summary", "filings", "insiders"]
    )
    assert "Listing status: privately held" in report
    assert report.count("_Skipped: Tiny Startup appears to be privately held._") == 2
    assert fake_api.calls == 1


def test_detector_not_called_without_public_sections(fake_api, transport):
    detector = MagicMock(return_value=True)
    _tool(transport, detector=detector).execute(company="Acme", sections=["summary", "news"])
    detector.assert_not_called()


def test_default_detector_finds_listing():
    search = MagicMock(return_value={"success": True, "results": [_result("Apple Inc (AAPL) stock", "u")]})
    assert detect_listing("Apple Inc", search) is True
    body = search.call_args[0][0]
    assert body["included_sources"] == ["valyu/valyu-stocks"]


def test_default_detector_finds_listing_despite_suffix_and_punctuation():
    search = MagicMock(return_value={"success": True, "results": [_result("Apple Inc (AAPL) stock", "u")]})
    assert detect_listing("Apple Inc.", search) is True
    assert detect_listing("Apple, Inc", search) is True


def test_default_detector_does_not_match_partial_words():
    search = MagicMock(return_value={"success": True, "results": [_result("Pineapple Holdings (PNPL)", "u")]})
    assert detect_listing("Apple", search) is None


def test_default_detector_unknown_without_evidence():
    assert detect_listing("Nobody Ltd", MagicMock(return_value={"success": True, "results": []})) is None
    assert detect_listing("Nobody Ltd", MagicMock(return_value={"success": True, "results": [_result("ACME", "u")]})) is None
    assert detect_listing("Nobody Ltd", MagicMock(side_effect=UpstreamError(500, "down"))) is None
    assert detect_listing("Nobody Ltd", MagicMock(return_value={"success": False, "error": "x"})) is None


def test_unknown_listing_keeps_all_sections(fake_api, transport):
    fake_api.handler = _handler()
    report = _tool(transport, detector=lambda company, search: None).execute(
        company="Acme", sections=["filings"]
    )
    assert "Listing status: unknown" in report
    assert "_Skipped" not in report
    assert fake_api.calls == 1


def test_upstream_unsuccessful_response_marks_section_failed(fake_api, transport):
    fake_api.handler = lambda request: httpx.Response(200, json={"success": False, "error": "insufficient credits"})
    report = _tool(transport).execute(company="Acme", sections=["news"])
    assert "_Section failed: Section 'news' failed: insufficient credits_" in report


def test_missing_key_makes_no_calls(fake_api, transport):
    tool = make_company_research_tool(transport=transport, api_key_provider=lambda: None)
    with pytest.raises(MissingCredential):
        tool.execute(company="Acme")
    assert fake_api.calls == 0


def test_invalid_section_rejected(fake_api, transport):
    registry = ToolRegistry([_tool(transport)])
    with pytest.raises(ToolValidationError):
        registry.invoke("company_research", {"company": "Acme", "sections": ["gossip"]})
    with pytest.raises(ToolValidationError):
        registry.invoke("company_research", {"company": ""})
    assert fake_api.calls == 0


def test_select_sections_canonical_order():
    names = [s.name for s in select_sections(["news", "summary", "news"])]
    assert names == ["summary", "news"]
    assert len(select_sections(None)) == len(SECTIONS)
    assert len(select_sections([])) == len(SECTIONS)


def test_references_deduplicated_in_order():
    summary, news = SECTIONS["summary"], SECTIONS["news"]
    report = CompanyReport(
        company="Acme",
        listed=True,
        outcomes=[
            SectionOutcome(summary, "succeeded", results=[_result("A", "https://a.com"), _result("B", "https://b.com")]),
            SectionOutcome(news, "succeeded", results=[_result("A again", "https://a.com"), _result("C", "https://c.com")]),
        ],
    )
    assert report.references() == [("A", "https://a.com"), ("B", "https://b.com"), ("C", "https://c.com")]
    md = report.to_markdown()
    assert "### A again [1]" in md
    assert "### C [3]" in md
    assert md.rstrip().endswith("3. [C](https://c.com)")


def test_long_content_truncated():
    long_text = "x" * 5000
    report = CompanyReport(
        company="Acme",
        listed=None,
        outcomes=[SectionOutcome(SECTIONS["summary"], "succeeded", results=[_result("T", "u", long_text)])],
    )
    md = report.to_markdown()
    assert "x" * 1500 + "..." in md
    assert "x" * 1501 not in md


def test_empty_section():
    report = CompanyReport("Acme", True, [SectionOutcome(SECTIONS["news"], "succeeded")])
    assert "_No results found._" in report.to_markdown()


def _empty_results_or_fail(fail_when):
    def handle(request):
        if fail_when in json.loads(request.content)["query"]:
            return httpx.Response(500, text="rate limited")
        return httpx.Response(200, json={"success": True, "results": []})
    return handle


def test_failing_section_with_default_detector(fake_api, transport):
    fake_api.handler = _empty_results_or_fail("revenue")
    tool = make_company_research_tool(transport=transport, api_key_provider=lambda: "k")
    report = tool.execute(company="Acme Corp", sections=["summary", "financials"])
    assert "Listing status: unknown" in report
    assert "## Financials" in report
    assert "_Section failed:" in report
    assert "rate limited" in report
    assert "_Skipped" not in report
    # listing lookup + two sections
    assert fake_api.calls == 3


def test_failing_section_with_default_detector_async(fake_api, transport):
    fake_api.handler = _empty_results_or_fail("revenue")
    tool = make_company_research_tool(transport=transport, api_key_provider=lambda: "k")
    report = asyncio.run(tool.aexecute(company="Acme Corp", sections=["summary", "financials"]))
    assert "_Section failed:" in report
    assert "_Skipped" not in report
    assert fake_api.calls == 3


def test_async_research_uses_only_async_client(fake_api):
    fake_api.handler = lambda request: httpx.Response(
        200, json={"success": True, "results": [_result("Acme (ACME) stock", "https://ex.com/acme")]}
    )
    async_only = ValyuTransport(
        "https://api.valyu.test", 5.0, async_client=httpx.AsyncClient(transport=httpx.MockTransport(fake_api))
    )
    tool = make_company_research_tool(transport=async_only, api_key_provider=lambda: "k")
    with patch("valyu_tools.transport.httpx.Client") as client_cls:
        report = asyncio.run(tool.aexecute(company="Acme", sections=["filings"]))
    client_cls.assert_not_called()
    assert "Listing status: publicly listed" in report
    assert "## SEC Filings" in report
    assert fake_api.calls == 2
    assert fake_api.bodies()[0]["included_sources"] == ["valyu/valyu-stocks"]
