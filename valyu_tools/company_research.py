"""
Company research tool: fans out one deepsearch per report section and assembles the answers
into a single Markdown report with a references list.

Sections are independent. A failing section is reported inline and the others still render;
the call as a whole only fails for missing credentials or invalid input. Whether the company is
publicly listed is decided by a pluggable detector; sections that only exist for listed companies
(filings, financials, insiders) are skipped for private ones.
"""
import asyncio
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Optional, Union

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from valyu_tools.base import ResolvedConfig, SearchType
from valyu_tools.composer import compose_search_body
from valyu_tools.config import ApiKeyProvider
from valyu_tools.errors import PartialSectionFailure, ValyuToolError
from valyu_tools.registry import ToolDefinition, to_langchain_tool
from valyu_tools.resolver import ConfigResolver, ToolConfig
from valyu_tools.transport import DEEPSEARCH_PATH, ValyuTransport

logger = logging.getLogger(__name__)

SectionName = Literal[
    "summary", "leadership", "products", "funding", "competitors",
    "filings", "financials", "news", "insiders",
]
SectionStatus = Literal["succeeded", "failed", "skipped"]

# Characters of each result's content kept in the report.
RESULT_CONTENT_CHARS = 1500
ACTION = "research company with Valyu"


@dataclass(frozen=True)
class ReportSection:
    name: str
    title: str
    query: str
    search_type: SearchType = "all"
    sources: tuple[str, ...] = ()
    public_only: bool = False

    def query_for(self, company: str) -> str:
        return self.query.format(company=company)


SECTIONS: dict[str, ReportSection] = {
    s.name: s
    for s in (
        ReportSection(
            "summary", "Company Overview",
            "{company} company overview: business model, history, headquarters and key facts",
        ),
        ReportSection("leadership", "Leadership", "{company} executive leadership team and board of directors", "web"),
        ReportSection("products", "Products and Services", "{company} main products and services"),
        ReportSection("funding", "Funding and Investors", "{company} funding rounds, investors and valuation", "web"),
        ReportSection("competitors", "Competitors", "{company} main competitors and market position"),
        ReportSection(
            "filings", "SEC Filings", "{company} latest 10-K, 10-Q and 8-K filings",
            "proprietary", ("valyu/valyu-sec-filings",), public_only=True,
        ),
        ReportSection(
            "financials", "Financials", "{company} revenue, earnings, balance sheet and cash flow",
            "proprietary",
            (
                "valyu/valyu-earnings-US",
                "valyu/valyu-income-statement-US",
                "valyu/valyu-balance-sheet-US",
                "valyu/valyu-cash-flow-US",
            ),
            public_only=True,
        ),
        ReportSection("news", "Recent News", "{company} latest news", "web"),
        ReportSection(
            "insiders", "Insider Transactions", "{company} recent insider transactions",
            "proprietary", ("valyu/valyu-insider-transactions-US",), public_only=True,
        ),
    )
}

# search(body) -> parsed deepsearch response
SearchFn = Callable[[dict[str, Any]], Any]
# (company, search) -> True listed, False private, None unknown
ListingDetector = Callable[[str, SearchFn], Optional[bool]]

_CORPORATE_SUFFIXES = frozenset({
    "inc", "incorporated", "corp", "corporation", "co", "company", "ltd", "limited",
    "llc", "plc", "sa", "ag", "nv", "se", "holdings", "group",
})


def _words(text: str) -> list[str]:
    return re.findall(r"[a-z0-9]+", text.lower())


def _normalize_company(name: str) -> list[str]:
    """Lowercased name tokens without punctuation or trailing corporate suffixes."""
    words = _words(name)
    while len(words) > 1 and words[-1] in _CORPORATE_SUFFIXES:
        words.pop()
    return words


def _mentions(words: list[str], text: str) -> bool:
    haystack = _words(text)
    n = len(words)
    return any(haystack[i:i + n] == words for i in range(len(haystack) - n + 1))


def detect_listing(company: str, search: SearchFn) -> Optional[bool]:
    """
    Default detector: look the company up in the stocks dataset.

    Returns True when a stocks result names the company. A miss is not evidence that the
    company is private (names vary, coverage is partial), so it returns None and every
    section is kept.
    """
    body = {
        "query": f"{company} stock ticker and exchange listing",
        "search_type": "proprietary",
        "max_num_results": 1,
        "included_sources": ["valyu/valyu-stocks"],
    }
    try:
        response = search(body)
    except ValyuToolError as e:
        logger.warning("listing_detection_failed: %s", type(e).__name__)
        return None
    if not isinstance(response, dict) or response.get("success") is False:
        return None
    words = _normalize_company(company)
    if not words:
        return None
    for item in response.get("results") or []:
        if _mentions(words, f"{item.get('title', '')} {str(item.get('content', ''))[:500]}"):
            return True
    return None


class CompanyResearchConfig(ToolConfig):
    data_max_price: float = Field(default=100, description="Price ceiling per section call, sent as max_price")
    max_num_results: int = Field(default=5, description="Results per section")


class CompanyResearchInput(BaseModel):
    company: str = Field(
        ..., min_length=1, max_length=200,
        description="Company name to research (e.g., 'Apple Inc', 'Stripe')",
    )
    sections: Optional[list[SectionName]] = Field(
        default=None,
        description=(
            "Report sections to include. Omit for all: summary, leadership, products, funding, "
            "competitors, filings, financials, news, insiders."
        ),
    )


@dataclass
class SectionOutcome:
    section: ReportSection
    status: SectionStatus
    results: list[dict[str, Any]] = field(default_factory=list)
    error: Optional[PartialSectionFailure] = None
    note: Optional[str] = None


@dataclass
class CompanyReport:
    company: str
    listed: Optional[bool]
    outcomes: list[SectionOutcome]

    def outcome(self, name: str) -> SectionOutcome:
        for o in self.outcomes:
            if o.section.name == name:
                return o
        raise KeyError(name)

    def references(self) -> list[tuple[str, str]]:
        """(title, url) pairs, first appearance wins."""
        seen: dict[str, str] = {}
        for o in self.outcomes:
            for item in o.results:
                url = item.get("url")
                if url and url not in seen:
                    seen[url] = item.get("title") or url
        return [(title, url) for url, title in seen.items()]

    def to_markdown(self) -> str:
        ref_index = {url: i for i, (_, url) in enumerate(self.references(), 1)}
        if self.listed is None:
            listing = "unknown"
        else:
            listing = "publicly listed" if self.listed else "privately held"

        lines = [f"# Company Research: {self.company}", "", f"Listing status: {listing}", ""]
        for o in self.outcomes:
            lines += [f"## {o.section.title}", ""]
            if o.status == "failed":
                lines += [f"_Section failed: {o.error}_", ""]
                continue
            if o.status == "skipped":
                lines += [f"_Skipped: {o.note}_", ""]
                continue
            if not o.results:
                lines += ["_No results found._", ""]
                continue
            for item in o.results:
                heading = item.get("title") or "Untitled"
                ref = ref_index.get(item.get("url"))
                lines.append(f"### {heading}" + (f" [{ref}]" if ref else ""))
                content = str(item.get("content") or "").strip()
                if len(content) > RESULT_CONTENT_CHARS:
                    content = content[:RESULT_CONTENT_CHARS].rstrip() + "..."
                if content:
                    lines += ["", content]
                lines.append("")

        refs = self.references()
        if refs:
            lines += ["## References", ""]
            lines += [f"{i}. [{title}]({url})" for i, (title, url) in enumerate(refs, 1)]
            lines.append("")
        return "\n".join(lines).rstrip() + "\n"


def select_sections(names: Optional[list[str]]) -> list[ReportSection]:
    """Requested sections in canonical order; None or empty means all."""
    if not names:
        return list(SECTIONS.values())
    wanted = set(names)
    return [s for s in SECTIONS.values() if s.name in wanted]


class CompanyResearcher:
    """Runs the section fan-out. One instance per tool; holds no per-call state."""

    def __init__(
        self,
        config: CompanyResearchConfig,
        transport: ValyuTransport,
        resolver: ConfigResolver,
        listing_detector: ListingDetector = detect_listing,
    ):
        self.config = config
        self.transport = transport
        self.resolver = resolver
        self.listing_detector = listing_detector

    def _section_body(self, section: ReportSection, company: str, api_key: str) -> dict[str, Any]:
        resolved = ResolvedConfig(
            api_key=api_key,
            search_type=section.search_type,
            max_results=self.config.max_num_results,
            max_price=self.config.data_max_price,
            included_sources=section.sources or None,
        )
        return compose_search_body(resolved, section.query_for(company))

    def _search_fn(self, api_key: str) -> SearchFn:
        def search(body: dict[str, Any]) -> Any:
            return self.transport.send("POST", DEEPSEARCH_PATH, api_key=api_key, action=ACTION, body=body)
        return search

    def _loop_search_fn(self, api_key: str, loop: asyncio.AbstractEventLoop) -> SearchFn:
        """Synchronous search for a worker thread that runs `asend` on `loop` and waits for it."""
        def search(body: dict[str, Any]) -> Any:
            future = asyncio.run_coroutine_threadsafe(
                self.transport.asend("POST", DEEPSEARCH_PATH, api_key=api_key, action=ACTION, body=body), loop
            )
            return future.result()
        return search

    def _plan(self, company: str, sections: list[ReportSection], search: SearchFn):
        """Detect the listing if it matters, then split sections into (to fetch, skipped)."""
        listed = None
        if any(s.public_only for s in sections):
            listed = self.listing_detector(company, search)
        fetch, skipped = [], {}
        for s in sections:
            if s.public_only and listed is False:
                skipped[s.name] = SectionOutcome(
                    s, "skipped", note=f"{company} appears to be privately held."
                )
            else:
                fetch.append(s)
        return listed, fetch, skipped

    @staticmethod
    def _outcome(section: ReportSection, response: Any) -> SectionOutcome:
        if isinstance(response, dict) and response.get("success") is False:
            cause = ValyuToolError(response.get("error") or "Valyu reported an unsuccessful search")
            return SectionOutcome(section, "failed", error=PartialSectionFailure(section.name, cause))
        results = response.get("results") if isinstance(response, dict) else None
        return SectionOutcome(section, "succeeded", results=list(results or []))

    @staticmethod
    def _failed(section: ReportSection, e: ValyuToolError) -> SectionOutcome:
        logger.warning("company_research_section_failed section=%s error=%s", section.name, type(e).__name__)
        return SectionOutcome(section, "failed", error=PartialSectionFailure(section.name, e))

    def _fetch(self, section: ReportSection, company: str, api_key: str) -> SectionOutcome:
        try:
            response = self._search_fn(api_key)(self._section_body(section, company, api_key))
        except ValyuToolError as e:
            return self._failed(section, e)
        return self._outcome(section, response)

    async def _afetch(self, section: ReportSection, company: str, api_key: str) -> SectionOutcome:
        try:
            response = await self.transport.asend(
                "POST", DEEPSEARCH_PATH, api_key=api_key, action=ACTION,
                body=self._section_body(section, company, api_key),
            )
        except ValyuToolError as e:
            return self._failed(section, e)
        return self._outcome(section, response)

    @staticmethod
    def _assemble(company, sections, listed, fetched, skipped) -> CompanyReport:
        outcomes = []
        for s in sections:
            outcomes.append(skipped[s.name] if s.name in skipped else fetched[s.name])
        return CompanyReport(company=company, listed=listed, outcomes=outcomes)

    def research(self, company: str, sections: Optional[list[str]] = None) -> CompanyReport:
        api_key = self.resolver.resolve_api_key(self.config.api_key)
        selected = select_sections(sections)
        listed, fetch, skipped = self._plan(company, selected, self._search_fn(api_key))
        fetched = {}
        if fetch:
            with ThreadPoolExecutor(max_workers=len(fetch)) as pool:
                futures = {s.name: pool.submit(self._fetch, s, company, api_key) for s in fetch}
                fetched = {name: f.result() for name, f in futures.items()}
        return self._assemble(company, selected, listed, fetched, skipped)

    async def aresearch(self, company: str, sections: Optional[list[str]] = None) -> CompanyReport:
        api_key = self.resolver.resolve_api_key(self.config.api_key)
        selected = select_sections(sections)
        # detectors are synchronous: run one in a thread, its searches go through asend on this loop
        search = self._loop_search_fn(api_key, asyncio.get_running_loop())
        listed, fetch, skipped = await asyncio.to_thread(self._plan, company, selected, search)
        outcomes = await asyncio.gather(*(self._afetch(s, company, api_key) for s in fetch))
        fetched = {o.section.name: o for o in outcomes}
        return self._assemble(company, selected, listed, fetched, skipped)


def make_company_research_tool(
    config: Union[CompanyResearchConfig, dict[str, Any], None] = None,
    *,
    transport: Optional[ValyuTransport] = None,
    api_key_provider: Optional[ApiKeyProvider] = None,
    listing_detector: ListingDetector = detect_listing,
) -> ToolDefinition:
    if not isinstance(config, CompanyResearchConfig):
        config = CompanyResearchConfig.model_validate(config or {})
    researcher = CompanyResearcher(
        config,
        transport or ValyuTransport(),
        ConfigResolver(api_key_provider),
        listing_detector,
    )

    def execute(company: str, sections: Optional[list[str]] = None) -> str:
        return researcher.research(company, sections).to_markdown()

    async def aexecute(company: str, sections: Optional[list[str]] = None) -> str:
        report = await researcher.aresearch(company, sections)
        return report.to_markdown()

    return ToolDefinition(
        name="company_research",
        description=(
            "Research a company and return a structured report: overview, leadership, products, funding, "
            "competitors, SEC filings, financials, recent news and insider activity, with references. "
            "Pass the company name; optionally limit the report to specific sections."
        ),
        args_schema=CompanyResearchInput,
        execute=execute,
        aexecute=aexecute,
    )


def company_research(**config) -> StructuredTool:
    """LangChain tool for company reports. Keyword arguments are CompanyResearchConfig fields."""
    return to_langchain_tool(make_company_research_tool(config))
