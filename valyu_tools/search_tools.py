"""
Domain search tools over POST /v1/deepsearch. All of them come from one factory and differ only
in their profile: description, default sources, default result count and search type.
The executor returns the Valyu response unchanged so callers keep every metadata field.
"""
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field, create_model

from valyu_tools.base import ApiResponse, ToolDefaults
from valyu_tools.composer import compose_search_body
from valyu_tools.config import ApiKeyProvider
from valyu_tools.registry import ToolDefinition, to_langchain_tool
from valyu_tools.resolver import ConfigResolver, SearchConfig
from valyu_tools.transport import DEEPSEARCH_PATH, ValyuTransport

QUERY_MIN_CHARS = 1
QUERY_MAX_CHARS = 500

INCLUDED_SOURCES_DESCRIPTION = (
    "Restrict search to specific domains or sources (e.g., ['nature.com', 'arxiv.org']). "
    "Cannot be used with excluded_sources."
)
EXCLUDED_SOURCES_DESCRIPTION = (
    "Exclude specific domains or sources from results (e.g., ['reddit.com', 'quora.com']). "
    "Cannot be used with included_sources."
)


@dataclass(frozen=True)
class SearchProfile:
    name: str
    description: str
    query_description: str
    action: str
    defaults: ToolDefaults = field(default_factory=ToolDefaults)
    # agent may pass included_sources / excluded_sources per call
    accepts_sources: bool = False

    @property
    def schema_name(self) -> str:
        return "".join(part.title() for part in self.name.split("_")) + "Input"


_PAPER_SOURCES = (
    "valyu/valyu-arxiv",
    "valyu/valyu-biorxiv",
    "valyu/valyu-medrxiv",
    "valyu/valyu-pubmed",
)

PROFILES: dict[str, SearchProfile] = {
    p.name: p
    for p in (
        SearchProfile(
            name="search",
            description=(
                "Search across all Valyu sources including web, academic papers, financial data, "
                "and proprietary datasets. Use this as a general-purpose search when you need broad coverage."
            ),
            query_description="Natural language query",
            action="search with Valyu",
            defaults=ToolDefaults(search_type="all", max_results=5),
            accepts_sources=True,
        ),
        SearchProfile(
            name="web_search",
            description=(
                "Search the web for current information, news, articles, and content. Use this when you need "
                "up-to-date information or facts from the internet. Performs real-time web searches across "
                "diverse sources."
            ),
            query_description="The web search query - be specific and clear about what you're looking for",
            action="search with Valyu",
            defaults=ToolDefaults(search_type="all", max_results=5),
            accepts_sources=True,
        ),
        SearchProfile(
            name="finance_search",
            description=(
                "Search financial data: stock prices, earnings, balance sheets, income statements, cash flows, "
                "SEC filings, dividends, insider transactions, crypto, forex, and economic indicators. The API "
                "handles natural language - ask your full question in one query per topic."
            ),
            query_description=(
                "Natural language query (e.g., 'Apple stock price Q1-Q3 2020', 'Tesla revenue last 4 quarters')"
            ),
            action="search financial data with Valyu",
            defaults=ToolDefaults(
                search_type="proprietary",
                max_results=5,
                sources=(
                    "valyu/valyu-stocks",
                    "valyu/valyu-sec-filings",
                    "valyu/valyu-earnings-US",
                    "valyu/valyu-balance-sheet-US",
                    "valyu/valyu-income-statement-US",
                    "valyu/valyu-cash-flow-US",
                    "valyu/valyu-dividends-US",
                    "valyu/valyu-insider-transactions-US",
                    "valyu/valyu-market-movers-US",
                    "valyu/valyu-crypto",
                    "valyu/valyu-forex",
                    "valyu/valyu-bls",
                    "valyu/valyu-fred",
                    "valyu/valyu-world-bank",
                ),
            ),
        ),
        SearchProfile(
            name="paper_search",
            description=(
                "Search academic papers from arXiv, PubMed, bioRxiv, and medRxiv. The API handles semantic "
                "search - use simple natural language, not keyword stuffing."
            ),
            query_description=(
                "Natural language query (e.g., 'psilocybin effects on lifespan in mice', "
                "'CRISPR cancer therapy trials')"
            ),
            action="search research papers with Valyu",
            defaults=ToolDefaults(search_type="proprietary", max_results=5, sources=_PAPER_SOURCES),
        ),
        SearchProfile(
            name="academic_search",
            description=(
                "Search academic papers and preprints from arXiv, PubMed, bioRxiv, and medRxiv. Use for "
                "research papers across all scientific disciplines."
            ),
            query_description=(
                "Natural language query (e.g., 'transformer architectures for protein folding', "
                "'CRISPR gene editing mechanisms')"
            ),
            action="search academic papers with Valyu",
            defaults=ToolDefaults(search_type="proprietary", max_results=5, sources=_PAPER_SOURCES),
        ),
        SearchProfile(
            name="bio_search",
            description=(
                "Search biomedical literature from PubMed, clinical trials, and FDA drug labels. The API "
                "handles natural language - use simple queries."
            ),
            query_description=(
                "Natural language query (e.g., 'GLP-1 agonists for weight loss', "
                "'Phase 3 melanoma immunotherapy trials')"
            ),
            action="search biomedical data with Valyu",
            defaults=ToolDefaults(
                search_type="proprietary",
                max_results=5,
                sources=(
                    "valyu/valyu-pubmed",
                    "valyu/valyu-biorxiv",
                    "valyu/valyu-medrxiv",
                    "valyu/valyu-clinical-trials",
                    "valyu/valyu-drug-labels",
                ),
            ),
        ),
        SearchProfile(
            name="life_sciences_search",
            description=(
                "Search life sciences databases including clinical trials, drug data (ChEMBL, DrugBank, "
                "PubChem), FDA labels, genomics (NCBI Gene, SNP, ClinVar, GEO, SRA), and healthcare data "
                "(NPI registry, WHO ICD codes). Use for biomedical research, drug discovery, and genomics queries."
            ),
            query_description=(
                "Natural language query (e.g., 'BRCA1 mutations in breast cancer', "
                "'Phase 3 melanoma immunotherapy trials', 'GLP-1 agonist mechanisms')"
            ),
            action="search life sciences data with Valyu",
            defaults=ToolDefaults(
                search_type="proprietary",
                max_results=5,
                sources=(
                    # clinical and regulatory
                    "valyu/valyu-clinical-trials",
                    "valyu/valyu-drug-labels",
                    # pharmaceutical
                    "valyu/valyu-chembl",
                    "valyu/valyu-pubchem",
                    "valyu/valyu-drugbank",
                    "valyu/valyu-open-targets",
                    # healthcare
                    "valyu/valyu-npi-registry",
                    "valyu/valyu-who-icd",
                    # genomics (NCBI)
                    "valyu/valyu-ncbi-gene",
                    "valyu/valyu-ncbi-snp",
                    "valyu/valyu-ncbi-clinvar",
                    "valyu/valyu-ncbi-geo",
                    "valyu/valyu-ncbi-sra",
                ),
            ),
        ),
        SearchProfile(
            name="patent_search",
            description=(
                "Search patents and patent applications. The API handles natural language - describe the "
                "invention or technology, optionally with an assignee or date range."
            ),
            query_description=(
                "Natural language query (e.g., 'high energy laser weapon systems published in 2025', "
                "'solid-state battery electrolyte patents')"
            ),
            action="search patents with Valyu",
            defaults=ToolDefaults(search_type="proprietary", max_results=5, sources=("valyu/valyu-patents",)),
        ),
        SearchProfile(
            name="sec_search",
            description=(
                "Search SEC filings (10-K, 10-Q, 8-K only). Use simple natural language with company name and "
                "filing type - no accession numbers or technical syntax needed."
            ),
            query_description=(
                "Natural language query (e.g., 'Tesla 10-K FY2024 risk factors', 'Apple iPhone sales 2021')"
            ),
            action="search SEC filings with Valyu",
            defaults=ToolDefaults(search_type="proprietary", max_results=5, sources=("valyu/valyu-sec-filings",)),
        ),
        SearchProfile(
            name="economics_search",
            description=(
                "Search economic data from BLS, FRED, World Bank. The API handles natural language - no need "
                "for series IDs or technical codes."
            ),
            query_description=(
                "Natural language query (e.g., 'CPI vs unemployment since 2020', 'US GDP growth last 5 years')"
            ),
            action="search economic data with Valyu",
            defaults=ToolDefaults(
                search_type="proprietary",
                max_results=3,
                sources=(
                    "valyu/valyu-bls",
                    "valyu/valyu-fred",
                    "valyu/valyu-world-bank",
                    "valyu/valyu-worldbank-indicators",
                    "valyu/valyu-usaspending",
                ),
            ),
        ),
    )
}


def build_input_schema(profile: SearchProfile) -> type[BaseModel]:
    """Agent-facing schema: a required query, plus source filters for the general tools."""
    fields: dict[str, Any] = {
        "query": (
            str,
            Field(
                ...,
                min_length=QUERY_MIN_CHARS,
                max_length=QUERY_MAX_CHARS,
                description=profile.query_description,
            ),
        ),
    }
    if profile.accepts_sources:
        fields["included_sources"] = (
            Optional[list[str]],
            Field(default=None, description=INCLUDED_SOURCES_DESCRIPTION),
        )
        fields["excluded_sources"] = (
            Optional[list[str]],
            Field(default=None, description=EXCLUDED_SOURCES_DESCRIPTION),
        )
    return create_model(profile.schema_name, __doc__=f"Input for {profile.name}.", **fields)


def _as_search_config(config: Union[SearchConfig, dict[str, Any], None]) -> SearchConfig:
    if isinstance(config, SearchConfig):
        return config
    return SearchConfig.model_validate(config or {})


def make_search_tool(
    profile: SearchProfile,
    config: Union[SearchConfig, dict[str, Any], None] = None,
    *,
    transport: Optional[ValyuTransport] = None,
    api_key_provider: Optional[ApiKeyProvider] = None,
) -> ToolDefinition:
    """Build the ToolDefinition for one search profile and caller configuration."""
    search_config = _as_search_config(config)
    resolver = ConfigResolver(api_key_provider)
    transport = transport or ValyuTransport()

    def _prepare(query, included_sources, excluded_sources):
        # resolve first: a missing key must fail before any request is built
        resolved = resolver.resolve(
            profile.defaults,
            search_config,
            included_sources=included_sources,
            excluded_sources=excluded_sources,
        )
        return resolved.api_key, compose_search_body(resolved, query)

    def execute(
        query: str,
        included_sources: Optional[list[str]] = None,
        excluded_sources: Optional[list[str]] = None,
    ) -> ApiResponse:
        api_key, body = _prepare(query, included_sources, excluded_sources)
        return transport.send("POST", DEEPSEARCH_PATH, api_key=api_key, action=profile.action, body=body)

    async def aexecute(
        query: str,
        included_sources: Optional[list[str]] = None,
        excluded_sources: Optional[list[str]] = None,
    ) -> ApiResponse:
        api_key, body = _prepare(query, included_sources, excluded_sources)
        return await transport.asend("POST", DEEPSEARCH_PATH, api_key=api_key, action=profile.action, body=body)

    return ToolDefinition(
        name=profile.name,
        description=profile.description,
        args_schema=build_input_schema(profile),
        execute=execute,
        aexecute=aexecute,
        defaults=profile.defaults,
    )


def _langchain_tool(name: str, config: dict[str, Any]) -> StructuredTool:
    return to_langchain_tool(make_search_tool(PROFILES[name], config))


def search(**config) -> StructuredTool:
    """General search across every Valyu source. Keyword arguments are SearchConfig fields."""
    return _langchain_tool("search", config)


def web_search(**config) -> StructuredTool:
    return _langchain_tool("web_search", config)


def finance_search(**config) -> StructuredTool:
    return _langchain_tool("finance_search", config)


def paper_search(**config) -> StructuredTool:
    return _langchain_tool("paper_search", config)


def academic_search(**config) -> StructuredTool:
    return _langchain_tool("academic_search", config)


def bio_search(**config) -> StructuredTool:
    return _langchain_tool("bio_search", config)


def life_sciences_search(**config) -> StructuredTool:
    return _langchain_tool("life_sciences_search", config)


def patent_search(**config) -> StructuredTool:
    return _langchain_tool("patent_search", config)


def sec_search(**config) -> StructuredTool:
    return _langchain_tool("sec_search", config)


def economics_search(**config) -> StructuredTool:
    return _langchain_tool("economics_search", config)
