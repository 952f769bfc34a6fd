"""Data models for Jina tool inputs and results."""

from typing import Annotated, Any, Literal

from pydantic import AfterValidator, AnyUrl, BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter

_URL_ADAPTER = TypeAdapter(AnyUrl)


def validate_absolute_url(value: str) -> str:
    """Check that value is an absolute URL and return it unchanged."""
    _URL_ADAPTER.validate_python(value)
    return value


# --- Tool inputs ---

SearchQuery = Annotated[str, Field(min_length=1, description="The search query")]
SiteFilter = Annotated[str | None, Field(description="Optional: Domain to restrict the search to")]
PageUrl = Annotated[str, AfterValidator(validate_absolute_url), Field(description="URL of the webpage to scrape")]
ResearchQuery = Annotated[str, Field(min_length=1, description="The search query for deep research")]
ReasoningEffort = Literal["low", "medium", "high"]


# --- Results ---

# Provider payloads sometimes carry null for text fields
ProviderText = Annotated[str, BeforeValidator(lambda value: "" if value is None else value)]


class _ProviderModel(BaseModel):
    """Base for models parsed from provider payloads; unknown fields are dropped."""

    model_config = ConfigDict(extra="ignore", validate_by_name=True, validate_by_alias=True, serialize_by_alias=True)


class SearchResult(_ProviderModel):
    """A single web search hit."""

    title: ProviderText = ""
    url: ProviderText = ""
    description: ProviderText = ""
    date: str | None = None


class SearchResponse(BaseModel):
    """Output of the search tool."""

    results: list[SearchResult] = Field(default_factory=list)


class PageContent(_ProviderModel):
    """A scraped page rendered as markdown."""

    title: ProviderText = ""
    description: ProviderText = ""
    url: ProviderText = ""
    content: ProviderText = ""


class URLCitation(_ProviderModel):
    """Citation pointing at a source used in a deep search answer."""

    title: str | None = None
    exact_quote: str | None = Field(default=None, alias="exactQuote")
    url: ProviderText = ""
    date_time: str | None = Field(default=None, alias="dateTime")


class Annotation(_ProviderModel):
    """Annotation attached to a deep search answer."""

    type: ProviderText = ""
    url_citation: URLCitation | None = None


class DeepSearchResult(_ProviderModel):
    """Final answer of a deep search run."""

    content: ProviderText = ""
    annotations: list[Annotation] | None = None
    visited_urls: list[str] | None = Field(default=None, alias="visitedURLs")
    read_urls: list[str] | None = Field(default=None, alias="readURLs")

    @classmethod
    def from_chunk(cls, chunk: dict[str, Any]) -> "DeepSearchResult":
        """Build a result from the last stream chunk.

        Chunks carry the answer as a top-level "content" key; chat-completion
        shaped chunks keep it under choices[0].delta or choices[0].message.
        """
        data = dict(chunk)
        if "content" not in data:
            choices = data.get("choices") or []
            if isinstance(choices, list) and choices and isinstance(choices[0], dict):
                message = choices[0].get("delta") or choices[0].get("message")
                if not isinstance(message, dict):
                    message = {}
                data["content"] = message.get("content") or ""
                for key in ("annotations", "visitedURLs", "readURLs"):
                    if key not in data and key in message:
                        data[key] = message[key]
            else:
                data["content"] = ""
        return cls.model_validate(data)
