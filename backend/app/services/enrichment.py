"""
Clients for lead enrichment (Apollo people match) and company news (NewsAPI).
"""

import logging
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from backend.app.core.config import settings
from backend.app.core.exceptions import EnrichmentServiceError

logger = logging.getLogger(__name__)

_APOLLO_STATUS_MESSAGES = {
    429: "Apollo API rate limit exceeded. Please try again later.",
    401: "Invalid Apollo API key. Please check your configuration.",
    400: "Invalid request to Apollo API. Please check the email format.",
    404: "No data found for the provided email address.",
}

_COMPANY_SUFFIX = re.compile(r"\s+(Inc|LLC|Ltd|Corporation|Corp)\.?$", re.IGNORECASE)


class EnrichmentClient:
    """
    Person/company lookup by email.

    Successful lookups are cached in memory for ``cache_ttl`` seconds, holding at
    most ``cache_size`` entries.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.apollo.io/v1",
        cache_ttl: int = 3600,
        timeout: float = 30.0,
        cache_size: int = 1024,
    ):
        self.api_key = api_key
        self.url = f"{base_url.rstrip('/')}/people/match"
        self.cache_ttl = cache_ttl
        self.cache_size = cache_size
        self.timeout = timeout
        self._cache: dict[str, tuple[float, dict[str, Any]]] = {}

    def _cached(self, email: str) -> dict[str, Any] | None:
        entry = self._cache.get(email)
        if entry is None:
            return None
        stored_at, data = entry
        if time.monotonic() - stored_at >= self.cache_ttl:
            del self._cache[email]
            return None
        return data

    def _store(self, email: str, data: dict[str, Any]) -> None:
        now = time.monotonic()
        for key in [k for k, (stored_at, _) in self._cache.items() if now - stored_at >= self.cache_ttl]:
            del self._cache[key]
        self._cache.pop(email, None)
        # Evict oldest first
        while self._cache and len(self._cache) >= self.cache_size:
            del self._cache[next(iter(self._cache))]
        self._cache[email] = (now, data)

    async def fetch_person(self, email: str) -> dict[str, Any]:
        """
        Look up a person by email.

        Returns:
            Raw provider payload with a ``person`` object

        Raises:
            EnrichmentServiceError: On missing configuration, HTTP errors or an
                empty match
        """
        key = email.strip().lower()
        cached = self._cached(key)
        if cached is not None:
            logger.info(f"[ENRICHMENT] Using cached data for {key}")
            return cached

        if not self.api_key:
            raise EnrichmentServiceError("Apollo API key is not configured")

        logger.info(f"[ENRICHMENT] Fetching person data for {key}")
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.url,
                    headers={
                        "Content-Type": "application/json",
                        "Cache-Control": "no-cache",
                        "X-API-KEY": self.api_key,
                    },
                    json={
                        "email": key,
                        "reveal_personal_emails": False,
                        "reveal_phone_number": False,
                    },
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            logger.error(f"[ENRICHMENT] Request failed for {key}: {e}")
            raise EnrichmentServiceError(f"Failed to fetch lead data: {e}") from e

        if response.status_code >= 400:
            logger.error(f"[ENRICHMENT] HTTP {response.status_code} for {key}: {response.text[:200]}")
            message = _APOLLO_STATUS_MESSAGES.get(
                response.status_code,
                f"Failed to fetch Apollo data: {response.status_code} {response.reason_phrase}",
            )
            raise EnrichmentServiceError(message, status_code=response.status_code)

        data = response.json()
        if not data.get("person"):
            raise EnrichmentServiceError("No person data found in Apollo API response")

        self._store(key, data)
        return data


class NewsClient:
    """
    Recent company news lookup.

    Never raises: any failure yields an empty article list so a missing news
    feed does not fail the report.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://newsapi.org/v2",
        lookback_days: int = 30,
        page_size: int = 5,
        timeout: float = 15.0,
    ):
        self.api_key = api_key
        self.url = f"{base_url.rstrip('/')}/everything"
        self.lookback_days = lookback_days
        self.page_size = page_size
        self.timeout = timeout

    @staticmethod
    def empty() -> dict[str, Any]:
        return {"articles": [], "totalResults": 0}

    async def fetch_company_news(self, company_name: str | None) -> dict[str, Any]:
        if not company_name or company_name == "N/A":
            return self.empty()
        if not self.api_key:
            logger.info("[NEWS] NEWS_API_KEY not set, skipping news fetch")
            return self.empty()

        search = _COMPANY_SUFFIX.sub("", company_name).strip()
        from_date = (datetime.now(timezone.utc) - timedelta(days=self.lookback_days)).date().isoformat()
        params = {
            "q": f'"{search}"',
            "from": from_date,
            "sortBy": "publishedAt",
            "language": "en",
            "pageSize": self.page_size,
            "apiKey": self.api_key,
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    self.url,
                    params=params,
                    headers={"User-Agent": "LeadReports/1.0"},
                    timeout=self.timeout,
                )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[NEWS] News fetch failed for {search!r}: {e}")
            return self.empty()

        articles = [
            {
                "title": article.get("title"),
                "description": article.get("description"),
                "url": article.get("url"),
                "source": (article.get("source") or {}).get("name") or "Unknown",
                "publishedAt": article.get("publishedAt"),
                "urlToImage": article.get("urlToImage"),
            }
            for article in (data.get("articles") or [])[: self.page_size]
        ]
        logger.info(f"[NEWS] {len(articles)} articles for {search!r}")
        return {"articles": articles, "totalResults": data.get("totalResults") or 0}


def build_lead_data(enrichment: dict[str, Any], fallback_email: str = "") -> dict[str, Any]:
    """Map a people-match payload to the stored lead profile."""
    person = enrichment.get("person") or {}
    org = person.get("organization") or {}

    location_parts = [org.get("city"), org.get("state"), org.get("country")]
    headquarters = ", ".join(part for part in location_parts if part) if org.get("country") else "N/A"

    name = person.get("name") or "N/A"
    title = person.get("title") or "N/A"
    company = org.get("name") or "N/A"
    return {
        "name": name,
        "position": title,
        "companyName": company,
        "photo": person.get("photo_url"),
        "contactDetails": {
            "email": person.get("email") or fallback_email or "N/A",
            "linkedin": person.get("linkedin_url") or "N/A",
        },
        "aboutLead": f"{person.get('name') or 'The lead'} is {person.get('title') or 'a professional'} "
                     f"at {org.get('name') or 'their organization'}",
        "aboutCompany": org.get("short_description") or "N/A",
        "companyDetails": {
            "industry": org.get("industry") or "N/A",
            "employees": org.get("estimated_num_employees") or "N/A",
            "headquarters": headquarters or "N/A",
            "website": org.get("website_url") or "N/A",
        },
        "leadScoring": {
            "rating": "3",
            "score": 88,
            "qualificationCriteria": {
                "decisionMaker": "YES",
                "viewedSolutionDeck": "NO",
                "haveBudget": "NO",
                "need": "YES",
            },
        },
    }


def create_enrichment_client() -> EnrichmentClient:
    return EnrichmentClient(
        api_key=settings.apollo_api_key,
        base_url=settings.apollo_base_url,
        cache_ttl=settings.enrichment_cache_ttl_seconds,
    )


def create_news_client() -> NewsClient:
    return NewsClient(
        api_key=settings.news_api_key,
        base_url=settings.news_base_url,
        lookback_days=settings.news_lookback_days,
        page_size=settings.news_page_size,
    )
