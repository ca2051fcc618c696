"""
LLM service for lead report content using OpenAI.

Generates the narrative lead report and the structured per-section insights.
"""

from typing import Any
import httpx
import json
import logging
import re
import time

from backend.app.core.config import settings, SECTION_KEYS
from backend.app.core.exceptions import LLMServiceError
from backend.app.services.content_enhancer import process_ai_response

logger = logging.getLogger(__name__)


SECTION_SYSTEM_PROMPT = (
    "You are a sales intelligence assistant providing highly focused, concise insights. "
    "Keep all content exceptionally brief - summaries under 2 sentences, lists limited to 3 items max. "
    "Avoid vague generalizations and provide only specific, actionable information. "
    "Your responses must be formatted as valid JSON. "
    "Only include information directly supported by the provided data. "
    "IMPORTANT: Only provide recommendations, suggestions, or tips for the 'nextSteps' and 'interactions' sections. "
    "For all other sections, focus solely on factual information without suggestions or recommendations."
)

REPORT_SYSTEM_PROMPT = (
    "You are a professional lead researcher. Create a detailed, well-structured report based on the provided data. "
    "Focus on business value, decision-making capacity, and potential engagement strategies. "
    "Use markdown formatting for better readability."
)

DATA_QUALITY_PROMPT = """INSTRUCTION: Keep all content extremely brief, specific, and actionable.

Content length limits:
- Summaries: 1-2 sentences maximum
- Lists: 2-3 items maximum
- Descriptions: Short, concise phrases only

For specific company details:
- Only include information directly from the data provided
- Do not fabricate statistics, names, or events

Your response MUST be valid JSON. If you don't have enough information,
include "insufficient_data": true in the JSON object."""

SECTION_INSTRUCTIONS = {
    "overview": (
        "Based ONLY on the above information, provide a brief overview of this lead. "
        "Include a 1-2 sentence summary and MAXIMUM 3 key points most relevant for sales. "
        "Format the response as JSON with 'summary' and 'keyPoints' fields."
    ),
    "company": (
        "Provide a brief, focused analysis of this company: a 1-2 sentence description, "
        "a 1 sentence market positioning statement and MAXIMUM 2-3 challenges likely faced based on industry. "
        "Format as JSON with 'description', 'marketPosition', and 'challenges' fields."
    ),
    "meeting": (
        "Provide general guidance for an upcoming meeting with suggested talking points based on "
        "the lead's industry and position. Do not reference projects or needs not in the data. "
        "Format as JSON with 'suggestedAgenda', 'keyQuestions' (array), and 'preparationTips' fields."
    ),
    "interactions": (
        "Provide general recommendations for effective interactions with a lead in this industry and position. "
        "Do not make claims about personal preferences unless they are in the data. "
        "Format as JSON with 'communicationPreferences', 'personalizationTips' (array), and 'dosDonts' fields."
    ),
    "competitors": (
        "Provide a concise competitive analysis: MAXIMUM 3 competitor types most relevant to this company, "
        "a single sentence about competitive advantage opportunities and a single sentence about market dynamics. "
        "Format as JSON with 'mainCompetitors', 'competitiveAdvantage', and 'marketDynamics' fields."
    ),
    "techStack": (
        "Provide a concise technology analysis: 2-3 technology categories likely used, 1-2 pain points, "
        "1-2 opportunities for improvement and 1-2 technology recommendations. "
        "Format as JSON with 'currentTechnologies', 'painPoints', 'opportunities', and 'recommendations' fields."
    ),
    "news": (
        "Identify MAXIMUM 2-3 key industry trends most relevant to this company, one sentence each. "
        "Do not reference specific news articles or events. "
        "Format as JSON with a 'relevantIndustryTrends' array."
    ),
    "nextSteps": (
        "Provide MAXIMUM 2 specific next action recommendations for engaging the lead. "
        "For each action include a one sentence description, a rationale under 10 words and a priority. "
        "Format as JSON with 'recommendedActions' as an array of objects with "
        "'description', 'rationale', and 'priority' fields."
    ),
    "strategicBrief": (
        "Create a strategic meeting brief: a 1-2 sentence primary objective, a 2 sentence recommended approach, "
        "exactly 3 short key benefits and one critical discipline warning. "
        "Format as JSON with 'primaryObjective', 'recommendedApproach', 'keyBenefits' (array), "
        "and 'criticalDiscipline' fields."
    ),
}

# Sections that need deeper analysis use the larger model
COMPLEX_SECTIONS = frozenset({"competitors", "techStack", "nextSteps"})

_CODE_FENCE_START = re.compile(r"^```(?:json)?\s*")
_CODE_FENCE_END = re.compile(r"\s*```$")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_json_object(text: str) -> dict[str, Any]:
    """
    Parse a JSON object out of model output.

    Accepts bare JSON, JSON wrapped in a markdown code fence, or JSON embedded in
    surrounding prose.

    Raises:
        ValueError: If no JSON object can be recovered
    """
    cleaned = _CODE_FENCE_END.sub("", _CODE_FENCE_START.sub("", text.strip()))
    for candidate in (cleaned, text):
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    match = _JSON_OBJECT.search(text)
    if match:
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse LLM response as JSON: {e}") from e
        if isinstance(data, dict):
            return data
    raise ValueError("LLM response did not contain a JSON object")


def build_lead_summary(lead_data: dict[str, Any]) -> str:
    """Base facts about the lead shared by every section prompt."""
    company = lead_data.get("companyDetails") or {}
    return "\n".join([
        f"Lead name: {lead_data.get('name') or 'Unknown'}",
        f"Position: {lead_data.get('position') or 'Unknown'}",
        f"Company: {lead_data.get('companyName') or 'Unknown'}",
        f"Industry: {company.get('industry') or 'Unknown'}",
        f"Company size: {company.get('employees') or 'Unknown'}",
        f"Location: {company.get('headquarters') or 'Unknown'}",
    ])


def build_section_prompt(section: str, lead_data: dict[str, Any]) -> str:
    instruction = SECTION_INSTRUCTIONS.get(
        section,
        f"Generate content for the {section} section of a lead report. "
        "Format the response as JSON with relevant fields for this section.",
    )
    return f"{build_lead_summary(lead_data)}\n\n{DATA_QUALITY_PROMPT}\n\n{instruction}"


def build_report_template(lead_data: dict[str, Any]) -> str:
    """Markdown skeleton of a lead report, also used as the fallback report."""
    contact = lead_data.get("contactDetails") or {}
    company = lead_data.get("companyDetails") or {}
    scoring = lead_data.get("leadScoring") or {}
    criteria = scoring.get("qualificationCriteria") or {}
    return f"""# {lead_data.get('name', 'N/A')}
## {lead_data.get('position', 'N/A')} at {lead_data.get('companyName', 'N/A')}

### Contact Details
- **LinkedIn:** {contact.get('linkedin', 'N/A')}
- **Email:** {contact.get('email', 'N/A')}

### About Lead
{lead_data.get('aboutLead', 'N/A')}

### About Company
{lead_data.get('aboutCompany', 'N/A')}

### Company Details
- **Company HQ:** {company.get('headquarters', 'N/A')}
- **Company Website:** {company.get('website', 'N/A')}
- **Industry:** {company.get('industry', 'N/A')}
- **Employee Count:** {company.get('employees', 'N/A')}

### Lead Scoring
**Lead Rating:** {scoring.get('rating', 'N/A')}

#### Qualification Criteria
- **Decision Maker:** {criteria.get('decisionMaker', 'N/A')}
- **Viewed Solution Deck:** {criteria.get('viewedSolutionDeck', 'N/A')}
- **Have Budget:** {criteria.get('haveBudget', 'N/A')}
- **Need:** {criteria.get('need', 'N/A')}

### Engagement Strategy
Please provide specific recommendations for engaging with this lead based on their profile and company details.
"""


class OpenAIProvider:
    """OpenAI GPT provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model name (gpt-4, gpt-3.5-turbo, etc.)
            base_url: API base URL
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.model = model
        self.base_url = f"{base_url.rstrip('/')}/chat/completions"
        self.timeout = timeout

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 500,
        response_format: dict | None = None,
        model: str | None = None,
    ) -> str:
        """
        Generate text using OpenAI API.

        Args:
            prompt: User prompt
            system_prompt: System instruction
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens to generate
            response_format: Optional response format (e.g. JSON object mode)
            model: Override the provider's default model

        Returns:
            Generated text

        Raises:
            httpx.HTTPError: If API request fails
        """
        messages = []

        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        messages.append({"role": "user", "content": prompt})

        model_name = model or self.model
        logger.info(f"[LLM REQUEST] Model: {model_name}, Temperature: {temperature}, Structured: {response_format is not None}")
        logger.debug(f"[LLM REQUEST] User prompt: {prompt[:200]}...")

        start_time = time.time()

        request_body = {
            "model": model_name,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        if response_format:
            request_body["response_format"] = response_format

        async with httpx.AsyncClient() as client:
            response = await client.post(
                self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=request_body,
                timeout=self.timeout,
            )

            response.raise_for_status()
            data = response.json()

            result = data["choices"][0]["message"]["content"].strip()
            elapsed_time = time.time() - start_time

            logger.info(f"[LLM RESPONSE] Time: {elapsed_time:.2f}s")
            logger.debug(f"[LLM RESPONSE] Result: {result[:200]}...")

            return result


class LLMService:
    """
    Service for lead report text generation using OpenAI.

    Provides:
    - Narrative markdown report for a lead
    - Structured JSON insights for one report section

    Examples:
        >>> service = LLMService()
        >>> content = await service.generate_section("overview", lead_data)
        >>> markdown = await service.generate_lead_report(lead_data)
    """

    def __init__(self, provider: OpenAIProvider | None = None):
        """
        Initialize LLM service.

        Args:
            provider: OpenAI provider instance. If None, creates from config
                when an API key is configured; calls fail until one is.
        """
        if provider is None:
            provider = self._create_provider_from_config()
        self.provider = provider

    @staticmethod
    def _create_provider_from_config() -> OpenAIProvider | None:
        """Create OpenAI provider from environment config."""
        if not settings.openai_api_key:
            logger.warning("[LLM] OPENAI_API_KEY not set, AI generation is disabled")
            return None

        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout=settings.llm_timeout_seconds,
        )

    def _require_provider(self, operation: str) -> OpenAIProvider:
        if self.provider is None:
            raise LLMServiceError(operation, ValueError("OPENAI_API_KEY not set in environment"))
        return self.provider

    @staticmethod
    def model_for_section(section: str) -> str:
        if section in COMPLEX_SECTIONS:
            return settings.openai_complex_model
        return settings.openai_model

    async def generate_section(
        self,
        section: str,
        lead_data: dict[str, Any],
        enrichment_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Generate structured content for one report section.

        Args:
            section: Section key
            lead_data: Lead profile used to build the prompt
            enrichment_data: Raw enrichment payload (currently informational)

        Returns:
            Normalized section content

        Raises:
            ValueError: If the section key is unknown
            LLMServiceError: If the API call fails or returns unusable output
        """
        if section not in SECTION_KEYS:
            raise ValueError(f"Unknown section: {section}")

        provider = self._require_provider(f"section generation ({section})")
        logger.info(f"[LLM METHOD] generate_section() section={section}")

        try:
            response = await provider.generate(
                build_section_prompt(section, lead_data),
                system_prompt=SECTION_SYSTEM_PROMPT,
                temperature=0.5,
                max_tokens=800,
                response_format={"type": "json_object"},
                model=self.model_for_section(section),
            )
        except (httpx.HTTPError, KeyError, IndexError) as e:
            logger.error(f"[LLM METHOD] Section {section} request failed: {e}")
            raise LLMServiceError(f"section generation ({section})", e) from e

        try:
            data = parse_json_object(response)
        except ValueError as e:
            logger.error(f"[LLM METHOD] Failed to parse JSON response: {e}")
            logger.error(f"[LLM METHOD] Raw response: {response}")
            raise LLMServiceError(f"section generation ({section})", e) from e

        return process_ai_response(section, data)

    async def generate_lead_report(self, lead_data: dict[str, Any]) -> str:
        """
        Generate the narrative markdown report for a lead.

        Raises:
            LLMServiceError: If the API call fails
        """
        provider = self._require_provider("lead report generation")
        prompt = "Create a professional lead report with the following structure:\n\n" + build_report_template(lead_data)
        try:
            return await provider.generate(
                prompt,
                system_prompt=REPORT_SYSTEM_PROMPT,
                temperature=0.7,
                max_tokens=1500,
            )
        except (httpx.HTTPError, KeyError, IndexError) as e:
            logger.error(f"[LLM METHOD] Lead report request failed: {e}")
            raise LLMServiceError("lead report generation", e) from e


# Global service instance
_llm_service: LLMService | None = None


def get_llm_service() -> LLMService:
    """
    Get singleton LLM service instance.

    Returns:
        Cached LLMService instance
    """
    global _llm_service
    if _llm_service is None:
        _llm_service = LLMService()
    return _llm_service
