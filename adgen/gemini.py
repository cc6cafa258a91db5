"""
Gemini integration for product analysis and storyboard direction.

- Analysis: product research from a URL, best-effort
- Direction: strict JSON output constrained by a response schema

All calls go through the generateContent REST endpoint. The API key is
always passed in by the caller.
"""

import json
import logging
from typing import Optional

import httpx

from .config import GEMINI_API_BASE, REASONING_TIMEOUT
from .errors import CredentialMissingError, ParseError, TransportError
from .pipeline.models import ProductDescriptor, ReasoningModel

logger = logging.getLogger(__name__)

# Map our model selection to Gemini API model names
MODEL_API_NAMES = {
    ReasoningModel.GEMINI_3_PRO.value: "gemini-3-pro-preview",
    ReasoningModel.GEMINI_3_FLASH.value: "gemini-3-flash-preview",
}

MAX_NAME_LENGTH = 80


def _api_url(model: str) -> str:
    model = getattr(model, "value", model)
    api_model = MODEL_API_NAMES.get(model, model)
    return f"{GEMINI_API_BASE}/models/{api_model}:generateContent"


def _client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout)


def clean_json(text: Optional[str]) -> str:
    """Strip markdown code fences from a model response."""
    if not text:
        return "{}"
    return text.replace("```json", "").replace("```", "").strip()


def _parse_json_response(text: Optional[str]) -> dict:
    cleaned = clean_json(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ParseError(f"Gemini returned invalid JSON: {cleaned[:200]}") from e
    if not isinstance(data, dict):
        raise ParseError(f"Gemini returned JSON {type(data).__name__}, expected an object")
    return data


async def generate_text(
    api_key: str,
    model: str,
    prompt: str,
    system_instruction: Optional[str] = None,
    response_schema: Optional[dict] = None,
    response_mime_type: Optional[str] = None,
) -> str:
    """
    Call the Gemini generateContent endpoint and return the first candidate's text.

    Raises:
        CredentialMissingError: api_key is empty.
        TransportError: network failure, non-200 status, or no text in the response.
    """
    if not api_key:
        raise CredentialMissingError("Gemini API key not configured")

    body: dict = {
        "contents": [{"parts": [{"text": prompt}]}],
    }
    if system_instruction:
        body["systemInstruction"] = {"parts": [{"text": system_instruction}]}

    config: dict = {}
    if response_schema:
        config["responseSchema"] = response_schema
        config["responseMimeType"] = response_mime_type or "application/json"
    elif response_mime_type:
        config["responseMimeType"] = response_mime_type
    if config:
        body["generationConfig"] = config

    try:
        async with _client(REASONING_TIMEOUT) as client:
            resp = await client.post(_api_url(model), params={"key": api_key}, json=body)
    except httpx.HTTPError as e:
        raise TransportError(f"Gemini request failed: {e}") from e

    if resp.status_code != 200:
        raise TransportError(f"Gemini API error {resp.status_code}: {resp.text[:500]}")

    try:
        result = resp.json()
        parts = result["candidates"][0]["content"]["parts"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise TransportError(f"Gemini returned no usable candidates: {resp.text[:200]}") from e

    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text:
        raise TransportError("Gemini response contained no text")
    return text


async def direct(
    api_key: str,
    prompt: str,
    schema: dict,
    model: str = ReasoningModel.GEMINI_3_PRO,
    system_instruction: Optional[str] = None,
) -> dict:
    """
    Ask for a JSON object matching ``schema`` and return it parsed.

    Raises:
        ParseError: the response is not a JSON object after fence stripping.
    """
    text = await generate_text(
        api_key,
        model,
        prompt,
        system_instruction=system_instruction,
        response_schema=schema,
        response_mime_type="application/json",
    )
    return _parse_json_response(text)


# =========================================================================
# Product Analysis
# =========================================================================

ANALYZE_PROMPT = """Analyze the product at this link in depth: {url}

Return a JSON object with:
- "name": the product name, short
- "description": a detailed description of the product
- "usp": the single most important unique selling point
- "category": the product category"""

ANALYZE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "description": {"type": "STRING"},
        "usp": {"type": "STRING"},
        "category": {"type": "STRING"},
    },
    "required": ["name", "description", "usp"],
}

FALLBACK_PRODUCT = {
    "name": "Pro Product",
    "description": "High-end product analyzed by AI",
    "usp": "Top Rated",
}


def fallback_product(source_url: str) -> ProductDescriptor:
    """Placeholder descriptor used when analysis is unavailable."""
    return ProductDescriptor(url=source_url, **FALLBACK_PRODUCT)


def _field(data: dict, key: str) -> str:
    value = data.get(key)
    return str(value).strip() if value is not None else ""


async def analyze(
    api_key: str,
    source_url: str,
    model: str = ReasoningModel.GEMINI_3_FLASH,
) -> ProductDescriptor:
    """
    Derive a ProductDescriptor from a product URL.

    Best-effort: transport and parse failures are logged and answered with
    the placeholder descriptor so the pipeline never stalls here.
    """
    try:
        data = await direct(api_key, ANALYZE_PROMPT.format(url=source_url), ANALYZE_SCHEMA, model=model)
    except (TransportError, ParseError) as e:
        logger.warning(f"Product analysis failed for {source_url}, using placeholder: {e}")
        return fallback_product(source_url)

    name = _field(data, "name")[:MAX_NAME_LENGTH] or FALLBACK_PRODUCT["name"]
    description = _field(data, "description") or FALLBACK_PRODUCT["description"]
    usp = _field(data, "usp") or FALLBACK_PRODUCT["usp"]
    category = _field(data, "category") or None

    logger.info(f"Analyzed product: {name} ({category or 'uncategorized'})")
    return ProductDescriptor(
        name=name,
        description=description,
        usp=usp,
        url=source_url,
        category=category,
    )
