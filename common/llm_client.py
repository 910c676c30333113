"""
LLM client wrapper with retries, timeouts, and web-search citations.
"""
import os
import time
import logging
import requests
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when the LLM call fails after all retries."""


class LLMClient:
    """Client for the OpenAI Responses API with optional web search."""

    def __init__(self, model: str = None, api_key: str = None, base_url: str = None,
                 timeout: int = 120, max_retries: int = 3, web_search: bool = True):
        self.model = model or os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.base_url = (base_url or os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")).rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.web_search = web_search

    def call(self, prompt: str, system_prompt: str = "", temperature: float = 0.7) -> Dict[str, Any]:
        """
        Call the LLM with retry logic.
        Returns: {"text": str, "tokens": int, "generation": dict, "citations": list}
        """
        if not self.api_key:
            raise LLMError("OPENAI_API_KEY not set")

        last_error = None
        for attempt in range(self.max_retries):
            try:
                data = self._post(prompt, system_prompt, temperature)
                return {
                    "text": response_text(data),
                    "tokens": data.get("usage", {}).get("total_tokens", 0),
                    "generation": generation_from_response(data),
                    "citations": citations_from_response(data),
                }
            except (requests.RequestException, ValueError) as e:
                last_error = e
                logger.warning("LLM call attempt %d/%d failed: %s", attempt + 1, self.max_retries, e)
                if attempt < self.max_retries - 1:
                    time.sleep(2 ** attempt)  # Exponential backoff

        raise LLMError(f"LLM call failed after {self.max_retries} attempts: {last_error}")

    def _post(self, prompt: str, system_prompt: str, temperature: float) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model,
            "input": messages,
            "temperature": temperature,
        }
        if self.web_search:
            payload["tools"] = [{"type": "web_search"}]

        resp = requests.post(
            f"{self.base_url}/responses",
            headers=headers,
            json=payload,
            timeout=self.timeout
        )
        resp.raise_for_status()
        return resp.json()


def _message_parts(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    parts = []
    for item in data.get("output") or []:
        if isinstance(item, dict) and item.get("type") == "message":
            parts.extend(p for p in item.get("content") or [] if isinstance(p, dict))
    return parts


def response_text(data: Dict[str, Any]) -> str:
    """Concatenated output text of a Responses API payload."""
    if isinstance(data.get("output_text"), str):
        return data["output_text"]
    return "".join(p.get("text", "") for p in _message_parts(data) if p.get("type") == "output_text")


def citations_from_response(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """``url_citation`` annotations as ``{url, title}`` dicts, in order."""
    citations = []
    for part in _message_parts(data):
        for annotation in part.get("annotations") or []:
            if isinstance(annotation, dict) and annotation.get("type") == "url_citation" and annotation.get("url"):
                citations.append({"url": annotation["url"], "title": annotation.get("title")})
    return citations


def generation_from_response(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Reshape web-search calls into tool-result records.

    Each ``web_search_call`` becomes ``{"toolName": "web_search", "result": {"results": [...]}}``
    with the sources the search action returned.
    """
    tool_results = []
    for item in data.get("output") or []:
        if not isinstance(item, dict) or item.get("type") != "web_search_call":
            continue
        action = item.get("action") or {}
        sources = action.get("sources") or []
        tool_results.append({
            "toolCallId": item.get("id"),
            "toolName": "web_search",
            "args": {"query": action.get("query")},
            "result": {"results": [s for s in sources if isinstance(s, dict)]},
        })
    return {"text": response_text(data), "toolResults": tool_results}
