"""
Unified LLM client with fallback support.
Priority: Gemini → OpenRouter → Ollama
All API keys read from environment / config (no secrets in code).
"""

from typing import Any, Dict, List, Optional

import ollama
import requests

from shorts_maker import config
from shorts_maker.domain.errors import PermanentServiceError, ServiceError, TransientServiceError
from shorts_maker.logging_config import get_logger

logger = get_logger(__name__)

RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


def _http_error(provider: str, response: requests.Response) -> ServiceError:
    detail = response.text[:300] if response.text else response.reason
    message = f"{provider} returned status {response.status_code}: {detail}"
    if response.status_code in RETRYABLE_STATUS:
        return TransientServiceError(message, service=provider)
    return PermanentServiceError(message, service=provider)


class LLMClient:
    """Unified LLM client with fallback support"""

    def __init__(
        self,
        gemini_api_key: Optional[str] = None,
        openrouter_api_key: Optional[str] = None,
        use_ollama: Optional[bool] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 60,
    ):
        self.gemini_config = {
            "model": config.GEMINI_MODEL,
            "temperature": 0.7,
            "api_key": config.GEMINI_API_KEY if gemini_api_key is None else gemini_api_key,
            "base_url": "https://generativelanguage.googleapis.com/v1beta/models",
        }
        self.openrouter_config = {
            "model": config.OPENROUTER_MODEL,
            "temperature": 0.7,
            "api_key": config.OPENROUTER_API_KEY if openrouter_api_key is None else openrouter_api_key,
            "base_url": "https://openrouter.ai/api/v1",
        }
        self.ollama_config = {
            "base_url": config.OLLAMA_BASE_URL,
            "model": config.OLLAMA_MODEL,
        }
        self.use_ollama = config.USE_OLLAMA_FALLBACK if use_ollama is None else use_ollama
        self.session = session or requests.Session()
        self.timeout = timeout
        self.current_provider: Optional[str] = None

    @property
    def providers(self) -> List[str]:
        """Configured providers in priority order. No network probes."""
        providers = []
        if (self.gemini_config["api_key"] or "").strip():
            providers.append("gemini")
        if (self.openrouter_config["api_key"] or "").strip():
            providers.append("openrouter")
        if self.use_ollama:
            providers.append("ollama")
        return providers

    def generate(self, prompt: str, options: Optional[Dict] = None) -> Dict[str, Any]:
        """
        Generate a response, falling through providers in priority order.
        Returns: {"response": str, "provider": str}

        If every provider fails, the last error is raised. It is transient
        when at least one provider failed transiently.
        """
        options = options or {}
        providers = self.providers
        if not providers:
            raise PermanentServiceError("No LLM provider configured", service="llm")

        errors: List[ServiceError] = []
        for provider in providers:
            try:
                text = getattr(self, f"_generate_{provider}")(prompt, options)
            except ServiceError as e:
                logger.warning("⚠️  %s failed: %s", provider, e.message)
                errors.append(e)
                continue
            if not text.strip():
                logger.warning("⚠️  %s returned an empty response", provider)
                errors.append(PermanentServiceError(f"{provider} returned an empty response", service=provider))
                continue
            self.current_provider = provider
            logger.info("✅ Got response from %s (%d characters)", provider, len(text))
            return {"response": text, "provider": provider}

        summary = "; ".join(e.message for e in errors)
        if any(isinstance(e, TransientServiceError) for e in errors):
            raise TransientServiceError(f"All LLM providers failed: {summary}", service="llm")
        raise PermanentServiceError(f"All LLM providers failed: {summary}", service="llm")

    def _post(self, provider: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.session.post(url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            raise TransientServiceError(f"{provider} request timed out", service=provider) from e
        except requests.exceptions.RequestException as e:
            raise TransientServiceError(f"{provider} request failed: {e}", service=provider) from e
        if response.status_code != 200:
            raise _http_error(provider, response)
        try:
            return response.json()
        except ValueError as e:
            raise PermanentServiceError(f"{provider} returned invalid JSON", service=provider) from e

    def _generate_gemini(self, prompt: str, options: Dict) -> str:
        """Generate using the Gemini REST API."""
        url = f"{self.gemini_config['base_url']}/{self.gemini_config['model']}:generateContent"
        data = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": options.get("temperature", self.gemini_config["temperature"]),
                "maxOutputTokens": min(options.get("num_predict", 8192), 16384),
                "responseMimeType": "application/json",
            },
        }
        headers = {
            "x-goog-api-key": self.gemini_config["api_key"],
            "Content-Type": "application/json",
        }
        result = self._post("gemini", url, headers=headers, json=data)

        candidate = (result.get("candidates") or [{}])[0]
        finish_reason = candidate.get("finishReason", "UNKNOWN")
        if finish_reason == "SAFETY":
            raise PermanentServiceError("Gemini response blocked by safety filters", service="gemini")
        if finish_reason == "MAX_TOKENS":
            logger.warning("⚠️  Gemini response hit token limit")
        parts = candidate.get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)

    def _generate_openrouter(self, prompt: str, options: Dict) -> str:
        """Generate using OpenRouter"""
        url = f"{self.openrouter_config['base_url']}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.openrouter_config['api_key']}",
            "Content-Type": "application/json",
        }
        data = {
            "model": self.openrouter_config["model"],
            "messages": [{"role": "user", "content": prompt}],
            "temperature": options.get("temperature", self.openrouter_config["temperature"]),
            "max_tokens": min(options.get("num_predict", 2048), 4096),
        }
        result = self._post("openrouter", url, headers=headers, json=data)
        return (result.get("choices") or [{}])[0].get("message", {}).get("content") or ""

    def _generate_ollama(self, prompt: str, options: Dict) -> str:
        """Generate using Ollama"""
        client = ollama.Client(host=self.ollama_config["base_url"])
        try:
            response = client.generate(
                model=self.ollama_config["model"],
                prompt=prompt,
                format="json",
                options={
                    "temperature": options.get("temperature", 0.7),
                    "num_predict": options.get("num_predict", 2048),
                },
            )
        except ollama.ResponseError as e:
            raise PermanentServiceError(f"Ollama error: {e.error}", service="ollama") from e
        except (ConnectionError, requests.exceptions.RequestException) as e:
            raise TransientServiceError(f"Ollama unreachable: {e}", service="ollama") from e
        return response.get("response", "") or ""
