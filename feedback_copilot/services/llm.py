"""
llm.py
------

Defines the **LLM interface layer** for the Feedback Co-Pilot.

Two providers are supported, selected by the prefix of `settings.llm_name`:

- `gemini:<model>` (default): Google Gemini via `google-generativeai`.
- `ollama:<model>`: a local Ollama server via its REST `/api/chat` route.

### Responsibilities
- Turn a `ComposedPrompt` into the provider's request format, with the
  instruction text and the inline image as separate parts.
- Return the generated text exactly as the provider produced it.
- Surface missing credentials as `ConfigurationError` and provider
  failures as `UpstreamError`.

### Configuration
Uses the injected `settings` for:
- `llm_name`
- `gemini_api_key`
- `ollama_host`
"""

import base64
import time

import requests

from .base import ServiceBase
from .prompts import ComposedPrompt
from ..core.errors import ConfigurationError, UpstreamError

GEMINI_KEY_MESSAGE = "Invalid or missing Gemini API key. Please check your .env file."


class BaseChat(ServiceBase):
    """Common interface for generative model clients."""

    def __init__(self, settings=None):
        super().__init__(settings)
        self.llm_name = self.settings.llm_model

    def generate(self, prompt: ComposedPrompt) -> str:
        raise NotImplementedError

    def __call__(self, prompt: ComposedPrompt) -> str:
        return self.generate(prompt)


class GeminiChat(BaseChat):
    """Gemini client; text and vision requests share one `generate_content` call."""

    def __init__(self, settings=None):
        super().__init__(settings)
        self._model = None

    def _get_model(self):
        if self._model is None:
            if not self.settings.gemini_api_key:
                raise ConfigurationError(GEMINI_KEY_MESSAGE)
            import google.generativeai as genai

            genai.configure(api_key=self.settings.gemini_api_key)
            self._model = genai.GenerativeModel(self.llm_name)
        return self._model

    @staticmethod
    def build_contents(prompt: ComposedPrompt) -> list[dict]:
        """Gemini wants raw image bytes, so inline data is decoded here."""
        parts = []
        for part in prompt.parts():
            if "inline_data" in part:
                inline = part["inline_data"]
                part = {"inline_data": {**inline, "data": base64.b64decode(inline["data"])}}
            parts.append(part)
        return [{"role": "user", "parts": parts}]

    def generate(self, prompt: ComposedPrompt) -> str:
        model = self._get_model()
        self.logger.info(
            "Calling %s (%s)", self.llm_name, "vision" if prompt.inline_image else "text"
        )
        response = model.generate_content(self.build_contents(prompt))
        return response.text


class OllamaChat(BaseChat):
    """
    Wrapper for an Ollama-served model.

    Images are passed through the message's `images` list as base64 strings.
    """

    def __init__(self, settings=None, session: requests.Session | None = None):
        super().__init__(settings)
        self.host = self.settings.ollama_host.rstrip("/")
        self.session = session or requests.Session()

    def build_messages(self, prompt: ComposedPrompt) -> list[dict]:
        message = {"role": "user", "content": prompt.instruction_text}
        if prompt.inline_image is not None:
            message["images"] = [prompt.inline_image.data]
        return [message]

    def generate(self, prompt: ComposedPrompt) -> str:
        body = {"model": self.llm_name, "messages": self.build_messages(prompt), "stream": False}
        try:
            r = self.session.post(f"{self.host}/api/chat", json=body, timeout=600)
        except requests.RequestException as e:
            raise UpstreamError(f"Ollama request failed: {e}") from e

        if r.status_code >= 400:
            raise UpstreamError(f"Ollama backend error {r.status_code}: {r.text[:200]}")

        data = r.json()
        message = data.get("message") or {}
        return message.get("content", "")

    # ---------- Model availability ----------
    def ensure_model(self, client=None, max_retries: int = 3, retry_delay: float = 2.0) -> bool:
        """
        Make sure the model is present on the Ollama server, pulling it if not.

        Returns:
            bool: True when the model is available after the call.
        """
        import ollama

        client = client or ollama.Client(host=self.host)
        listed = client.list()
        models = listed.get("models", []) if isinstance(listed, dict) else getattr(listed, "models", [])
        names = [m.get("model") if isinstance(m, dict) else getattr(m, "model", None) for m in models]
        if self.llm_name in names:
            self.logger.info("Model %s is available on the server", self.llm_name)
            return True

        for attempt in range(1, max_retries + 1):
            try:
                self.logger.info("Pulling %s (attempt %d/%d)", self.llm_name, attempt, max_retries)
                client.pull(self.llm_name)
                return True
            except Exception as e:
                self.logger.warning("Pull attempt %d failed: %s", attempt, e)
                if attempt < max_retries:
                    time.sleep(retry_delay)

        self.logger.error("Failed to pull %s after %d attempts", self.llm_name, max_retries)
        return False


def build_llm(settings) -> BaseChat:
    """Pick the model client from the `llm_name` provider prefix."""
    if settings.llm_provider == "ollama":
        return OllamaChat(settings)
    if settings.llm_provider == "gemini":
        return GeminiChat(settings)
    raise ConfigurationError(f"Unknown LLM provider in LLM_NAME: {settings.llm_name}")
