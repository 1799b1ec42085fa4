from __future__ import annotations

import logging
from typing import Dict, Optional

import google.generativeai as genai
from google.generativeai import types as genai_types

from .config import Settings
from .errors import ConfigurationError, UpstreamError

logger = logging.getLogger("filmchat.gemini")

DEFAULT_SAFETY_SETTINGS = [
    {
        "category": genai_types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        "threshold": genai_types.HarmBlockThreshold.BLOCK_ONLY_HIGH,
    },
    {
        "category": genai_types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        "threshold": genai_types.HarmBlockThreshold.BLOCK_ONLY_HIGH,
    },
    {
        "category": genai_types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
        "threshold": genai_types.HarmBlockThreshold.BLOCK_ONLY_HIGH,
    },
    {
        "category": genai_types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
        "threshold": genai_types.HarmBlockThreshold.BLOCK_ONLY_HIGH,
    },
]


class GeminiClient:
    """Thin wrapper around the Gemini SDK with model caching and a request deadline."""

    def __init__(self, settings: Settings) -> None:
        """Purpose: Configure the Gemini SDK when an API key is present.
        Inputs/Outputs: Input is Settings; no return value.
        Side Effects / State: Configures the SDK global API key and caches the default model.
        Dependencies: Uses google.generativeai and Settings from config.
        Failure Modes: None at init; a missing key leaves the client unconfigured and
            complete() raises ConfigurationError.
        If Removed: The generative tier cannot run and every reply comes from fallbacks.
        Testing Notes: Empty GEMINI_API_KEY must report configured == False.
        """
        # Configure API key and seed the model cache only when credentials exist.
        self._settings = settings
        self._timeout = settings.gemini_timeout_sec
        self._models: Dict[str, genai.GenerativeModel] = {}
        self._default_model = _normalize_model_name(settings.gemini_model)
        self._configured = bool(settings.gemini_api_key)
        if self._configured:
            genai.configure(api_key=settings.gemini_api_key)

    @property
    def configured(self) -> bool:
        return self._configured

    def _model(self, model: Optional[str], system_instruction: Optional[str]) -> genai.GenerativeModel:
        # System instructions bind at construction; only instruction-free models are cached.
        model_name = _normalize_model_name(model) if model else self._default_model
        if not model_name:
            raise ConfigurationError("Gemini model name is required")
        if system_instruction:
            return genai.GenerativeModel(model_name, system_instruction=system_instruction)
        if model_name not in self._models:
            self._models[model_name] = genai.GenerativeModel(model_name)
        return self._models[model_name]

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float = 0.7,
        max_tokens: int = 300,
        model: Optional[str] = None,
    ) -> str:
        """Purpose: Generate one reply for a system prompt plus a user message.
        Inputs/Outputs: Inputs are prompts and sampling limits; output is stripped text.
        Side Effects / State: One outbound request bounded by the configured timeout.
        Dependencies: Uses genai.GenerativeModel.generate_content.
        Failure Modes: ConfigurationError when no API key is set; UpstreamError for quota,
            network, safety-block, or SDK errors.
        If Removed: The generative tier of the response cascade stops working.
        Testing Notes: Replace with a fake exposing the same signature in pipeline tests.
        """
        if not self._configured:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        generative_model = self._model(model, system_prompt)
        try:
            response = generative_model.generate_content(
                user_message,
                generation_config={
                    "temperature": temperature,
                    "max_output_tokens": max_tokens,
                },
                safety_settings=DEFAULT_SAFETY_SETTINGS,
                request_options={"timeout": self._timeout},
            )
            text: Optional[str] = getattr(response, "text", None)
        except Exception as exc:
            # The SDK raises google.api_core and ValueError subclasses for blocked/empty candidates.
            raise UpstreamError(f"Gemini request failed: {exc}") from exc
        return (text or "").strip()


def _normalize_model_name(name: Optional[str]) -> str:
    """Purpose: Normalize model names by stripping prefix and whitespace.
    Inputs/Outputs: Input is a model name string; output is normalized name.
    Side Effects / State: None.
    Dependencies: None; used by GeminiClient.
    Failure Modes: Returns empty string for falsy input.
    If Removed: Model caching and selection may use invalid names and fail.
    Testing Notes: Ensure "models/foo" becomes "foo" and whitespace is trimmed.
    """
    # Strip "models/" prefix and whitespace.
    if not name:
        return ""
    cleaned = name.strip()
    if cleaned.startswith("models/"):
        return cleaned.split("/", 1)[1]
    return cleaned
