"""
Text generation through the OpenCode Zen gateway.

Each supported model id maps to one provider binding:
- big-pickle: OpenAI-compatible chat completions
- gemini-3-pro: Google generateContent
"""

import os

import requests

from energy_exec import config
from energy_exec.config import logger


class GenerationError(Exception):
    """The text generator could not produce a reply, for whatever reason."""


def _zen_credentials() -> tuple:
    api_key = os.environ.get("OPENCODE_ZEN_API_KEY")
    base_url = os.environ.get("OPENCODE_ZEN_BASE_URL", config.OPENCODE_ZEN_BASE_URL)
    if not api_key:
        raise GenerationError("OPENCODE_ZEN_API_KEY environment variable is required")
    return api_key, base_url.rstrip("/")


def _post_json(url: str, headers: dict, payload: dict) -> dict:
    try:
        response = requests.post(url, headers=headers, json=payload, timeout=config.GENERATION_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        raise GenerationError(f"Request to {url} failed: {e}") from e

    if not response.ok:
        raise GenerationError(f"Generation API error: {response.status_code} - {response.text[:500]}")

    try:
        return response.json()
    except ValueError as e:
        raise GenerationError(f"Generation API returned invalid JSON: {e}") from e


def openai_compatible_chat(messages: list, model: str) -> str:
    """Call an OpenAI-compatible /chat/completions endpoint."""
    api_key, base_url = _zen_credentials()
    data = _post_json(
        f"{base_url}/chat/completions",
        {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
        {
            "model": model,
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
        },
    )

    choices = data.get("choices") or []
    if not choices:
        raise GenerationError("Response missing choices field")
    content = (choices[0].get("message") or {}).get("content")
    if not content:
        raise GenerationError("Response missing message content")
    return content


def google_generate_content(messages: list, model: str) -> str:
    """Call a Google generateContent endpoint."""
    api_key, base_url = _zen_credentials()

    # Google keeps the system prompt apart and calls the assistant role "model"
    system_parts = [{"text": m["content"]} for m in messages if m["role"] == "system"]
    contents = [
        {
            "role": "model" if m["role"] == "assistant" else "user",
            "parts": [{"text": m["content"]}],
        }
        for m in messages
        if m["role"] != "system"
    ]

    payload = {"contents": contents}
    if system_parts:
        payload["systemInstruction"] = {"parts": system_parts}

    data = _post_json(
        f"{base_url}/models/{model}:generateContent",
        {"x-goog-api-key": api_key, "Content-Type": "application/json"},
        payload,
    )

    candidates = data.get("candidates") or []
    if not candidates:
        raise GenerationError("Response missing candidates field")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts)
    if not text:
        raise GenerationError("Response missing text content")
    return text


PROVIDERS = {
    config.MODEL_BIG_PICKLE: openai_compatible_chat,
    config.MODEL_GEMINI_3_PRO: google_generate_content,
}


def generate_text(messages: list, model: str) -> str:
    """Generate a reply with the provider bound to `model`."""
    provider = PROVIDERS.get(model)
    if provider is None:
        raise GenerationError(f"Unsupported model: {model}")

    logger.info(f"Generating text with {model} ({len(messages)} messages)")
    return provider(messages, model)
