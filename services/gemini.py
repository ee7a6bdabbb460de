"""Minimal Gemini ``generateContent`` client returning a parsed JSON object."""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests


@dataclass
class GeminiError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def generate_json(
    api_key: str,
    base_url: str,
    model: str,
    prompt: str,
    temperature: float = 0.2,
    max_output_tokens: int = 1024,
    retries: int = 2,
    timeout_seconds: int = 30,
    session: Optional[requests.Session] = None,
) -> Dict[str, Any]:
    """Call Gemini generateContent with responseMimeType=application/json and parse the reply.

    Retries 5xx and transport errors with a linear backoff; 4xx fail immediately.
    """
    if not api_key:
        raise GeminiError("Missing API key")
    if not model:
        raise GeminiError("Missing model")
    if not prompt:
        raise GeminiError("Missing prompt")

    base = (base_url or "").rstrip("/")
    if base.endswith("/v1beta"):
        url = f"{base}/models/{model}:generateContent"
    else:
        url = f"{base}/v1beta/models/{model}:generateContent"

    payload: Dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": float(temperature),
            "maxOutputTokens": int(max_output_tokens),
            "responseMimeType": "application/json",
        },
    }

    http = session or requests
    last_err: Optional[str] = None
    for attempt in range(retries + 1):
        try:
            r = http.post(
                url,
                json=payload,
                headers={"x-goog-api-key": api_key},
                timeout=timeout_seconds,
            )
        except requests.RequestException as e:
            last_err = str(e)
            if attempt < retries:
                time.sleep(1.5 * (attempt + 1))
                continue
            raise GeminiError(f"Failed to call Gemini: {last_err}") from e

        if r.status_code != 200:
            last_err = f"HTTP {r.status_code}: {r.text[:200]}"
            if 500 <= r.status_code < 600 and attempt < retries:
                time.sleep(1.5 * (attempt + 1))
                continue
            raise GeminiError(last_err)

        try:
            data = r.json()
        except ValueError as e:
            raise GeminiError(f"Gemini returned a non-JSON body: {e}") from e
        if not isinstance(data, dict):
            raise GeminiError("Gemini returned an unexpected body")
        return _extract_json(data)

    raise GeminiError(f"Failed to call Gemini: {last_err}")


def _extract_json(data: Dict[str, Any]) -> Dict[str, Any]:
    # Expected: candidates[0].content.parts[0].text
    candidates = data.get("candidates") or []
    if not candidates:
        raise GeminiError("No candidates in response")
    content = (candidates[0] or {}).get("content") or {}
    parts = content.get("parts") or []
    if not parts or "text" not in parts[0]:
        raise GeminiError("No text in response")

    text = _FENCE_RE.sub("", str(parts[0]["text"]).strip())
    try:
        parsed = json.loads(text)
    except ValueError as e:
        raise GeminiError(f"Response was not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise GeminiError("Response JSON was not an object")
    return parsed
