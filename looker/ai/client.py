"""Vision client — sends screenshots with a prompt to Claude or an OpenAI-compatible API and returns the raw text reply."""

from __future__ import annotations

import base64
import logging
import os
import time
from pathlib import Path
from typing import Optional, Union

import anthropic
import openai

from looker.models.config import DEFAULT_MODEL, Provider, resolve_provider

logger = logging.getLogger(__name__)

IMAGE_MEDIA_TYPE = "image/png"

API_KEY_ENV = {"claude": "ANTHROPIC_API_KEY", "openai": "OPENAI_API_KEY"}

# A message is an ordered list of screenshots (bytes) and text parts
Part = Union[bytes, str]


def _anthropic_content(parts: list[Part]) -> list[dict]:
    content = []
    for part in parts:
        if isinstance(part, bytes):
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": IMAGE_MEDIA_TYPE,
                    "data": base64.b64encode(part).decode(),
                },
            })
        else:
            content.append({"type": "text", "text": part})
    return content


def _openai_content(parts: list[Part]) -> list[dict]:
    content = []
    for part in parts:
        if isinstance(part, bytes):
            data_url = f"data:{IMAGE_MEDIA_TYPE};base64,{base64.b64encode(part).decode()}"
            content.append({"type": "image_url", "image_url": {"url": data_url}})
        else:
            content.append({"type": "text", "text": part})
    return content


class VisionClient:
    """Async wrapper around the Anthropic Messages API or the OpenAI Chat Completions API for image prompts."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: Optional[str] = None,
        max_tokens: int = 4096,
        debug_dir: Optional[Path] = None,
        provider: Optional[Provider] = None,
        api_url: Optional[str] = None,
    ):
        self.provider = provider or resolve_provider(model)
        env_var = API_KEY_ENV[self.provider]
        api_key = api_key or os.environ.get(env_var)
        if not api_key:
            raise EnvironmentError(
                f"{env_var} not set. Provide it via --api-key or the environment."
            )
        if self.provider == "openai":
            self.client = openai.AsyncOpenAI(api_key=api_key, base_url=api_url, timeout=300.0)
        else:
            self.client = anthropic.AsyncAnthropic(api_key=api_key, base_url=api_url, timeout=300.0)
        self.model = model
        self.max_tokens = max_tokens
        self.debug_dir = debug_dir
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    async def analyze(self, image: bytes, prompt: str) -> str:
        """Send one screenshot and a prompt; return the text response."""
        return await self._send([image, prompt], prompt, label="analyze")

    async def compare(self, images: list[tuple[str, bytes]], prompt: str) -> str:
        """Send labelled screenshots followed by a prompt; return the text response."""
        parts: list[Part] = []
        for name, image in images:
            parts.append(f"--- {name} viewport ---")
            parts.append(image)
        parts.append(prompt)
        return await self._send(parts, prompt, label="compare")

    async def _send(self, parts: list[Part], prompt: str, label: str) -> str:
        self._call_count += 1
        call_number = self._call_count
        logger.debug("Calling vision model (call #%d, %s, %s model=%s)",
                     call_number, label, self.provider, self.model)

        try:
            call_start = time.time()
            if self.provider == "openai":
                text, truncated = await self._create_openai(parts)
            else:
                text, truncated = await self._create_anthropic(parts)
        except (anthropic.APIError, openai.APIError) as e:
            logger.debug("Vision API error on call #%d: %s", call_number, e)
            self._save_exchange_log(call_number, prompt, "", str(e))
            raise

        logger.debug("Vision response #%d received in %.1fs (%d chars)",
                     call_number, time.time() - call_start, len(text))
        if truncated:
            logger.warning("Vision response #%d was truncated at max_tokens=%d",
                           call_number, self.max_tokens)
        self._save_exchange_log(call_number, prompt, text, None)
        return text

    async def _create_anthropic(self, parts: list[Part]) -> tuple[str, bool]:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": _anthropic_content(parts)}],
        )
        text = next((b.text for b in response.content if b.type == "text"), "")
        return text, response.stop_reason == "max_tokens"

    async def _create_openai(self, parts: list[Part]) -> tuple[str, bool]:
        response = await self.client.chat.completions.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": _openai_content(parts)}],
        )
        if not response.choices:
            return "", False
        choice = response.choices[0]
        return choice.message.content or "", choice.finish_reason == "length"

    def _save_exchange_log(
        self, call_number: int, prompt: str, response_text: str, error: str | None,
    ) -> None:
        """Write prompt and response to the debug directory, if one is configured."""
        if self.debug_dir is None:
            return
        try:
            self.debug_dir.mkdir(parents=True, exist_ok=True)
            ts = time.strftime("%Y%m%d_%H%M%S")
            log_file = self.debug_dir / f"vision_call_{ts}_{call_number:03d}.log"
            with open(log_file, "w", encoding="utf-8") as f:
                f.write(f"=== VISION CALL #{call_number} ===\n\n")
                f.write(f"=== PROMPT ({len(prompt)} chars) ===\n{prompt}\n\n")
                f.write(f"=== RESPONSE ({len(response_text)} chars) ===\n")
                f.write(response_text or "(empty)")
                if error:
                    f.write(f"\n\n=== ERROR ===\n{error}\n")
        except OSError as log_err:
            logger.debug("Failed to save vision exchange log: %s", log_err)
