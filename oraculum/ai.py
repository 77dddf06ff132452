"""
Remote generation client.

Three stateless operations against a generative-AI service:
- draw a structured tarot reading
- synthesize the card image from the reading's visual description
- edit the current card image from a free-text instruction

Two providers are supported: Google Gemini (default) and OpenAI. Every failure
leaves this module as a `GenerationError` subclass; SDK and network exceptions
are wrapped into `TransportError`.
"""

from __future__ import annotations

import binascii
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, TypeVar

from google import genai
from google.genai import types
from openai import AsyncOpenAI
from pydantic import ValidationError

from .artifact import DEFAULT_MIME_TYPE, ImageArtifact
from .config import DEFAULT_MODELS, Settings
from .errors import (
    CredentialMissing,
    EmptyResponse,
    GenerationError,
    MalformedResponse,
    NoImageProduced,
    TransportError,
)
from .models import Reading
from .prompts import READING_FIELDS, READING_JSON_SCHEMA, READING_PROMPT, edit_prompt, image_prompt

log = logging.getLogger("oraculum.ai")

T = TypeVar("T")

EDIT_FAILED_MESSAGE = "Impossible de modifier l'image."
UNREADABLE_IMAGE_MESSAGE = "Image illisible reçue de l'oracle."


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
    return text.strip()


def parse_reading(text: Optional[str]) -> Reading:
    """Turn the raw model output into a `Reading`."""
    if not text or not text.strip():
        raise EmptyResponse()
    try:
        return Reading.model_validate_json(_strip_fences(text))
    except ValidationError as e:
        log.warning("Reading payload rejected: %s", e.error_count())
        raise MalformedResponse() from e


def decode_image(payload: str, mime_type: Optional[str] = None) -> ImageArtifact:
    try:
        return ImageArtifact.from_base64(payload, mime_type)
    except (binascii.Error, ValueError) as e:
        log.warning("Image payload rejected: %s", e)
        raise MalformedResponse(UNREADABLE_IMAGE_MESSAGE) from e


class GenerationClient(ABC):
    """Base class for providers. Subclasses implement the three operations."""

    def __init__(self, api_key: Optional[str], text_model: str, image_model: str):
        self.api_key = api_key
        self.text_model = text_model
        self.image_model = image_model

    def _require_credential(self) -> str:
        if not self.api_key:
            raise CredentialMissing()
        return self.api_key

    async def _send(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await call()
        except GenerationError:
            raise
        except Exception as e:
            log.warning("%s failed: %s", operation, e)
            raise TransportError(str(e) or None) from e

    @abstractmethod
    async def generate_reading(self) -> Reading:
        ...

    @abstractmethod
    async def generate_image(self, description: str, name: str) -> ImageArtifact:
        ...

    @abstractmethod
    async def edit_image(self, artifact: ImageArtifact, instruction: str) -> ImageArtifact:
        ...

    async def close(self) -> None:
        pass


# -------------------------------------------------------------------
# GEMINI
# -------------------------------------------------------------------

_READING_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={field: types.Schema(type=types.Type.STRING) for field in READING_FIELDS},
    required=list(READING_FIELDS),
)


def first_inline_image(response: Any) -> Optional[ImageArtifact]:
    """Return the first inline image part of the first candidate, if any."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = candidates[0].content
    parts = content.parts if content is not None else None
    for part in parts or []:
        inline = getattr(part, "inline_data", None)
        if inline is None or not inline.data:
            continue
        if isinstance(inline.data, str):
            return decode_image(inline.data, inline.mime_type)
        return ImageArtifact(data=inline.data, mime_type=inline.mime_type or DEFAULT_MIME_TYPE)
    return None


class GeminiClient(GenerationClient):
    def __init__(
        self,
        api_key: Optional[str],
        text_model: str = DEFAULT_MODELS["gemini"][0],
        image_model: str = DEFAULT_MODELS["gemini"][1],
        client: Optional[genai.Client] = None,
    ):
        super().__init__(api_key, text_model, image_model)
        self._client = client

    def _get_client(self) -> genai.Client:
        api_key = self._require_credential()
        if self._client is None:
            self._client = genai.Client(api_key=api_key)
        return self._client

    async def generate_reading(self) -> Reading:
        client = self._get_client()
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=_READING_SCHEMA,
        )
        log.debug("generate_reading model=%s", self.text_model)
        response = await self._send(
            "generate_reading",
            lambda: client.aio.models.generate_content(
                model=self.text_model,
                contents=READING_PROMPT,
                config=config,
            ),
        )
        return parse_reading(response.text)

    async def generate_image(self, description: str, name: str) -> ImageArtifact:
        client = self._get_client()
        prompt = image_prompt(description, name)
        log.debug("generate_image model=%s prompt_chars=%d", self.image_model, len(prompt))
        response = await self._send(
            "generate_image",
            lambda: client.aio.models.generate_content(
                model=self.image_model,
                contents=prompt,
                config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
            ),
        )
        artifact = first_inline_image(response)
        if artifact is None:
            raise NoImageProduced()
        return artifact

    async def edit_image(self, artifact: ImageArtifact, instruction: str) -> ImageArtifact:
        client = self._get_client()
        contents = [
            types.Part.from_bytes(data=artifact.data, mime_type=artifact.mime_type),
            types.Part.from_text(text=edit_prompt(instruction)),
        ]
        log.debug("edit_image model=%s source=%r", self.image_model, artifact)
        response = await self._send(
            "edit_image",
            lambda: client.aio.models.generate_content(
                model=self.image_model,
                contents=contents,
                config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
            ),
        )
        edited = first_inline_image(response)
        if edited is None:
            raise NoImageProduced(EDIT_FAILED_MESSAGE)
        return edited


# -------------------------------------------------------------------
# OPENAI
# -------------------------------------------------------------------

def first_b64_image(response: Any) -> Optional[ImageArtifact]:
    output_format = getattr(response, "output_format", None)
    mime_type = f"image/{output_format}" if output_format else DEFAULT_MIME_TYPE
    for item in getattr(response, "data", None) or []:
        if getattr(item, "b64_json", None):
            return decode_image(item.b64_json, mime_type)
    return None


class OpenAIClient(GenerationClient):
    IMAGE_SIZE = "1024x1536"  # portrait, closest to tarot proportions

    def __init__(
        self,
        api_key: Optional[str],
        text_model: str = DEFAULT_MODELS["openai"][0],
        image_model: str = DEFAULT_MODELS["openai"][1],
        client: Optional[AsyncOpenAI] = None,
    ):
        super().__init__(api_key, text_model, image_model)
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        api_key = self._require_credential()
        if self._client is None:
            self._client = AsyncOpenAI(api_key=api_key)
        return self._client

    async def generate_reading(self) -> Reading:
        client = self._get_client()
        response = await self._send(
            "generate_reading",
            lambda: client.chat.completions.create(
                model=self.text_model,
                messages=[{"role": "user", "content": READING_PROMPT}],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "tarot_reading", "strict": True, "schema": READING_JSON_SCHEMA},
                },
            ),
        )
        choices = response.choices or []
        return parse_reading(choices[0].message.content if choices else None)

    async def generate_image(self, description: str, name: str) -> ImageArtifact:
        client = self._get_client()
        response = await self._send(
            "generate_image",
            lambda: client.images.generate(
                model=self.image_model,
                prompt=image_prompt(description, name),
                size=self.IMAGE_SIZE,
            ),
        )
        artifact = first_b64_image(response)
        if artifact is None:
            raise NoImageProduced()
        return artifact

    async def edit_image(self, artifact: ImageArtifact, instruction: str) -> ImageArtifact:
        client = self._get_client()
        extension = artifact.mime_type.split("/")[-1] or "png"
        response = await self._send(
            "edit_image",
            lambda: client.images.edit(
                model=self.image_model,
                image=(f"card.{extension}", artifact.data, artifact.mime_type),
                prompt=edit_prompt(instruction),
                size=self.IMAGE_SIZE,
            ),
        )
        edited = first_b64_image(response)
        if edited is None:
            raise NoImageProduced(EDIT_FAILED_MESSAGE)
        return edited

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


def create_client(settings: Settings) -> GenerationClient:
    client_class = {
        "gemini": GeminiClient,
        "openai": OpenAIClient,
    }[settings.provider]
    return client_class(
        api_key=settings.api_key,
        text_model=settings.text_model,
        image_model=settings.image_model,
    )
