"""Encoded card images and their data-URI form."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Optional

DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class ImageArtifact:
    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE

    def __repr__(self) -> str:
        return f"ImageArtifact(mime_type={self.mime_type!r}, size={len(self.data)})"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    @classmethod
    def from_base64(cls, payload: str, mime_type: Optional[str] = None) -> "ImageArtifact":
        return cls(data=base64.b64decode(payload), mime_type=mime_type or DEFAULT_MIME_TYPE)

    @classmethod
    def from_data_uri(cls, uri: str) -> "ImageArtifact":
        """
        Decode `data:<mime>;base64,<payload>`.

        A bare base64 payload without the `data:` header is accepted too and
        is assumed to be PNG.
        """
        if not uri.startswith("data:") or "," not in uri:
            return cls.from_base64(uri)

        header, payload = uri.split(",", 1)
        mime_type = header[len("data:"):].split(";", 1)[0]
        return cls.from_base64(payload, mime_type)
