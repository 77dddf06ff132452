import asyncio
from typing import Optional

import pytest

from oraculum.ai import GenerationClient
from oraculum.artifact import ImageArtifact
from oraculum.models import Reading

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-card"
EDITED_BYTES = b"\x89PNG\r\n\x1a\nedited-card"

SOLEIL = Reading(
    name="Le Soleil",
    visualDescription="Un enfant sur un cheval blanc sous un soleil radieux.",
    meaning="Joie, succès et vitalité.",
    spiritualMessage="Laisse ta lumière intérieure rayonner aujourd'hui.",
)


class FakeClient(GenerationClient):
    """Scripted stand-in for the remote service.

    Set `*_error` to make a call fail, or `hold` to an asyncio.Event to keep
    calls in flight until the test releases them.
    """

    def __init__(self):
        super().__init__("test-key", "fake-text", "fake-image")
        self.reading: Reading = SOLEIL
        self.image = ImageArtifact(PNG_BYTES, "image/png")
        self.edited = ImageArtifact(EDITED_BYTES, "image/png")
        self.reading_error: Optional[Exception] = None
        self.image_error: Optional[Exception] = None
        self.edit_error: Optional[Exception] = None
        self.hold: Optional[asyncio.Event] = None
        self.calls = []
        self.session = None
        self.seen_states = []

    async def _enter(self, *call):
        self.calls.append(call)
        if self.session is not None:
            self.seen_states.append(self.session.state)
        if self.hold is not None:
            await self.hold.wait()

    async def generate_reading(self) -> Reading:
        await self._enter("reading")
        if self.reading_error:
            raise self.reading_error
        return self.reading

    async def generate_image(self, description: str, name: str) -> ImageArtifact:
        await self._enter("image", description, name)
        if self.image_error:
            raise self.image_error
        return self.image

    async def edit_image(self, artifact: ImageArtifact, instruction: str) -> ImageArtifact:
        await self._enter("edit", artifact, instruction)
        if self.edit_error:
            raise self.edit_error
        return self.edited


@pytest.fixture
def fake_client():
    return FakeClient()
