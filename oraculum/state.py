"""
Card session state machine.

The state is a single tagged value, one of:

    Idle          nothing shown, or a reading kept after its image failed
    Drawing       reading + image requests in flight
    Viewing       reading and image shown, editable
    EditingImage  an edit request is in flight for the shown image

Only one draw or edit may be in flight per session. All checks happen before
the first `await`, so on a single event loop a second request always sees the
busy state left by the first and becomes a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

from .ai import GenerationClient
from .artifact import ImageArtifact
from .errors import EDIT_FAILURE_PREFIX, GenerationError, StateError, TransportError
from .models import Reading, StateView

log = logging.getLogger("oraculum.state")


@dataclass(frozen=True)
class Idle:
    reading: Optional[Reading] = None  # kept when only the image step failed
    error: Optional[StateError] = None


@dataclass(frozen=True)
class Drawing:
    reading: Optional[Reading] = None


@dataclass(frozen=True)
class Viewing:
    reading: Reading
    image: ImageArtifact
    edit_prompt: str = ""
    error: Optional[StateError] = None


@dataclass(frozen=True)
class EditingImage:
    reading: Reading
    image: ImageArtifact
    pending_prompt: str


CardState = Union[Idle, Drawing, Viewing, EditingImage]

MODES = {
    Idle: "idle",
    Drawing: "drawing",
    Viewing: "viewing",
    EditingImage: "viewing",  # the edit in flight shows as is_editing_image
}


def _as_generation_error(exc: Exception) -> GenerationError:
    if isinstance(exc, GenerationError):
        return exc
    log.exception("Unexpected failure in generation client")
    return TransportError()


class TarotSession:
    def __init__(self, client: GenerationClient):
        self.client = client
        self.state: CardState = Idle()

    @property
    def busy(self) -> bool:
        return isinstance(self.state, (Drawing, EditingImage))

    @property
    def reading(self) -> Optional[Reading]:
        return self.state.reading

    @property
    def image(self) -> Optional[ImageArtifact]:
        return getattr(self.state, "image", None)

    @property
    def error(self) -> Optional[StateError]:
        return getattr(self.state, "error", None)

    # -------------------------------------------------------------------
    # DRAW
    # -------------------------------------------------------------------

    async def request_draw(self) -> bool:
        """
        Draw a new card: fetch a reading, then its image.

        Returns False without touching the state if a draw or edit is
        already in flight. Failures end in `Idle` with the error set; a
        reading fetched before the image step failed is kept.
        """
        if self.busy:
            return False

        self.state = Drawing()
        log.info("Draw started")
        await self._run_draw(None)
        return True

    async def retry_image(self) -> bool:
        """Re-run only the image step for a reading kept after a failed draw."""
        state = self.state
        if not isinstance(state, Idle) or state.reading is None:
            return False

        self.state = Drawing(reading=state.reading)
        log.info("Image retry for %s", state.reading.name)
        await self._run_draw(state.reading)
        return True

    async def _run_draw(self, reading: Optional[Reading]) -> None:
        try:
            if reading is None:
                reading = await self.client.generate_reading()
                self.state = Drawing(reading=reading)
            image = await self.client.generate_image(reading.visual_description, reading.name)
        except Exception as e:
            error = _as_generation_error(e)
            log.warning("Draw failed (%s): %s", error.kind.value, error.message)
            self.state = Idle(reading=reading, error=StateError.from_exception(error))
        else:
            self.state = Viewing(reading=reading, image=image)
            log.info("Draw completed: %s", reading.name)
        finally:
            # Cancelled mid-flight: leave the busy state anyway.
            if isinstance(self.state, Drawing):
                self.state = Idle(reading=self.state.reading)

    # -------------------------------------------------------------------
    # EDIT
    # -------------------------------------------------------------------

    def set_edit_prompt(self, text: str) -> bool:
        state = self.state
        if not isinstance(state, Viewing):
            return False
        self.state = replace(state, edit_prompt=text)
        return True

    async def request_edit(self, prompt_text: Optional[str] = None) -> bool:
        """
        Edit the shown image with a free-text instruction.

        Uses `prompt_text` or, when omitted, the stored draft. No-op unless an
        image is shown, nothing is in flight and the instruction is not blank.
        """
        state = self.state
        if not isinstance(state, Viewing):
            return False
        text = state.edit_prompt if prompt_text is None else prompt_text
        instruction = text.strip()
        if not instruction:
            return False

        self.state = EditingImage(reading=state.reading, image=state.image, pending_prompt=text)
        try:
            image = await self.client.edit_image(state.image, instruction)
        except Exception as e:
            error = _as_generation_error(e)
            log.warning("Edit failed (%s): %s", error.kind.value, error.message)
            self.state = Viewing(
                reading=state.reading,
                image=state.image,
                edit_prompt=text,
                error=StateError.from_exception(error, prefix=EDIT_FAILURE_PREFIX),
            )
        else:
            self.state = Viewing(reading=state.reading, image=image)
            log.info("Edit applied to %s", state.reading.name)
        finally:
            if isinstance(self.state, EditingImage):
                self.state = Viewing(reading=state.reading, image=state.image, edit_prompt=text)
        return True

    # -------------------------------------------------------------------
    # VIEW
    # -------------------------------------------------------------------

    @property
    def mode(self) -> str:
        return MODES[type(self.state)]

    def snapshot(self) -> StateView:
        state = self.state
        error = self.error
        image = self.image
        if isinstance(state, Viewing):
            draft = state.edit_prompt
        elif isinstance(state, EditingImage):
            draft = state.pending_prompt
        else:
            draft = ""

        return StateView(
            mode=self.mode,
            reading=state.reading,
            image=image.to_data_uri() if image else None,
            error=error.message if error else None,
            error_kind=error.kind.value if error else None,
            is_loading=isinstance(state, Drawing),
            is_editing_image=isinstance(state, EditingImage),
            edit_prompt=draft,
            can_retry_image=isinstance(state, Idle) and state.reading is not None,
        )
