from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal

Mode = Literal["idle", "drawing", "viewing", "editing"]

class Reading(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    visual_description: str = Field(validation_alias="visualDescription")
    meaning: str
    spiritual_message: str = Field(validation_alias="spiritualMessage")

class StateView(BaseModel):
    mode: Mode
    reading: Optional[Reading] = None
    image: Optional[str] = None  # data URI
    error: Optional[str] = None
    error_kind: Optional[str] = None
    is_loading: bool = False
    is_editing_image: bool = False
    edit_prompt: str = ""
    can_retry_image: bool = False

class EditRequest(BaseModel):
    prompt: Optional[str] = Field(None, max_length=2000)  # falls back to the stored draft

class EditPromptRequest(BaseModel):
    text: str = Field("", max_length=2000)

class ShareResponse(BaseModel):
    title: str
    text: str
    file_name: str
    image_url: str
    fallback_url: str
