from typing import Literal

from pydantic import BaseModel, Field


class ImagePrompt(BaseModel):
    image_name: str = Field(min_length=1)
    prompt: str = Field(min_length=1)


class UnitDraft(BaseModel):
    """Envelope decoded from a unit generation response."""

    unit_name: str = Field(min_length=1)
    ini_content: str = Field(min_length=1)
    image_prompts: list[ImagePrompt] = []
    sound_file_names: list[str] = []


class Attachment(BaseModel):
    """An inline binary attachment, carried as a data URL."""

    data_url: str
    mime_type: str


class ValidationResult(BaseModel):
    is_valid: bool
    error: str | None = None
    error_kind: Literal["empty", "syntax", "structure"] | None = None
    line: int | None = None


class ClosureReport(BaseModel):
    dangling_images: list[str] = []
    orphan_images: list[str] = []
    dangling_sounds: list[str] = []
    orphan_sounds: list[str] = []

    @property
    def closed(self) -> bool:
        return not (self.dangling_images or self.orphan_images or self.dangling_sounds or self.orphan_sounds)


class UnitValidationResponse(BaseModel):
    unit_name: str
    syntax: ValidationResult
    closure: ClosureReport
    closed: bool
