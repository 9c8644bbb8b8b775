"""Chapter catalog response schema."""

from pydantic import BaseModel, ConfigDict


class ChapterResponse(BaseModel):
    id: int
    title: str
    paper: str

    model_config = ConfigDict(from_attributes=True)
