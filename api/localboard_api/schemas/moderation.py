from pydantic import BaseModel


class ModerationOutcomeOut(BaseModel):
    kind: str
    listing_id: int
    content_appropriate: bool
    content_reason: str | None = None
    image_appropriate: bool
    image_reason: str | None = None
    approved: bool
    error: bool = False


class ModerationRunOut(BaseModel):
    success: bool = True
    message: str
    processed: int
    approved: int
    rejected: int
    results: list[ModerationOutcomeOut] | None = None
