import time

from pydantic import BaseModel, Field


class Mapping(BaseModel):
    """
    Link between an original URL and its short code.

    This is the exact document persisted in the key-value store:
    {"original_url": ..., "short_code": ..., "access_count": ..., "created_at": ...}
    """

    original_url: str
    short_code: str = Field(..., pattern=r"^[A-Z0-9]+$")
    access_count: int = Field(0, ge=0)
    created_at: int = Field(default_factory=lambda: int(time.time()))  # Unix timestamp

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> "Mapping":
        return cls.model_validate_json(data)

    def accessed(self) -> "Mapping":
        """Copy of this mapping with access_count incremented by one"""
        return self.model_copy(update={"access_count": self.access_count + 1})
