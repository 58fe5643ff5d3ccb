from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, ValidationError, field_validator
from typing import Optional

http_url_adapter = TypeAdapter(HttpUrl)


class EncodeRequest(BaseModel):
    url: str = Field(..., description="The original URL to be shortened")

    @field_validator("url")
    @classmethod
    def check_http_url(cls, value: str) -> str:
        """
        Accept http(s) URLs with a host.

        HttpUrl does the parsing, but its normalized form is discarded:
        the value is returned byte-exact so duplicate detection sees the
        URL exactly as the client sent it.
        """
        if not value:
            raise ValueError("URL parameter is required")
        # HttpUrl silently strips surrounding whitespace
        if value != value.strip():
            raise ValueError("Invalid URL format")
        try:
            parsed = http_url_adapter.validate_python(value)
        except ValidationError:
            raise ValueError("Invalid URL format - must be a valid HTTP or HTTPS URL")
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ValueError("Invalid URL format - must be a valid HTTP or HTTPS URL")
        return value


class EncodeResponse(BaseModel):
    original_url: str
    short_url: str
    short_code: str


class DecodeResponse(BaseModel):
    short_code: str
    original_url: str
    short_url: str


class HealthResponse(BaseModel):
    status: str
    message: str
    store: str
    environment: str
    port: int
    timestamp: str
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
