from pydantic import BaseModel, HttpUrl, Field, ConfigDict, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime

_http_url = TypeAdapter(HttpUrl)


class CamelModel(BaseModel):
    """JSON uses camelCase; Python code uses snake_case"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShortenRequest(CamelModel):
    long_url: str = Field(..., description="The original URL to be shortened")
    custom_alias: Optional[str] = Field(
        None, description="4-20 letters, digits, '-' or '_'; generated when omitted"
    )
    topic: Optional[str] = Field(None, description="Grouping label for topic analytics")

    @field_validator("long_url")
    @classmethod
    def check_long_url(cls, value: str) -> str:
        """Must parse as an http(s) URL; kept exactly as sent"""
        try:
            _http_url.validate_python(value)
        except ValueError as e:
            raise ValueError(f"Invalid URL: {value}") from e
        return value


class ShortLinkResponse(CamelModel):
    short_url: str
    long_url: str
    alias: str
    topic: Optional[str] = None
    created_at: Optional[datetime] = None
