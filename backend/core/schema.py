from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StockMetadata(BaseModel):
    """Title, description, keywords and category for one microstock asset."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    keywords: tuple[str, ...] = Field(min_length=1)
    category: str = Field(min_length=1)

    @field_validator("title", "description", "category", mode="after")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must not be blank")
        return cleaned

    @field_validator("keywords", mode="after")
    @classmethod
    def _clean_keywords(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(keyword.strip() for keyword in value if keyword.strip())
        if not cleaned:
            raise ValueError("at least one keyword is required")
        return cleaned
