"""Request model for game analysis submissions."""

from pydantic import BaseModel, Field, field_validator


class AnalysisRequest(BaseModel):
    """Payload describing one game to analyze."""

    pgn: str = Field(min_length=1)
    depth: int | None = Field(default=None, ge=1, le=99)

    @field_validator("pgn")
    @classmethod
    def _require_moves_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("pgn must not be blank")
        return stripped
