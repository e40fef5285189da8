from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

CassetteMode = Literal["record", "replay", "passthrough", "auto"]
CASSETTE_MODES: tuple[str, ...] = ("record", "replay", "passthrough", "auto")


class CassetteConfig(BaseModel):
    cassette_path: str
    mode: CassetteMode = "record"

    model_config = ConfigDict(extra="forbid")

    @field_validator("cassette_path")
    @classmethod
    def _validate_path(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("cassette_path must not be empty")
        return value
