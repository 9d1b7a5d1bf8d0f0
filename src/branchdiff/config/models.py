"""Settings schema for branchdiff."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

DiffView = Literal["split", "inline"]


class AppearanceSettings(BaseModel):
    theme: str = Field(default="textual-dark", description="Textual theme name")


class DiffSettings(BaseModel):
    default_branch: str = Field(default="main")
    fallback_branch: str = Field(default="master")
    view: DiffView = Field(default="split")
    inline_editing: bool = Field(default=False)
    context_lines: int = Field(default=3, ge=0, le=100)

    @field_validator("default_branch", "fallback_branch")
    @classmethod
    def validate_branch(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("branch name must not be empty")
        return stripped


class GitSettings(BaseModel):
    executable: str = Field(default="git")
    timeout_s: float = Field(default=30.0, gt=0)
    fetch_workers: int = Field(default=4, ge=1, le=32)
    max_output_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)


class WatchSettings(BaseModel):
    enabled: bool = Field(default=True)
    debounce_s: float = Field(default=0.5, ge=0.05, le=10.0)


class UpdateSettings(BaseModel):
    check: bool = Field(default=True)


class AppSettings(BaseModel):
    schema_version: int = Field(default=1)
    appearance: AppearanceSettings = Field(default_factory=AppearanceSettings)
    diff: DiffSettings = Field(default_factory=DiffSettings)
    git: GitSettings = Field(default_factory=GitSettings)
    watch: WatchSettings = Field(default_factory=WatchSettings)
    updates: UpdateSettings = Field(default_factory=UpdateSettings)

    def setting_items(self) -> list[tuple[str, str]]:
        """Flatten key/value pairs for the ``branchdiff settings`` listing."""

        result: list[tuple[str, str]] = []

        def walk(prefix: str, value: object) -> None:
            if isinstance(value, BaseModel):
                for key in type(value).model_fields:
                    walk(f"{prefix}.{key}" if prefix else key, getattr(value, key))
            else:
                result.append((prefix, str(value)))

        walk("", self)
        return result
