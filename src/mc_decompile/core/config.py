from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogFormat = Literal["json", "console"]
Side = Literal["server", "client"]
MappingsKind = Literal["direct", "chained"]

MOJANG_MANIFEST_URL = (
    "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json"
)
FABRIC_META_URL = "https://meta.fabricmc.net"
FABRIC_MAVEN_URL = "https://maven.fabricmc.net"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MC_DECOMPILE_",
        env_file=".env",
        extra="ignore",
    )

    workspace_root: Path = Field(default=Path("workspaces"))
    side: Side = Field(default="server")
    mappings: MappingsKind = Field(default="direct")

    manifest_url: str = Field(default=MOJANG_MANIFEST_URL)
    fabric_meta_url: str = Field(default=FABRIC_META_URL)
    fabric_maven_url: str = Field(default=FABRIC_MAVEN_URL)

    java_bin: str = Field(default="java")
    tools_dir: Path = Field(default=Path("tools"))
    remapper_jar: Optional[Path] = None
    decompiler_jar: Optional[Path] = None
    remapper_args: list[str] = Field(default_factory=list)
    decompiler_args: list[str] = Field(default_factory=list)
    tool_timeout_s: Optional[float] = None

    http_max_attempts: int = Field(default=1, ge=1)
    http_timeout_s: float = Field(default=60.0, gt=0)
    library_workers: int = Field(default=8, ge=1)

    log_level: str = Field(default="INFO")
    log_format: LogFormat = Field(default="console")

    @model_validator(mode="after")
    def _default_tool_paths(self) -> "Settings":
        if self.remapper_jar is None:
            self.remapper_jar = self.tools_dir / "tiny-remapper" / "tiny-remapper.jar"
        if self.decompiler_jar is None:
            self.decompiler_jar = self.tools_dir / "forgeflower" / "forgeflower.jar"
        return self


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return Settings()
