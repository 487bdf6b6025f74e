import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from storygraph.modules.story_data.constants import DEFAULT_START_NODE_ID

DEFAULT_MAX_ASSET_BYTES = 5 * 1024 * 1024
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    app_name: str = "storygraph"
    env: str = "dev"
    log_level: str = "INFO"

    data_csv_dir: Path = Path("data/csv")
    compiled_dir: Path = Path("data/compiled")
    draft_file_name: str = ".authoring-draft.json"

    story_start_node_ids: list[str] = Field(default_factory=lambda: [DEFAULT_START_NODE_ID])
    dead_end_allowlist: list[str] = Field(default_factory=list)

    lint_max_warnings: int | None = None
    package_max_asset_bytes: int = DEFAULT_MAX_ASSET_BYTES

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def configure_logging(level: str | None = None) -> None:
    resolved = str(level or settings.log_level or "INFO").strip().upper()
    logging.basicConfig(level=getattr(logging, resolved, logging.INFO), format=LOG_FORMAT)


settings = Settings()
