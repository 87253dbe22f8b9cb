from pathlib import Path

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

_DEFAULT_HOME = Path.home() / ".dayreport"


class PipelineSettings(BaseSettings):
    """Limits and locations used by the report pipeline."""
    DATA_ROOT: Path = _DEFAULT_HOME / "dataZip"
    CONFIG_ROOT: Path = _DEFAULT_HOME
    PAGE_SIZE: int = 100
    PAUSE_EVERY_PAGES: int = 10
    PAUSE_SECONDS: float = 0.1
    REQUEST_TIMEOUT_SEC: float = 30.0
    MAX_ARTIFACTS_PER_DAY: int = 120
    MAX_ARTIFACT_BYTES: int = 200 * 1024 * 1024

    model_config = ConfigDict(env_file=".env", extra="ignore")

    @property
    def quota_file(self) -> Path:
        return self.CONFIG_ROOT / "file-counter.json"


def get_pipeline_settings() -> PipelineSettings:
    """Return a fresh pipeline settings instance."""
    return PipelineSettings()
