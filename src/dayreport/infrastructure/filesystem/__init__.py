from src.dayreport.infrastructure.filesystem.artifact_store import LocalArtifactStore
from src.dayreport.infrastructure.filesystem.quota_store import JsonQuotaStore
from src.dayreport.infrastructure.filesystem.reveal import SystemFileRevealer

__all__ = [
    "JsonQuotaStore",
    "LocalArtifactStore",
    "SystemFileRevealer",
]
