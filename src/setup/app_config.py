import httpx
import inject

from src.dayreport.application.broadcaster import TaskEventBroadcaster
from src.dayreport.application.fetcher import SourceFetcher
from src.dayreport.application.notifications import NotificationBus
from src.dayreport.application.quota import QuotaLedger
from src.dayreport.application.registry import TaskRegistry
from src.dayreport.application.renderer import ArtifactRenderer
from src.dayreport.domain.repositories import (
    ArtifactRepository,
    FileRevealer,
    QuotaRepository,
)
from src.dayreport.infrastructure.filesystem import (
    JsonQuotaStore,
    LocalArtifactStore,
    SystemFileRevealer,
)
from src.dayreport.infrastructure.rendering.docx_renderer import DocxReportRenderer
from src.setup.pipeline_config import PipelineSettings, get_pipeline_settings


def build_http_client(settings: PipelineSettings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.REQUEST_TIMEOUT_SEC),
        follow_redirects=False,
    )


def _binder_config(settings: PipelineSettings):
    def _config(binder: inject.Binder) -> None:
        artifacts = LocalArtifactStore(settings.DATA_ROOT)
        quota_store = JsonQuotaStore(settings.quota_file)
        ledger = QuotaLedger(
            quota_store,
            daily_limit=settings.MAX_ARTIFACTS_PER_DAY,
            max_artifact_bytes=settings.MAX_ARTIFACT_BYTES,
        )
        fetcher = SourceFetcher(
            build_http_client(settings),
            page_size=settings.PAGE_SIZE,
            pause_every_pages=settings.PAUSE_EVERY_PAGES,
            pause_seconds=settings.PAUSE_SECONDS,
        )
        renderer = DocxReportRenderer()
        bus = NotificationBus()

        binder.bind(PipelineSettings, settings)
        binder.bind(ArtifactRepository, artifacts)
        binder.bind(QuotaRepository, quota_store)
        binder.bind(QuotaLedger, ledger)
        binder.bind(SourceFetcher, fetcher)
        binder.bind(ArtifactRenderer, renderer)
        binder.bind(NotificationBus, bus)
        binder.bind(TaskEventBroadcaster, bus)
        binder.bind(FileRevealer, SystemFileRevealer(settings.DATA_ROOT))
        binder.bind(
            TaskRegistry,
            TaskRegistry(
                fetcher=fetcher,
                ledger=ledger,
                renderer=renderer,
                artifacts=artifacts,
                broadcaster=bus,
            ),
        )

    return _config


def configure_di(settings: PipelineSettings | None = None) -> None:
    """Bind the pipeline collaborators into the DI container once per process."""
    if inject.is_configured():
        return
    inject.configure(_binder_config(settings or get_pipeline_settings()))
