"""Explicitly constructed service graph shared by the API."""

from dataclasses import dataclass

import httpx

from src.config import Settings
from src.services.assets import AssetPipeline, ObjectStorage, PendingAssetRegistry
from src.services.content import PageFetcher
from src.services.enhancement import EnhancementWorkflow
from src.services.extraction import ExtractionCoordinator
from src.services.image_generation import ImageGenerationClient
from src.services.import_service import ImportService
from src.services.llm import ExtractionClient


@dataclass
class Services:
    """Long-lived clients and stateful components, one set per application."""

    http_client: httpx.AsyncClient
    coordinator: ExtractionCoordinator
    pipeline: AssetPipeline
    registry: PendingAssetRegistry
    enhancement: EnhancementWorkflow
    imports: ImportService
    max_image_bytes: int


def build_services(
    settings: Settings,
    http_client: httpx.AsyncClient,
    extraction_client: ExtractionClient | None = None,
    image_client: ImageGenerationClient | None = None,
) -> Services:
    """Wire the service graph. Clients may be passed in to substitute fakes."""
    extraction_client = extraction_client or ExtractionClient.from_settings(settings)
    image_client = image_client or ImageGenerationClient.from_settings(settings)

    storage = ObjectStorage(
        http_client,
        base_url=settings.storage_url,
        bucket=settings.storage_bucket,
        service_key=settings.storage_service_key,
    )
    pipeline = AssetPipeline(storage, http_client, max_bytes=settings.max_image_bytes)
    registry = PendingAssetRegistry(ttl_seconds=settings.pending_asset_ttl_seconds)
    coordinator = ExtractionCoordinator(
        extraction_client,
        PageFetcher(http_client, settings.page_max_bytes, settings.page_max_chars),
    )
    return Services(
        http_client=http_client,
        coordinator=coordinator,
        pipeline=pipeline,
        registry=registry,
        enhancement=EnhancementWorkflow(image_client, pipeline, registry),
        imports=ImportService(coordinator, pipeline, registry, settings.max_image_bytes),
        max_image_bytes=settings.max_image_bytes,
    )
