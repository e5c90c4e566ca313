"""Celery task that deletes stale images whose cleanup failed earlier."""

import asyncio
import logging
from datetime import UTC, datetime

import httpx
from sqlalchemy.orm import Session

from src.celery_app import app as celery_app
from src.config import get_settings
from src.database import SessionLocal
from src.errors import AssetCleanupFailure
from src.models.orphaned_asset import OrphanedAssetRecord
from src.services.assets import AssetPipeline, ObjectStorage

logger = logging.getLogger(__name__)


async def sweep_orphans(db: Session, pipeline: AssetPipeline, max_attempts: int) -> dict:
    """Retry deletion of recorded orphans that have attempts left."""
    records = (
        db.query(OrphanedAssetRecord)
        .filter(
            OrphanedAssetRecord.deleted_at.is_(None),
            OrphanedAssetRecord.attempts < max_attempts,
        )
        .order_by(OrphanedAssetRecord.id)
        .all()
    )

    result = {"deleted": 0, "failed": 0}
    for record in records:
        try:
            await pipeline.delete(record.url)
        except AssetCleanupFailure as e:
            record.attempts += 1
            record.last_error = str(e.details)
            result["failed"] += 1
            logger.warning(f"Orphan {record.url} still not deleted (attempt {record.attempts})")
        else:
            record.deleted_at = datetime.now(UTC)
            result["deleted"] += 1
    db.commit()

    if records:
        logger.info(f"Orphan sweep: {result['deleted']} deleted, {result['failed']} failed")
    return result


async def _run_sweep(db: Session) -> dict:
    settings = get_settings()
    async with httpx.AsyncClient(timeout=settings.http_timeout) as http_client:
        storage = ObjectStorage(
            http_client,
            base_url=settings.storage_url,
            bucket=settings.storage_bucket,
            service_key=settings.storage_service_key,
        )
        pipeline = AssetPipeline(storage, http_client, max_bytes=settings.max_image_bytes)
        return await sweep_orphans(db, pipeline, settings.orphan_max_attempts)


@celery_app.task(name="tasks.sweep_orphaned_assets")
def sweep_orphaned_assets() -> dict:
    """Periodic sweep of orphaned storage objects."""
    db = SessionLocal()
    try:
        return asyncio.run(_run_sweep(db))
    except Exception as e:
        logger.error(f"Orphan sweep failed: {e}", exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()
