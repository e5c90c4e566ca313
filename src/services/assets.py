"""Image asset lifecycle: staging, commit, replace and cleanup.

An image moves through three states, each its own type:

- ``EphemeralAsset``: bytes held in memory for this session, not yet durable.
- ``CommittedAsset``: uploaded to object storage and referenced by a record.
- ``OrphanedAsset``: durable but no longer referenced, awaiting deletion.

Uploads happen only when the user confirms an import or enhancement. Until
then a staged asset waits in the ``PendingAssetRegistry`` under an opaque id,
so abandoning a preview leaves nothing behind in storage.
"""

import logging
import secrets
import time
import uuid
import weakref
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

from src.errors import AssetCleanupFailure, AssetCommitFailure, AssetFetchFailure
from src.services.content import (
    ALLOWED_IMAGE_TYPES,
    BROWSER_HEADERS,
    IMAGE_EXTENSIONS,
    normalize_mime,
    sniff_image_mime,
    to_data_uri,
)

logger = logging.getLogger(__name__)

PUBLIC_PATH = "/storage/v1/object/public"
OBJECT_PATH = "/storage/v1/object"


def account_namespace(owner_id: int) -> str:
    """Storage prefix owned by one account."""
    return f"users/{owner_id}"


# --- Handles ---


@dataclass(frozen=True, eq=False)
class EphemeralAsset:
    """Image bytes that have not been persisted."""

    data: bytes = field(repr=False)
    mime: str
    origin_filename: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return IMAGE_EXTENSIONS[self.mime]

    def to_data_uri(self) -> str:
        return to_data_uri(self.data, self.mime)


@dataclass(frozen=True)
class CommittedAsset:
    """A durable image owned by exactly one record."""

    url: str


@dataclass(frozen=True)
class OrphanedAsset:
    """A durable image that no record references."""

    url: str


AssetHandle = EphemeralAsset | CommittedAsset | OrphanedAsset


@dataclass(frozen=True)
class Cleanup:
    """Outcome of deleting an orphaned object. ``error`` is set when it still exists."""

    orphan: OrphanedAsset
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ReplaceResult:
    committed: CommittedAsset
    cleanup: Cleanup | None = None


# --- Storage ---


class ObjectStorage:
    """Client for a Supabase-Storage-compatible object store."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        bucket: str,
        service_key: str | None = None,
    ) -> None:
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self.service_key = service_key

    def _headers(self) -> dict[str, str]:
        if not self.service_key:
            return {}
        return {"Authorization": f"Bearer {self.service_key}", "apikey": self.service_key}

    def public_url(self, path: str) -> str:
        return f"{self.base_url}{PUBLIC_PATH}/{self.bucket}/{path}"

    def path_from_url(self, url: str) -> str | None:
        """Recover the object path from a URL issued by ``public_url``."""
        prefix = f"{self.base_url}{PUBLIC_PATH}/{self.bucket}/"
        if not url.startswith(prefix):
            return None
        path = url[len(prefix) :].split("?", 1)[0]
        return path or None

    async def upload(self, path: str, data: bytes, mime: str) -> None:
        response = await self.http_client.post(
            f"{self.base_url}{OBJECT_PATH}/{self.bucket}/{path}",
            content=data,
            headers={
                **self._headers(),
                "Content-Type": mime,
                "Cache-Control": "max-age=3600",
                "x-upsert": "false",
            },
        )
        response.raise_for_status()

    async def delete(self, path: str) -> None:
        response = await self.http_client.delete(
            f"{self.base_url}{OBJECT_PATH}/{self.bucket}/{path}",
            headers=self._headers(),
        )
        # Already gone counts as deleted
        if response.status_code == 404:
            return
        response.raise_for_status()


# --- Pending assets ---


@dataclass
class PendingAsset:
    """A staged image waiting for the user to confirm it."""

    id: str
    owner_id: int
    purpose: str  # "import" | "enhancement"
    asset: EphemeralAsset
    expires_at: float
    recipe_id: int | None = None


class PendingAssetRegistry:
    """Holds staged assets between preview and confirmation, per account."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._items: dict[str, PendingAsset] = {}

    def __len__(self) -> int:
        return len(self._items)

    def register(
        self,
        owner_id: int,
        asset: EphemeralAsset,
        purpose: str,
        recipe_id: int | None = None,
    ) -> PendingAsset:
        self.purge_expired()
        pending = PendingAsset(
            id=secrets.token_urlsafe(16),
            owner_id=owner_id,
            purpose=purpose,
            asset=asset,
            expires_at=self._clock() + self.ttl_seconds,
            recipe_id=recipe_id,
        )
        self._items[pending.id] = pending
        return pending

    def _lookup(
        self, pending_id: str, owner_id: int, purpose: str, recipe_id: int | None
    ) -> PendingAsset | None:
        pending = self._items.get(pending_id)
        if pending is None:
            return None
        if pending.expires_at <= self._clock():
            del self._items[pending_id]
            return None
        if (
            pending.owner_id != owner_id
            or pending.purpose != purpose
            or pending.recipe_id != recipe_id
        ):
            return None
        return pending

    def take(
        self, pending_id: str, owner_id: int, purpose: str, recipe_id: int | None = None
    ) -> PendingAsset | None:
        """Remove and return a pending asset. Each id can be taken once."""
        pending = self._lookup(pending_id, owner_id, purpose, recipe_id)
        if pending is not None:
            del self._items[pending_id]
        return pending

    def discard(
        self, pending_id: str, owner_id: int, purpose: str, recipe_id: int | None = None
    ) -> bool:
        return self.take(pending_id, owner_id, purpose, recipe_id) is not None

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, item in self._items.items() if item.expires_at <= now]
        for key in expired:
            del self._items[key]
        return len(expired)


# --- Pipeline ---


class AssetPipeline:
    """Moves images from ephemeral bytes into durable storage and back out."""

    def __init__(
        self,
        storage: ObjectStorage,
        http_client: httpx.AsyncClient,
        max_bytes: int,
    ) -> None:
        self.storage = storage
        self.http_client = http_client
        self.max_bytes = max_bytes
        # Only assets produced here may be committed
        self._staged: weakref.WeakSet[EphemeralAsset] = weakref.WeakSet()

    def stage_bytes(
        self, data: bytes, mime: str | None, filename: str | None = None
    ) -> EphemeralAsset:
        """Stage an uploaded or inline image.

        Raises:
            AssetFetchFailure: if the bytes are empty, too large or not an image.
        """
        if not data:
            raise AssetFetchFailure("Image is empty")
        if len(data) > self.max_bytes:
            raise AssetFetchFailure(
                f"Image too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB."
            )
        resolved = sniff_image_mime(data) or normalize_mime(mime)
        if resolved not in ALLOWED_IMAGE_TYPES:
            raise AssetFetchFailure(
                f"Invalid file type '{resolved or 'unknown'}'. Only images are allowed."
            )
        asset = EphemeralAsset(data=data, mime=resolved, origin_filename=filename)
        self._staged.add(asset)
        return asset

    async def stage_remote(self, uri: str) -> EphemeralAsset:
        """Download an image completely and stage it.

        Raises:
            AssetFetchFailure: on any transport, status, type or size problem.
        """
        logger.info(f"Fetching image from {uri}")
        try:
            async with self.http_client.stream(
                "GET", uri, headers=BROWSER_HEADERS, follow_redirects=True
            ) as response:
                if response.status_code >= 400:
                    raise AssetFetchFailure(
                        "Failed to fetch image", details=f"HTTP {response.status_code}"
                    )
                declared = response.headers.get("content-type")
                expected_length = response.headers.get("content-length")
                # content-length counts the encoded bytes; aiter_bytes yields decoded ones
                if response.headers.get("content-encoding", "identity") != "identity":
                    expected_length = None
                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > self.max_bytes:
                        raise AssetFetchFailure("Failed to fetch image", details="too large")
        except httpx.HTTPError as e:
            raise AssetFetchFailure("Failed to fetch image", details=str(e)) from e

        if expected_length and expected_length.isdigit() and int(expected_length) != len(body):
            raise AssetFetchFailure("Failed to fetch image", details="incomplete download")
        filename = uri.rsplit("/", 1)[-1].split("?", 1)[0] or None
        return self.stage_bytes(bytes(body), declared, filename)

    async def commit(self, asset: EphemeralAsset, owner_id: int) -> CommittedAsset:
        """Upload a staged asset under the owner's namespace.

        The object name is random; the original filename is never used.

        Raises:
            AssetCommitFailure: if the asset was not staged here or the upload fails.
        """
        if asset not in self._staged:
            raise AssetCommitFailure("Refusing to commit an image that was not staged")
        path = f"{account_namespace(owner_id)}/{uuid.uuid4().hex}.{asset.extension}"
        try:
            await self.storage.upload(path, asset.data, asset.mime)
        except httpx.HTTPError as e:
            logger.error(f"Upload of {path} failed: {e}")
            raise AssetCommitFailure("Upload failed", details=str(e)) from e
        self._staged.discard(asset)
        url = self.storage.public_url(path)
        logger.info(f"Committed image {url} ({asset.size} bytes)")
        return CommittedAsset(url=url)

    async def delete(self, url: str) -> None:
        """Delete a durable object by its public URL.

        Raises:
            AssetCleanupFailure: if the store refuses or cannot be reached.
        """
        path = self.storage.path_from_url(url)
        if path is None:
            logger.info(f"Not deleting {url}: not an object in this store")
            return
        try:
            await self.storage.delete(path)
        except httpx.HTTPError as e:
            raise AssetCleanupFailure("Failed to delete image", details=str(e)) from e

    async def release(self, committed: CommittedAsset) -> Cleanup:
        """Orphan a committed asset and try to delete it. Never raises."""
        orphan = OrphanedAsset(url=committed.url)
        try:
            await self.delete(orphan.url)
        except AssetCleanupFailure as e:
            logger.warning(f"Stale image left for cleanup: {orphan.url} ({e.details})")
            return Cleanup(orphan=orphan, error=str(e.details))
        return Cleanup(orphan=orphan)

    async def replace(
        self,
        old: CommittedAsset | None,
        new: EphemeralAsset,
        owner_id: int,
        swap: Callable[[CommittedAsset], None],
    ) -> ReplaceResult:
        """Commit ``new``, point the record at it with ``swap``, then delete ``old``.

        A failed upload leaves the old reference intact. If ``swap`` raises,
        the new object is deleted again and ``old`` is left alone, so the
        record never points at a deleted object. A failed delete of ``old``
        does not fail the replace.
        """
        committed = await self.commit(new, owner_id)
        try:
            swap(committed)
        except Exception:
            logger.error(f"Could not point the record at {committed.url}, withdrawing it")
            await self.release(committed)
            raise
        if old is None or old.url == committed.url:
            return ReplaceResult(committed=committed)
        return ReplaceResult(committed=committed, cleanup=await self.release(old))
