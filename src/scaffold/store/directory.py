"""Directory-backed container store."""

import asyncio
import fcntl
import hashlib
import json
import logging
import secrets
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from scaffold.errors import (
    ContainerUnknownError,
    DuplicateNameError,
    ImageUnknownError,
    StoreOperationError,
)
from scaffold.store.base import BaseStore, ContainerInfo, ImageInfo
from scaffold.utils.fileio import read_json, write_file_atomic, write_json
from scaffold.utils.process import run_command


logger = logging.getLogger(__name__)


def _with_tag(name: str) -> str:
    """Append the default tag to an untagged image reference."""
    last = name.rsplit("/", 1)[-1]
    if "@" in name or ":" in last:
        return name
    return f"{name}:latest"


def _qualify(name: str, registry: str) -> str:
    """Prefix an image reference with ``registry`` unless it names one."""
    if "/" in name:
        first = name.split("/", 1)[0]
        if "." in first or ":" in first or first == "localhost":
            return name
    if registry:
        return f"{registry.rstrip('/')}/{name}"
    return name


class DirectoryStore(BaseStore):
    """Store keeping containers and images as plain directories.

    Layout under ``root``::

        containers.json              container index
        containers/<id>/rootfs       container root filesystem
        containers/<id>/userdata     private metadata directory
        images.json                  image index
        images/<id>/config.json      image configuration blob
        images/<id>/manifest.json    image manifest

    Mounting does not involve the kernel: the rootfs directory is handed out
    and a mount count is tracked.  Image layers are not materialized.
    """

    def __init__(self, root: Path, skopeo_path: str = "skopeo", pull_timeout: int = 600):
        """Initialize directory store."""
        self.root = Path(root).absolute()
        self.skopeo_path = skopeo_path
        self.pull_timeout = pull_timeout

    @classmethod
    def from_config(cls, config) -> "DirectoryStore":
        """Create a store from a ScaffoldConfig."""
        return cls(
            Path(config.store.root),
            skopeo_path=config.store.skopeo_path,
            pull_timeout=config.store.pull_timeout,
        )

    @property
    def containers_index(self) -> Path:
        return self.root / "containers.json"

    @property
    def images_index(self) -> Path:
        return self.root / "images.json"

    def _container_dir(self, container_id: str) -> Path:
        return self.root / "containers" / container_id

    def _image_dir(self, image_id: str) -> Path:
        return self.root / "images" / image_id

    def _ensure_layout(self) -> None:
        for path in (self.root, self.root / "containers", self.root / "images", self.root / "tmp"):
            path.mkdir(mode=0o700, parents=True, exist_ok=True)

    @contextmanager
    def _locked(self):
        """Hold the store-wide lock for a structural change."""
        self._ensure_layout()
        with open(self.root / "storage.lock", "a") as lock:
            fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock.fileno(), fcntl.LOCK_UN)

    def _load_index(self, path: Path) -> List[Dict[str, Any]]:
        try:
            return read_json(path, default=[])
        except json.JSONDecodeError as e:
            raise StoreOperationError(f"corrupt store index {path}: {e}") from e

    @staticmethod
    def _find(
        records: List[Dict[str, Any]], name_or_id: str, prefix: bool = True
    ) -> Optional[Dict[str, Any]]:
        """Match by exact ID, then name, then unique ID prefix."""
        for record in records:
            if record["id"] == name_or_id:
                return record
        for record in records:
            if name_or_id in record.get("names", []):
                return record
        if not prefix or not name_or_id:
            return None
        matches = [r for r in records if r["id"].startswith(name_or_id)]
        if len(matches) == 1:
            return matches[0]
        return None

    # Containers

    def _get_container(self, name_or_id: str) -> Dict[str, Any]:
        record = self._find(self._load_index(self.containers_index), name_or_id)
        if record is None:
            raise ContainerUnknownError(f"container not known: {name_or_id}")
        return record

    def _create_container(self, name: str, image_id: Optional[str]) -> ContainerInfo:
        with self._locked():
            records = self._load_index(self.containers_index)
            for record in records:
                if name in record.get("names", []):
                    raise DuplicateNameError(
                        f"the container name {name!r} is already in use by {record['id']}"
                    )
            if image_id and self._find(self._load_index(self.images_index), image_id) is None:
                raise ImageUnknownError(f"image not known: {image_id}")

            container_id = secrets.token_hex(32)
            container_dir = self._container_dir(container_id)
            try:
                (container_dir / "rootfs").mkdir(parents=True, mode=0o755)
                (container_dir / "userdata").mkdir(mode=0o700)
            except OSError as e:
                shutil.rmtree(container_dir, ignore_errors=True)
                raise StoreOperationError(f"error creating container {name!r}: {e}") from e

            record = {
                "id": container_id,
                "names": [name] if name else [],
                "image_id": image_id or "",
                "mount_count": 0,
            }
            records.append(record)
            write_json(self.containers_index, records)

        logger.info(f"Created container {name or container_id} ({container_id[:12]})")
        return ContainerInfo(id=record["id"], names=record["names"], image_id=record["image_id"])

    def _delete_container(self, container_id: str) -> None:
        with self._locked():
            records = self._load_index(self.containers_index)
            record = self._find(records, container_id)
            if record is None:
                raise ContainerUnknownError(f"container not known: {container_id}")
            shutil.rmtree(self._container_dir(record["id"]), ignore_errors=True)
            records.remove(record)
            write_json(self.containers_index, records)
        logger.info(f"Removed container {record['id'][:12]}")

    def _adjust_mount_count(self, container_id: str, delta: int) -> Dict[str, Any]:
        with self._locked():
            records = self._load_index(self.containers_index)
            record = self._find(records, container_id)
            if record is None:
                raise ContainerUnknownError(f"container not known: {container_id}")
            count = record.get("mount_count", 0) + delta
            if count < 0:
                raise StoreOperationError(f"container {record['id'][:12]} is not mounted")
            record["mount_count"] = count
            write_json(self.containers_index, records)
        return record

    async def create_container(self, name: str, image_id: Optional[str] = None) -> ContainerInfo:
        return await asyncio.to_thread(self._create_container, name, image_id)

    async def delete_container(self, container_id: str) -> None:
        await asyncio.to_thread(self._delete_container, container_id)

    async def container_directory(self, container_id: str) -> Path:
        record = await asyncio.to_thread(self._get_container, container_id)
        return self._container_dir(record["id"]) / "userdata"

    async def containers(self) -> List[ContainerInfo]:
        records = await asyncio.to_thread(self._load_index, self.containers_index)
        return [
            ContainerInfo(id=r["id"], names=r.get("names", []), image_id=r.get("image_id", ""))
            for r in records
        ]

    async def get_container(self, name_or_id: str) -> ContainerInfo:
        record = await asyncio.to_thread(self._get_container, name_or_id)
        return ContainerInfo(id=record["id"], names=record.get("names", []), image_id=record.get("image_id", ""))

    async def mount(self, container_id: str) -> Path:
        record = await asyncio.to_thread(self._adjust_mount_count, container_id, 1)
        return self._container_dir(record["id"]) / "rootfs"

    async def unmount(self, container_id: str) -> None:
        await asyncio.to_thread(self._adjust_mount_count, container_id, -1)

    # Images

    def _get_image(self, name: str) -> Dict[str, Any]:
        records = self._load_index(self.images_index)
        record = (
            self._find(records, name, prefix=False)
            or self._find(records, _with_tag(name), prefix=False)
            or self._find(records, name)
        )
        if record is None:
            raise ImageUnknownError(f"image not known: {name}")
        return record

    def _read_image_blob(self, image_id: str, filename: str) -> bytes:
        record = self._get_image(image_id)
        try:
            return (self._image_dir(record["id"]) / filename).read_bytes()
        except OSError as e:
            raise StoreOperationError(f"error reading {filename} of image {record['id'][:12]}: {e}") from e

    def import_image_dir(self, source: Path, names: List[str]) -> ImageInfo:
        """Add an image from a ``dir:`` layout (manifest.json plus blobs)."""
        source = Path(source)
        try:
            manifest = (source / "manifest.json").read_bytes()
            digest = json.loads(manifest)["config"]["digest"]
            config = (source / digest.split(":", 1)[-1]).read_bytes()
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise StoreOperationError(f"error reading image from {source}: {e}") from e

        image_id = hashlib.sha256(config).hexdigest()
        with self._locked():
            image_dir = self._image_dir(image_id)
            image_dir.mkdir(mode=0o700, exist_ok=True)
            write_file_atomic(image_dir / "config.json", config, 0o644)
            write_file_atomic(image_dir / "manifest.json", manifest, 0o644)

            records = self._load_index(self.images_index)
            # A name refers to one image at a time
            for record in records:
                record["names"] = [n for n in record.get("names", []) if n not in names]
            record = next((r for r in records if r["id"] == image_id), None)
            if record is None:
                record = {"id": image_id, "names": []}
                records.append(record)
            record["names"].extend(n for n in names if n not in record["names"])
            write_json(self.images_index, records)

        logger.info(f"Stored image {image_id[:12]} as {', '.join(names)}")
        return ImageInfo(id=image_id, names=record["names"])

    async def lookup_image(self, name: str) -> ImageInfo:
        record = await asyncio.to_thread(self._get_image, name)
        return ImageInfo(id=record["id"], names=record.get("names", []))

    async def image_config(self, image_id: str) -> bytes:
        return await asyncio.to_thread(self._read_image_blob, image_id, "config.json")

    async def image_manifest(self, image_id: str) -> bytes:
        return await asyncio.to_thread(self._read_image_blob, image_id, "manifest.json")

    async def pull_image(
        self,
        name: str,
        registry: str = "",
        signature_policy_path: str = "",
    ) -> ImageInfo:
        """Copy an image from a registry with skopeo and import it."""
        reference = _qualify(name, registry)
        logger.info(f"Pulling image {reference}")

        await asyncio.to_thread(self._ensure_layout)
        workdir = Path(tempfile.mkdtemp(dir=self.root / "tmp", prefix="pull-"))
        try:
            cmd = [self.skopeo_path]
            if signature_policy_path:
                cmd.extend(["--policy", signature_policy_path])
            cmd.extend(["copy", f"docker://{reference}", f"dir:{workdir}"])
            await run_command(cmd, timeout=self.pull_timeout)

            names = list(dict.fromkeys([_with_tag(name), _with_tag(reference)]))
            return await asyncio.to_thread(self.import_image_dir, workdir, names)
        finally:
            await asyncio.to_thread(shutil.rmtree, workdir, True)
