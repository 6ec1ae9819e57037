"""
Local asset store adapter - Implements AssetStore protocol.

This module stores uploaded images on the local filesystem for
development and single-node deployments. Delivery URLs follow the
``<base_url>/upload/v<version>/<asset id>.<ext>`` shape so the domain can
derive the asset id back from a stored URL.
"""

import logging
import mimetypes
import time
import uuid
from pathlib import Path, PurePosixPath

from src.domain.derived import asset_id_from_url
from src.domain.models import StoredAsset, UploadFile

logger = logging.getLogger(__name__)


class LocalAssetStore:
    """
    Implements AssetStore protocol on a directory tree.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Every folder is placed beneath base_folder unless it already starts
    with it.
    """

    def __init__(self, root: Path, base_url: str, base_folder: str = "smartcrowds") -> None:
        self._root = Path(root)
        self._base_url = base_url.rstrip("/")
        self._base_folder = base_folder.strip("/")

    def resolve_folder(self, folder: str) -> str:
        folder = folder.strip("/")
        if not folder:
            return self._base_folder
        if folder == self._base_folder or folder.startswith(f"{self._base_folder}/"):
            return folder
        return f"{self._base_folder}/{folder}"

    def _path_for(self, asset_id: str) -> Path:
        path = (self._root / asset_id).resolve()
        if not path.is_relative_to(self._root.resolve()):
            raise ValueError(f"Asset id escapes storage root: {asset_id}")
        return path

    def locate(self, stored_path: str) -> Path | None:
        """Return the file behind a delivery path (asset id plus extension), if present."""
        try:
            path = self._path_for(stored_path)
        except ValueError:
            return None
        return path if path.is_file() else None

    def upload(self, file: UploadFile, folder: str) -> StoredAsset:
        """
        Write the file and return its delivery URL and asset id.

        Args:
            file: Image content and metadata
            folder: Logical folder (e.g. subscribers/id-images)
        """
        extension = PurePosixPath(file.filename).suffix.lower()
        if not extension:
            extension = mimetypes.guess_extension(file.content_type) or ""

        asset_id = f"{self.resolve_folder(folder)}/{uuid.uuid4().hex}"
        path = self._path_for(asset_id).with_suffix(extension)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(file.content)

        url = f"{self._base_url}/upload/v{int(time.time())}/{asset_id}{extension}"
        logger.info("Stored asset %s (%d bytes)", asset_id, len(file.content))
        return StoredAsset(url=url, asset_id=asset_id)

    def delete(self, asset: str) -> None:
        """
        Remove an asset given its id or delivery URL.

        Deleting an asset that no longer exists is logged and ignored.
        """
        asset_id = asset_id_from_url(asset) if "/upload/" in asset else asset
        if not asset_id:
            raise ValueError(f"Cannot derive asset id from {asset!r}")

        path = self._path_for(asset_id)
        matches = list(path.parent.glob(f"{path.name}.*")) + ([path] if path.exists() else [])
        if not matches:
            logger.warning("Asset %s not found, nothing to delete", asset_id)
            return
        for match in matches:
            match.unlink()
        logger.info("Deleted asset %s", asset_id)
