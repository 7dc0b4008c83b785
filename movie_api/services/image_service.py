# movie_api/services/image_service.py
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from movie_api.core.image_refs import KEY_PREFIX, extract_filename, extract_key, is_remote_url
from movie_api.repositories.blob_store import S3BlobStore

logger = logging.getLogger(__name__)


class DeletionOutcome(str, Enum):
    DELETED        = "DELETED"         # local file removed
    REMOTE_DELETED = "REMOTE_DELETED"
    REMOTE_FAILED  = "REMOTE_FAILED"
    NOT_FOUND      = "NOT_FOUND"       # no candidate path existed
    SKIPPED        = "SKIPPED"         # nothing to resolve


@dataclass(frozen=True)
class ImageDeletion:
    outcome: DeletionOutcome
    ref: Optional[str]
    key: Optional[str] = None
    path: Optional[Path] = None
    attempted: Tuple[Path, ...] = field(default_factory=tuple)


class ImageCleaner:
    """
    Best-effort removal of the blob behind an image reference.

    Remote references go to the bucket by key. Anything else is treated as a
    legacy local file and looked up in each search directory, in order; the
    first existing match is removed. ``delete_image`` never raises.
    """

    def __init__(self, search_dirs: Iterable[Path], remote: Optional[S3BlobStore] = None):
        self.search_dirs: List[Path] = [Path(d) for d in search_dirs]
        self.remote = remote

    def delete_image(self, ref: Optional[str]) -> ImageDeletion:
        try:
            result = self._delete(ref)
        except Exception:
            # cleanup must never break the movie mutation that triggered it
            logger.exception("Unexpected error while deleting image %s", ref)
            return ImageDeletion(DeletionOutcome.SKIPPED, ref)
        self._log(result)
        return result

    def _delete(self, ref: Optional[str]) -> ImageDeletion:
        if not ref:
            return ImageDeletion(DeletionOutcome.SKIPPED, ref)

        if is_remote_url(ref):
            if self.remote is None:
                if ref.strip().startswith(KEY_PREFIX):
                    # the local store writes under the same images/<file> keys
                    return self._delete_local(ref)
                logger.warning("No remote image store configured, leaving %s in place", ref)
                return ImageDeletion(DeletionOutcome.SKIPPED, ref)
            key = extract_key(ref, self.remote.bucket_name)
            if key:
                deleted = self.remote.delete(key)
                outcome = DeletionOutcome.REMOTE_DELETED if deleted else DeletionOutcome.REMOTE_FAILED
                return ImageDeletion(outcome, ref, key=key)
            # no usable key, try it as a local file below

        return self._delete_local(ref)

    def candidate_paths(self, filename: str) -> List[Path]:
        return [d / filename for d in self.search_dirs]

    def _delete_local(self, ref: str) -> ImageDeletion:
        filename = extract_filename(ref)
        if not filename:
            logger.info("Could not extract a file name from image reference %s", ref)
            return ImageDeletion(DeletionOutcome.SKIPPED, ref)

        attempted = tuple(self.candidate_paths(filename))
        for path in attempted:
            if not path.is_file():
                continue
            try:
                path.unlink()
            except OSError:
                logger.error("Failed to delete local image %s", path, exc_info=True)
                continue
            return ImageDeletion(DeletionOutcome.DELETED, ref, path=path, attempted=attempted)

        return ImageDeletion(DeletionOutcome.NOT_FOUND, ref, attempted=attempted)

    def _log(self, result: ImageDeletion) -> None:
        if result.outcome is DeletionOutcome.DELETED:
            logger.info("Deleted local image %s", result.path)
        elif result.outcome is DeletionOutcome.REMOTE_DELETED:
            logger.info("Deleted remote image %s", result.key)
        elif result.outcome is DeletionOutcome.NOT_FOUND:
            logger.warning(
                "Local image for %s not found at any of: %s",
                result.ref,
                ", ".join(str(p) for p in result.attempted),
            )
