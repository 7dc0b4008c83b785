# movie_api/core/image_refs.py
"""
Helpers for the different shapes an image reference can take:

    images/<filename>                                        bare storage key
    /images/<filename>                                       local path
    https://<bucket>.s3.<region>.amazonaws.com/images/<f>    virtual-hosted bucket URL
    https://s3.<region>.amazonaws.com/<bucket>/images/<f>    path-style bucket URL
    http://<host>/images/<filename>                          locally served URL

All functions are pure and never raise on odd input.
"""
import re
from typing import Optional, Tuple
from urllib.parse import urlsplit

KEY_PREFIX = "images/"
LOCAL_PREFIX = "/images/"

_S3_MARKERS = (".s3.", "s3.amazonaws.com")
_KEY_PATTERN = re.compile(r"images/[^?#]+")


def _strip_query(ref: str) -> str:
    return re.split(r"[?#]", ref, maxsplit=1)[0]


def _split(ref: str) -> Tuple[str, str]:
    """Host (lower-cased) and path of a reference; scheme optional."""
    try:
        parts = urlsplit(ref if "://" in ref else f"https://{ref}")
        return (parts.hostname or "").lower(), parts.path
    except ValueError:
        return "", ""


def _is_s3_host(host: str) -> bool:
    # <bucket>.s3.<region>.amazonaws.com, s3.<region>.amazonaws.com, s3.amazonaws.com
    return ".s3." in f".{host}"


def is_remote_url(ref: Optional[str]) -> bool:
    if not ref:
        return False
    ref = ref.strip()
    if ref.startswith(KEY_PREFIX) or any(marker in ref for marker in _S3_MARKERS):
        return True
    return _is_s3_host(_split(ref)[0])


def extract_key(ref: Optional[str], bucket_name: Optional[str] = None) -> Optional[str]:
    """
    Map an image reference to its storage key, or None if no key can be found.
    """
    if not ref:
        return None
    ref = ref.strip()

    if ref.startswith(KEY_PREFIX):
        return _strip_query(ref)
    if ref.startswith(LOCAL_PREFIX):
        return _strip_query(ref[1:])

    if not is_remote_url(ref):
        return None

    host, path = _split(ref)
    segments = [s for s in path.split("/") if s]

    if _is_s3_host(host) and segments:
        if not host.startswith("s3."):
            # <bucket>.s3.<region>.amazonaws.com/<key>
            return "/".join(segments)
        # s3.<region>.amazonaws.com/<bucket>/<key>
        if len(segments) > 1 and (bucket_name is None or segments[0] == bucket_name):
            return "/".join(segments[1:])

    match = _KEY_PATTERN.search(ref)
    if match:
        return match.group(0)
    return None


def extract_filename(ref: Optional[str]) -> Optional[str]:
    """
    Return the file name that follows ``images/`` in a reference.
    """
    if not ref:
        return None
    ref = _strip_query(ref.strip())
    if ref.startswith(KEY_PREFIX):
        tail = ref[len(KEY_PREFIX):]
    elif LOCAL_PREFIX in ref:
        tail = ref.split(LOCAL_PREFIX, 1)[1]
    else:
        return None
    # only the last segment; never let a reference climb out of the images dir
    name = tail.rsplit("/", 1)[-1]
    if not name or name in (".", ".."):
        return None
    return name


def upload_key(ref: Optional[str]) -> Optional[str]:
    """
    Storage key the blob behind ``ref`` was uploaded under, e.g.
    ``http://localhost:3000/images/up.jpg`` -> ``images/up.jpg``.
    """
    key = extract_key(ref)
    if key:
        return key
    name = extract_filename(ref)
    return f"{KEY_PREFIX}{name}" if name else None
