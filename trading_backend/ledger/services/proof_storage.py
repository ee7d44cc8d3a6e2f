# ledger/services/proof_storage.py

"""
PROOF-OF-PAYMENT IMAGE STORAGE

Saves an uploaded JPEG/PNG through Django's default storage backend and
returns a stable URL to keep on the transaction or cheque.
"""

from __future__ import annotations

import logging
import os
import uuid
from contextlib import contextmanager

from django.conf import settings
from django.core.files.storage import default_storage
from django.utils import timezone

from ledger.services.exceptions import LedgerValidationError

logger = logging.getLogger("ledger.mutations")

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
}

_JPEG_MAGIC = b"\xff\xd8\xff"
_PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def _max_bytes() -> int:
    return int(getattr(settings, "PROOF_IMAGE_MAX_BYTES", 5 * 1024 * 1024))


def _sniff_extension(head: bytes) -> str | None:
    if head.startswith(_JPEG_MAGIC):
        return ".jpg"
    if head.startswith(_PNG_MAGIC):
        return ".png"
    return None


def store_proof_image(file, *, field: str = "proof_image") -> str:
    """
    Validate and persist an uploaded image. Returns its URL.
    """
    if file is None:
        raise LedgerValidationError(fields={field: "No file was submitted."})

    size = getattr(file, "size", None)
    if size is not None and size > _max_bytes():
        raise LedgerValidationError(
            fields={field: f"Image exceeds the {_max_bytes() // (1024 * 1024)} MB limit."}
        )

    content_type = (getattr(file, "content_type", "") or "").lower()
    if content_type and content_type not in ALLOWED_CONTENT_TYPES:
        raise LedgerValidationError(fields={field: "Only JPEG and PNG images are accepted."})

    head = file.read(8)
    file.seek(0)
    ext = _sniff_extension(head)
    if ext is None:
        raise LedgerValidationError(fields={field: "File content is not a JPEG or PNG image."})

    today = timezone.localdate()
    name = os.path.join(
        "proofs",
        f"{today:%Y}",
        f"{today:%m}",
        f"{uuid.uuid4().hex}{ext}",
    )
    saved = default_storage.save(name, file)
    url = default_storage.url(saved)

    logger.info("Proof image stored", extra={"path": saved, "bytes": size})
    return url


def _storage_name(url: str) -> str | None:
    """
    Map a URL produced by store_proof_image() back to its storage name.
    """
    media_url = settings.MEDIA_URL or ""
    if not media_url or not url.startswith(media_url):
        return None

    name = url[len(media_url):]
    if not name.startswith("proofs/") or ".." in name.split("/"):
        return None
    return name


def verify_proof_url(url, *, field: str = "proof_image") -> str:
    """
    Accept a previously uploaded proof only if it lives in our storage.
    """
    url = (url or "").strip()
    if not url:
        return ""

    name = _storage_name(url)
    if name is None or not default_storage.exists(name):
        raise LedgerValidationError(
            fields={field: "Proof image must be a file uploaded to this server."}
        )
    return url


def discard_proof_image(url: str) -> None:
    """
    Remove a stored proof whose posting was rejected.
    """
    name = _storage_name(url or "")
    if name is None:
        return

    default_storage.delete(name)
    logger.info("Proof image discarded", extra={"path": name})


@contextmanager
def stored_proof(data, *, field: str = "proof_image"):
    """
    Yield the proof URL for a validated request payload.

    An uploaded file is saved first and removed again if the body of the
    block raises, so a rejected posting never leaves a file behind.
    A plain proof_image_url must point at an existing upload.
    """
    upload = data.get(field)
    if upload is None:
        yield verify_proof_url(data.get(f"{field}_url"), field=field)
        return

    url = store_proof_image(upload, field=field)
    try:
        yield url
    except Exception:
        discard_proof_image(url)
        raise
