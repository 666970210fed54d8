# sitequote/services/storage_service.py
import logging
import uuid
from pathlib import Path
from werkzeug.utils import secure_filename
from flask import current_app

from .errors import ValidationFailure

log = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads/"


def _ensure_base() -> Path:
    # Fallback to <instance>/uploads if UPLOAD_FOLDER not configured yet
    base = current_app.config.get("UPLOAD_FOLDER")
    if not base:
        base = Path(current_app.instance_path) / "uploads"
    else:
        base = Path(base)
    base.mkdir(parents=True, exist_ok=True)
    return base


def allowed_ext(filename: str) -> bool:
    exts = current_app.config.get("ALLOWED_IMAGE_EXTENSIONS")
    if not exts:
        exts = {"png", "jpg", "jpeg", "gif", "webp"}
    suffix = Path(filename).suffix.lower().lstrip(".")
    return bool(suffix) and suffix in exts


def save_photo(file_storage, subdir: str = "") -> str:
    """
    Saves an image to UPLOAD_FOLDER / subdir / <unique>-<safe_name> and returns
    the public URL. Records only ever hold this URL, never the bytes.
    """
    base = _ensure_base()
    safe_name = secure_filename(file_storage.filename or "")
    if not safe_name:
        raise ValidationFailure("photos", "Uploaded photo has no usable filename.")
    if not allowed_ext(safe_name):
        raise ValidationFailure("photos", f"Unsupported photo type: {safe_name}")

    target_dir = base / subdir if subdir else base
    target_dir.mkdir(parents=True, exist_ok=True)

    dest = target_dir / f"{uuid.uuid4().hex[:12]}-{safe_name}"
    file_storage.save(dest)

    return UPLOAD_URL_PREFIX + dest.relative_to(base).as_posix()


def save_photos(files, subdir: str = "") -> list[str]:
    return [save_photo(f, subdir=subdir) for f in files if f and f.filename]


def resolve_upload(relpath: str) -> Path | None:
    base = _ensure_base().resolve()
    target = (base / (relpath or "")).resolve()
    if base not in target.parents:
        return None
    return target


def delete_upload(url: str) -> bool:
    """Best effort; a missing file is not an error."""
    if not url or not url.startswith(UPLOAD_URL_PREFIX):
        return False
    target = resolve_upload(url[len(UPLOAD_URL_PREFIX):])
    if target is None or not target.exists():
        return False
    try:
        target.unlink()
        return True
    except OSError as e:
        log.warning("delete_upload failed for %s: %s", url, e)
        return False
