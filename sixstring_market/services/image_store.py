# services/image_store.py
import logging
import uuid
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from werkzeug.utils import secure_filename

log = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTS = {"png", "jpg", "jpeg", "gif", "webp"}
PIL_FORMATS = {"jpg": "JPEG", "jpeg": "JPEG", "png": "PNG", "gif": "GIF", "webp": "WEBP"}


class ImageStore:
    """Listing images on disk under ``root/<category>/<uuid>.<ext>``.

    Paths handed out and accepted are relative to ``root``. Images larger
    than ``max_size`` are shrunk to fit, keeping the aspect ratio.
    """

    def __init__(self, root, max_size=(800, 600)):
        self.root = Path(root)
        self.max_size = tuple(max_size)

    @classmethod
    def from_config(cls, config) -> "ImageStore":
        return cls(config["UPLOAD_FOLDER"], (config["IMAGE_MAX_WIDTH"], config["IMAGE_MAX_HEIGHT"]))

    def _resolve(self, relative_path: str) -> Path | None:
        target = (self.root / relative_path).resolve()
        if self.root.resolve() not in target.parents:
            return None
        return target

    def store(self, source, category: str = "guitars", filename: str | None = None) -> str | None:
        """Save ``source`` (a path or a file-like object) and return its relative path.

        ``filename`` gives the extension for file-like sources.
        """
        name = secure_filename(filename or str(getattr(source, "filename", "") or source))
        ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
        if ext not in ALLOWED_IMAGE_EXTS:
            log.warning("unsupported image type: %r", name)
            return None

        category = secure_filename(category) or "misc"
        dest_dir = self.root / category
        dest_dir.mkdir(parents=True, exist_ok=True)
        rel = f"{category}/{uuid.uuid4().hex}.{ext}"

        stream = getattr(source, "stream", source)
        try:
            with Image.open(stream) as img:
                img.load()
                if img.width > self.max_size[0] or img.height > self.max_size[1]:
                    img.thumbnail(self.max_size, Image.Resampling.LANCZOS)
                if PIL_FORMATS[ext] == "JPEG" and img.mode not in ("RGB", "L"):
                    img = img.convert("RGB")
                img.save(self.root / rel, PIL_FORMATS[ext])
        except (OSError, UnidentifiedImageError) as e:
            log.warning("could not store image %r: %s", name, e)
            return None
        return rel

    def delete(self, relative_path: str | None) -> bool:
        if not relative_path or not relative_path.strip():
            return False
        target = self._resolve(relative_path)
        if target is None or not target.is_file():
            return False
        try:
            target.unlink()
        except OSError as e:
            log.warning("could not delete image %s: %s", relative_path, e)
            return False
        return True

    def load(self, relative_path: str | None):
        if not relative_path:
            return None
        target = self._resolve(relative_path)
        if target is None or not target.is_file():
            return None
        try:
            with Image.open(target) as img:
                img.load()
                return img.copy()
        except (OSError, UnidentifiedImageError) as e:
            log.warning("could not load image %s: %s", relative_path, e)
            return None

    def absolute(self, relative_path: str) -> Path | None:
        return self._resolve(relative_path)
