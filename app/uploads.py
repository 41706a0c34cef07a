"""
Image uploads stored on local disk and served under /uploads/<name>
"""
import os
import random
import time

import structlog

from constants import MAX_UPLOAD_SIZE, UPLOADS_URL_PREFIX
from exceptions import SizeLimitException, StorageException, ValidationException
from utils import allowed_image, format_size_py

logger = structlog.get_logger("main")


def generate_upload_name(original_filename, clock=time.time):
    """<millis>-<random int><ext>, unique enough for a single admin team"""
    extension = os.path.splitext(original_filename)[1]
    return f"{int(clock() * 1000)}-{random.randrange(10 ** 9)}{extension}"


def stream_size(file_storage):
    stream = file_storage.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


class ImageUploads:
    def __init__(self, uploads_dir, max_size=MAX_UPLOAD_SIZE):
        self.uploads_dir = uploads_dir
        self.max_size = max_size

    def path_for(self, name):
        return os.path.join(self.uploads_dir, name)

    def save(self, file_storage):
        """
        Validate and store an uploaded image

        Args:
            file_storage: werkzeug FileStorage from request.files

        Returns:
            Relative URL the image is served from
        """
        if file_storage is None or not file_storage.filename:
            raise ValidationException("No file uploaded")

        if not allowed_image(file_storage.filename, file_storage.mimetype):
            raise ValidationException("Only image files are allowed!")

        size = stream_size(file_storage)
        if size > self.max_size:
            raise SizeLimitException(
                f"File too large ({format_size_py(size)}), limit is {format_size_py(self.max_size)}"
            )

        name = generate_upload_name(file_storage.filename)
        try:
            os.makedirs(self.uploads_dir, exist_ok=True)
            file_storage.save(self.path_for(name))
        except OSError as e:
            raise StorageException(f"Cannot store upload {name}: {e}") from e

        logger.info(f"Stored upload {name} ({format_size_py(size)})")
        return f"{UPLOADS_URL_PREFIX}/{name}"
