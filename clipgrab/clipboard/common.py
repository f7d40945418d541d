import asyncio
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..common import ensure_clipboard_dir, generate_clipboard_filename

NO_IMAGE_MESSAGE = "No image found in clipboard."
EMPTY_IMAGE_MESSAGE = "Clipboard image is empty."
WRITE_FAILED_MESSAGE = "Failed to write image data to file."

# Failure kinds carried by SaveResult
NO_TOOL = 'no_tool'
NO_IMAGE = 'no_image'
EMPTY = 'empty'
IO_ERROR = 'io'


class ImageFormat(Enum):
    PNG = ('png', 'image/png')
    JPEG = ('jpeg', 'image/jpeg')
    GIF = ('gif', 'image/gif')

    def __init__(self, extension, mime):
        self.extension = extension
        self.mime = mime


# Formats in order of preference
FORMAT_ORDER = (ImageFormat.PNG, ImageFormat.JPEG, ImageFormat.GIF)


class NoImageError(Exception):
    """A tool positively reported that the clipboard holds no image."""


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    format: ImageFormat


@dataclass(frozen=True)
class SaveResult:
    success: bool
    file_path: Optional[str] = None
    error: Optional[str] = None
    kind: Optional[str] = None

    def __post_init__(self):
        if self.success and (not self.file_path or self.error is not None):
            raise ValueError("a successful result needs a file path and no error")
        if not self.success and (not self.error or self.file_path is not None):
            raise ValueError("a failed result needs an error and no file path")

    @classmethod
    def ok(cls, file_path):
        return cls(True, file_path=file_path)

    @classmethod
    def fail(cls, error, kind=None):
        return cls(False, error=error, kind=kind)

    def to_dict(self):
        if self.success:
            return {'success': True, 'file_path': self.file_path}
        return {'success': False, 'error': self.error}


class Tool:
    """An external clipboard reader tried as one step of a fallback chain.

    ``assumed_format`` is used when the tool cannot list clipboard types;
    ``None`` means the tool cannot tell and is never asked for bytes.
    """

    name = None
    executable = None
    can_enumerate_types = False
    can_read_image_bytes = False
    assumed_format = None

    def is_available(self):
        try:
            return shutil.which(self.executable) is not None
        except OSError as e:
            logging.debug(f"Could not look up {self.executable}: {e}")
            return False

    async def list_types(self):
        raise NotImplementedError

    async def contains_image(self):
        return None

    async def read_image(self, fmt):
        raise NotImplementedError

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}>"


def pick_format(types):
    offered = {t.strip().lower() for t in types}
    for fmt in FORMAT_ORDER:
        if fmt.mime in offered:
            return fmt
    return None


def _remove_quietly(path):
    try:
        os.unlink(path)
    except OSError:
        pass


def write_image(payload):
    """Write ``payload`` to a new file in the clipboard directory.

    The data goes to a hidden ``.part`` file first and is renamed onto the
    generated name once it is complete and non-empty. The partial file is
    removed on every failure path, so a failed result never leaves an
    empty or truncated file behind.
    """
    partial = None
    try:
        directory = ensure_clipboard_dir()
        path = os.path.join(directory, generate_clipboard_filename(payload.format.extension))
        fd, partial = tempfile.mkstemp(dir=directory, prefix='.clipboard-', suffix='.part')
        with os.fdopen(fd, 'wb') as f:
            f.write(payload.data)
        if os.stat(partial).st_size == 0:
            os.unlink(partial)
            return SaveResult.fail(WRITE_FAILED_MESSAGE, EMPTY)
        os.replace(partial, path)
    except OSError as e:
        if partial:
            _remove_quietly(partial)
        return SaveResult.fail(str(e), IO_ERROR)
    return SaveResult.ok(path)


async def persist(payload):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, write_image, payload)
