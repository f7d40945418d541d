import logging
import platform

from .backends import get_backend
from .common import IO_ERROR, ImageFormat, SaveResult

_backend = get_backend(platform.system())


async def has_clipboard_image():
    try:
        return bool(await _backend.has_image())
    except Exception:
        logging.exception(f"Clipboard image check failed on {platform.system()}")
        return False


async def save_clipboard_image():
    try:
        return await _backend.save_image()
    except Exception as e:
        logging.exception(f"Saving clipboard image failed on {platform.system()}")
        return SaveResult.fail(str(e) or type(e).__name__, IO_ERROR)
