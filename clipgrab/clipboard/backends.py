from .common import NO_TOOL, SaveResult


class ClipboardBackend:
    """Abstract clipboard image driver."""

    async def has_image(self):
        raise NotImplementedError

    async def save_image(self):
        raise NotImplementedError


class LinuxBackend(ClipboardBackend):
    async def has_image(self):
        from .linux import has_clipboard_image as _has
        return await _has()

    async def save_image(self):
        from .linux import save_clipboard_image as _save
        return await _save()


class WindowsBackend(ClipboardBackend):
    async def has_image(self):
        from .win import has_clipboard_image as _has
        return await _has()

    async def save_image(self):
        from .win import save_clipboard_image as _save
        return await _save()


class UnsupportedBackend(ClipboardBackend):
    def __init__(self, system=None):
        self.system = system or 'this platform'

    async def has_image(self):
        return False

    async def save_image(self):
        return SaveResult.fail(f"Clipboard images are not supported on {self.system}.", NO_TOOL)


BACKENDS = {
    "Linux": LinuxBackend,
    "Windows": WindowsBackend,
}


def get_backend(system):
    backend = BACKENDS.get(system)
    if backend is None:
        return UnsupportedBackend(system)
    return backend()
