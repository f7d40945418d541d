import os

from ..common import CommandError, max_image_bytes, run_command
from .chain import detect_image, retrieve_image
from .common import Tool

NO_TOOL_MESSAGE = (
    "No clipboard tool available. Please install xclip (sudo apt install xclip) "
    "or wl-clipboard for Wayland."
)


class WlPaste(Tool):
    name = 'wl-paste'
    executable = 'wl-paste'
    can_enumerate_types = True
    can_read_image_bytes = True

    # An installed wl-paste still counts as a clipboard tool outside Wayland,
    # it just cannot answer there.
    def _require_wayland(self):
        if not os.environ.get('WAYLAND_DISPLAY'):
            raise CommandError("wl-paste needs a Wayland session (WAYLAND_DISPLAY is not set)")

    async def list_types(self):
        self._require_wayland()
        stdout = await run_command(['wl-paste', '--list-types'])
        return stdout.splitlines()

    async def read_image(self, fmt):
        self._require_wayland()
        return await run_command(['wl-paste', '--type', fmt.mime],
                                 binary=True, max_bytes=max_image_bytes())


class Xclip(Tool):
    name = 'xclip'
    executable = 'xclip'
    can_enumerate_types = True
    can_read_image_bytes = True

    async def list_types(self):
        stdout = await run_command(['xclip', '-selection', 'clipboard', '-t', 'TARGETS', '-o'])
        return stdout.splitlines()

    async def read_image(self, fmt):
        return await run_command(['xclip', '-selection', 'clipboard', '-t', fmt.mime, '-o'],
                                 binary=True, max_bytes=max_image_bytes())


class Xsel(Tool):
    # xsel has no TARGETS equivalent, so it only counts towards tool availability
    name = 'xsel'
    executable = 'xsel'


TOOLS = (WlPaste(), Xclip(), Xsel())


async def has_clipboard_image():
    return await detect_image(TOOLS)


async def save_clipboard_image():
    return await retrieve_image(TOOLS, NO_TOOL_MESSAGE)
