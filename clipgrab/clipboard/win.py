import asyncio
import base64
import binascii
import importlib.util
import logging
from io import BytesIO

from ..common import (
    CommandError,
    CommandTimeout,
    OutputLimitExceeded,
    command_timeout,
    max_image_bytes,
    run_command,
)
from .chain import detect_image, retrieve_image
from .common import ImageFormat, NoImageError, Tool

NO_TOOL_MESSAGE = (
    "No clipboard tool available. PowerShell or Pillow (pip install Pillow) is "
    "required to read images from the clipboard."
)

CONTAINS_IMAGE_SCRIPT = '''
Add-Type -AssemblyName System.Windows.Forms
[System.Windows.Forms.Clipboard]::ContainsImage()
'''

GET_IMAGE_SCRIPT = '''
Add-Type -AssemblyName System.Windows.Forms
Add-Type -AssemblyName System.Drawing

$img = [System.Windows.Forms.Clipboard]::GetImage()
if ($img -eq $null) {
    Write-Output "NO_IMAGE"
    exit 0
}

try {
    $ms = New-Object System.IO.MemoryStream
    $img.Save($ms, [System.Drawing.Imaging.ImageFormat]::Png)
    [System.Convert]::ToBase64String($ms.ToArray())
} finally {
    $img.Dispose()
}
'''


class PowerShell(Tool):
    """System.Windows.Forms clipboard access through powershell.exe.

    The clipboard bitmap is always re-encoded as PNG, so there is no type
    negotiation: the format is assumed.
    """

    name = 'powershell'
    executable = 'powershell.exe'
    can_read_image_bytes = True
    assumed_format = ImageFormat.PNG

    async def _run(self, script, max_bytes=None):
        stdout = await run_command(
            [self.executable, '-NoProfile', '-NonInteractive', '-Command', script],
            max_bytes=max_bytes,
        )
        return stdout.strip()

    async def contains_image(self):
        return (await self._run(CONTAINS_IMAGE_SCRIPT)).lower() == 'true'

    async def read_image(self, fmt):
        # base64 output is a third larger than the image itself
        output = await self._run(GET_IMAGE_SCRIPT, max_bytes=max_image_bytes() * 4 // 3 + 1024)
        if output == 'NO_IMAGE':
            raise NoImageError()
        try:
            return base64.b64decode(output, validate=True)
        except binascii.Error as e:
            raise CommandError(f"Malformed image data from PowerShell: {e}") from e


class PillowGrab(Tool):
    name = 'pillow'
    can_read_image_bytes = True
    assumed_format = ImageFormat.PNG

    def is_available(self):
        return importlib.util.find_spec('PIL') is not None

    async def _grab(self):
        from PIL import Image, ImageGrab
        loop = asyncio.get_running_loop()
        timeout = command_timeout()
        try:
            content = await asyncio.wait_for(
                loop.run_in_executor(None, ImageGrab.grabclipboard), timeout)
        except asyncio.TimeoutError:
            raise CommandTimeout(f"ImageGrab.grabclipboard timed out after {timeout}s")
        except (OSError, NotImplementedError) as e:
            raise CommandError(f"ImageGrab.grabclipboard failed: {e}") from e
        # A list of file names means files were copied, not an image
        if isinstance(content, Image.Image):
            return content
        return None

    async def contains_image(self):
        return await self._grab() is not None

    async def read_image(self, fmt):
        image = await self._grab()
        if image is None:
            raise NoImageError()
        buffer = BytesIO()
        try:
            image.save(buffer, format='PNG')
        except OSError as e:
            raise CommandError(f"Could not encode clipboard image: {e}") from e
        data = buffer.getvalue()
        limit = max_image_bytes()
        if len(data) > limit:
            raise OutputLimitExceeded(f"clipboard image exceeds {limit} bytes")
        logging.debug(f"Pillow grabbed a {image.width}x{image.height} {image.mode} image")
        return data


TOOLS = (PowerShell(), PillowGrab())


async def has_clipboard_image():
    return await detect_image(TOOLS)


async def save_clipboard_image():
    return await retrieve_image(TOOLS, NO_TOOL_MESSAGE)
