import asyncio
import logging
import math
import os
import secrets
import tempfile
import time

DEFAULT_TIMEOUT = 10
MAX_IMAGE_BYTES = 50 * 1024 * 1024
READ_CHUNK = 64 * 1024


class CommandError(Exception):
    """An external clipboard tool could not be run or returned an error."""


class CommandTimeout(CommandError):
    pass


class OutputLimitExceeded(CommandError):
    pass


def _env_number(name, default, cast):
    value = os.environ.get(name)
    if not value:
        return default
    try:
        number = cast(value)
    except ValueError:
        logging.warning(f"Ignoring invalid {name}={value!r}, using {default}")
        return default
    if not math.isfinite(number) or number <= 0:
        logging.warning(f"Ignoring out-of-range {name}={value!r}, using {default}")
        return default
    return number


def command_timeout():
    return _env_number('CLIPGRAB_TIMEOUT', DEFAULT_TIMEOUT, float)


def max_image_bytes():
    return _env_number('CLIPGRAB_MAX_BYTES', MAX_IMAGE_BYTES, int)


def clipboard_dir():
    return os.environ.get('CLIPGRAB_DIR') or os.path.join(tempfile.gettempdir(), 'clipgrab')


def ensure_clipboard_dir():
    path = clipboard_dir()
    os.makedirs(path, exist_ok=True)
    return path


def generate_clipboard_filename(extension):
    stamp = time.strftime('%Y%m%d-%H%M%S')
    return f"clipboard-{stamp}-{secrets.token_hex(4)}.{extension}"


def clipboard_bytes(data_bytes):
    if data_bytes is None:
        return "0 bytes"
    size_bytes = len(data_bytes)
    if size_bytes > 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f}MB"
    if size_bytes > 1024:
        return f"{size_bytes / 1024:.1f}KB"
    return f"{size_bytes} bytes"


async def _read_capped(stream, limit):
    chunks = []
    size = 0
    while True:
        chunk = await stream.read(READ_CHUNK)
        if not chunk:
            break
        size += len(chunk)
        if limit is not None and size > limit:
            raise OutputLimitExceeded(f"output exceeded {limit} bytes")
        chunks.append(chunk)
    return b''.join(chunks)


def _kill(proc):
    try:
        proc.kill()
    except ProcessLookupError:
        pass


async def run_command(args, binary=False, max_bytes=None, timeout=None):
    """Run an external command and return its stdout.

    Returns bytes when ``binary`` is set, otherwise text. Raises
    CommandError on spawn failure or non-zero exit, CommandTimeout when
    the command outlives ``timeout`` and OutputLimitExceeded when stdout
    grows past ``max_bytes``. The child is killed in both of the latter
    cases.
    """
    if timeout is None:
        timeout = command_timeout()
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CommandError(f"{args[0]}: {e}") from e

    async def communicate():
        stdout, stderr = await asyncio.gather(
            _read_capped(proc.stdout, max_bytes),
            proc.stderr.read(),
        )
        await proc.wait()
        return stdout, stderr

    try:
        stdout, stderr = await asyncio.wait_for(communicate(), timeout)
    except asyncio.TimeoutError:
        _kill(proc)
        await proc.wait()
        raise CommandTimeout(f"{args[0]} timed out after {timeout}s")
    except OutputLimitExceeded as e:
        _kill(proc)
        await proc.wait()
        raise OutputLimitExceeded(f"{args[0]}: {e}") from e

    if proc.returncode != 0:
        message = stderr.decode('utf-8', errors='replace').strip()
        raise CommandError(f"{args[0]} exited with status {proc.returncode}: {message}")
    if binary:
        return stdout
    return stdout.decode('utf-8', errors='replace')
