import logging

from ..common import CommandError, clipboard_bytes
from .common import (
    EMPTY,
    EMPTY_IMAGE_MESSAGE,
    NO_IMAGE,
    NO_IMAGE_MESSAGE,
    NO_TOOL,
    ImagePayload,
    NoImageError,
    SaveResult,
    persist,
    pick_format,
)


class _NoImageType:
    def __repr__(self):
        return 'NO_IMAGE_TYPE'


# Returned by negotiate_format when the clipboard lists types but none is an image
NO_IMAGE_TYPE = _NoImageType()


async def negotiate_format(tool):
    """Work out which image format ``tool`` should fetch.

    Returns an ImageFormat, NO_IMAGE_TYPE when the tool listed the
    clipboard types and none of them is a supported image, or None when
    the tool has no way to tell. Tool failures propagate as CommandError.
    """
    if not tool.can_enumerate_types:
        return tool.assumed_format
    types = await tool.list_types()
    fmt = pick_format(types)
    if fmt is None:
        logging.debug(f"{tool.name} offers no image type: {types}")
        return NO_IMAGE_TYPE
    return fmt


async def detect_image(tools):
    for tool in tools:
        if not tool.is_available():
            continue
        try:
            if tool.can_enumerate_types:
                return await negotiate_format(tool) is not NO_IMAGE_TYPE
            present = await tool.contains_image()
        except CommandError as e:
            logging.debug(f"{tool.name} image check failed: {e}")
            continue
        if present is not None:
            return present
    return False


async def retrieve_image(tools, no_tool_message):
    any_available = False
    saw_empty = False
    for tool in tools:
        if not tool.is_available():
            logging.debug(f"{tool.name} is not available")
            continue
        any_available = True

        try:
            fmt = await negotiate_format(tool)
        except CommandError as e:
            logging.debug(f"{tool.name} type query failed, trying next tool: {e}")
            continue
        if fmt is NO_IMAGE_TYPE:
            return SaveResult.fail(NO_IMAGE_MESSAGE, NO_IMAGE)
        if fmt is None or not tool.can_read_image_bytes:
            continue

        try:
            data = await tool.read_image(fmt)
        except NoImageError:
            return SaveResult.fail(NO_IMAGE_MESSAGE, NO_IMAGE)
        except CommandError as e:
            logging.debug(f"{tool.name} read failed, trying next tool: {e}")
            continue
        if not data:
            logging.debug(f"{tool.name} returned an empty {fmt.mime} image")
            saw_empty = True
            continue

        logging.info(f"Read {fmt.mime} from clipboard via {tool.name} ({clipboard_bytes(data)})")
        return await persist(ImagePayload(data, fmt))

    if not any_available:
        return SaveResult.fail(no_tool_message, NO_TOOL)
    if saw_empty:
        return SaveResult.fail(EMPTY_IMAGE_MESSAGE, EMPTY)
    return SaveResult.fail(NO_IMAGE_MESSAGE, NO_IMAGE)
