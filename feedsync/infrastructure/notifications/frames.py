"""Encoding and decoding of push channel frames."""

from __future__ import annotations

import json
import logging
from typing import Annotated, Union

from pydantic import Field, TypeAdapter, ValidationError

from feedsync.interfaces.schemas import (
    AuthenticateFrame,
    NotificationFrame,
    UnreadCountFrame,
)

logger = logging.getLogger(__name__)

PushFrame = Annotated[
    Union[NotificationFrame, UnreadCountFrame], Field(discriminator="type")
]

_push_frame_adapter: TypeAdapter[PushFrame] = TypeAdapter(PushFrame)


def encode_authenticate_frame(token: str) -> str:
    """Return the JSON text of the authenticate frame for ``token``."""

    return AuthenticateFrame(token=token).model_dump_json()


def decode_push_frame(raw: str | bytes) -> NotificationFrame | UnreadCountFrame | None:
    """Decode ``raw`` into a typed push frame.

    Returns ``None`` for anything that is not a recognized, well-formed frame;
    the reason is logged and the frame is dropped.
    """

    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Dropping push frame that is not valid UTF-8")
            return None

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Dropping malformed push frame: %s", exc)
        return None

    if not isinstance(data, dict):
        logger.warning("Dropping push frame that is not an object: %r", data)
        return None

    frame_type = data.get("type")
    if frame_type not in ("notification", "unread_count"):
        logger.warning("Dropping push frame with unrecognized type %r", frame_type)
        return None

    try:
        return _push_frame_adapter.validate_python(data)
    except ValidationError as exc:
        logger.warning(
            "Dropping invalid %s frame: %s", frame_type, exc.errors(include_url=False)
        )
        return None


__all__ = ["PushFrame", "decode_push_frame", "encode_authenticate_frame"]
