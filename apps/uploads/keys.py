"""
Landing-zone object key convention.

Uploaded images live under <owner>/<task_id>[/<suffix>]. The owner and the
task id are the first two `/`-separated segments; anything after them is
free-form (usually the original file name).
"""
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote_plus

from apps.core.errors import MalformedKey

KEY_SEPARATOR = '/'
URI_SCHEME = 's3'


@dataclass(frozen=True)
class ObjectKey:
    owner: str
    task_id: str
    suffix: Optional[str] = None


def decode_event_key(raw_key: str) -> str:
    """
    Decode an object key as delivered in an S3 event notification.

    S3 URL-encodes keys in notifications with `+` standing for a space, so
    `my+photo%231.jpg` is the key `my photo#1.jpg`.
    """
    return unquote_plus(raw_key)


def parse_object_key(key: str) -> ObjectKey:
    """
    Split a decoded object key into owner and task id.

    Raises:
        MalformedKey: fewer than two segments, or an empty owner / task id.
        Retrying cannot fix such a key, so it is never guessed at.
    """
    segments = key.split(KEY_SEPARATOR)
    if len(segments) < 2:
        raise MalformedKey(f"Object key {key!r} has no task segment")

    owner, task_id = segments[0], segments[1]
    if not owner or not task_id:
        raise MalformedKey(f"Object key {key!r} has an empty owner or task segment")

    suffix = KEY_SEPARATOR.join(segments[2:]) or None
    return ObjectKey(owner=owner, task_id=task_id, suffix=suffix)


def build_object_key(owner: str, task_id: str, file_name: Optional[str] = None) -> str:
    """Inverse of parse_object_key() for a single upload."""
    for part in (owner, task_id):
        if not part or KEY_SEPARATOR in part:
            raise ValueError(f"Invalid key segment: {part!r}")
    parts = [owner, task_id]
    if file_name:
        parts.append(file_name.lstrip(KEY_SEPARATOR))
    return KEY_SEPARATOR.join(parts)


def compose_upload_uri(container: str, key: str) -> str:
    """s3://<container>/<key>, the value stored as a task's upload reference."""
    return f"{URI_SCHEME}://{container}/{key}"
