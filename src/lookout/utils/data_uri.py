"""Data URI helpers.

Media travels through the service as ``data:<mimetype>;base64,<payload>``
strings, the same form a browser ``FileReader.readAsDataURL`` produces.
"""

import base64
import binascii
import re
from dataclasses import dataclass

from lookout.exceptions import InvalidMediaError

_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?P<params>(;[\w.+-]+=[\w.+-]+)*);base64,(?P<data>.*)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class DataUri:
    mime_type: str
    data: bytes

    @property
    def kind(self) -> str:
        """Top-level media type: ``image``, ``video``, ..."""
        return self.mime_type.split("/", 1)[0]

    def to_string(self) -> str:
        return build_data_uri(self.data, self.mime_type)


def split_data_uri(uri: str) -> tuple[str, str]:
    """Return ``(mime_type, base64_payload)`` without decoding the payload.

    Raises:
        InvalidMediaError: the string is not a base64 data URI.
    """
    match = _DATA_URI_RE.match(uri.strip())
    if match is None:
        raise InvalidMediaError(
            "Expected a data URI of the form 'data:<mimetype>;base64,<encoded_data>'"
        )
    return match.group("mime").lower(), match.group("data")


def parse_data_uri(uri: str) -> DataUri:
    """Decode a base64 data URI.

    Raises:
        InvalidMediaError: the string is not a base64 data URI or the payload
            does not decode.
    """
    mime_type, payload = split_data_uri(uri)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidMediaError(f"Data URI payload is not valid base64: {e}") from e
    return DataUri(mime_type=mime_type, data=data)


def build_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def payload_of(uri: str) -> str:
    """Return the encoded part after the first comma, or the whole string."""
    _, sep, payload = uri.partition(",")
    return payload if sep else uri


def decoded_length(b64_payload: str) -> int:
    """Byte length the base64 payload decodes to, without decoding it."""
    payload = b64_payload.strip()
    if not payload:
        return 0
    padding = len(payload) - len(payload.rstrip("="))
    return max(0, len(payload) * 3 // 4 - padding)
