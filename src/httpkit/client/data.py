"""
Request payloads.

A payload is either a dict of fields (rendered as a query string, JSON,
XML or a multipart body depending on the request type) or a raw string
that is sent as is. File fields are dicts pointing at a path on disk:

    {"avatar": {"filename": "/tmp/me.png", "content_type": "image/png"}}
"""

import os
import uuid
from typing import Any, Dict, Optional, Union
from urllib.parse import urlencode

from ..http.mime_types import get_mime_type


def get_mime_type_from_filename(filename: str) -> str:
    return get_mime_type(filename)


def is_file_datum(value: Any) -> bool:
    """True for a field of the form {"filename": ..., ...}."""
    return isinstance(value, dict) and "filename" in value


def build_query(data: Dict[str, Any]) -> str:
    """
    Render a dict as a query string.

    Nested dicts use bracket keys (``a[b]=c``), lists repeat the key with
    empty brackets (``tag[]=a&tag[]=b``).
    """
    pairs = []

    def flatten(prefix: str, value: Any) -> None:
        if isinstance(value, dict):
            for k, v in value.items():
                flatten(f"{prefix}[{k}]", v)
        elif isinstance(value, (list, tuple)):
            for v in value:
                flatten(f"{prefix}[]", v)
        elif value is None:
            pairs.append((prefix, ""))
        elif isinstance(value, bool):
            pairs.append((prefix, "1" if value else "0"))
        else:
            pairs.append((prefix, str(value)))

    for key, value in data.items():
        flatten(str(key), value)

    return urlencode(pairs)


class Data:
    """
    Field data or a raw payload for a client request.

    Attributes:
        fields: Named fields (None when the payload is raw)
        raw: Raw payload (None when the payload is a dict of fields)
    """

    def __init__(self, data: Union[Dict[str, Any], str, bytes, None] = None):
        self.fields: Optional[Dict[str, Any]] = None
        self.raw: Union[str, bytes, None] = None
        if data is not None:
            self.set_data(data)

    def set_data(self, data: Union[Dict[str, Any], str, bytes]) -> "Data":
        if isinstance(data, dict):
            self.fields = dict(data)
            self.raw = None
        else:
            self.fields = None
            self.raw = data
        return self

    def add_data(self, name: str, value: Any) -> "Data":
        if self.fields is None:
            self.fields = {}
            self.raw = None
        self.fields[name] = value
        return self

    def get_data(self, key: Optional[str] = None) -> Any:
        if key is None:
            return self.fields if self.fields is not None else self.raw
        return (self.fields or {}).get(key)

    def has_data(self, key: Optional[str] = None) -> bool:
        if key is None:
            return bool(self.fields) or bool(self.raw)
        return key in (self.fields or {})

    def remove_data(self, key: str) -> "Data":
        if self.fields:
            self.fields.pop(key, None)
        return self

    def remove_all_data(self) -> "Data":
        self.fields = None
        self.raw = None
        return self

    def has_files(self) -> bool:
        return any(is_file_datum(v) for v in (self.fields or {}).values())

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.fields or {})

    def get_query_string(self) -> str:
        if self.raw is not None:
            return self.raw.decode("utf-8") if isinstance(self.raw, bytes) else self.raw
        return build_query(self.fields or {})

    def render_multipart(self, boundary: str) -> bytes:
        """
        Render the fields as a multipart/form-data body.

        File fields are read from disk; a missing file raises OSError.
        """
        body = b""
        for name, value in (self.fields or {}).items():
            body += f"--{boundary}\r\n".encode()
            if is_file_datum(value):
                path = value["filename"]
                content_type = value.get("content_type") or get_mime_type(path)
                basename = os.path.basename(path)
                body += (
                    f'Content-Disposition: form-data; name="{name}"; filename="{basename}"\r\n'
                    f"Content-Type: {content_type}\r\n\r\n"
                ).encode()
                if "contents" in value:
                    contents = value["contents"]
                    body += contents if isinstance(contents, bytes) else str(contents).encode()
                else:
                    with open(path, "rb") as f:
                        body += f.read()
            else:
                body += f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode()
                body += str(value).encode()
            body += b"\r\n"
        body += f"--{boundary}--\r\n".encode()
        return body

    @staticmethod
    def generate_boundary() -> str:
        return uuid.uuid4().hex

    def __bool__(self) -> bool:
        return self.has_data()

    def __repr__(self) -> str:
        return f"Data({self.get_data()!r})"
