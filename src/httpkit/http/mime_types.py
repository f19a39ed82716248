"""
=============================================================================
MIME TYPES
=============================================================================

Extension to MIME type lookups for file payloads.

When a client attaches a file to a multipart form (or a curl command says
``-F "doc=@report.pdf"``), each part needs a Content-Type. The browser
would look at the extension; so do we.

    -F "avatar=@me.png"  ──►  Content-Disposition: form-data; name="avatar"; filename="me.png"
                              Content-Type: image/png

Unknown extensions fall back to application/octet-stream, the "opaque
binary" type every server accepts.
=============================================================================
"""

from pathlib import Path
from typing import Optional


MIME_TYPES = {
    # Text
    ".txt": "text/plain",
    ".log": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".tsv": "text/tab-separated-values",
    ".htm": "text/html",
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",

    # Structured data
    ".json": "application/json",
    ".xml": "application/xml",
    ".yaml": "application/yaml",
    ".yml": "application/yaml",
    ".sql": "application/sql",

    # Images
    ".bmp": "image/bmp",
    ".gif": "image/gif",
    ".ico": "image/x-icon",
    ".jpe": "image/jpeg",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".psd": "image/vnd.adobe.photoshop",
    ".svg": "image/svg+xml",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".webp": "image/webp",

    # Fonts
    ".otf": "font/otf",
    ".ttf": "font/ttf",
    ".woff": "font/woff",
    ".woff2": "font/woff2",

    # Audio / video
    ".aif": "audio/x-aiff",
    ".aiff": "audio/x-aiff",
    ".mp2": "audio/mpeg",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".wma": "audio/x-ms-wma",
    ".avi": "video/x-msvideo",
    ".flv": "video/x-flv",
    ".mov": "video/quicktime",
    ".mp4": "video/mp4",
    ".mpg": "video/mpeg",
    ".mpeg": "video/mpeg",
    ".wmv": "video/x-ms-wmv",

    # Documents
    ".pdf": "application/pdf",
    ".ai": "application/postscript",
    ".eps": "application/postscript",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",

    # Archives
    ".bz2": "application/x-bzip2",
    ".gz": "application/gzip",
    ".rar": "application/x-rar-compressed",
    ".tar": "application/x-tar",
    ".tgz": "application/x-tar",
    ".tbz": "application/x-tar",
    ".tbz2": "application/x-tar",
    ".zip": "application/zip",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(path: str | Path, default: Optional[str] = None) -> str:
    """
    Get the MIME type for a file name or path.

    Examples:
        >>> get_mime_type("report.PDF")
        'application/pdf'

        >>> get_mime_type("archive.unknown")
        'application/octet-stream'
    """
    if isinstance(path, str):
        path = Path(path)

    return MIME_TYPES.get(path.suffix.lower(), default or DEFAULT_MIME_TYPE)

