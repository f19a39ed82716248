"""
=============================================================================
FILE UPLOADS
=============================================================================

Checks an uploaded file and moves it into an upload directory.

    upload = Upload("/var/uploads").set_defaults()
    stored = upload.upload(request.get_files("avatar"))
    if stored is None:
        logger.warning("upload refused: %s", upload.error_message)

A file is described by a dict, as ServerRequest.get_files() returns it:

    {"name": "photo.jpg", "type": "image/jpeg", "size": 48213,
     "tmp_name": "/tmp/httpkit-1a2b3c", "error": 0}

=============================================================================
ERROR CODES
=============================================================================

    ┌──────┬────────────────────────────────────────────────────────────┐
    │ 0    │ success                                                    │
    │ 1-8  │ transport errors reported with the file itself             │
    │ 9    │ larger than max_size                                       │
    │ 10   │ extension not allowed                                      │
    │ 11   │ upload directory does not exist                            │
    │ 12   │ upload directory not writable                              │
    │ 13   │ temporary file is not a plain file (secure mode)           │
    │ 14   │ unexpected error                                           │
    └──────┴────────────────────────────────────────────────────────────┘

Unless overwriting is on, a name already taken gets a numeric suffix:
photo.jpg, photo_1.jpg, photo_2.jpg, ...
=============================================================================
"""

import logging
import os
import shutil
from typing import Any, Dict, Iterable, List, Optional


logger = logging.getLogger("httpkit.server")


UPLOAD_ERR_OK = 0
UPLOAD_ERR_INI_SIZE = 1
UPLOAD_ERR_FORM_SIZE = 2
UPLOAD_ERR_PARTIAL = 3
UPLOAD_ERR_NO_FILE = 4
UPLOAD_ERR_NO_TMP_DIR = 6
UPLOAD_ERR_CANT_WRITE = 7
UPLOAD_ERR_EXTENSION = 8
UPLOAD_ERR_USER_SIZE = 9
UPLOAD_ERR_NOT_ALLOWED = 10
UPLOAD_ERR_DIR_NOT_EXIST = 11
UPLOAD_ERR_DIR_NOT_WRITABLE = 12
UPLOAD_ERR_FILE_NOT_SECURE = 13
UPLOAD_ERR_UNEXPECTED = 14

ERROR_MESSAGES = {
    0: "The file uploaded successfully",
    1: "The uploaded file exceeds the server's maximum upload size",
    2: "The uploaded file exceeds the maximum size given by the form",
    3: "The uploaded file was only partially uploaded",
    4: "No file was uploaded",
    6: "Missing a temporary folder",
    7: "Failed to write file to disk",
    8: "An extension stopped the file upload",
    9: "The uploaded file exceeds the user-defined max file size",
    10: "The uploaded file is not allowed",
    11: "The specified upload directory does not exist",
    12: "The specified upload directory is not writable",
    13: "The uploaded file was not uploaded securely",
    14: "Unexpected error",
}

DEFAULT_MAX_SIZE = 10_000_000

DEFAULT_ALLOWED_TYPES = (
    "ai", "aif", "aiff", "avi", "bmp", "bz2", "csv", "doc", "docx", "eps", "fla", "flv", "gif", "gz",
    "jpe", "jpg", "jpeg", "log", "md", "mov", "mp2", "mp3", "mp4", "mpg", "mpeg", "otf", "pdf",
    "png", "ppt", "pptx", "psd", "rar", "svg", "swf", "tar", "tbz", "tbz2", "tgz", "tif", "tiff", "tsv",
    "ttf", "txt", "wav", "wma", "wmv", "xls", "xlsx", "xml", "zip",
)

DEFAULT_DISALLOWED_TYPES = (
    "css", "htm", "html", "js", "json", "pgsql", "php", "php3", "php4", "php5", "sql", "sqlite", "yaml", "yml",
)


def _extension(filename: str) -> Optional[str]:
    ext = os.path.splitext(filename)[1]
    return ext[1:] if ext else None


class Upload:
    """
    Upload checks for one directory.

    A missing or read-only directory is recorded as an error at
    construction; every later test() then fails with it.
    """

    def __init__(
        self,
        directory: str,
        max_size: int = 0,
        disallowed_types: Optional[Iterable[str]] = None,
        allowed_types: Optional[Iterable[str]] = None,
    ):
        self.error = UPLOAD_ERR_OK
        self.upload_dir = directory
        self.uploaded_file: Optional[str] = None
        self.max_size = 0
        self.allowed_types: List[str] = []
        self.disallowed_types: List[str] = []
        self.overwrite = False

        self.set_upload_dir(directory)
        self.set_max_size(max_size)
        if disallowed_types:
            self.set_disallowed_types(disallowed_types)
        if allowed_types:
            self.set_allowed_types(allowed_types)

    @classmethod
    def check_duplicate(cls, directory: str, filename: str) -> str:
        return cls(directory).check_filename(filename)

    @classmethod
    def does_file_exist(cls, directory: str, filename: str) -> bool:
        return cls(directory).file_exists(filename)

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def set_defaults(self) -> "Upload":
        """Allow common document, media and archive types; refuse code and data files; cap at 10 MB."""
        self.set_max_size(DEFAULT_MAX_SIZE)
        self.set_allowed_types(DEFAULT_ALLOWED_TYPES)
        self.set_disallowed_types(DEFAULT_DISALLOWED_TYPES)
        return self

    def set_upload_dir(self, directory: str) -> "Upload":
        if not os.path.isdir(directory):
            self.error = UPLOAD_ERR_DIR_NOT_EXIST
        elif not os.access(directory, os.W_OK):
            self.error = UPLOAD_ERR_DIR_NOT_WRITABLE
        self.upload_dir = directory
        return self

    def set_max_size(self, max_size: int) -> "Upload":
        self.max_size = int(max_size)
        return self

    def set_allowed_types(self, types: Iterable[str]) -> "Upload":
        self.allowed_types = []
        for ext in types:
            self.add_allowed_type(ext)
        return self

    def set_disallowed_types(self, types: Iterable[str]) -> "Upload":
        self.disallowed_types = []
        for ext in types:
            self.add_disallowed_type(ext)
        return self

    def add_allowed_type(self, ext: str) -> "Upload":
        ext = ext.lower().lstrip(".")
        if ext not in self.allowed_types:
            self.allowed_types.append(ext)
        return self

    def add_disallowed_type(self, ext: str) -> "Upload":
        ext = ext.lower().lstrip(".")
        if ext not in self.disallowed_types:
            self.disallowed_types.append(ext)
        return self

    def remove_allowed_type(self, ext: str) -> "Upload":
        ext = ext.lower().lstrip(".")
        if ext in self.allowed_types:
            self.allowed_types.remove(ext)
        return self

    def remove_disallowed_type(self, ext: str) -> "Upload":
        ext = ext.lower().lstrip(".")
        if ext in self.disallowed_types:
            self.disallowed_types.remove(ext)
        return self

    def set_overwrite(self, overwrite: bool) -> "Upload":
        self.overwrite = bool(overwrite)
        return self

    # =========================================================================
    # CHECKS
    # =========================================================================

    def is_allowed(self, ext: str) -> bool:
        """Not on the deny list, and on the allow list when there is one."""
        ext = ext.lower()
        if ext in self.disallowed_types:
            return False
        return not self.allowed_types or ext in self.allowed_types

    def is_not_allowed(self, ext: str) -> bool:
        return not self.is_allowed(ext)

    def is_success(self) -> bool:
        return self.error == UPLOAD_ERR_OK

    def is_error(self) -> bool:
        return self.error != UPLOAD_ERR_OK

    @property
    def error_message(self) -> str:
        return ERROR_MESSAGES.get(self.error, ERROR_MESSAGES[UPLOAD_ERR_UNEXPECTED])

    @property
    def uploaded_full_path(self) -> Optional[str]:
        if self.uploaded_file is None:
            return None
        return os.path.join(self.upload_dir, self.uploaded_file)

    def file_exists(self, filename: str) -> bool:
        return os.path.exists(os.path.join(self.upload_dir, filename))

    def check_filename(self, filename: str) -> str:
        """The filename, or the first free name_N.ext variant of it."""
        base, ext = os.path.splitext(filename)
        candidate = filename
        i = 1
        while self.file_exists(candidate):
            candidate = f"{base}_{i}{ext}"
            i += 1
        return candidate

    def test(self, file: Dict[str, Any]) -> bool:
        """Check a file against the directory, size and type rules."""
        if self.error != UPLOAD_ERR_OK:
            return False

        if not all(key in file for key in ("size", "tmp_name", "name")):
            return False

        self.error = int(file.get("error", UPLOAD_ERR_OK))
        if self.error != UPLOAD_ERR_OK:
            return False

        ext = _extension(file["name"])
        if self.max_size > 0 and file["size"] > self.max_size:
            self.error = UPLOAD_ERR_USER_SIZE
            return False
        if ext is not None and not self.is_allowed(ext):
            self.error = UPLOAD_ERR_NOT_ALLOWED
            return False
        return True

    # =========================================================================
    # UPLOAD
    # =========================================================================

    def upload(self, file: Dict[str, Any], to: Optional[str] = None, secure: bool = True) -> Optional[str]:
        """
        Move a tested file into the upload directory.

        Returns the stored filename, or None (with error set) when the file
        fails a check or cannot be moved. In secure mode the temporary file
        must be a regular file, not a link.
        """
        if not self.test(file):
            logger.info("Upload of %s refused: %s", file.get("name"), self.error_message)
            return None

        to = os.path.basename(to if to is not None else file["name"])
        if not self.overwrite:
            to = self.check_filename(to)

        source = file["tmp_name"]
        if secure and (os.path.islink(source) or not os.path.isfile(source)):
            self.error = UPLOAD_ERR_FILE_NOT_SECURE
            return None

        target = os.path.join(self.upload_dir, to)
        try:
            shutil.move(source, target)
        except OSError as e:
            logger.error("Upload of %s to %s failed: %s", file.get("name"), target, e)
            self.error = UPLOAD_ERR_UNEXPECTED
            return None

        self.uploaded_file = to
        logger.info("Uploaded %s to %s", file.get("name"), target)
        return to
