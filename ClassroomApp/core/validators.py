"""Validation helpers for submission file descriptors, rubric payloads and resource URLs."""

from urllib.parse import urlparse
from typing import Any

from django.core.exceptions import ValidationError

from ClassroomApp.core.conf import classroom_settings

ALLOWED_ATTACHMENT_MIME: set[str] = {
    "application/pdf",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "application/zip",
    "image/png",
    "image/jpeg",
}

FILE_KEYS = ("file_name", "file_url", "file_type", "file_size")

def validate_file_size(size: int | None, max_mb: int | None = None) -> None:
    """Ensure a declared file size does not exceed max_mb megabytes."""
    max_mb = max_mb or classroom_settings().max_submission_file_mb
    if size and size > max_mb * 1024 * 1024:
        raise ValidationError(f"File exceeds {max_mb} MB limit.")

def validate_attachment_mime(mime: str | None) -> None:
    """Validate that a declared attachment type is allowed."""
    if mime and mime not in ALLOWED_ATTACHMENT_MIME:
        raise ValidationError(f"Unsupported attachment mime: {mime}")

def validate_resource_url(url: str) -> None:
    """Accept site-relative paths or https URLs."""
    if url.startswith("/"):
        return
    if urlparse(url).scheme != "https":
        raise ValidationError("URL must use https.")

def validate_submission_files(files: Any) -> None:
    """Validate the list of already-stored file descriptors attached to a submission."""
    if files in (None, []):
        return
    if not isinstance(files, list):
        raise ValidationError("files must be a list.")
    for item in files:
        if not isinstance(item, dict) or not item.get("file_url"):
            raise ValidationError("Each file needs at least a file_url.")
        unknown = set(item) - set(FILE_KEYS)
        if unknown:
            raise ValidationError(f"Unknown file keys: {', '.join(sorted(unknown))}")
        validate_resource_url(item["file_url"])
        validate_attachment_mime(item.get("file_type"))
        validate_file_size(item.get("file_size"))

def validate_rubric(rubric: Any) -> None:
    """Rubric is a list of {criterion, description, max_points}."""
    if not isinstance(rubric, list):
        raise ValidationError("rubric must be a list.")
    for row in rubric:
        if not isinstance(row, dict) or not row.get("criterion"):
            raise ValidationError("Each rubric row needs a criterion.")
        points = row.get("max_points", 0)
        if not isinstance(points, (int, float)) or points < 0:
            raise ValidationError("Rubric max_points must be a non-negative number.")
