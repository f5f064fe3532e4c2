# src/core/paths.py - v1
"""Identity validation and storage path derivation.

The identity doubles as a storage-path component, so it is validated before
any path is built. Paths are normalised on every call: a path written under
one spelling and read under another would silently lose the object.
"""

from __future__ import annotations

import re

from avatarkit.core.errors import InvalidIdentityError

DEFAULT_PATH_TEMPLATE = "avatars/{identity}/avatar.webp"

FORBIDDEN_IDENTITY_SEQUENCES: tuple[str, ...] = (
    "/", "\\", "..", "<", ">", ":", '"', "|", "?", "*",
)

_SLASH_RUN = re.compile(r"/+")

FORMAT_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "WEBP": (".webp",),
    "PNG": (".png",),
    "JPEG": (".jpg", ".jpeg"),
}

_CONTENT_TYPES = {
    ".webp": "image/webp",
    ".png": "image/png",
}


def validate_identity(identity: str) -> None:
    """Raise InvalidIdentityError if identity is unusable as a path component."""
    if not identity:
        raise InvalidIdentityError("Identity cannot be empty")
    for seq in FORBIDDEN_IDENTITY_SEQUENCES:
        if seq in identity:
            raise InvalidIdentityError(f"Identity contains invalid character: {seq}")


def normalize_path(path: str) -> str:
    """Collapse slash runs, then strip the leading and trailing slash.

    A bare ``"/"`` stays ``"/"`` so the result is never empty for a root path.
    """
    collapsed = _SLASH_RUN.sub("/", path)
    if collapsed == "/":
        return collapsed
    return collapsed.strip("/")


def template_problems(template: str, image_format: str | None = None) -> list[str]:
    """Describe what makes template unusable; empty when it is fine.

    Only ``{identity}`` may be substituted. With image_format, the template's
    extension must match the encoder output or stored files are mislabelled.
    """
    if "{identity}" not in template:
        return ["path template must contain '{identity}'"]
    try:
        sample = template.format(identity="x")
    except (KeyError, IndexError, ValueError) as e:
        return [f"path template has an unsupported placeholder or brace: {e}"]

    if image_format is None:
        return []
    allowed = FORMAT_EXTENSIONS.get(image_format.upper(), ())
    if not normalize_path(sample).lower().endswith(allowed):
        return [
            f"path template extension must be one of {', '.join(allowed)} "
            f"for image format {image_format.upper()}"
        ]
    return []


def build_path(template: str, identity: str) -> str:
    """Validate identity, interpolate it into template and normalise."""
    validate_identity(identity)
    return normalize_path(template.format(identity=identity))


def content_type_for(path: str) -> str:
    """Content type from the path's extension (JPEG when unrecognised)."""
    lowered = path.lower()
    for ext, content_type in _CONTENT_TYPES.items():
        if lowered.endswith(ext):
            return content_type
    return "image/jpeg"
