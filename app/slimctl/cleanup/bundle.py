"""Helpers for reading application bundle metadata.

All lookups are best-effort: unreadable or malformed files yield None
rather than raising.
"""

import os
import plistlib
import re
from typing import Any
from xml.parsers.expat import ExpatError

from slimctl.cleanup.codesign import resource_base

INFO_PLIST = "Info.plist"
RESOURCES_DIR = "Resources"
LPROJ_SUFFIX = ".lproj"

# Old-style text .strings entries: "key" = "value";
_STRINGS_ENTRY = re.compile(r'"((?:[^"\\]|\\.)*)"\s*=\s*"((?:[^"\\]|\\.)*)"\s*;')


def _load_plist(path: str) -> dict[str, Any] | None:
    try:
        with open(path, "rb") as f:
            data = plistlib.load(f)
    except (OSError, ExpatError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def read_info_plist(bundle_path: str) -> dict[str, Any] | None:
    """Read a bundle's Info.plist.

    Args:
        bundle_path: Absolute path of the bundle directory.

    Returns:
        Decoded Info.plist, or None if the directory is not a readable bundle.
    """
    return _load_plist(os.path.join(resource_base(bundle_path), INFO_PLIST))


def read_bundle_identifier(bundle_path: str) -> str | None:
    """Return the ``CFBundleIdentifier`` of a bundle, if it has one."""
    info = read_info_plist(bundle_path)
    if info is None:
        return None
    identifier = info.get("CFBundleIdentifier")
    return identifier if isinstance(identifier, str) else None


def bundle_localizations(bundle_path: str) -> list[str]:
    """List the localizations shipped in a bundle's resources.

    Returns:
        Localization names (``en``, ``fr``, ``Base``...) sorted alphabetically.
    """
    resources = os.path.join(resource_base(bundle_path), RESOURCES_DIR)
    try:
        names = os.listdir(resources)
    except OSError:
        return []
    return sorted(name[: -len(LPROJ_SUFFIX)] for name in names if name.endswith(LPROJ_SUFFIX))


def preferred_languages() -> list[str]:
    """Languages preferred by the environment, most preferred first.

    Reads ``LANGUAGE`` (colon-separated) and then ``LANG``/``LC_ALL``,
    stripping encodings and adding the bare language for regional entries.
    """
    raw: list[str] = []
    language = os.environ.get("LANGUAGE")
    if language:
        raw.extend(language.split(":"))
    for var in ("LC_ALL", "LANG"):
        value = os.environ.get(var)
        if value:
            raw.append(value)

    languages: list[str] = []
    for entry in raw:
        tag = entry.split(".")[0].split("@")[0]
        if not tag or tag in ("C", "POSIX"):
            continue
        for candidate in (tag, tag.replace("_", "-"), tag.split("_")[0]):
            if candidate not in languages:
                languages.append(candidate)
    return languages


def preferred_localization(available: list[str]) -> str | None:
    """Pick the best localization out of ``available``.

    Falls back to ``en``/``English`` and then ``Base`` when none of the
    environment's preferred languages is shipped.
    """
    for language in [*preferred_languages(), "en", "English", "Base"]:
        if language in available:
            return language
    return available[0] if available else None


def read_strings_file(path: str) -> dict[str, str] | None:
    """Read a ``.strings`` file in property-list or old-style text form.

    Returns:
        Mapping of keys to strings, or None if the file cannot be read.
    """
    data = _load_plist(path)
    if data is not None:
        return {k: v for k, v in data.items() if isinstance(v, str)}

    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError:
        return None

    for encoding in ("utf-16", "utf-8"):
        if encoding == "utf-16" and not raw.startswith((b"\xff\xfe", b"\xfe\xff")):
            continue
        try:
            text = raw.decode(encoding)
        except UnicodeDecodeError:
            continue
        return {
            key.replace('\\"', '"'): value.replace('\\"', '"')
            for key, value in _STRINGS_ENTRY.findall(text)
        }
    return None


def localized_display_name(bundle_path: str) -> str | None:
    """Return the user-visible name of a bundle.

    Looks up ``CFBundleDisplayName`` in the preferred localization's
    ``InfoPlist.strings`` first, then in ``Info.plist`` itself.
    """
    localization = preferred_localization(bundle_localizations(bundle_path))
    if localization is not None:
        strings_path = os.path.join(
            resource_base(bundle_path),
            RESOURCES_DIR,
            localization + LPROJ_SUFFIX,
            "InfoPlist.strings",
        )
        strings = read_strings_file(strings_path)
        if strings and strings.get("CFBundleDisplayName"):
            return strings["CFBundleDisplayName"]

    info = read_info_plist(bundle_path)
    if info is not None:
        name = info.get("CFBundleDisplayName")
        if isinstance(name, str) and name:
            return name
    return None
