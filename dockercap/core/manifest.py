"""JAR manifest parsing and typed attribute access."""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from pathlib import Path

from dockercap.core.errors import ManifestError

MANIFEST_ENTRY = "META-INF/MANIFEST.MF"


def parse_manifest(data: bytes | str) -> dict[str, str]:
    """Parse the main section of a manifest.

    Continuation lines (a line break followed by a single space) are joined
    on the raw bytes before decoding, since the 72-byte wrap may fall inside
    a multibyte character or right after a separating space. The main
    section ends at the first blank line.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    data = data.replace(b"\r\n", b"\n").replace(b"\r", b"\n")
    main = data.split(b"\n\n", 1)[0]
    if main.startswith(b" "):
        raise ManifestError(f"continuation line without attribute: {main.splitlines()[0]!r}")
    main = main.replace(b"\n ", b"")

    attributes: dict[str, str] = {}
    for raw_line in main.split(b"\n"):
        if raw_line == b"":
            continue
        try:
            line = raw_line.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ManifestError(f"manifest line is not valid UTF-8: {raw_line!r}") from exc
        key, sep, value = line.partition(":")
        key = key.strip()
        if sep == "" or key == "":
            raise ManifestError(f"malformed manifest line: {line!r}")
        attributes[key] = value[1:] if value.startswith(" ") else value
    return attributes


def parse_boolean(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() == "true"


@dataclass(frozen=True)
class Manifest:
    attributes: dict[str, str] = field(default_factory=dict)

    def has(self, name: str) -> bool:
        return name in self.attributes

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.attributes.get(name, default)

    def get_boolean(self, name: str, default: bool = False) -> bool:
        return parse_boolean(self.attributes.get(name), default)

    def get_list(self, name: str) -> list[str]:
        value = self.attributes.get(name, "")
        return value.split()

    def get_map(self, name: str) -> dict[str, str]:
        """Parse ``k1=v1 k2=v2`` entries. A bare key maps to an empty string."""
        result: dict[str, str] = {}
        for item in self.get_list(name):
            key, _, value = item.partition("=")
            if key == "":
                raise ManifestError(f"{name}: empty key in entry {item!r}")
            result[key] = value
        return result


def read_manifest(jar_path: Path) -> Manifest:
    try:
        with zipfile.ZipFile(jar_path, "r") as zf:
            try:
                raw = zf.read(MANIFEST_ENTRY)
            except KeyError:
                return Manifest()
    except FileNotFoundError as exc:
        raise ManifestError(f"artifact not found: {jar_path}") from exc
    except zipfile.BadZipFile as exc:
        raise ManifestError(f"artifact is not a valid JAR: {jar_path}") from exc
    return Manifest(parse_manifest(raw))
