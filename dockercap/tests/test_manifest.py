from __future__ import annotations

from pathlib import Path

import pytest

from dockercap.core.errors import ManifestError
from dockercap.core.manifest import Manifest, parse_manifest, read_manifest


def test_parse_manifest_joins_continuation_lines() -> None:
    text = (
        "Manifest-Version: 1.0\r\n"
        "Dependencies: org.example:alpha:1.0 org.exa\r\n"
        " mple:beta:2.0\r\n"
        "Application-Name: hello\r\n"
        "\r\n"
        "Name: ignored/section\r\n"
        "Application-Name: other\r\n"
    )

    attributes = parse_manifest(text)

    assert attributes["Dependencies"] == "org.example:alpha:1.0 org.example:beta:2.0"
    assert attributes["Application-Name"] == "hello"
    assert "Name" not in attributes


def test_parse_manifest_keeps_space_before_wrap() -> None:
    raw = b"Dependencies: org.example:a:1.0 \r\n org.example:b:2.0\r\n\r\n"

    assert parse_manifest(raw)["Dependencies"] == "org.example:a:1.0 org.example:b:2.0"


def test_parse_manifest_joins_multibyte_character_split_at_wrap() -> None:
    raw = b"Application-Name: caf\xc3\r\n \xa9\r\n\r\n"

    assert parse_manifest(raw)["Application-Name"] == "café"


def test_parse_manifest_rejects_invalid_utf8() -> None:
    with pytest.raises(ManifestError):
        parse_manifest(b"Application-Name: \xff\xfe\r\n")


@pytest.mark.parametrize("text", [" orphan continuation\n", "no separator here\n", ": value\n"])
def test_parse_manifest_rejects_malformed_lines(text: str) -> None:
    with pytest.raises(ManifestError):
        parse_manifest(text)


def test_typed_accessors() -> None:
    manifest = Manifest(
        {
            "JDK-Required": "True",
            "Expose-Ports": "80  443",
            "Environment-Variables": "A=1 B= C",
        }
    )

    assert manifest.get_boolean("JDK-Required") is True
    assert manifest.get_boolean("Missing", default=True) is True
    assert manifest.get_list("Expose-Ports") == ["80", "443"]
    assert manifest.get_list("Missing") == []
    assert manifest.get_map("Environment-Variables") == {"A": "1", "B": "", "C": ""}


def test_get_map_rejects_empty_key() -> None:
    with pytest.raises(ManifestError):
        Manifest({"System-Properties": "=oops"}).get_map("System-Properties")


def test_read_manifest_from_jar(make_jar) -> None:
    jar = make_jar(attributes={"Application-Name": "hello", "Java-Version": "1.8"})

    manifest = read_manifest(jar)

    assert manifest.get("Application-Name") == "hello"
    assert manifest.get("Java-Version") == "1.8"


def test_read_manifest_without_manifest_entry(tmp_path: Path) -> None:
    import zipfile

    jar = tmp_path / "plain.jar"
    with zipfile.ZipFile(jar, "w") as zf:
        zf.writestr("readme.txt", "hi")

    assert read_manifest(jar).attributes == {}


def test_read_manifest_rejects_non_zip(tmp_path: Path) -> None:
    bogus = tmp_path / "bogus.jar"
    bogus.write_text("not a zip", encoding="utf-8")
    with pytest.raises(ManifestError):
        read_manifest(bogus)
    with pytest.raises(ManifestError):
        read_manifest(tmp_path / "missing.jar")
