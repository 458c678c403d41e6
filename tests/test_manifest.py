import pytest
from eir import (
    ConfigurationError,
    Manifest,
    ManifestError,
    load_manifest,
    load_manifests,
    load_toolchain_order,
    longname,
)


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("foo-1.2.3.tar.gz", "foo-1.2.3"),
        ("bar.tar.xz", "bar"),
        ("binutils-2.30.tar.xz", "binutils-2.30"),
        ("linux-4.15.3.tar.xz", "linux-4.15.3"),
        ("bzip2-1.0.6.tar.gz", "bzip2-1.0.6"),
        ("Python-3.11.7.tgz", "Python-3.11.7"),
        ("noext", "noext"),
        ("downloads/gcc-7.3.0.tar.bz2", "gcc-7.3.0"),
    ],
)
def test_longname(filename, expected):
    assert longname(filename) == expected


@pytest.mark.parametrize("filename", ["foo-1.2.3.tar.gz", "bar.tar.xz", "m4-1.4.18.tar.xz"])
def test_longname_idempotent(filename):
    stripped = longname(filename)
    suffix = filename[len(stripped):]
    assert longname(stripped + suffix) == stripped
    assert longname(stripped) == stripped


def write(path, text):
    path.write_text(text)
    return path


MANIFEST = """\
name: binutils
version: "2.30"
file: binutils-2.30.tar.xz
uri: https://ftp.gnu.org/gnu/binutils/binutils-2.30.tar.xz
hash: 6E46B8AEAE2F727A36DB0BD5A04CFF6A8D1B6D1C8E6A5A8F3B4A0F4E4C1A2B3C
build:
  initial: ../../binutils-2.30/configure --prefix=$EIR_TOOLS && make && make install
  toolchain: ./configure && make && make install
"""


class TestLoadManifest:
    def test_fields(self, tmp_path):
        manifest = load_manifest(write(tmp_path / "binutils.yml", MANIFEST))
        assert manifest.name == "binutils"
        assert manifest.version == "2.30"
        assert manifest.longname == "binutils-2.30"
        assert manifest.hash.startswith("6E46")
        assert manifest.phases == ["initial", "toolchain"]
        assert manifest.command("toolchain") == "./configure && make && make install"
        assert manifest.path == tmp_path / "binutils.yml"

    def test_build_is_optional(self, tmp_path):
        text = "\n".join(line for line in MANIFEST.splitlines()[:5])
        manifest = load_manifest(write(tmp_path / "headers.yml", text))
        assert manifest.build == {}
        assert manifest.phases == []

    def test_missing_keys(self, tmp_path):
        path = write(tmp_path / "broken.yml", "name: broken\nfile: broken-1.0.tar.gz\n")
        with pytest.raises(ManifestError, match="uri, hash"):
            load_manifest(path)

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ManifestError):
            load_manifest(write(tmp_path / "list.yml", "- a\n- b\n"))

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ManifestError):
            load_manifest(write(tmp_path / "bad.yml", "name: [unclosed\n"))

    def test_build_must_map_to_commands(self, tmp_path):
        text = MANIFEST.split("build:")[0] + "build:\n  initial: [make]\n"
        with pytest.raises(ManifestError, match="build"):
            load_manifest(write(tmp_path / "bad.yml", text))

    def test_dotted_phase_names_rejected(self, tmp_path):
        text = MANIFEST.split("build:")[0] + "build:\n  stage.2: make\n"
        with pytest.raises(ManifestError, match="stage.2"):
            load_manifest(write(tmp_path / "bad.yml", text))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ManifestError):
            load_manifest(tmp_path / "nope.yml")


def test_load_manifests_sorted(tmp_path):
    for name in ("zlib", "bash", "m4"):
        write(
            tmp_path / f"{name}.yml",
            f"name: {name}\nfile: {name}-1.0.tar.gz\nuri: http://x/{name}\nhash: ab\n",
        )
    names = [m.name for m in load_manifests(tmp_path)]
    assert names == ["bash", "m4", "zlib"]


def test_load_manifests_duplicate_names(tmp_path):
    text = "name: gcc\nfile: gcc-7.3.0.tar.xz\nuri: http://x/gcc\nhash: ab\n"
    write(tmp_path / "a.yml", text)
    write(tmp_path / "b.yml", text)
    with pytest.raises(ManifestError, match="Duplicate"):
        load_manifests(tmp_path)


def test_missing_command_is_configuration_error():
    manifest = Manifest(name="linux_headers", file="linux-4.15.tar.xz", uri="u", hash="h")
    with pytest.raises(ConfigurationError) as excinfo:
        manifest.command("toolchain")
    assert excinfo.value.package == "linux_headers"
    assert excinfo.value.phase == "toolchain"


def test_envname():
    manifest = Manifest(name="util-linux", file="util-linux-2.31.tar.xz", uri="u", hash="h")
    assert manifest.envname == "UTIL_LINUX"


def test_load_toolchain_order(tmp_path):
    path = write(
        tmp_path / "toolchain.yml",
        "- initial: binutils\n- initial:gcc\n- toolchain: bash\n",
    )
    assert load_toolchain_order(path) == [
        ("initial", "binutils"),
        ("initial", "gcc"),
        ("toolchain", "bash"),
    ]


def test_load_toolchain_order_invalid(tmp_path):
    with pytest.raises(ManifestError):
        load_toolchain_order(write(tmp_path / "toolchain.yml", "- binutils\n"))
