import hashlib
import io
import tarfile
from pathlib import Path

import pytest
from eir import CommandResult, Manifest, Project, ShellCmd


class FakeShell(ShellCmd):
    """Records commands instead of running them"""

    def __init__(self, returncode=0, output=""):
        super().__init__()
        self.calls = []
        self.returncode = returncode
        self.output = output

    def run(self, shellcmd, cwd=".", env=None):
        self.calls.append({"command": shellcmd, "cwd": Path(cwd), "env": dict(env or {})})
        return CommandResult(shellcmd, self.returncode, self.output)


def make_archive(path, topdir, files, mode="w:xz"):
    """Write a tarball with files (name -> text) under topdir"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, mode) as tar:
        info = tarfile.TarInfo(topdir)
        info.type = tarfile.DIRTYPE
        info.mode = 0o755
        tar.addfile(info)
        for name, text in files.items():
            data = text.encode()
            info = tarfile.TarInfo(f"{topdir}/{name}")
            info.size = len(data)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(data))
    return path


def sha256(path):
    return hashlib.sha256(Path(path).read_bytes()).hexdigest()


@pytest.fixture
def project(tmp_path):
    """Create a Project rooted in a temporary directory"""
    return Project(tmp_path / "eir")


@pytest.fixture
def shell():
    return FakeShell()


@pytest.fixture
def mirror(tmp_path):
    """Directory standing in for the upstream download site"""
    path = tmp_path / "mirror"
    path.mkdir()
    return path


@pytest.fixture
def binutils(mirror):
    """binutils manifest pointing at a local tarball"""
    archive = make_archive(
        mirror / "binutils-2.30.tar.xz",
        "binutils-2.30",
        {"configure": "#!/bin/sh\necho configured\n", "README": "binutils\n"},
    )
    return Manifest(
        name="binutils",
        version="2.30",
        file="binutils-2.30.tar.xz",
        uri=archive.as_uri(),
        hash=sha256(archive),
        build={"toolchain": "./configure && make && make install"},
    )
