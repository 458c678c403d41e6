#!/usr/bin/env python3
"""eir.py - builds a bootstrap toolchain from declarative package manifests

features:

- Reads one YAML manifest per source package from `packages/`
- Downloads, verifies (sha256 by default) and extracts each source archive
- Applies per-phase patches and runs per-phase build commands
- Stamps every completed unit of work so re-runs only do what is left
- Exports a cross-compilation environment for the `toolchain` phase
- Builds the `toolchain` goal from an explicit, ordered list of phase builds

class structure:

ShellCmd
    Project
    Fetcher

StampStore
Environment
PatchApplier
PhaseBuilder
BuildGraph
Scheduler
Pipeline

"""

import argparse
import bz2
import datetime
import gzip
import hashlib
import logging
import lzma
import os
import platform
import re
import shlex
import shutil
import subprocess
import sys
import tarfile
import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from graphlib import CycleError, TopologicalSorter
from pathlib import Path
from types import MappingProxyType
from typing import IO, Any, Callable, Mapping, NamedTuple, Optional, Union
from urllib.request import urlopen

import yaml

__version__ = "0.1.0"

# ----------------------------------------------------------------------------
# type aliases

Pathlike = Union[str, Path]
ProgressFn = Callable[[Optional[int], int], None]
EntryFn = Callable[[tarfile.TarInfo], None]


# ----------------------------------------------------------------------------
# env helpers


def getenv(key: str, default: bool = False) -> bool:
    """convert '0','1' env values to bool {True, False}"""
    return bool(int(os.getenv(key, default)))


# ----------------------------------------------------------------------------
# constants

PY_VER_MINOR = sys.version_info.minor

SOURCE_PHASE = "source"
TOOLCHAIN_PHASE = "toolchain"
DEFAULT_TARGETS = ["prepare", "toolchain"]
ENV_PREFIX = "EIR"
OUTPUT_TAIL_LINES = 50
HASH_CHUNK_SIZE = 8192

# (phase, package) pairs in bootstrap order: binutils before the compiler,
# kernel headers before the C library, the C library before libstdc++.
DEFAULT_TOOLCHAIN_ORDER: list[tuple[str, str]] = [
    ("initial", "binutils"),
    ("initial", "gcc"),
    ("initial", "linux_headers"),
    ("initial", "glibc"),
    ("initial", "gcc_libstdcpp"),
    ("toolchain", "binutils"),
    ("toolchain", "gcc"),
    ("toolchain", "ncurses"),
    ("toolchain", "bash"),
    ("toolchain", "bzip2"),
    ("toolchain", "coreutils"),
    ("toolchain", "diffutils"),
    ("toolchain", "file"),
    ("toolchain", "findutils"),
    ("toolchain", "gawk"),
    ("toolchain", "gettext"),
    ("toolchain", "grep"),
    ("toolchain", "gzip"),
    ("toolchain", "m4"),
    ("toolchain", "make"),
    ("toolchain", "patch"),
    ("toolchain", "perl"),
    ("toolchain", "sed"),
    ("toolchain", "tar"),
    ("toolchain", "utillinux"),
    ("toolchain", "xz"),
]

# toolchain-phase binutils, prefixed with the target triple
TOOLCHAIN_TOOLS = {
    "AR": "ar",
    "AS": "as",
    "LD": "ld",
    "NM": "nm",
    "RANLIB": "ranlib",
    "STRIP": "strip",
    "OBJCOPY": "objcopy",
    "OBJDUMP": "objdump",
    "READELF": "readelf",
}

# toolchain-phase compilers, also pointed at the toolchain runtime libraries
TOOLCHAIN_COMPILERS = {
    "CC": "gcc",
    "CXX": "g++",
}

# ----------------------------------------------------------------------------
# envar options

DEBUG = getenv("DEBUG", default=False)
COLOR = getenv("COLOR", default=True)

# ----------------------------------------------------------------------------
# host detection


class HostInfo:
    """Host facts used to seed defaults"""

    def __init__(self) -> None:
        self.system = platform.system()
        self.machine = platform.machine()

    @property
    def is_linux(self) -> bool:
        """Check if running on Linux"""
        return self.system == "Linux"

    @property
    def cpu_count(self) -> int:
        """make parallelism: $EIR_JOBS or the number of cpus"""
        jobs = os.getenv("EIR_JOBS")
        if jobs:
            try:
                return max(1, int(jobs))
            except ValueError:
                raise ConfigurationError(
                    f"EIR_JOBS must be an integer, got {jobs!r}"
                ) from None
        return os.cpu_count() or 1

    @property
    def default_target(self) -> str:
        """cross target triple: $EIR_TARGET or <machine>-eir-linux-gnu"""
        return os.getenv("EIR_TARGET") or f"{self.machine}-eir-linux-gnu"


# ----------------------------------------------------------------------------
# logging config


class CustomFormatter(logging.Formatter):
    """custom logging formatting class"""

    white = "\x1b[97;20m"
    grey = "\x1b[38;20m"
    green = "\x1b[32;20m"
    cyan = "\x1b[36;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    fmt = "%(delta)s - %(levelname)s - %(name)s.%(funcName)s - %(message)s"
    cfmt = (
        f"{white}%(delta)s{reset} - "
        f"{{}}%(levelname)s{{}} - "
        f"{white}%(name)s.%(funcName)s{reset} - "
        f"{grey}%(message)s{reset}"
    )

    FORMATS = {
        logging.DEBUG: cfmt.format(grey, reset),
        logging.INFO: cfmt.format(green, reset),
        logging.WARNING: cfmt.format(yellow, reset),
        logging.ERROR: cfmt.format(red, reset),
        logging.CRITICAL: cfmt.format(bold_red, reset),
    }

    def __init__(self, use_color: bool = COLOR) -> None:
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        """custom logger formatting method"""
        if not self.use_color:
            log_fmt: str = self.fmt
        else:
            log_fmt = self.FORMATS.get(record.levelno, self.fmt)
        if PY_VER_MINOR > 10:
            duration = datetime.datetime.fromtimestamp(
                record.relativeCreated / 1000, datetime.UTC
            )
        else:
            duration = datetime.datetime.fromtimestamp(record.relativeCreated / 1000)
        record.delta = duration.strftime("%H:%M:%S")
        formatter = logging.Formatter(log_fmt)
        return formatter.format(record)


strm_handler = logging.StreamHandler()
strm_handler.setFormatter(CustomFormatter())
logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    handlers=[strm_handler],
)


# ----------------------------------------------------------------------------
# custom exceptions


class PipelineError(Exception):
    """Base exception for pipeline errors"""

    def __init__(
        self,
        message: str,
        package: Optional[str] = None,
        phase: Optional[str] = None,
        stage: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.package = package
        self.phase = phase
        self.stage = stage


class ConfigurationError(PipelineError):
    """A referenced package or phase has no build command (non-fatal)"""


class ManifestError(PipelineError):
    """Exception for unreadable or invalid manifests"""


class TargetError(PipelineError):
    """Exception for malformed target names"""


class DownloadError(PipelineError):
    """Exception for download errors"""

    def __init__(self, message: str, package: Optional[str] = None) -> None:
        super().__init__(message, package=package, stage="download")


class IntegrityError(PipelineError):
    """Downloaded archive does not match the manifest hash"""

    def __init__(self, package: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Hash mismatch for {package}: expected {expected}, got {actual}",
            package=package,
            stage="verify",
        )
        self.expected = expected
        self.actual = actual


class ExtractionError(PipelineError):
    """Exception for extraction errors"""

    def __init__(self, message: str, package: Optional[str] = None) -> None:
        super().__init__(message, package=package, stage="extract")


class UnsupportedFormatError(ExtractionError):
    """Archive suffix has no registered decompressor"""

    def __init__(self, source: Pathlike) -> None:
        super().__init__(f"Unsupported archive type: {source}")
        self.source = Path(source)


class PatchError(PipelineError):
    """A patch failed to apply"""

    def __init__(self, package: str, phase: str, patch: Pathlike, output: str = "") -> None:
        super().__init__(
            f"Patch {Path(patch).name} failed for {package} (phase {phase})",
            package=package,
            phase=phase,
            stage="patch",
        )
        self.patch = Path(patch)
        self.output = output


class BuildError(PipelineError):
    """A phase build command failed or could not be started"""

    def __init__(
        self,
        package: str,
        phase: str,
        command: str,
        returncode: Optional[int] = None,
        output: str = "",
    ) -> None:
        status = "could not start" if returncode is None else f"exit {returncode}"
        super().__init__(
            f"Build of {package} for phase {phase} failed ({status}): {command}",
            package=package,
            phase=phase,
            stage="build",
        )
        self.command = command
        self.returncode = returncode
        self.output = output


# ----------------------------------------------------------------------------
# dataclasses


@dataclass(frozen=True)
class Manifest:
    """One source package, as declared in packages/<name>.yml"""

    name: str
    file: str
    uri: str
    hash: str
    version: str = ""
    build: Mapping[str, str] = field(default_factory=dict)
    path: Optional[Path] = None

    @property
    def longname(self) -> str:
        """directory the archive unpacks into: binutils-2.30"""
        return longname(self.file)

    @property
    def envname(self) -> str:
        """name usable in environment variables: LINUX_HEADERS"""
        return re.sub(r"[^A-Z0-9]", "_", self.name.upper())

    @property
    def phases(self) -> list[str]:
        """phases this package has a build command for"""
        return list(self.build)

    def command(self, phase: str) -> str:
        """return the build command for phase"""
        try:
            return self.build[phase]
        except KeyError:
            raise ConfigurationError(
                f"No build command for package {self.name} in phase {phase}",
                package=self.name,
                phase=phase,
                stage="build",
            ) from None


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a shell command"""

    command: str
    returncode: Optional[int]
    output: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class BuildContext:
    """Everything a patch or build step needs for one (package, phase)"""

    manifest: Manifest
    phase: str
    env: Mapping[str, str]
    source_dir: Path
    build_dir: Path
    patch_dir: Path


# ----------------------------------------------------------------------------
# manifests

LONGNAME_PATTERN = re.compile(r"\.[a-z][a-z].*")
REQUIRED_KEYS = ("name", "file", "uri", "hash")


def longname(filename: str) -> str:
    """strip archive extensions but keep version dots: foo-1.2.3.tar.gz -> foo-1.2.3"""
    return LONGNAME_PATTERN.sub("", os.path.basename(filename), count=1)


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, encoding="utf8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ManifestError(f"Could not read {path}: {e}") from e


def load_manifest(path: Pathlike) -> Manifest:
    """Load and validate a single package manifest

    Raises:
        ManifestError: If the file is unreadable or misses required keys
    """
    path = Path(path)
    data = _read_yaml(path)
    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {path} is not a mapping")
    missing = [key for key in REQUIRED_KEYS if not data.get(key)]
    if missing:
        raise ManifestError(
            f"Manifest {path} is missing required keys: {', '.join(missing)}",
            package=data.get("name"),
        )
    build = data.get("build") or {}
    if not isinstance(build, dict) or not all(
        isinstance(cmd, str) for cmd in build.values()
    ):
        raise ManifestError(
            f"Manifest {path}: 'build' must map phase names to commands",
            package=data["name"],
        )
    dotted = [str(phase) for phase in build if "." in str(phase)]
    if dotted:
        raise ManifestError(
            f"Manifest {path}: phase names must not contain '.': {', '.join(dotted)}",
            package=data["name"],
        )
    return Manifest(
        name=str(data["name"]),
        file=str(data["file"]),
        uri=str(data["uri"]),
        hash=str(data["hash"]).strip(),
        version=str(data.get("version") or ""),
        build={str(phase): cmd for phase, cmd in build.items()},
        path=path,
    )


def load_manifests(directory: Pathlike) -> list[Manifest]:
    """Load every *.yml manifest in directory, sorted by filename"""
    directory = Path(directory)
    paths = sorted([*directory.glob("*.yml"), *directory.glob("*.yaml")])
    manifests: list[Manifest] = []
    seen: dict[str, Path] = {}
    for path in paths:
        manifest = load_manifest(path)
        if manifest.name in seen:
            raise ManifestError(
                f"Duplicate package name {manifest.name!r} in {path} and {seen[manifest.name]}",
                package=manifest.name,
            )
        seen[manifest.name] = path
        manifests.append(manifest)
    return manifests


def load_toolchain_order(path: Pathlike) -> list[tuple[str, str]]:
    """Read an ordered list of `phase: package` entries from a YAML file"""
    path = Path(path)
    data = _read_yaml(path)
    if not isinstance(data, list):
        raise ManifestError(f"{path} must contain a list of 'phase: package' entries")
    order: list[tuple[str, str]] = []
    for entry in data:
        if isinstance(entry, dict) and len(entry) == 1:
            phase, package = next(iter(entry.items()))
        elif isinstance(entry, str) and ":" in entry:
            phase, package = entry.split(":", 1)
        else:
            raise ManifestError(f"{path}: invalid toolchain entry {entry!r}")
        order.append((str(phase).strip(), str(package).strip()))
    return order


# ----------------------------------------------------------------------------
# archives


@dataclass(frozen=True)
class ArchiveFormat:
    """A decompressor producing a tar stream"""

    name: str
    opener: Callable[[Path], IO[bytes]]


def _open_plain(path: Path) -> IO[bytes]:
    return open(path, "rb")


ARCHIVE_FORMATS: dict[str, ArchiveFormat] = {
    ".tar": ArchiveFormat("tar", _open_plain),
    ".gz": ArchiveFormat("gzip", gzip.open),
    ".tgz": ArchiveFormat("gzip", gzip.open),
    ".bz2": ArchiveFormat("bzip2", bz2.open),
    ".tbz2": ArchiveFormat("bzip2", bz2.open),
    ".xz": ArchiveFormat("xz", lzma.open),
    ".txz": ArchiveFormat("xz", lzma.open),
}


def classify_archive(source: Pathlike) -> ArchiveFormat:
    """Pick the decompressor for source from its last suffix

    Raises:
        UnsupportedFormatError: If the suffix is not registered
    """
    fmt = ARCHIVE_FORMATS.get(Path(source).suffix.lower())
    if fmt is None:
        raise UnsupportedFormatError(source)
    return fmt


def _check_member(member: tarfile.TarInfo, dest: Path) -> None:
    """path traversal check for interpreters without tarfile filters"""
    target = (dest / member.name).resolve()
    if not str(target).startswith(str(dest.resolve())):
        raise ExtractionError(f"Path traversal detected: {member.name}")


def extract_archive(
    source: Pathlike, dest: Pathlike, progress: Optional[EntryFn] = None
) -> None:
    """Unpack source into dest, calling progress for each file or directory

    Raises:
        UnsupportedFormatError: If the archive type is unknown
        ExtractionError: If decompression or unpacking fails
    """
    source, dest = Path(source), Path(dest)
    fmt = classify_archive(source)
    dest.mkdir(parents=True, exist_ok=True)
    try:
        with fmt.opener(source) as stream:
            with tarfile.open(fileobj=stream, mode="r|") as tar:
                for member in tar:
                    if sys.version_info >= (3, 12):
                        tar.extract(member, dest, filter="data")
                    else:
                        _check_member(member, dest)
                        tar.extract(member, dest)
                    if progress and (member.isfile() or member.isdir()):
                        progress(member)
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(f"Failed to extract {source}: {e}") from e


# ----------------------------------------------------------------------------
# verification


def parse_checksum(value: str) -> tuple[str, str]:
    """split 'sha512:<hex>' into (algo, hex); bare hex is sha256"""
    algo, sep, digest = value.strip().partition(":")
    if not sep:
        return "sha256", algo.lower()
    algo = algo.lower()
    if algo not in hashlib.algorithms_available:
        raise ManifestError(f"Unknown hash algorithm: {algo}")
    return algo, digest.lower()


def hash_file(path: Pathlike, algo: str = "sha256") -> str:
    """return the hex digest of a file"""
    hash_func = hashlib.new(algo)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            hash_func.update(chunk)
    return hash_func.hexdigest()


def verify_file(path: Pathlike, expected: str, package: str) -> str:
    """Compare the digest of path against expected

    Returns:
        The computed digest

    Raises:
        IntegrityError: If the digests differ
    """
    algo, digest = parse_checksum(expected)
    actual = hash_file(path, algo)
    if actual != digest:
        raise IntegrityError(package, expected, actual)
    return actual


# ----------------------------------------------------------------------------
# utility classes


class ShellCmd:
    """Runs shell commands and handles files and folders"""

    log: logging.Logger

    def __init__(self) -> None:
        self.log = logging.getLogger(self.__class__.__name__)

    def run(
        self,
        shellcmd: str,
        cwd: Pathlike = ".",
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Run shell command within working directory

        Output is logged at debug level; the last lines are kept in the
        result. A command that cannot be started yields a result with no
        returncode instead of raising.
        """
        self.log.info(shellcmd)
        tail: deque[str] = deque(maxlen=OUTPUT_TAIL_LINES)
        try:
            proc = subprocess.Popen(
                shellcmd,
                shell=True,
                cwd=str(cwd),
                env=dict(env) if env is not None else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as e:
            self.log.critical("Command could not be started: %s", e)
            return CommandResult(shellcmd, None, error=str(e))
        with proc:
            assert proc.stdout is not None
            for line in proc.stdout:
                line = line.rstrip("\n")
                tail.append(line)
                self.log.debug(line)
            returncode = proc.wait()
        if returncode != 0:
            self.log.critical("Command failed with exit %s: %s", returncode, shellcmd)
        return CommandResult(shellcmd, returncode, "\n".join(tail))

    def makedirs(self, path: Pathlike, mode: int = 511, exist_ok: bool = True) -> None:
        """Recursive directory creation function"""
        self.log.debug("Making directory: %s", path)
        os.makedirs(path, mode, exist_ok)

    def remove(self, path: Pathlike, silent: bool = False) -> None:
        """Remove file or folder."""
        path = Path(path)
        if path.is_dir() and not path.is_symlink():
            if not silent:
                self.log.debug("Removing folder: %s", path)
            shutil.rmtree(path)
        else:
            if not silent:
                self.log.debug("Removing file: %s", path)
            try:
                path.unlink()
            except FileNotFoundError:
                if not silent:
                    self.log.debug("File not found: %s", path)


class DownloadProgress:
    """Logs download progress in steps of `step` percent"""

    def __init__(self, name: str, step: int = 10) -> None:
        self.name = name
        self.step = step
        self.last = -1
        self.log = logging.getLogger(self.__class__.__name__)

    def __call__(self, total: Optional[int], transferred: int) -> None:
        if not total:
            return
        percent = min(100, transferred * 100 // total)
        if percent // self.step > self.last:
            self.last = percent // self.step
            self.log.debug(
                "%s: %3d%% (%d of %d bytes)", self.name, percent, transferred, total
            )


class Fetcher(ShellCmd):
    """Streams remote sources into local storage"""

    chunk_size = 64 * 1024

    def fetch(
        self,
        uri: str,
        dest: Pathlike,
        package: Optional[str] = None,
        progress: Optional[ProgressFn] = None,
    ) -> Path:
        """Download uri to dest, replacing any existing file

        Data goes to `<dest>.part` first and is renamed once complete.

        Raises:
            DownloadError: If the transfer fails
        """
        dest = Path(dest)
        part = dest.with_name(dest.name + ".part")
        sink = progress or DownloadProgress(dest.name)
        self.makedirs(dest.parent)
        self.log.info("Downloading %s from %s", dest.name, uri)
        transferred = 0
        try:
            with urlopen(uri) as response, open(part, "wb") as f:
                total = self._content_length(response)
                sink(total, transferred)
                for chunk in iter(lambda: response.read(self.chunk_size), b""):
                    f.write(chunk)
                    transferred += len(chunk)
                    sink(total, transferred)
            if total is not None and transferred != total:
                raise OSError(f"received {transferred} of {total} bytes")
            os.replace(part, dest)
        except Exception as e:
            self.remove(part, silent=True)
            raise DownloadError(f"Failed to download {uri}: {e}", package=package) from e
        self.log.info("Download complete: %s (%d bytes)", dest.name, transferred)
        return dest

    @staticmethod
    def _content_length(response: Any) -> Optional[int]:
        length = response.headers.get("Content-Length")
        try:
            return int(length) if length is not None else None
        except ValueError:
            return None


# ----------------------------------------------------------------------------
# main classes


class Project(ShellCmd):
    """Utility class to hold project directory structure"""

    def __init__(self, root: Optional[Pathlike] = None) -> None:
        super().__init__()
        self.root = Path(root).resolve() if root else Path.cwd()
        self.packages = self.root / "packages"
        self.patches = self.root / "patches"
        self.sources = self.root / "sources"
        self.stamps = self.root / "stamps"
        self.build = self.root / "build"
        self.tools = self.root / "tools"
        self.output = self.root / "output"
        self.toolchain_file = self.root / "toolchain.yml"

    def setup(self) -> None:
        """create main project directories"""
        for path in (self.build, self.sources, self.stamps, self.output):
            path.mkdir(parents=True, exist_ok=True)

    def archive(self, manifest: Manifest) -> Path:
        """downloaded archive of a package"""
        return self.sources / manifest.file

    def source_dir(self, manifest: Manifest) -> Path:
        """extracted source tree of a package"""
        return self.build / manifest.longname

    def phase_dir(self, phase: str) -> Path:
        """build tree of a phase"""
        return self.build / phase

    def build_dir(self, manifest: Manifest, phase: str) -> Path:
        """build folder of a package in a phase"""
        return self.phase_dir(phase) / manifest.longname

    def patch_dir(self, manifest: Manifest, phase: str) -> Path:
        """patches applied to a package before building it in a phase"""
        return self.patches / phase / manifest.name


class StampStore:
    """Marker files recording completed (package, phase, stage) units

    A stamp is only ever written after the guarded action succeeded and is
    only removed by `clear`.
    """

    def __init__(self, directory: Pathlike) -> None:
        self.directory = Path(directory)
        self.log = logging.getLogger(self.__class__.__name__)
        self._locks: dict[tuple[str, str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def path(self, package: str, phase: str, stage: str) -> Path:
        # `stamps()` splits on the last two dots
        if "." in phase or "." in stage:
            raise ConfigurationError(
                f"Invalid stamp key {package}/{phase}/{stage}: '.' in phase or stage",
                package=package,
                phase=phase,
                stage=stage,
            )
        return self.directory / f"{package}.{phase}.{stage}"

    def exists(self, package: str, phase: str, stage: str) -> bool:
        return self.path(package, phase, stage).is_file()

    def mark(self, package: str, phase: str, stage: str) -> None:
        """create the stamp; marking twice is a no-op"""
        path = self.path(package, phase, stage)
        if path.is_file():
            return
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(datetime.datetime.now(datetime.timezone.utc).isoformat() + "\n")
        os.replace(tmp, path)
        self.log.debug("stamped %s", path.name)

    def unmark(self, package: str, phase: str, stage: str) -> bool:
        """remove one stamp; returns whether it existed"""
        path = self.path(package, phase, stage)
        if not path.is_file():
            return False
        path.unlink()
        self.log.debug("unstamped %s", path.name)
        return True

    def lock(self, package: str, phase: str, stage: str) -> threading.Lock:
        """per-key lock serializing check-then-mark"""
        key = (package, phase, stage)
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def stamps(self) -> list[tuple[str, str, str]]:
        """all recorded (package, phase, stage) keys"""
        if not self.directory.is_dir():
            return []
        keys = []
        for path in sorted(self.directory.iterdir()):
            parts = path.name.rsplit(".", 2)
            if path.is_file() and len(parts) == 3 and parts[2] != "tmp":
                keys.append((parts[0], parts[1], parts[2]))
        return keys

    def clear(self, package: Optional[str] = None) -> int:
        """remove the stamps of package (or all stamps); returns the count"""
        count = 0
        for key in self.stamps():
            if package is None or key[0] == package:
                self.path(*key).unlink()
                count += 1
        self.log.info("cleared %d stamps for %s", count, package or "all packages")
        return count


class Environment:
    """Computes the subprocess environment for each phase

    The base environment is snapshotted once; each call to `for_phase`
    returns a new dict and never writes to os.environ.
    """

    def __init__(
        self,
        project: Project,
        manifests: list[Manifest],
        target: str,
        jobs: int = 1,
        toolchain_phase: str = TOOLCHAIN_PHASE,
        base: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.project = project
        self.target = target
        self.jobs = jobs
        self.toolchain_phase = toolchain_phase
        self._base = MappingProxyType(dict(os.environ if base is None else base))
        self._common = MappingProxyType(self._common_vars(manifests))

    def _common_vars(self, manifests: list[Manifest]) -> dict[str, str]:
        env = {
            ENV_PREFIX: str(self.project.root),
            f"{ENV_PREFIX}_SOURCES": str(self.project.sources),
            f"{ENV_PREFIX}_TOOLS": str(self.project.tools),
            f"{ENV_PREFIX}_TARGET": self.target,
            f"{ENV_PREFIX}_JOBS": str(self.jobs),
            "MAKEFLAGS": f"-j{self.jobs}",
        }
        for manifest in manifests:
            env[f"{ENV_PREFIX}_{manifest.envname}_VERSION"] = manifest.version
            env[f"{ENV_PREFIX}_{manifest.envname}_SRC"] = str(
                self.project.source_dir(manifest)
            )
        return env

    @property
    def base(self) -> dict[str, str]:
        return dict(self._base)

    def toolchain_overlay(self, path: str = "") -> dict[str, str]:
        """cross tools for the target triple and the toolchain search path"""
        libdir = self.project.tools / "lib"
        overlay = {var: f"{self.target}-{tool}" for var, tool in TOOLCHAIN_TOOLS.items()}
        for var, tool in TOOLCHAIN_COMPILERS.items():
            overlay[var] = f"{self.target}-{tool} -B{libdir}/"
        bindir = str(self.project.tools / "bin")
        overlay["PATH"] = os.pathsep.join([bindir, path]) if path else bindir
        return overlay

    def for_phase(self, phase: str) -> dict[str, str]:
        """full environment for a subprocess running in phase"""
        env = dict(self._base)
        env.update(self._common)
        env[f"{ENV_PREFIX}_PHASE"] = phase
        env[f"{ENV_PREFIX}_BUILD"] = str(self.project.phase_dir(phase))
        if phase == self.toolchain_phase:
            env.update(self.toolchain_overlay(env.get("PATH", "")))
        return env


class PatchApplier:
    """Applies patches/<phase>/<package>/*.patch in filename order"""

    suffixes = (".patch", ".diff")

    def __init__(self, stamps: StampStore, shell: Optional[ShellCmd] = None) -> None:
        self.stamps = stamps
        self.shell = shell or ShellCmd()
        self.log = logging.getLogger(self.__class__.__name__)

    def patches(self, ctx: BuildContext) -> list[Path]:
        """patch files for the context, sorted by name"""
        if not ctx.patch_dir.is_dir():
            return []
        return sorted(
            (p for p in ctx.patch_dir.iterdir() if p.is_file() and p.suffix in self.suffixes),
            key=lambda p: p.name,
        )

    def apply(self, ctx: BuildContext) -> bool:
        """Apply all patches once; returns False if already stamped

        Raises:
            PatchError: On the first patch that fails to apply
        """
        name, phase = ctx.manifest.name, ctx.phase
        with self.stamps.lock(name, phase, "patch"):
            if self.stamps.exists(name, phase, "patch"):
                self.log.debug("%s already patched for %s", name, phase)
                return False
            patches = self.patches(ctx)
            if not patches:
                self.log.debug("no patches for %s in phase %s", name, phase)
            for patch in patches:
                self.log.info("Applying %s to %s", patch.name, name)
                result = self.shell.run(
                    f"patch -p1 -N -i {shlex.quote(str(patch))}",
                    cwd=ctx.source_dir,
                    env=ctx.env,
                )
                if not result.ok:
                    raise PatchError(name, phase, patch, result.output or result.error or "")
            self.stamps.mark(name, phase, "patch")
        return True


class PhaseBuilder:
    """Runs a package's build command for one phase"""

    def __init__(self, stamps: StampStore, shell: Optional[ShellCmd] = None) -> None:
        self.stamps = stamps
        self.shell = shell or ShellCmd()
        self.log = logging.getLogger(self.__class__.__name__)

    def build(self, ctx: BuildContext) -> bool:
        """Build once; returns False if skipped

        Raises:
            BuildError: If the command exits non-zero or cannot start
        """
        manifest, phase = ctx.manifest, ctx.phase
        try:
            command = manifest.command(phase)
        except ConfigurationError as e:
            self.log.warning("%s, skipping", e)
            return False
        with self.stamps.lock(manifest.name, phase, "build"):
            if self.stamps.exists(manifest.name, phase, "build"):
                self.log.debug("%s already built for %s", manifest.name, phase)
                return False
            self.shell.makedirs(ctx.build_dir)
            self.log.info("Building %s for phase %s", manifest.name, phase)
            result = self.shell.run(command, cwd=ctx.build_dir, env=ctx.env)
            if not result.ok:
                raise BuildError(
                    manifest.name,
                    phase,
                    command,
                    result.returncode,
                    result.output or result.error or "",
                )
            self.stamps.mark(manifest.name, phase, "build")
        return True


# ----------------------------------------------------------------------------
# dependency graph


class Action(str, Enum):
    DOWNLOAD = "download"
    VERIFY = "verify"
    EXTRACT = "extract"
    PATCH = "patch"
    BUILD = "build"


class UnitKey(NamedTuple):
    action: Action
    package: str
    phase: str = SOURCE_PHASE

    def __str__(self) -> str:
        if self.phase == SOURCE_PHASE:
            return f"{self.action.value}:{self.package}"
        return f"{self.action.value}:{self.phase}:{self.package}"


@dataclass
class Unit:
    """A node of the build graph"""

    key: UnitKey
    manifest: Manifest
    deps: list[UnitKey] = field(default_factory=list)


@dataclass
class BuildGraph:
    """Units keyed by UnitKey plus named goals"""

    units: dict[UnitKey, Unit] = field(default_factory=dict)
    goals: dict[str, list[UnitKey]] = field(default_factory=dict)
    warnings: list[ConfigurationError] = field(default_factory=list)

    def add(self, key: UnitKey, manifest: Manifest, deps: Optional[list[UnitKey]] = None) -> UnitKey:
        self.units[key] = Unit(key, manifest, list(deps or []))
        return key

    def targets(self) -> list[str]:
        """every name accepted by resolve"""
        return sorted(self.goals) + sorted(str(key) for key in self.units)

    def resolve(self, target: str) -> list[UnitKey]:
        """Turn a goal or unit name into unit keys

        Raises:
            ConfigurationError: If a package or phase is unknown
            TargetError: If the name is malformed
        """
        if target in self.goals:
            return list(self.goals[target])
        parts = target.split(":")
        if parts[0] == "package" and len(parts) == 2:
            raise ConfigurationError(f"Unknown package: {parts[1]}", package=parts[1])
        try:
            action = Action(parts[0])
        except ValueError:
            raise TargetError(f"Unknown target: {target}") from None
        if action in (Action.PATCH, Action.BUILD):
            if len(parts) != 3:
                raise TargetError(f"Expected {action.value}:<phase>:<package>, got {target}")
            key = UnitKey(action, parts[2], parts[1])
        else:
            if len(parts) != 2:
                raise TargetError(f"Expected {action.value}:<package>, got {target}")
            key = UnitKey(action, parts[1])
        if key not in self.units:
            raise ConfigurationError(
                f"No {key.action.value} step for package {key.package}"
                + ("" if key.phase == SOURCE_PHASE else f" in phase {key.phase}"),
                package=key.package,
                phase=key.phase,
                stage=key.action.value,
            )
        return [key]

    def closure(self, keys: list[UnitKey]) -> dict[UnitKey, list[UnitKey]]:
        """keys and all their predecessors, as a node -> deps mapping"""
        result: dict[UnitKey, list[UnitKey]] = {}
        stack = list(keys)
        while stack:
            key = stack.pop()
            if key in result:
                continue
            result[key] = self.units[key].deps
            stack.extend(self.units[key].deps)
        return result

    def order(self, keys: list[UnitKey]) -> list[UnitKey]:
        """topological order of the closure of keys"""
        try:
            return list(TopologicalSorter(self.closure(keys)).static_order())
        except CycleError as e:
            raise PipelineError(f"Dependency cycle: {e.args[1]}") from e


def build_graph(
    manifests: list[Manifest],
    toolchain_order: Optional[list[tuple[str, str]]] = None,
    toolchain_goal: str = "toolchain",
) -> BuildGraph:
    """Build the unit graph for manifests without touching the filesystem

    Per package: download -> verify -> extract -> patch(phase) -> build(phase),
    with the patch units chained in the manifest's phase order.
    The toolchain goal depends on the listed (phase, package) builds, each
    chained after the previous one so the order also holds in parallel runs.
    Entries without a build unit are recorded in graph.warnings and dropped.
    """
    graph = BuildGraph()
    extracts: list[UnitKey] = []
    for manifest in manifests:
        name = manifest.name
        download = graph.add(UnitKey(Action.DOWNLOAD, name), manifest)
        verify = graph.add(UnitKey(Action.VERIFY, name), manifest, [download])
        extract = graph.add(UnitKey(Action.EXTRACT, name), manifest, [verify])
        extracts.append(extract)
        graph.goals[f"package:{name}"] = [extract]
        # patches of all phases write build/<longname>; one at a time
        previous = extract
        for phase in manifest.phases:
            patch = graph.add(UnitKey(Action.PATCH, name, phase), manifest, [previous])
            graph.add(UnitKey(Action.BUILD, name, phase), manifest, [patch])
            previous = patch
    graph.goals["prepare"] = extracts

    chain: list[UnitKey] = []
    order = DEFAULT_TOOLCHAIN_ORDER if toolchain_order is None else toolchain_order
    for phase, name in order:
        key = UnitKey(Action.BUILD, name, phase)
        if key not in graph.units:
            graph.warnings.append(
                ConfigurationError(
                    f"Toolchain entry {phase}:{name} has no build command, skipping",
                    package=name,
                    phase=phase,
                    stage="build",
                )
            )
            continue
        if key in chain:
            continue
        if chain:
            graph.units[key].deps.append(chain[-1])
        chain.append(key)
    graph.goals[toolchain_goal] = chain
    return graph


class Scheduler:
    """Executes graph units in dependency order

    `satisfied(unit)` decides whether a unit can be skipped; `execute(unit)`
    performs it and raises on failure. With jobs > 1, independent units run
    on a thread pool.
    """

    def __init__(
        self,
        graph: BuildGraph,
        execute: Callable[[Unit], Any],
        satisfied: Callable[[Unit], bool],
        jobs: int = 1,
    ) -> None:
        self.graph = graph
        self.execute = execute
        self.satisfied = satisfied
        self.jobs = max(1, jobs)
        self.log = logging.getLogger(self.__class__.__name__)

    def plan(self, keys: list[UnitKey]) -> list[tuple[UnitKey, bool]]:
        """ordered units with their satisfied state"""
        return [
            (key, self.satisfied(self.graph.units[key])) for key in self.graph.order(keys)
        ]

    def run(self, keys: list[UnitKey]) -> list[UnitKey]:
        """run unsatisfied units of the closure; returns the executed keys"""
        if self.jobs == 1:
            return self._run_sequential(keys)
        return self._run_parallel(keys)

    def _run_sequential(self, keys: list[UnitKey]) -> list[UnitKey]:
        executed = []
        for key in self.graph.order(keys):
            unit = self.graph.units[key]
            if self.satisfied(unit):
                self.log.debug("%s: up to date", key)
                continue
            self.log.info("%s", key)
            self.execute(unit)
            executed.append(key)
        return executed

    def _run_parallel(self, keys: list[UnitKey]) -> list[UnitKey]:
        sorter = TopologicalSorter(self.graph.closure(keys))
        try:
            sorter.prepare()
        except CycleError as e:
            raise PipelineError(f"Dependency cycle: {e.args[1]}") from e
        executed: list[UnitKey] = []
        error: Optional[BaseException] = None
        with ThreadPoolExecutor(max_workers=self.jobs) as pool:
            running = {}
            while sorter.is_active() and error is None:
                for key in sorter.get_ready():
                    unit = self.graph.units[key]
                    if self.satisfied(unit):
                        self.log.debug("%s: up to date", key)
                        sorter.done(key)
                        continue
                    self.log.info("%s", key)
                    running[pool.submit(self.execute, unit)] = key
                if not running:
                    continue
                done, _ = wait(running, return_when=FIRST_COMPLETED)
                for future in done:
                    key = running.pop(future)
                    exc = future.exception()
                    if exc is not None:
                        error = error or exc
                        continue
                    executed.append(key)
                    sorter.done(key)
            for future, key in running.items():
                exc = future.exception()
                if exc is not None:
                    self.log.error("%s also failed: %s", key, exc)
                else:
                    executed.append(key)
        if error is not None:
            self.log.info("%d units executed before the failure", len(executed))
            raise error
        return executed


# ----------------------------------------------------------------------------
# pipeline


class Pipeline:
    """Wires manifests, stamps, environment and steps to the scheduler"""

    def __init__(
        self,
        project: Project,
        manifests: list[Manifest],
        toolchain_order: Optional[list[tuple[str, str]]] = None,
        target: Optional[str] = None,
        jobs: int = 1,
        make_jobs: Optional[int] = None,
        toolchain_phase: str = TOOLCHAIN_PHASE,
        shell: Optional[ShellCmd] = None,
        fetcher: Optional[Fetcher] = None,
        host: Optional[HostInfo] = None,
        base_env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.project = project
        self.manifests = {m.name: m for m in manifests}
        self.host = host or HostInfo()
        self.stamps = StampStore(project.stamps)
        self.env = Environment(
            project,
            manifests,
            target=target or self.host.default_target,
            jobs=make_jobs or self.host.cpu_count,
            toolchain_phase=toolchain_phase,
            base=base_env,
        )
        self.graph = build_graph(manifests, toolchain_order)
        self.fetcher = fetcher or Fetcher()
        self.patcher = PatchApplier(self.stamps, shell)
        self.builder = PhaseBuilder(self.stamps, shell)
        self.scheduler = Scheduler(self.graph, self.execute, self.satisfied, jobs)
        self.log = logging.getLogger(self.__class__.__name__)

    @classmethod
    def from_project(cls, project: Project, **kwargs: Any) -> "Pipeline":
        """load packages/*.yml and toolchain.yml (if present) from project"""
        manifests = load_manifests(project.packages)
        if not manifests:
            project.log.warning("No manifests found in %s", project.packages)
        if "toolchain_order" not in kwargs and project.toolchain_file.is_file():
            kwargs["toolchain_order"] = load_toolchain_order(project.toolchain_file)
        return cls(project, manifests, **kwargs)

    def context(self, manifest: Manifest, phase: str) -> BuildContext:
        return BuildContext(
            manifest=manifest,
            phase=phase,
            env=MappingProxyType(self.env.for_phase(phase)),
            source_dir=self.project.source_dir(manifest),
            build_dir=self.project.build_dir(manifest, phase),
            patch_dir=self.project.patch_dir(manifest, phase),
        )

    # steps

    def download(self, manifest: Manifest) -> Path:
        """fetch the package archive into sources/"""
        return self.fetcher.fetch(
            manifest.uri, self.project.archive(manifest), package=manifest.name
        )

    def verify(self, manifest: Manifest) -> None:
        """check the archive hash; a mismatching archive is deleted"""
        archive = self.project.archive(manifest)
        if not archive.is_file():
            raise DownloadError(f"Archive {archive} is missing", package=manifest.name)
        self.log.info("Checking hash for %s", manifest.file)
        try:
            digest = verify_file(archive, manifest.hash, manifest.name)
        except IntegrityError:
            self.project.remove(archive)
            raise
        self.log.info("Hash verified OK (%s)", digest)

    def extract(self, manifest: Manifest) -> bool:
        """unpack the verified archive into build/<longname>"""
        name = manifest.name
        with self.stamps.lock(name, SOURCE_PHASE, "extract"):
            if self.stamps.exists(name, SOURCE_PHASE, "extract"):
                return False
            source_dir = self.project.source_dir(manifest)
            if source_dir.exists():
                self.project.remove(source_dir)
            self.log.info("Extracting %s to %s", manifest.file, source_dir)
            try:
                extract_archive(
                    self.project.archive(manifest),
                    self.project.build,
                    progress=lambda member: self.log.debug("%s", member.name),
                )
            except ExtractionError as e:
                e.package = name
                raise
            if not source_dir.is_dir():
                raise ExtractionError(
                    f"{manifest.file} did not unpack into {source_dir.name}", package=name
                )
            self.stamps.mark(name, SOURCE_PHASE, "extract")
        return True

    def source_lock(self, manifest: Manifest) -> threading.Lock:
        """held while build/<longname> is patched or built from"""
        return self.stamps.lock(manifest.name, SOURCE_PHASE, "tree")

    def reset_source(self, manifest: Manifest) -> None:
        """drop a partially patched tree so the next run re-extracts it

        Patch stamps of every phase go too since they describe the tree.
        """
        name = manifest.name
        self.log.warning("Resetting source tree of %s", name)
        source_dir = self.project.source_dir(manifest)
        if source_dir.exists():
            self.project.remove(source_dir)
        self.stamps.unmark(name, SOURCE_PHASE, "extract")
        for phase in manifest.phases:
            self.stamps.unmark(name, phase, "patch")

    def patch(self, manifest: Manifest, phase: str) -> bool:
        with self.source_lock(manifest):
            try:
                return self.patcher.apply(self.context(manifest, phase))
            except PatchError:
                self.reset_source(manifest)
                raise

    def build(self, manifest: Manifest, phase: str) -> bool:
        with self.source_lock(manifest):
            return self.builder.build(self.context(manifest, phase))

    # scheduling

    def satisfied(self, unit: Unit) -> bool:
        """whether the unit's completion is already recorded"""
        manifest, key = unit.manifest, unit.key
        extracted = self.stamps.exists(manifest.name, SOURCE_PHASE, "extract")
        if key.action is Action.DOWNLOAD:
            return extracted or self.project.archive(manifest).is_file()
        if key.action in (Action.VERIFY, Action.EXTRACT):
            return extracted
        return self.stamps.exists(manifest.name, key.phase, key.action.value)

    def execute(self, unit: Unit) -> None:
        manifest, key = unit.manifest, unit.key
        if key.action is Action.DOWNLOAD:
            self.download(manifest)
        elif key.action is Action.VERIFY:
            self.verify(manifest)
        elif key.action is Action.EXTRACT:
            self.extract(manifest)
        elif key.action is Action.PATCH:
            self.patch(manifest, key.phase)
        else:
            self.build(manifest, key.phase)

    def resolve(self, targets: list[str]) -> list[UnitKey]:
        """unit keys for targets; unknown packages/phases are warned about"""
        keys: list[UnitKey] = []
        for target in targets:
            try:
                keys.extend(self.graph.resolve(target))
            except ConfigurationError as e:
                self.log.warning("%s, skipping", e)
        return keys

    def run(self, targets: Optional[list[str]] = None) -> list[UnitKey]:
        """run targets (default: prepare and toolchain)"""
        if not self.host.is_linux:
            self.log.warning("Host is %s, toolchain builds expect Linux", self.host.system)
        for warning in self.graph.warnings:
            self.log.warning("%s", warning)
        keys = self.resolve(targets or DEFAULT_TARGETS)
        self.project.setup()
        executed = self.scheduler.run(keys)
        self.log.info("%d units executed", len(executed))
        return executed

    def clean(self, package: str) -> None:
        """forget everything done for package: stamps and build folders"""
        manifest = self.manifests.get(package)
        if manifest is None:
            raise ConfigurationError(f"Unknown package: {package}", package=package)
        self.stamps.clear(package)
        source_dir = self.project.source_dir(manifest)
        if source_dir.exists():
            self.project.remove(source_dir)
        for phase in manifest.phases:
            build_dir = self.project.build_dir(manifest, phase)
            if build_dir.exists():
                self.project.remove(build_dir)

    def dry_run(self, targets: Optional[list[str]] = None) -> None:
        """Display the execution plan without running anything"""
        targets = targets or DEFAULT_TARGETS
        plan = self.scheduler.plan(self.resolve(targets))

        print("\n" + "=" * 60)
        print("BUILD PLAN (dry-run)")
        print("=" * 60)

        print("\n[Targets]")
        for target in targets:
            print(f"  {target}")

        print("\n[Directories]")
        print(f"  Root:              {self.project.root}")
        print(f"  Sources:           {self.project.sources}")
        print(f"  Build:             {self.project.build}")
        print(f"  Stamps:            {self.project.stamps}")
        print(f"  Tools:             {self.project.tools}")

        print("\n[Toolchain]")
        print(f"  Target triple:     {self.env.target}")
        print(f"  Toolchain phase:   {self.env.toolchain_phase}")
        print(f"  Make jobs:         {self.env.jobs}")
        print(f"  Scheduler jobs:    {self.scheduler.jobs}")

        pending = [key for key, done in plan if not done]
        print(f"\n[Units] ({len(pending)} of {len(plan)} pending)")
        for key, done in plan:
            print(f"  {'done' if done else 'todo'}  {key}")

        if self.graph.warnings:
            print(f"\n[Warnings] ({len(self.graph.warnings)})")
            for warning in self.graph.warnings:
                print(f"  {warning}")

        print("\n" + "=" * 60)
        print("End of build plan. No changes were made.")
        print("=" * 60 + "\n")


def main(argv: Optional[list[str]] = None) -> int:
    """commandline api entrypoint"""

    parser = argparse.ArgumentParser(
        prog="eir",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Builds a bootstrap toolchain from package manifests",
        epilog=(
            "targets: prepare, toolchain, package:<pkg>, download:<pkg>, verify:<pkg>,\n"
            "         extract:<pkg>, patch:<phase>:<pkg>, build:<phase>:<pkg>"
        ),
    )
    opt = parser.add_argument

    # fmt: off
    opt("targets", nargs="*", help="targets to build (default: %s)" % " ".join(DEFAULT_TARGETS))
    opt("-r", "--root", help="project root (default: current directory)", metavar="DIR")
    opt("-j", "--jobs", help="# of units run in parallel (default: %(default)s)", type=int, default=1)
    opt("-m", "--make-jobs", help="# of make jobs exported via MAKEFLAGS (default: cpu count)", type=int)
    opt("-t", "--target", help="cross target triple (default: <machine>-eir-linux-gnu)")
    opt("-p", "--toolchain-phase", default=TOOLCHAIN_PHASE, help="phase built with the cross environment (default: %(default)s)")
    opt("-n", "--dry-run", help="show build plan without building", action="store_true")
    opt("-l", "--list", help="list available targets", action="store_true")
    opt("-c", "--clean", help="remove stamps and build folders of packages", nargs="+", metavar="PKG")
    opt("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    # fmt: on

    args = parser.parse_args(argv)
    log = logging.getLogger("eir")
    project = Project(args.root)

    try:
        pipeline = Pipeline.from_project(
            project,
            target=args.target,
            jobs=args.jobs,
            make_jobs=args.make_jobs,
            toolchain_phase=args.toolchain_phase,
        )
        if args.list:
            for name in pipeline.graph.targets():
                print(name)
            return 0
        if args.clean:
            for package in args.clean:
                pipeline.clean(package)
            return 0
        if args.dry_run:
            pipeline.dry_run(args.targets)
            return 0
        pipeline.run(args.targets)
    except PipelineError as e:
        where = ", ".join(
            f"{attr}={getattr(e, attr)}"
            for attr in ("package", "phase", "stage")
            if getattr(e, attr)
        )
        log.critical("%s%s", e, f" [{where}]" if where else "")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
