"""Tests for downloading sources"""

import io

import pytest
from unittest.mock import MagicMock, Mock, patch
from eir import DownloadError, DownloadProgress, Fetcher, logging


@pytest.fixture
def fetcher():
    fetcher = Fetcher()
    fetcher.log = Mock(spec=logging.Logger)
    return fetcher


def fake_response(data, length=True):
    response = MagicMock()
    stream = io.BytesIO(data)
    response.read.side_effect = stream.read
    response.headers = {"Content-Length": str(len(data))} if length else {}
    response.__enter__.return_value = response
    return response


def test_fetch_local_uri(fetcher, tmp_path):
    source = tmp_path / "mirror" / "grep-3.1.tar.xz"
    source.parent.mkdir()
    source.write_bytes(b"grep" * 50000)
    dest = tmp_path / "sources" / "grep-3.1.tar.xz"

    progress = Mock()
    result = fetcher.fetch(source.as_uri(), dest, package="grep", progress=progress)

    assert result == dest
    assert dest.read_bytes() == source.read_bytes()
    assert not dest.with_name("grep-3.1.tar.xz.part").exists()
    total, transferred = progress.call_args.args
    assert total == 200000
    assert transferred == 200000
    progress.assert_any_call(200000, 0)


def test_fetch_overwrites_existing(fetcher, tmp_path):
    source = tmp_path / "new.tar.gz"
    source.write_bytes(b"new")
    dest = tmp_path / "sources" / "new.tar.gz"
    dest.parent.mkdir()
    dest.write_bytes(b"old and stale")
    fetcher.fetch(source.as_uri(), dest)
    assert dest.read_bytes() == b"new"


def test_fetch_without_content_length(fetcher, tmp_path):
    dest = tmp_path / "file-5.32.tar.gz"
    progress = Mock()
    with patch("eir.urlopen", return_value=fake_response(b"x" * 10, length=False)):
        fetcher.fetch("http://example.com/file-5.32.tar.gz", dest, progress=progress)
    assert dest.read_bytes() == b"x" * 10
    assert all(call.args[0] is None for call in progress.call_args_list)


def test_fetch_failure_leaves_nothing(fetcher, tmp_path):
    dest = tmp_path / "missing.tar.gz"
    with pytest.raises(DownloadError) as excinfo:
        fetcher.fetch((tmp_path / "nope.tar.gz").as_uri(), dest, package="nope")
    assert excinfo.value.package == "nope"
    assert excinfo.value.stage == "download"
    assert not dest.exists()
    assert not dest.with_name("missing.tar.gz.part").exists()


def test_fetch_short_read(fetcher, tmp_path):
    response = fake_response(b"abc")
    response.headers = {"Content-Length": "10"}
    dest = tmp_path / "short.tar.gz"
    with patch("eir.urlopen", return_value=response):
        with pytest.raises(DownloadError, match="3 of 10"):
            fetcher.fetch("http://example.com/short.tar.gz", dest)
    assert not dest.exists()


def test_fetch_interrupted_keeps_previous_file(fetcher, tmp_path):
    dest = tmp_path / "perl-5.26.1.tar.xz"
    dest.write_bytes(b"previous")
    response = fake_response(b"")
    response.read.side_effect = ConnectionResetError("reset by peer")
    with patch("eir.urlopen", return_value=response):
        with pytest.raises(DownloadError):
            fetcher.fetch("http://example.com/perl-5.26.1.tar.xz", dest)
    assert dest.read_bytes() == b"previous"


class TestDownloadProgress:
    def test_logs_in_steps(self):
        progress = DownloadProgress("gcc.tar.xz", step=50)
        progress.log = Mock(spec=logging.Logger)
        for transferred in range(0, 101, 10):
            progress(100, transferred)
        assert progress.log.debug.call_count == 3

    def test_unknown_total_is_silent(self):
        progress = DownloadProgress("gcc.tar.xz")
        progress.log = Mock(spec=logging.Logger)
        progress(None, 1234)
        progress.log.debug.assert_not_called()
