"""Tests for the -n/--dry-run feature"""

import pytest
from unittest.mock import patch
from conftest import FakeShell
from eir import Manifest, Pipeline


@pytest.fixture
def pipeline(project, binutils, shell):
    gcc = Manifest(
        name="gcc",
        version="7.3.0",
        file="gcc-7.3.0.tar.xz",
        uri="https://ftp.gnu.org/gnu/gcc/gcc-7.3.0/gcc-7.3.0.tar.xz",
        hash="0" * 64,
        build={"initial": "make"},
    )
    return Pipeline(
        project,
        [binutils, gcc],
        toolchain_order=[("initial", "gcc"), ("toolchain", "binutils"), ("initial", "glibc")],
        target="x86_64-eir-linux-gnu",
        make_jobs=4,
        shell=shell,
        base_env={"PATH": "/usr/bin"},
    )


def capture(pipeline, targets=None):
    output = []
    with patch("builtins.print", side_effect=lambda x: output.append(x)):
        pipeline.dry_run(targets)
    return "\n".join(str(x) for x in output)


class TestDryRunMethod:
    """Tests for the dry_run() method"""

    def test_dry_run_does_not_build(self, pipeline, shell, project):
        """Test that dry_run does not execute any unit"""
        with patch.object(pipeline, "execute") as mock_execute, patch("eir.urlopen") as mock_urlopen:
            capture(pipeline)
        mock_execute.assert_not_called()
        mock_urlopen.assert_not_called()
        assert shell.calls == []
        assert not project.root.exists()

    def test_dry_run_prints_sections(self, pipeline):
        """Test that dry_run produces every section"""
        output = capture(pipeline)
        assert "BUILD PLAN" in output
        assert "[Targets]" in output
        assert "[Directories]" in output
        assert "[Toolchain]" in output
        assert "[Units]" in output
        assert "No changes were made" in output

    def test_dry_run_shows_toolchain_settings(self, pipeline):
        output = capture(pipeline)
        assert "x86_64-eir-linux-gnu" in output
        assert ["Make", "jobs:", "4"] in [line.split() for line in output.splitlines()]

    def test_dry_run_lists_pending_units(self, pipeline):
        output = capture(pipeline, ["build:toolchain:binutils"])
        assert "(5 of 5 pending)" in output
        assert "todo  download:binutils" in output
        assert "todo  build:toolchain:binutils" in output
        assert "gcc" not in output.split("[Units]")[1]

    def test_dry_run_marks_done_units(self, pipeline, project, binutils):
        pipeline.stamps.mark("binutils", "source", "extract")
        output = capture(pipeline, ["build:toolchain:binutils"])
        assert "(2 of 5 pending)" in output
        assert "done  download:binutils" in output
        assert "done  extract:binutils" in output
        assert "todo  patch:toolchain:binutils" in output

    def test_dry_run_shows_warnings(self, pipeline):
        output = capture(pipeline)
        assert "[Warnings] (1)" in output
        assert "glibc" in output

    def test_dry_run_after_run(self, project, binutils):
        pipeline = Pipeline(
            project,
            [binutils],
            toolchain_order=[("toolchain", "binutils")],
            shell=FakeShell(),
            base_env={},
        )
        pipeline.run()
        output = capture(pipeline)
        assert "(0 of 5 pending)" in output
        assert "todo" not in output
