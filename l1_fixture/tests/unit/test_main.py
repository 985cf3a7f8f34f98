"""
Unit tests for the command line entry point.
"""

import json
import os
import signal
import time
from unittest.mock import Mock, patch

import pytest

from l1_fixture.builder import BuildResult
from l1_fixture.main import _raise_interrupt, build_parser, interrupts_as_exceptions, run
from l1_fixture.utils.exceptions import BuildInterrupted, DeploymentError


@pytest.fixture(autouse=True)
def in_tmp_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("L1_BLOCK_PERIOD", raising=False)
    with patch("l1_fixture.main.setup_logging"):
        yield tmp_path


def _result(tmp_path):
    return BuildResult(
        image_id="sha256:abc",
        image_tag="l1-fixture:dev",
        env_file=tmp_path / ".env.l1-fixture",
        data_dir=tmp_path / ".l1-fixture-data",
        deploy_attempts=1,
        funding_tx_hashes=["0x01"],
    )


class TestParser:

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.rpc_port is None
        assert args.skip_chown is False
        assert args.chown_only is False

    def test_port(self):
        assert build_parser().parse_args(["9545"]).rpc_port == 9545


class TestRun:

    def test_success(self, in_tmp_cwd):
        with patch("l1_fixture.main.FixtureBuilder") as builder_cls:
            builder_cls.return_value.build.return_value = _result(in_tmp_cwd)
            assert run(["9545", "--summary-file", "summary.json"]) == 0

        config = builder_cls.call_args.args[0]
        assert config.rpc_port == 9545
        assert config.fix_ownership is True
        assert config.data_dir == in_tmp_cwd / ".l1-fixture-data"

        summary = json.loads((in_tmp_cwd / "summary.json").read_text())
        assert summary["image_tag"] == "l1-fixture:dev"
        assert summary["deploy_attempts"] == 1

    def test_skip_chown(self):
        with patch("l1_fixture.main.FixtureBuilder") as builder_cls:
            builder_cls.return_value.build.return_value = Mock()
            run(["--skip-chown"])

        assert builder_cls.call_args.args[0].fix_ownership is False

    def test_existing_data_dir_exits_non_zero(self, in_tmp_cwd):
        (in_tmp_cwd / ".l1-fixture-data").mkdir()

        with patch("l1_fixture.core.node_container.docker.from_env") as from_env:
            assert run([]) == 1

        from_env.assert_not_called()

    def test_build_failure(self):
        with patch("l1_fixture.main.FixtureBuilder") as builder_cls:
            builder_cls.return_value.build.side_effect = DeploymentError("exhausted", returncode=1)
            assert run([]) == 1

    def test_invalid_port(self):
        assert run(["70000"]) == 1

    def test_keyboard_interrupt(self):
        with patch("l1_fixture.main.FixtureBuilder") as builder_cls:
            builder_cls.return_value.build.side_effect = KeyboardInterrupt
            assert run([]) == 130

    def test_sigterm(self):
        with patch("l1_fixture.main.FixtureBuilder") as builder_cls:
            builder_cls.return_value.build.side_effect = BuildInterrupted(
                signal.SIGTERM, "SIGTERM"
            )
            assert run([]) == 128 + signal.SIGTERM

    def test_chown_only(self, in_tmp_cwd):
        with patch("l1_fixture.main.fix_ownership") as fix, \
                patch("l1_fixture.main.FixtureBuilder") as builder_cls:
            assert run(["--chown-only"]) == 0

        fix.assert_called_once_with(in_tmp_cwd / ".l1-fixture-data")
        builder_cls.assert_not_called()


class TestSignals:

    def test_handler_raises(self):
        with pytest.raises(BuildInterrupted) as exc_info:
            _raise_interrupt(signal.SIGTERM, None)
        assert exc_info.value.signum == signal.SIGTERM
        assert exc_info.value.details["signal"] == "SIGTERM"

    def test_sigterm_becomes_exception(self):
        previous = signal.getsignal(signal.SIGTERM)

        with pytest.raises(BuildInterrupted):
            with interrupts_as_exceptions():
                os.kill(os.getpid(), signal.SIGTERM)
                time.sleep(1)

        assert signal.getsignal(signal.SIGTERM) is previous
