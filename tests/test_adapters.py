"""
Tests for adapters — command runner, environments, network probes, mocks.
"""

import socket
import sys
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from onboard.adapters.mock import MockRunner, ScriptedPrompter
from onboard.adapters.network import http_head, split_endpoint, tcp_probe
from onboard.adapters.prompt import TerminalPrompter
from onboard.adapters.shell.command import CommandRunner
from onboard.adapters.shell.environment import base_env, pyenv_env
from onboard.core.errors import CommandError
from onboard.core.persistence.journal import Journal

PY = sys.executable


class TestCommandRunner:
    """The real runner, driven with the current interpreter."""

    def test_success_captures_combined_output(self, journal):
        runner = CommandRunner(journal)
        result = runner.run(
            "step",
            [PY, "-c", "import sys; print('out'); print('err', file=sys.stderr)"],
        )
        assert result.ok
        assert "out" in result.output
        assert "err" in result.output
        assert journal.records[-1].msg == "command ok"

    def test_failure_raises_with_output(self, journal):
        runner = CommandRunner(journal)
        with pytest.raises(CommandError) as exc_info:
            runner.run("step", [PY, "-c", "print('nope'); raise SystemExit(3)"])
        assert exc_info.value.returncode == 3
        assert "nope" in exc_info.value.output
        assert "exit status 3" in str(exc_info.value)
        assert journal.records[-1].level == "ERROR"

    def test_failure_without_check(self, journal):
        runner = CommandRunner(journal)
        result = runner.run("step", [PY, "-c", "raise SystemExit(2)"], check=False)
        assert result.returncode == 2
        assert not result.ok

    def test_missing_executable(self, journal):
        runner = CommandRunner(journal)
        with pytest.raises(CommandError) as exc_info:
            runner.run("step", ["/nonexistent/definitely-not-here"])
        assert exc_info.value.returncode == 127

    def test_dry_run_executes_nothing(self, journal, tmp_path: Path):
        marker = tmp_path / "touched"
        runner = CommandRunner(journal, dry_run=True)
        result = runner.run("step", [PY, "-c", f"open({str(marker)!r}, 'w')"])
        assert result.simulated
        assert not marker.exists()
        assert "DRY-RUN: would exec" in journal.records[-1].msg

    def test_env_and_cwd(self, journal, tmp_path: Path):
        runner = CommandRunner(journal)
        result = runner.run(
            "step",
            [PY, "-c", "import os; print(os.environ['MARK'], os.getcwd())"],
            env={"MARK": "hello", "PATH": "/usr/bin:/bin"},
            cwd=tmp_path,
        )
        assert result.output.startswith("hello")
        assert str(tmp_path.resolve()) in result.output

    def test_query_returns_stdout_or_none(self, journal):
        runner = CommandRunner(journal, dry_run=True)
        assert runner.query([PY, "-c", "print(' value ')"]) == "value"
        assert runner.query([PY, "-c", "raise SystemExit(1)"]) is None
        assert runner.query(["/nonexistent/tool"]) is None

    def test_sudo_prefixes_argv(self, journal):
        runner = MockRunner(journal)
        runner.sudo("step", ["ln", "-s", "a", "b"])
        assert runner.commands == ["sudo ln -s a b"]


class TestEnvironment:
    def test_base_env_paths(self, tmp_path: Path):
        env = base_env(tmp_path, environ={"USER": "jsmith", "LOGNAME": "jsmith"})
        path = env["PATH"].split(":")
        assert path[0] == "/opt/homebrew/bin"
        assert f"{tmp_path}/.pyenv/shims" in path
        assert env["HOME"] == str(tmp_path)
        assert env["USER"] == "jsmith"
        assert env["PYENV_ROOT"] == f"{tmp_path}/.pyenv"

    def test_pyenv_env_activates_venv(self, tmp_path: Path):
        env = pyenv_env(tmp_path, "ncpcli", environ={})
        venv = f"{tmp_path}/.pyenv/versions/ncpcli"
        assert env["VIRTUAL_ENV"] == venv
        assert env["PYENV_VERSION"] == "ncpcli"
        assert env["PATH"].startswith(f"{venv}/bin:")


class TestNetwork:
    def test_split_endpoint(self):
        assert split_endpoint("bitbucket.example.com:7999") == ("bitbucket.example.com", 7999)
        with pytest.raises(ValueError):
            split_endpoint("no-port")

    def test_tcp_probe_success(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
            server.bind(("127.0.0.1", 0))
            server.listen(1)
            port = server.getsockname()[1]
            assert tcp_probe(f"127.0.0.1:{port}", timeout=1.0) is True

    def test_tcp_probe_refused(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 0))
            port = s.getsockname()[1]
        assert tcp_probe(f"127.0.0.1:{port}", timeout=1.0) is False

    def test_tcp_probe_bad_endpoint(self):
        assert tcp_probe("garbage", timeout=0.1) is False

    def test_http_head_unreachable(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 0))
            port = s.getsockname()[1]
        result = http_head(f"http://127.0.0.1:{port}/", timeout=1.0)
        assert result["reachable"] is False
        assert "error" in result


class TestMocks:
    def test_mock_runner_records_and_fails(self):
        runner = MockRunner()
        runner.set_failure("brew install jq", returncode=4)
        runner.run("s", ["brew", "install", "openssl"])
        with pytest.raises(CommandError) as exc_info:
            runner.run("s", ["brew", "install", "jq"])
        assert exc_info.value.returncode == 4
        assert runner.ran("brew install openssl")
        assert len(runner.calls) == 2

    def test_mock_runner_dry_run_records_nothing(self):
        runner = MockRunner(dry_run=True)
        runner.run("s", ["rm", "-rf", "/"])
        assert runner.calls == []

    def test_scripted_prompter(self):
        prompter = ScriptedPrompter(confirms=[False], answers=["jsmith"], choices=[["a"]])
        assert prompter.confirm("t", "m") is False
        assert prompter.confirm("t", "m") is True
        assert prompter.confirm("t", "m", default=False) is False
        assert prompter.prompt("t", "m") == "jsmith"
        assert prompter.prompt("t", "m", default="d") == "d"
        assert prompter.choose_many("t", "m", ["a", "b"]) == ["a"]
        assert prompter.choose_many("t", "m", ["a", "b"], ["b"]) == ["b"]

    def test_mock_runner_default_journal(self):
        runner = MockRunner()
        assert isinstance(runner.journal, Journal)


# ── Terminal prompter ───────────────────────────────────────────


@click.command()
@click.option("--default-yes", is_flag=True)
def _confirm_cmd(default_yes):
    answer = TerminalPrompter().confirm("Rename This Mac", "Set names?", default=default_yes)
    click.echo(f"answer={answer}")


class TestTerminalPrompter:
    def test_empty_answer_takes_false_default(self):
        result = CliRunner().invoke(_confirm_cmd, [], input="\n")
        assert result.exit_code == 0
        assert "[y/N]" in result.output
        assert "answer=False" in result.output

    def test_empty_answer_takes_true_default(self):
        result = CliRunner().invoke(_confirm_cmd, ["--default-yes"], input="\n")
        assert "[Y/n]" in result.output
        assert "answer=True" in result.output

    def test_explicit_yes(self):
        result = CliRunner().invoke(_confirm_cmd, [], input="y\n")
        assert "answer=True" in result.output

    def test_closed_input_declines(self):
        result = CliRunner().invoke(_confirm_cmd, ["--default-yes"], input="")
        assert "answer=False" in result.output
