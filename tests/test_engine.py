"""
Tests for the engine — phase classifier, phase executor, network gate.
"""

import json
import threading

import pytest

from onboard.core.engine.executor import PhaseReport, execute_phase
from onboard.core.engine.gate import NetworkGate
from onboard.core.engine.phases import classify
from onboard.core.engine.resolver import default_tools, resolve
from onboard.core.errors import CommandError, GateCancelled, InstallError, PhaseError
from onboard.core.models.result import InstallResult


# ── Classifier ──────────────────────────────────────────────────


class TestClassify:
    def test_partition_preserves_order(self, chain_catalog):
        plan = resolve(["D"], chain_catalog)
        phases = classify(plan, chain_catalog)
        assert phases.public == ["A", "B"]
        assert phases.private == ["C", "D"]

    def test_union_is_plan(self):
        plan = resolve(["gnoc_helper", "hops_cli", "iterm2"])
        phases = classify(plan)
        assert sorted(phases.public + phases.private) == sorted(plan)
        assert not set(phases.public) & set(phases.private)
        assert phases.total == len(plan)

    def test_default_selection_split(self):
        phases = classify(default_tools())
        assert phases.public == [
            "iterm2", "xcode", "homebrew", "pyenv",
            "python313", "python396", "pyenv_venv_ncpcli",
        ]
        assert phases.private == ["allproxy", "sparta_pki", "hops_cli"]

    def test_unknown_ids_are_private(self, chain_catalog):
        phases = classify(["A", "mystery"], chain_catalog)
        assert phases.private == ["mystery"]


# ── Executor ────────────────────────────────────────────────────


class FakeInstallers:
    """Registry stand-in that records calls and can be told to fail."""

    def __init__(self, failures: dict | None = None):
        self.calls: list[str] = []
        self.failures = failures or {}

    def __call__(self, tool_id: str):
        def installer(ctx):
            self.calls.append(tool_id)
            failure = self.failures.get(tool_id)
            if isinstance(failure, BaseException):
                raise failure
            if failure == "result":
                return InstallResult.failure(tool_id, "reported failure")
            return InstallResult.success(tool_id)
        return installer


class TestExecutePhase:
    def test_installs_in_order_and_persists(self, ctx):
        fake = FakeInstallers()
        report = execute_phase("phase1", ["a", "b"], ctx, lookup=fake)

        assert fake.calls == ["a", "b"]
        assert report.installed == ["a", "b"]
        assert report.all_ok
        saved = json.loads(ctx.state_path.read_text())
        assert set(saved["completed_tools"]) == {"a", "b"}

    def test_skips_completed_tools(self, ctx):
        ctx.state.mark_completed("a", at="2026-01-01T00:00:00+00:00")
        fake = FakeInstallers()
        report = execute_phase("phase1", ["a", "b"], ctx, lookup=fake)

        assert fake.calls == ["b"]
        assert report.skipped == ["a"]
        assert ctx.state.completed_at("a") == "2026-01-01T00:00:00+00:00"

    def test_force_reinstalls_and_refreshes_timestamp(self, ctx):
        ctx.state.mark_completed("a", at="2020-01-01T00:00:00+00:00")
        ctx.force = True
        fake = FakeInstallers()
        execute_phase("phase1", ["a"], ctx, lookup=fake)

        assert fake.calls == ["a"]
        assert ctx.state.completed_at("a") != "2020-01-01T00:00:00+00:00"

    @pytest.mark.parametrize(
        "failure",
        [
            InstallError("artifact missing"),
            CommandError(["brew", "install", "jq"], 1, "boom"),
            "result",
        ],
    )
    def test_failure_stops_later_installers(self, ctx, failure):
        fake = FakeInstallers({"b": failure})

        with pytest.raises(PhaseError) as exc_info:
            execute_phase("phase1", ["a", "b", "c"], ctx, lookup=fake)

        err = exc_info.value
        assert err.tool_id == "b"
        assert err.phase == "phase1"
        assert fake.calls == ["a", "b"]
        assert isinstance(err.report, PhaseReport)
        assert err.report.failed == ["b"]

        saved = json.loads(ctx.state_path.read_text())
        assert list(saved["completed_tools"]) == ["a"]
        assert not ctx.state.is_completed("c")

    def test_failure_is_journaled(self, ctx):
        fake = FakeInstallers({"a": InstallError("nope")})
        with pytest.raises(PhaseError):
            execute_phase("phase3", ["a"], ctx, lookup=fake)

        errors = [r for r in ctx.journal.records if r.level == "ERROR"]
        assert errors[-1].step == "a"
        assert errors[-1].phase == "phase3"
        assert "nope" in errors[-1].msg

    def test_dry_run_touches_nothing(self, ctx):
        ctx.dry_run = True
        fake = FakeInstallers()
        report = execute_phase("phase1", ["a", "b"], ctx, lookup=fake)

        assert fake.calls == []
        assert report.total == 2
        assert not ctx.state_path.exists()
        assert ctx.state.completed_tools == {}

    def test_progress_output(self, ctx, capsys):
        execute_phase("phase1", ["a", "b"], ctx, lookup=FakeInstallers())
        out = capsys.readouterr().out
        assert "[1/2] a" in out
        assert "[2/2] b" in out
        assert "[✓] b done" in out

    def test_empty_phase(self, ctx):
        report = execute_phase("phase3", [], ctx, lookup=FakeInstallers())
        assert report.total == 0
        assert not ctx.state_path.exists()


# ── Gate ────────────────────────────────────────────────────────


class ScriptedProbe:
    """Per-endpoint sequence of probe outcomes."""

    def __init__(self, outcomes: dict[str, list[bool]]):
        self._outcomes = {ep: iter(seq) for ep, seq in outcomes.items()}
        self.calls: list[str] = []

    def __call__(self, endpoint: str, timeout: float) -> bool:
        self.calls.append(endpoint)
        return next(self._outcomes[endpoint])


def _gate(probe, **kwargs) -> NetworkGate:
    return NetworkGate(["int:443", "git:7999"], interval=0, probe=probe, sleep=lambda s: None, **kwargs)


class TestNetworkGate:
    def test_unblocks_when_all_reachable(self, ctx):
        probe = ScriptedProbe({"int:443": [True], "git:7999": [True]})
        assert _gate(probe).await_private_network(ctx) == 1

    def test_partial_rounds_do_not_unblock(self, ctx):
        probe = ScriptedProbe({
            "int:443": [True, False, True],
            "git:7999": [False, True, True],
        })
        assert _gate(probe).await_private_network(ctx) == 3

    def test_probes_every_endpoint_each_round(self, ctx):
        probe = ScriptedProbe({"int:443": [False, True], "git:7999": [False, True]})
        _gate(probe).await_private_network(ctx)
        assert probe.calls == ["int:443", "git:7999", "int:443", "git:7999"]

    def test_prompts_operator_first(self, ctx, prompter):
        probe = ScriptedProbe({"int:443": [True], "git:7999": [True]})
        _gate(probe).await_private_network(ctx)
        assert prompter.alerts[0][0] == "Connect to VPN"

    def test_dry_run_does_not_poll(self, ctx):
        ctx.dry_run = True
        probe = ScriptedProbe({"int:443": [], "git:7999": []})
        assert _gate(probe).await_private_network(ctx) == 0
        assert probe.calls == []

    def test_cancel_before_start(self, ctx):
        cancel = threading.Event()
        cancel.set()
        probe = ScriptedProbe({"int:443": [], "git:7999": []})
        with pytest.raises(GateCancelled):
            _gate(probe).await_private_network(ctx, cancel)

    def test_cancel_while_waiting(self, ctx):
        cancel = threading.Event()

        def probe(endpoint, timeout):
            cancel.set()
            return False

        with pytest.raises(GateCancelled):
            _gate(probe).await_private_network(ctx, cancel)

    def test_from_settings(self, ctx):
        gate = NetworkGate.from_settings(ctx.settings)
        assert gate.endpoints == [
            "artifactory.oci.oraclecorp.com:443",
            "bitbucket.oci.oraclecorp.com:7999",
        ]
        assert gate.interval == 5.0
        assert gate.timeout == 3.0

    def test_requires_endpoints(self):
        with pytest.raises(ValueError):
            NetworkGate([])
