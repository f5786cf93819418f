"""Tests for the invocation entry points (run, run_spec) and result tagging."""

import pytest

from epicrunner.pipeline import (
    Err,
    FaultOrigin,
    Ok,
    PipelineConfig,
    PipelineLookupError,
    PipelineState,
    RunOptions,
    run,
    run_spec,
)
from epicrunner.pipeline.runner import resolve_options
from epicrunner.testing import assert_ok, describe_error
from tests import units


def _config(**pipelines) -> PipelineConfig:
    return PipelineConfig(pipelines={"posts": pipelines})


class TestExamples:
    def test_sequential_context(self):
        state = assert_ok(run_spec([units.set_x, units.set_y_from_x]))
        assert state.context["x"] == 1
        assert state.context["y"] == 2
        assert state.faults == ()

    def test_parallel_merge(self):
        state = assert_ok(
            run_spec([units.set_x, [units.set_b, units.set_c], units.set_d_from_b_and_c])
        )
        assert state.context["d"] == 3

    def test_signalled_failure(self):
        result = run_spec([units.signal_invalid], {"return_full_state_on_error": True})
        assert isinstance(result, Err)
        (fault,) = result.error.faults
        assert fault.origin is FaultOrigin.SIGNALLED
        assert fault.step.unit is units.signal_invalid

    def test_unregistered_unit_succeeds(self):
        state = assert_ok(run_spec(["no_such_unit_anywhere"]))
        assert state.done == ()
        assert state.faults == ()


class TestResult:
    def test_on_returns_context_value(self):
        result = run_spec([units.set_x], {"on": "x"})
        assert result == Ok(1)

    def test_on_missing_key_is_none(self):
        assert run_spec([units.set_x], {"on": "missing"}) == Ok(None)

    def test_error_is_rendered_report(self):
        result = run_spec([units.signal_invalid, units.raise_boom])
        assert isinstance(result, Err)
        assert isinstance(result.error, str)
        assert "invalid: bad input" in result.error
        assert "ValueError: boom" in result.error
        assert "Traceback" not in result.error

    def test_verbose_report_includes_trace(self):
        result = run_spec([units.raise_boom], {"verbose": True})
        assert "Traceback:" in result.error

    def test_full_state_on_error(self):
        result = run_spec([units.signal_invalid], RunOptions(return_full_state_on_error=True))
        assert isinstance(result.error, PipelineState)

    def test_options_stored_in_context(self):
        state = assert_ok(run_spec([units.set_x], {"debug": True, "flavour": "x"}))
        assert state.options["debug"] is True
        assert state.options["flavour"] == "x"
        assert state.options["timeout"] == 1000.0

    def test_initial_context(self):
        state = assert_ok(run_spec([units.set_y_from_x], context={"x": 41}))
        assert state.context["y"] == 42

    def test_is_ok(self):
        assert Ok(1).is_ok
        assert not Err("x").is_ok


class TestNamedRun:
    def test_runs_configured_pipeline(self):
        cfg = _config(publish=["tests.units:set_x", "tests.units:set_y_from_x"])
        state = assert_ok(run("posts", "publish", config=cfg))
        assert state.context["y"] == 2

    def test_unknown_name_is_fatal(self):
        with pytest.raises(PipelineLookupError):
            run("posts", "missing", config=_config(publish=[]))

    def test_unknown_owner_is_fatal(self):
        with pytest.raises(PipelineLookupError):
            run("users", "publish", config=_config(publish=[]))

    def test_config_defaults_apply(self):
        cfg = PipelineConfig(
            pipelines={"posts": {"publish": ["tests.units:set_x"]}},
            defaults={"on": "x"},
        )
        assert run("posts", "publish", config=cfg) == Ok(1)

    def test_caller_options_override_defaults(self):
        cfg = PipelineConfig(
            pipelines={"posts": {"publish": ["tests.units:set_x"]}},
            defaults={"on": "x"},
        )
        result = run("posts", "publish", {"on": None}, config=cfg)
        assert isinstance(result.value, PipelineState)

    def test_config_disabled_units_skipped(self):
        cfg = PipelineConfig(
            pipelines={"posts": {"publish": ["tests.units:set_x", "tests.units:set_b"]}},
            disabled=["tests.units:set_x"],
        )
        state = assert_ok(run("posts", "publish", {"disabled": ["tests.units:set_b"]}, config=cfg))
        assert state.done == ()

    def test_uses_given_registry(self, registry):
        registry.register("x", units.set_x)
        cfg = _config(publish=["x"])
        assert run("posts", "publish", {"on": "x"}, config=cfg, registry=registry) == Ok(1)

    @pytest.mark.usefixtures("_caplog_epicrunner")
    def test_logs_run_summary(self, caplog):
        with caplog.at_level("DEBUG", logger="epicrunner.pipeline.runner"):
            run("posts", "publish", config=_config(publish=["tests.units:set_x"]))
        assert "posts.publish finished" in caplog.text


class TestResolveOptions:
    def test_defaults_only(self):
        assert resolve_options(None, RunOptions(debug=True)).debug is True

    def test_unset_fields_do_not_override(self):
        opts = resolve_options(RunOptions(crash=True), RunOptions(debug=True, timeout=5))
        assert opts.crash is True
        assert opts.debug is True
        assert opts.timeout == 5

    def test_mapping_overrides(self):
        assert resolve_options({"timeout": 2}, RunOptions(timeout=5)).timeout == 2

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            resolve_options({"timeout": 0})


class TestTestingHelpers:
    def test_assert_ok_returns_value(self):
        assert assert_ok(Ok(3)) == 3

    def test_assert_ok_fails_with_report(self):
        result = run_spec([units.raise_boom], {"return_full_state_on_error": True})
        with pytest.raises(AssertionError, match="ValueError: boom"):
            assert_ok(result)

    def test_describe_error_string(self):
        assert describe_error("plain") == "plain"
