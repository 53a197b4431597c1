"""Property tests for the error taxonomy, failure capture and logging."""

import json
import logging

import pytest
from hypothesis import given, settings, strategies as st

from forecastxgb.utils.error_handling import (
    ForecastXGBError,
    InsufficientDataError,
    InvalidConfigurationError,
    MissingRegressorError,
    PredictionError,
    RecoveryContext,
    TrainingError,
)
from forecastxgb.utils.logging_config import JSONFormatter, get_logger, setup_logging


@pytest.mark.parametrize("error_cls,builtin", [
    (InvalidConfigurationError, ValueError),
    (InsufficientDataError, ValueError),
    (MissingRegressorError, ValueError),
    (TrainingError, RuntimeError),
    (PredictionError, RuntimeError),
])
def test_error_hierarchy(error_cls, builtin):
    err = error_cls("boom")
    assert isinstance(err, ForecastXGBError)
    assert isinstance(err, builtin)


def test_recovery_context_capture():
    """Verify context capture from exception."""
    try:
        x = 123
        y = "important_context"
        raise ValueError("Something went wrong")
    except ValueError as e:
        ctx = RecoveryContext.from_exception(run_id="test_run", exc=e)

    assert ctx.run_id == "test_run"
    assert ctx.exception_type == "ValueError"
    assert ctx.exception_message == "Something went wrong"
    assert "x" in ctx.local_variables
    assert ctx.local_variables["x"] == "123"
    assert "y" in ctx.local_variables
    assert ctx.local_variables["y"] == "important_context"


def _raise_deep(payload):
    inner_value = payload
    raise TrainingError(f"failed on {len(inner_value)} chars")


@given(st.text(max_size=2000), st.text(min_size=1, max_size=20))
@settings(max_examples=30, deadline=None)
def test_recovery_context_from_innermost_frame(payload, run_id):
    """Locals come from the raising frame and are truncated to 500 chars plus marker."""
    try:
        _raise_deep(payload)
    except TrainingError as e:
        ctx = RecoveryContext.from_exception(run_id, e)

    assert ctx.exception_type == "TrainingError"
    assert "_raise_deep" in ctx.stack_trace
    captured = ctx.local_variables["inner_value"]
    assert len(captured) <= 503
    assert captured.startswith(payload[:500])

    restored = json.loads(json.dumps(ctx.to_dict()))
    assert restored["run_id"] == run_id


def test_recovery_context_without_traceback():
    ctx = RecoveryContext.from_exception("r", ValueError("never raised"))
    assert ctx.local_variables == {}
    assert ctx.stack_trace == ""


def test_json_formatter_includes_props():
    record = logging.LogRecord("forecastxgb.test", logging.INFO, __file__, 1, "hello %s",
                               ("world",), None)
    record.props = {"series": "T1"}
    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "hello world"
    assert payload["series"] == "T1"
    assert payload["level"] == "INFO"


def test_setup_logging_writes_error_log(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging(log_level="INFO", log_dir=str(tmp_path))
        get_logger("bench").error("unit failed")
        for handler in root.handlers:
            handler.flush()
        lines = (tmp_path / "errors.jsonl").read_text().strip().splitlines()
        assert json.loads(lines[-1])["logger"] == "forecastxgb.bench"
        assert (tmp_path / "forecastxgb.jsonl").exists()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)
