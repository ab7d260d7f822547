# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the structured JSON logger.

We verify:
  - every line is one JSON object with ts, level, module and msg
  - extra context (steps, losses, paths, tensors) gets merged in
  - levels filter, invalid levels are rejected
  - repeated get_logger calls don't duplicate output
"""

import json
import logging
from pathlib import Path

import pytest
import torch

from helferlein.logging.logger import get_logger


@pytest.fixture(autouse=True)
def _reset_loggers() -> None:
    """
    Clear handlers of test loggers so each test gets a fresh stdout binding.
    """
    yield  # type: ignore[misc]
    for name in list(logging.Logger.manager.loggerDict):
        if name.startswith("helferlein.test"):
            logging.getLogger(name).handlers.clear()


def _lines(captured: str) -> list[dict]:
    return [json.loads(line) for line in captured.strip().splitlines()]


class TestJsonOutput:
    def test_mandatory_fields_are_present(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("helferlein.test.fields", log_level="INFO")
        logger.info("test message")

        (parsed,) = _lines(capsys.readouterr().out)
        assert set(parsed) >= {"ts", "level", "module", "msg"}
        assert parsed["level"] == "INFO"
        assert parsed["module"] == "helferlein.test.fields"
        assert parsed["msg"] == "test message"

    def test_training_context_is_merged(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("helferlein.test.extra", log_level="DEBUG")
        logger.info("Evaluation", extra={"step": 40, "loss_train": 0.31, "loss_valid": None})

        (parsed,) = _lines(capsys.readouterr().out)
        assert parsed["step"] == 40
        assert parsed["loss_train"] == 0.31
        assert parsed["loss_valid"] is None

    def test_unserialisable_values_fall_back_to_str(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        logger = get_logger("helferlein.test.fallback", log_level="INFO")
        logger.info("saved", extra={"path": Path("a/b.pt"), "value": torch.tensor(1.5)})

        (parsed,) = _lines(capsys.readouterr().out)
        assert parsed["path"] == str(Path("a/b.pt"))
        assert "1.5" in parsed["value"]

    def test_exception_is_included(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("helferlein.test.exc", log_level="INFO")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.exception("failed")

        (parsed,) = _lines(capsys.readouterr().out)
        assert parsed["level"] == "ERROR"
        assert "RuntimeError: boom" in parsed["exc"]


class TestLogLevelFiltering:
    def test_debug_messages_hidden_at_info_level(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        logger = get_logger("helferlein.test.level_filter", log_level="INFO")
        logger.debug("this should not appear")
        assert capsys.readouterr().out.strip() == ""

    def test_level_name_is_case_insensitive(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("helferlein.test.level_case", log_level="warning")
        logger.info("hidden")
        logger.warning("shown")
        (parsed,) = _lines(capsys.readouterr().out)
        assert parsed["msg"] == "shown"


class TestHandlers:
    def test_repeated_calls_do_not_stack_handlers(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        get_logger("helferlein.test.stack")
        logger = get_logger("helferlein.test.stack")
        logger.info("once")

        assert len(logger.handlers) == 1
        assert len(_lines(capsys.readouterr().out)) == 1

    def test_logs_are_written_to_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "nested" / "run.log"
        logger = get_logger("helferlein.test.file_output", log_level="INFO", log_file=log_file)
        logger.info("file log test")

        parsed = json.loads(log_file.read_text(encoding="utf-8").strip())
        assert parsed["msg"] == "file log test"


class TestInvalidLogLevel:
    def test_invalid_level_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            get_logger("helferlein.test.invalid", log_level="VERBOSE")
