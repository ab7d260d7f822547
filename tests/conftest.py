# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for helferlein tests.

Kept small: config files, a toy minibatch source and a sink that records what
tb_train reports instead of writing event files.
"""

import textwrap
from pathlib import Path

import pytest
import torch


class RecordingSink:
    """MetricsSink that keeps everything in memory."""

    def __init__(self) -> None:
        self.scalars: list[tuple[str, float, int]] = []
        self.texts: list[tuple[str, str, int]] = []
        self.closed = False

    def log_scalar(self, tag: str, value: float, step: int) -> None:
        self.scalars.append((tag, float(value), step))

    def log_text(self, tag: str, text: str, step: int) -> None:
        self.texts.append((tag, text, step))

    def close(self) -> None:
        self.closed = True

    def steps(self, tag: str) -> list[int]:
        return [s for t, _, s in self.scalars if t == tag]

    def values(self, tag: str) -> list[float]:
        return [v for t, v, _ in self.scalars if t == tag]


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def toy_minibatches() -> list[tuple[torch.Tensor, torch.Tensor]]:
    """Ten fixed (x, y) pairs of batch size 1 on the line y = 2x + 1."""
    xs = torch.linspace(-1.0, 1.0, 10).reshape(10, 1, 1)
    return [(x, 2.0 * x + 1.0) for x in xs]


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """
    The smallest config that passes schema validation.
    """
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "helferlein-test"
          seed: 42
          log_level: "DEBUG"
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML that fails schema validation (missing config_version)."""
    config_content = textwrap.dedent("""\
        global:
          project_name: "helferlein-test"
          seed: 42
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file
