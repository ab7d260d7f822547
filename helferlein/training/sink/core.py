# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Metric sinks for helferlein.

tb_train reports through a very small interface: named scalars and text
entries, each tagged with a training step. Anything that implements
MetricsSink can receive them. The default, TensorBoardSink, writes TensorBoard
event files into the run directory so progress can be watched live with

    tensorboard --logdir <tb_dir>
"""

from datetime import datetime
from pathlib import Path
from typing import Protocol

from torch.utils.tensorboard import SummaryWriter


class MetricsSink(Protocol):
    """Append-only, step-indexed store of scalars and text."""

    def log_scalar(self, tag: str, value: float, step: int) -> None: ...

    def log_text(self, tag: str, text: str, step: int) -> None: ...

    def close(self) -> None: ...


class TensorBoardSink:
    """MetricsSink writing TensorBoard event files to `log_dir`."""

    def __init__(self, log_dir: Path) -> None:
        self.log_dir = log_dir
        self._writer = SummaryWriter(log_dir=str(log_dir))

    def log_scalar(self, tag: str, value: float, step: int) -> None:
        self._writer.add_scalar(tag, value, global_step=step)

    def log_text(self, tag: str, text: str, step: int) -> None:
        self._writer.add_text(tag, text, global_step=step)

    def close(self) -> None:
        self._writer.flush()
        self._writer.close()


def describe_run(run_dir: Path, tb_name: str, start_time: datetime, tb_text: str) -> str:
    """
    Markdown description of a run, logged as the step-0 text entry.
    """
    return (
        "## helferlein tb_train() log\n\n"
        f"- dir: `{run_dir}`\n"
        f"- name: {tb_name}\n"
        f"- time: {start_time.strftime('%a, %Y/%m/%d, %H:%M:%S')}\n\n"
        f"{tb_text}\n"
    )
