# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Training loop with TensorBoard reporting for helferlein.

tb_train runs `epochs` passes over a training loader. Per step:
  1. Forward pass to a scalar loss: model(x, y)
  2. NaN check: a NaN loss ends training before anything is updated
  3. Backward pass, L2 term added to every gradient, optimizer step
  4. Loss recorded in the rolling buffer
  5. Evaluation on decimated training/validation views   (every eval interval)
  6. Mean minibatch loss reported, buffer cleared         (every loss interval)
  7. Model checkpoint                                     (every checkpoint interval)
  8. Learning rate multiplied by lr_decay                 (every decay interval)

Intervals are resolved once by training/schedule from the "per epoch"
frequencies of the TrainConfig. Steps are counted from 1 over the whole run,
so step i of epoch e is (e - 1) * n_trn + i.

Failures in the model, optimizer, sink or checkpoint writer are not caught;
they end the run and propagate to the caller.
"""

import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import torch
import torch.nn as nn

from helferlein.config.schema import TrainConfig
from helferlein.data.iterators.core import DataLoader, SequenceData, TakeNth
from helferlein.logging.logger import get_logger
from helferlein.training.checkpoint.core import save_checkpoint
from helferlein.training.engine.experiment import create_run_dir
from helferlein.training.metrics.core import LossBuffer, MetricFn, evaluate
from helferlein.training.optimizer.core import apply_weight_decay, create_optimizer
from helferlein.training.schedule.core import TrainingSchedule, build_schedule, is_due
from helferlein.training.scheduler.core import decay_learning_rate, get_learning_rate
from helferlein.training.sink.core import MetricsSink, TensorBoardSink, describe_run

logger: logging.Logger = get_logger(__name__)

TAG_EVAL_LOSS = "Evaluation Loss"
TAG_EVAL_ACC = "Evaluation Accuracy"
TAG_DESCRIPTION = "Description"


def _as_loader(data: Any) -> DataLoader:
    """Accept plain sequences of minibatches as well as loaders."""
    if isinstance(data, DataLoader):
        return data
    return SequenceData(data, shuffle=False)


def _minibatch_loss_tag(n_trn: int) -> str:
    return f"Minibatch loss (epoch = {n_trn} steps)"


def _report_evaluation(
    model: nn.Module,
    trn_view: DataLoader,
    vld_view: Optional[DataLoader],
    acc_fun: Optional[MetricFn],
    sink: MetricsSink,
    step: int,
) -> None:
    """Evaluate on the decimated views and send the results to the sink."""
    result = evaluate(model, trn_view, vld_view, acc_fun)

    scalars = {
        f"{TAG_EVAL_LOSS}/train": result.loss_train,
        f"{TAG_EVAL_LOSS}/valid": result.loss_valid,
        f"{TAG_EVAL_ACC}/train": result.acc_train,
        f"{TAG_EVAL_ACC}/valid": result.acc_valid,
    }
    for tag, value in scalars.items():
        if value is not None:
            sink.log_scalar(tag, value, step)

    logger.info(
        "Evaluation",
        extra={
            "step": step,
            "loss_train": result.loss_train,
            "loss_valid": result.loss_valid,
            "acc_train": result.acc_train,
            "acc_valid": result.acc_valid,
        },
    )


def _log_setup(schedule: TrainingSchedule, run_dir: Path, has_vld: bool) -> None:
    logger.info(
        f"Training {schedule.epochs} epochs with {schedule.n_trn} minibatches/epoch "
        f"(and {schedule.n_vld} validation mbs).",
        extra={
            "epochs": schedule.epochs,
            "n_trn": schedule.n_trn,
            "n_vld": schedule.n_vld if has_vld else None,
        },
    )
    logger.info(
        f"Evaluation is performed every {schedule.eval_every} minibatches "
        f"(with {schedule.n_eval} mbs).",
        extra={"eval_every": schedule.eval_every, "n_eval": schedule.n_eval},
    )
    logger.info(
        f"Watch the progress with TensorBoard at: {run_dir}",
        extra={"run_dir": str(run_dir)},
    )


def tb_train(
    model: nn.Module,
    optimizer_cls: type[torch.optim.Optimizer],
    trn: Any,
    vld: Any = None,
    config: Optional[TrainConfig] = None,
    acc_fun: Optional[MetricFn] = None,
    sink: Optional[MetricsSink] = None,
    **optimizer_args: Any,
) -> nn.Module:
    """
    Train `model` in place and return it.

    Args:
        model: Module callable as model(x) -> predictions and
            model(x, y) -> scalar loss.
        optimizer_cls: Optimizer class, e.g. torch.optim.Adam.
        trn: Training loader (or sequence) of (x, y) minibatches.
        vld: Optional validation loader (or sequence).
        config: Run options; defaults to TrainConfig().
        acc_fun: Optional metric fun(predictions, y) -> scalar, evaluated
            together with the loss.
        sink: Where scalars and text go. Defaults to a TensorBoardSink in
            the run directory, which is closed when training ends.
        **optimizer_args: Optimizer options; they override
            config.optimizer_args.

    Returns:
        The trained model. After a NaN loss this is the model as it was
        before the failing step.
    """
    if config is None:
        config = TrainConfig()

    trn = _as_loader(trn)
    vld = _as_loader(vld) if vld is not None else None

    schedule = build_schedule(config, len(trn), len(vld) if vld is not None else None)
    trn_view = TakeNth(trn, schedule.nth_trn)
    vld_view = TakeNth(vld, schedule.nth_vld) if vld is not None else None

    start_time = datetime.now()
    run_dir = create_run_dir(config, start_time)
    _log_setup(schedule, run_dir, vld is not None)

    owns_sink = sink is None
    if sink is None:
        sink = TensorBoardSink(run_dir)

    try:
        sink.log_text(
            TAG_DESCRIPTION,
            describe_run(run_dir, config.tb_name, start_time, config.tb_text),
            0,
        )
        _report_evaluation(model, trn_view, vld_view, acc_fun, sink, 0)

        opt_args = {**config.optimizer_args, **optimizer_args}
        optimizer = create_optimizer(model, optimizer_cls, **opt_args)
        params = [p for group in optimizer.param_groups for p in group["params"]]
        loss_tag = _minibatch_loss_tag(schedule.n_trn)
        loss_buffer = LossBuffer()
        checkpoint_dir = run_dir / config.cp_dir

        model.train()
        optimizer.zero_grad()
        step = 0

        for epoch in range(1, schedule.epochs + 1):
            for x, y in trn:
                step += 1

                loss = model(x, y)
                mb_loss = float(loss.detach())

                if math.isnan(mb_loss):
                    logger.error(
                        "Training aborted because of loss value NaN",
                        extra={"step": step, "epoch": epoch},
                    )
                    return model

                loss.backward()
                apply_weight_decay(params, config.l2)
                optimizer.step()
                optimizer.zero_grad()

                loss_buffer.record(mb_loss)

                if is_due(step, schedule.eval_every):
                    _report_evaluation(model, trn_view, vld_view, acc_fun, sink, step)

                if is_due(step, schedule.loss_every):
                    sink.log_scalar(loss_tag, loss_buffer.flush(), step)

                if is_due(step, schedule.cp_every):
                    save_checkpoint(
                        model,
                        step,
                        checkpoint_dir,
                        learning_rate=get_learning_rate(optimizer),
                    )

                if config.lr_decay is not None and is_due(step, schedule.lr_every):
                    lr = decay_learning_rate(optimizer, config.lr_decay)
                    logger.info(f"Set learning rate to η = {lr}", extra={"step": step, "lr": lr})

            logger.info(
                "Epoch complete",
                extra={"epoch": epoch, "step": step, "total_steps": schedule.total_steps},
            )
    finally:
        if owns_sink:
            sink.close()

    return model
