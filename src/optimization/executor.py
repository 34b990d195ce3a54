"""Orchestrator responsible for running simplex optimisations end-to-end."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from threading import Lock
from typing import Iterable

import json
import time

from .checkpoint import FileCheckpointStore
from .config import RunConfig
from .cost_function import CostFunction
from .reporting import SimplexReporter
from .result import OptimizationResult
from .simplex import IterationCallback, SimplexEngine
from .strategies.base import EvaluationStrategy
from .strategies.parallel import ParallelEvaluation
from .strategies.serial import SerialEvaluation


@dataclass
class OptimizationExecutor:
    """Drive a simplex run: set up the run directory, checkpoint, workers, reports and log."""

    cost_function: CostFunction
    config: RunConfig = field(default_factory=RunConfig)
    output_root: Path = Path("output/optimization")
    callbacks: Iterable[IterationCallback] = field(default_factory=tuple)
    resume: bool = False
    checkpoint_dir: Path | None = None
    max_workers: int | None = None

    def __post_init__(self) -> None:
        self._log_lock = Lock()
        self._log_path: Path | None = None
        self.engine: SimplexEngine | None = None
        self.run_dir: Path | None = None

    def run(
        self,
        *,
        run_id: str | None = None,
        output_root: str | Path | None = None,
    ) -> OptimizationResult:
        """Execute the optimisation and export its result next to the progress reports."""
        if self.resume and not run_id:
            raise ValueError("run_id must be provided when resume is enabled")

        run_name = run_id or datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        root = Path(output_root) if output_root else self.output_root
        run_dir = root / run_name
        run_dir.mkdir(parents=True, exist_ok=True)
        self.run_dir = run_dir
        self._log_path = run_dir / "run.log"

        checkpoint_store = None
        if self.config.checkpoint_enabled:
            checkpoint_root = Path(self.checkpoint_dir) if self.checkpoint_dir else (root / "checkpoints")
            checkpoint_store = FileCheckpointStore(checkpoint_root / f"{run_name}.json")
            if not self.resume:
                checkpoint_store.clear()

        worker_count = self.max_workers if self.max_workers is not None else self.config.max_workers
        worker_count = max(1, worker_count)
        function_name = self.config.function_name or self.cost_function.name

        engine = self.config.build_engine(
            evaluation=self._build_evaluation(worker_count),
            checkpoint_store=checkpoint_store,
            reporter=SimplexReporter(run_dir, function_name),
            callbacks=self.callbacks,
            log=self._log,
        )
        engine.set_function_name(function_name)
        self.engine = engine

        resume_label = "resume" if self.resume else "fresh"
        self._log(f"Starting simplex run '{run_name}' ({resume_label}) with max_workers={worker_count}")
        started = time.perf_counter()
        try:
            result = engine.run(self.cost_function)
        except Exception as exc:
            self._log(f"Run '{run_name}' failed: {exc}")
            raise
        duration = time.perf_counter() - started
        result.metadata["run_id"] = run_name
        result.metadata["duration_seconds"] = duration
        self._log(f"Completed run '{run_name}' in {duration:.2f} seconds")

        self._export_results(run_dir, result)
        return result

    def _build_evaluation(self, worker_count: int) -> EvaluationStrategy:
        if worker_count > 1:
            return ParallelEvaluation.with_local_workers(worker_count, timeout=self.config.evaluation_timeout)
        return SerialEvaluation()

    def _export_results(self, run_dir: Path, result: OptimizationResult) -> None:
        result.export_json(run_dir / "result.json")
        summary = SimplexReporter.summary(result)
        (run_dir / "summary.json").write_text(json.dumps(summary, indent=2, default=str), encoding="utf-8")

    def _log(self, message: str) -> None:
        if not self._log_path:
            return
        timestamp = datetime.now(UTC).isoformat()
        line = f"{timestamp} {message}\n"
        with self._log_lock:
            with self._log_path.open("a", encoding="utf-8") as handle:
                handle.write(line)
