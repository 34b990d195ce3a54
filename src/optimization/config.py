"""Run configuration loaded from YAML/JSON style mappings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Sequence

from .errors import InvalidConfigurationError
from .meta_parameters import DEFAULT_META_PARAMETERS, MetaParameters
from .simplex import IterationCallback, LogWriter, SimplexEngine
from .transport import DEFAULT_EVALUATION_TIMEOUT

if TYPE_CHECKING:  # pragma: no cover
    from .checkpoint import CheckpointStoreProtocol
    from .reporting import SimplexReporter
    from .strategies.base import EvaluationStrategy

# Recognised option names and the attribute each one maps to.
_ALIASES = {
    "stoppingIteration": "stopping_iteration",
    "stopping_iteration": "stopping_iteration",
    "stepSize": "step_size",
    "step_size": "step_size",
    "functionName": "function_name",
    "function_name": "function_name",
    "maxWorkers": "max_workers",
    "max_workers": "max_workers",
    "evaluationTimeout": "evaluation_timeout",
    "evaluation_timeout": "evaluation_timeout",
    "speculative": "speculative",
    "checkpointEnabled": "checkpoint_enabled",
    "checkpoint_enabled": "checkpoint_enabled",
}
_META_KEYS = ("metaParameters", "meta_parameters")
_STOP_FLAG = "checkboundary"


@dataclass
class RunConfig:
    """Everything needed to set up one simplex run."""

    stopping_iteration: int = 100
    step_size: tuple[float, ...] | None = None
    meta_parameters: dict[str, float] = field(default_factory=dict)
    function_name: str = ""
    additional_information: dict[str, str] = field(default_factory=dict)
    max_workers: int = 1
    evaluation_timeout: float = DEFAULT_EVALUATION_TIMEOUT
    speculative: bool = False
    checkpoint_enabled: bool = True

    def __post_init__(self) -> None:
        if self.stopping_iteration < 0:
            raise InvalidConfigurationError("stopping_iteration must be non-negative")
        if self.max_workers < 1:
            raise InvalidConfigurationError("max_workers must be at least 1")
        if not isinstance(self.evaluation_timeout, (int, float)) or self.evaluation_timeout <= 0:
            raise InvalidConfigurationError(
                f"evaluation_timeout must be a positive number of seconds, got {self.evaluation_timeout!r}"
            )
        self.evaluation_timeout = float(self.evaluation_timeout)
        if self.step_size is not None:
            self.step_size = tuple(float(value) for value in self.step_size)

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any] | None) -> "RunConfig":
        """
        Build a configuration from a mapping such as
        ``{"stoppingIteration": 50, "stepSize": "auto", "alpha": 1.0, "checkboundary": ""}``.

        Raises:
            InvalidConfigurationError: for unknown keys or malformed values.
        """
        options: dict[str, Any] = {}
        meta: dict[str, float] = {}
        additional: dict[str, str] = {}
        for key, value in (config or {}).items():
            if key in _ALIASES:
                options[_ALIASES[key]] = value
            elif key in _META_KEYS:
                meta.update(_parse_meta_block(value))
            elif key in DEFAULT_META_PARAMETERS:
                meta[key] = _parse_meta_value(key, value)
            elif key == _STOP_FLAG:
                additional[_STOP_FLAG] = str(value)
            else:
                raise InvalidConfigurationError(f"Unknown run option: {key}")

        options["step_size"] = _parse_step_size(options.get("step_size"))
        try:
            return cls(meta_parameters=meta, additional_information=additional, **options)
        except TypeError as exc:
            raise InvalidConfigurationError(f"Malformed run configuration: {exc}") from exc

    def to_mapping(self) -> dict[str, Any]:
        """Serialize back into the mapping accepted by :meth:`from_mapping`."""
        mapping: dict[str, Any] = {
            "stoppingIteration": self.stopping_iteration,
            "stepSize": "auto" if self.step_size is None else list(self.step_size),
            "maxWorkers": self.max_workers,
            "evaluationTimeout": self.evaluation_timeout,
            "speculative": self.speculative,
            "checkpointEnabled": self.checkpoint_enabled,
        }
        if self.function_name:
            mapping["functionName"] = self.function_name
        if self.meta_parameters:
            mapping["metaParameters"] = dict(self.meta_parameters)
        if _STOP_FLAG in self.additional_information:
            mapping[_STOP_FLAG] = self.additional_information[_STOP_FLAG]
        return mapping

    def build_engine(
        self,
        *,
        evaluation: "EvaluationStrategy | None" = None,
        checkpoint_store: "CheckpointStoreProtocol | None" = None,
        reporter: "SimplexReporter | None" = None,
        callbacks: Iterable[IterationCallback] = (),
        log: LogWriter | None = None,
    ) -> SimplexEngine:
        """Create a :class:`SimplexEngine` configured from this run configuration."""
        engine = SimplexEngine(
            self.stopping_iteration,
            meta_parameters=MetaParameters(self.meta_parameters),
            step_size=self.step_size,
            function_name=self.function_name,
            evaluation=evaluation,
            checkpoint_store=checkpoint_store,
            reporter=reporter,
            callbacks=callbacks,
            log=log,
            speculative=self.speculative,
        )
        for key, value in self.additional_information.items():
            engine.set_additional_information(key, value)
        return engine


def _parse_step_size(value: Any) -> tuple[float, ...] | None:
    if value is None or value == "auto":
        return None
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise InvalidConfigurationError(f"stepSize must be 'auto' or a sequence of numbers, got {value!r}")
    try:
        return tuple(float(item) for item in value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError(f"stepSize contains a non-numeric entry: {exc}") from exc


def _parse_meta_value(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError(f"Meta-parameter {name} must be a number, got {value!r}") from exc


def _parse_meta_block(value: Any) -> dict[str, float]:
    if not isinstance(value, Mapping):
        raise InvalidConfigurationError(f"metaParameters must be a mapping, got {value!r}")
    return {str(name): _parse_meta_value(str(name), item) for name, item in value.items()}
