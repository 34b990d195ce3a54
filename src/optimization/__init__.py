"""Nelder-Mead simplex optimisation: engine, evaluation strategies, checkpoints and reports."""

from .checkpoint import (
    EngineState,
    CheckpointStoreProtocol,
    FileCheckpointStore,
    InMemoryCheckpointStore,
    decode_state,
    encode_state,
)
from .config import RunConfig
from .cost_function import CallableCostFunction, CostFunction, CostFunctionRegistry, Rosenbrock, Sphere
from .errors import (
    CheckpointError,
    CostEvaluationError,
    InvalidConfigurationError,
    OptimizationError,
    UnknownMetaParameterError,
    WorkerCommunicationError,
)
from .executor import OptimizationExecutor
from .meta_parameters import DEFAULT_META_PARAMETERS, MetaParameters
from .parameter_space import ParameterBounds, ParameterDefinition, ParameterSpace
from .reporting import SimplexReporter
from .result import OptimizationResult
from .simplex import IterationRecord, SimplexEngine, contract, expand, reflect, shrink
from .strategies.base import EvaluationStrategy
from .strategies.parallel import ParallelEvaluation
from .strategies.serial import SerialEvaluation
from .transport import DEFAULT_EVALUATION_TIMEOUT, QueueTransport, WorkerPool, serve_worker
from .vertex import Vertex, VertexSet

__all__ = [
    "CallableCostFunction",
    "CheckpointError",
    "CheckpointStoreProtocol",
    "CostEvaluationError",
    "CostFunction",
    "CostFunctionRegistry",
    "DEFAULT_EVALUATION_TIMEOUT",
    "DEFAULT_META_PARAMETERS",
    "EngineState",
    "EvaluationStrategy",
    "FileCheckpointStore",
    "InMemoryCheckpointStore",
    "InvalidConfigurationError",
    "IterationRecord",
    "MetaParameters",
    "OptimizationError",
    "OptimizationExecutor",
    "OptimizationResult",
    "ParallelEvaluation",
    "ParameterBounds",
    "ParameterDefinition",
    "ParameterSpace",
    "QueueTransport",
    "Rosenbrock",
    "RunConfig",
    "SerialEvaluation",
    "SimplexEngine",
    "SimplexReporter",
    "Sphere",
    "UnknownMetaParameterError",
    "Vertex",
    "VertexSet",
    "WorkerCommunicationError",
    "WorkerPool",
    "contract",
    "decode_state",
    "encode_state",
    "expand",
    "reflect",
    "serve_worker",
    "shrink",
]
