"""Engine package: UCI parsing, batching, process control and the Qt worker bridge."""

from enginelines.engine.aggregator import LineAggregator
from enginelines.engine.cancellation import CancelToken
from enginelines.engine.models import (
    BestMovePayload,
    Centipawn,
    MateIn,
    ProcessExit,
    Score,
    SearchInfo,
    SessionOutcome,
)
from enginelines.engine.process import (
    EngineProcess,
    EngineSessionError,
    EngineSpawnError,
    EngineWriteError,
)
from enginelines.engine.search import AnalysisRequest, SessionConfig
from enginelines.engine.session import EngineSession, SessionState
from enginelines.engine.uci import LineParser, parse_info_line

__all__ = [
    "AnalysisRequest",
    "BestMovePayload",
    "CancelToken",
    "Centipawn",
    "EngineProcess",
    "EngineSession",
    "EngineSessionError",
    "EngineSpawnError",
    "EngineWriteError",
    "LineAggregator",
    "LineParser",
    "MateIn",
    "ProcessExit",
    "Score",
    "SearchInfo",
    "SessionConfig",
    "SessionOutcome",
    "SessionState",
    "parse_info_line",
]
