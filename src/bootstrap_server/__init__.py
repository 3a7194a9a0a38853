"""bootstrap-server - an ordered request admission pipeline on Starlette and uvicorn."""

from bootstrap_server.app import PipelineApp, build_chain, create_app, default_routes
from bootstrap_server.chain import Chain, ResolvedChain
from bootstrap_server.config import Settings, load_settings
from bootstrap_server.context import RequestContext
from bootstrap_server.exceptions import (
    ConfigurationError,
    MalformedPayload,
    PayloadTooLarge,
    RouteNotFound,
    StageAbort,
    StageException,
    Throttled,
)
from bootstrap_server.funnel import ErrorFunnel, ErrorRecord
from bootstrap_server.hooks import AfterStage, BeforeChain, ChainHook, StageTraceHook
from bootstrap_server.lifecycle import LifecycleController, ServerState
from bootstrap_server.log import configure_logging, get_logger
from bootstrap_server.outcome import CONTINUE, Continue, Fail, Outcome, ShortCircuit
from bootstrap_server.routes import NOT_FOUND, NotFoundMarker, RouteTable
from bootstrap_server.stage import Stage, StageCategory
from bootstrap_server.stages import (
    AccessLog,
    AdmissionDecision,
    BodyParser,
    Cors,
    ParameterPollutionGuard,
    RateAdmissionGate,
    RateLimit,
    SanitizeInput,
    SecurityHeaders,
)

__all__ = [
    "CONTINUE",
    "NOT_FOUND",
    "AccessLog",
    "AdmissionDecision",
    "AfterStage",
    "BeforeChain",
    "BodyParser",
    "Chain",
    "ChainHook",
    "ConfigurationError",
    "Continue",
    "Cors",
    "ErrorFunnel",
    "ErrorRecord",
    "Fail",
    "LifecycleController",
    "MalformedPayload",
    "NotFoundMarker",
    "Outcome",
    "ParameterPollutionGuard",
    "PayloadTooLarge",
    "PipelineApp",
    "RateAdmissionGate",
    "RateLimit",
    "RequestContext",
    "ResolvedChain",
    "RouteNotFound",
    "RouteTable",
    "SanitizeInput",
    "SecurityHeaders",
    "ServerState",
    "Settings",
    "ShortCircuit",
    "Stage",
    "StageAbort",
    "StageCategory",
    "StageException",
    "StageTraceHook",
    "Throttled",
    "build_chain",
    "configure_logging",
    "create_app",
    "default_routes",
    "get_logger",
    "load_settings",
]
