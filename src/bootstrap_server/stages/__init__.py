"""Built-in pipeline stages."""

from bootstrap_server.stages.access_log import AccessLog
from bootstrap_server.stages.admission import (
    AdmissionDecision,
    RateAdmissionGate,
    RateLimit,
    RateWindowRecord,
    client_identity,
)
from bootstrap_server.stages.body import BodyParser
from bootstrap_server.stages.cors import Cors
from bootstrap_server.stages.sanitization import (
    ParameterPollutionGuard,
    SanitizeInput,
    sanitize_value,
)
from bootstrap_server.stages.security import SecurityHeaders

__all__ = [
    "AccessLog",
    "AdmissionDecision",
    "BodyParser",
    "Cors",
    "ParameterPollutionGuard",
    "RateAdmissionGate",
    "RateLimit",
    "RateWindowRecord",
    "SanitizeInput",
    "SecurityHeaders",
    "client_identity",
    "sanitize_value",
]
