"""
Session domain module
"""
from .models import (
    AUTH_PASSWORD,
    AUTH_PRIVATE_KEY,
    HostParams,
    OrchestratorConfig,
    PairingCompleted,
    PairingState,
    Session,
    SessionProfile,
    TargetDescriptor,
)
from .classifier import ErrorCategory, ErrorClassifier, FormattedMessage
from .credentials import CredentialResolver
from .registry import SessionRegistry
from .orchestrator import SessionOrchestrator
from .profiles import ProfileService

__all__ = [
    "AUTH_PASSWORD",
    "AUTH_PRIVATE_KEY",
    "HostParams",
    "OrchestratorConfig",
    "PairingCompleted",
    "PairingState",
    "Session",
    "SessionProfile",
    "TargetDescriptor",
    "ErrorCategory",
    "ErrorClassifier",
    "FormattedMessage",
    "CredentialResolver",
    "SessionRegistry",
    "SessionOrchestrator",
    "ProfileService",
]
