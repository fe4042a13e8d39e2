"""
Error classifier

Maps raw transport failures to user-facing categories with remediation
hints. Matching is an ordered first-match keyword scan over the lowercased
error text; keyword sets overlap, so table order decides.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Type, Union

from ...core.exceptions import (
    ClassifiedError,
    TransportRefusedError,
    TransportTimeoutError,
    AuthFailedError,
    HostKeyRejectedError,
    NetworkError,
    PermissionDeniedError,
    UnknownTransportError,
)
from .models import TargetDescriptor


class ErrorCategory(str, Enum):
    """User-facing failure category"""
    REFUSED = "refused"
    TIMEOUT = "timeout"
    AUTH_FAILED = "auth_failed"
    HOST_KEY_REJECTED = "host_key_rejected"
    NETWORK = "network"
    PERMISSION_DENIED = "permission_denied"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class _Rule:
    category: ErrorCategory
    # English and Chinese spellings of the same condition
    keywords: Tuple[str, ...]
    title: str
    hints: Tuple[str, ...]


RULES: Tuple[_Rule, ...] = (
    _Rule(
        ErrorCategory.REFUSED,
        ("connection refused", "拒绝连接"),
        "Connection refused",
        (
            "The host address and port are correct",
            "The SSH service is running",
            "Firewall settings allow the connection",
        ),
    ),
    _Rule(
        ErrorCategory.TIMEOUT,
        ("timeout", "超时"),
        "Connection timed out",
        (
            "The network connection is working",
            "The host address is reachable",
            "The port is correct",
        ),
    ),
    _Rule(
        ErrorCategory.AUTH_FAILED,
        ("authentication", "认证", "密码", "password"),
        "Authentication failed",
        (
            "The username is correct",
            "The password is correct",
            "The private key file is valid",
        ),
    ),
    _Rule(
        ErrorCategory.HOST_KEY_REJECTED,
        ("host key", "主机密钥"),
        "Host key verification failed",
        (
            "Whether the host key has changed",
            "Whether this is the first connection to this host",
        ),
    ),
    _Rule(
        ErrorCategory.NETWORK,
        ("network", "网络"),
        "Network error",
        ("The network connection is working",),
    ),
    _Rule(
        ErrorCategory.PERMISSION_DENIED,
        ("permission", "权限"),
        "Permission denied",
        ("The user is allowed to log in over SSH",),
    ),
)

UNKNOWN_TITLE = "SSH connection failed"

ERROR_TYPES: Dict[ErrorCategory, Type[ClassifiedError]] = {
    ErrorCategory.REFUSED: TransportRefusedError,
    ErrorCategory.TIMEOUT: TransportTimeoutError,
    ErrorCategory.AUTH_FAILED: AuthFailedError,
    ErrorCategory.HOST_KEY_REJECTED: HostKeyRejectedError,
    ErrorCategory.NETWORK: NetworkError,
    ErrorCategory.PERMISSION_DENIED: PermissionDeniedError,
    ErrorCategory.UNKNOWN: UnknownTransportError,
}


@dataclass(frozen=True)
class FormattedMessage:
    """Classified failure with its rendered remediation text"""
    category: ErrorCategory
    target: TargetDescriptor
    title: str
    hints: Tuple[str, ...] = ()
    detail: Optional[str] = None

    @property
    def text(self) -> str:
        header = f"{self.title} ({self.target})"
        if self.detail is not None:
            return f"{header}\nDetails: {self.detail}"
        if len(self.hints) == 1:
            return f"{header}\nPlease check: {self.hints[0]}"
        lines = [header, "Please check:"]
        lines.extend(f"{i}. {hint}" for i, hint in enumerate(self.hints, 1))
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.text


class ErrorClassifier:
    """Stateless classifier; one instance can be shared by all components"""

    def classify(
        self,
        raw_error: Union[BaseException, str],
        target: TargetDescriptor,
    ) -> FormattedMessage:
        raw = str(raw_error)
        lowered = raw.lower()
        for rule in RULES:
            if any(keyword in lowered for keyword in rule.keywords):
                return FormattedMessage(
                    category=rule.category,
                    target=target,
                    title=rule.title,
                    hints=rule.hints,
                )
        return FormattedMessage(
            category=ErrorCategory.UNKNOWN,
            target=target,
            title=UNKNOWN_TITLE,
            detail=raw,
        )

    def to_exception(
        self,
        raw_error: Union[BaseException, str],
        target: TargetDescriptor,
        path: Optional[str] = None,
    ) -> ClassifiedError:
        """Build the category-specific exception for a raw failure"""
        formatted = self.classify(raw_error, target)
        return ERROR_TYPES[formatted.category](formatted, raw=str(raw_error), path=path)
