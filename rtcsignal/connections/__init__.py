"""Session registry, session entity and the collaborator interfaces it depends on."""

from rtcsignal.connections.auth import (
    API_KEY_PREFIX,
    AuthResult,
    Authorizer,
    BearerTokenAuthorizer,
    generate_api_key,
    normalize_auth_result,
    normalize_status,
    validate_api_key,
)
from rtcsignal.connections.peer import (
    IceCandidate,
    PeerEvents,
    PeerFactory,
    PeerResource,
    RemoteDescriptionError,
    SessionDescription,
)
from rtcsignal.connections.registry import ConnectionRegistry, CreateResult
from rtcsignal.connections.session import CandidateBuffer, Session

__all__ = [
    # Registry
    "ConnectionRegistry",
    "CreateResult",
    "Session",
    "CandidateBuffer",
    # Peer interface
    "PeerResource",
    "PeerFactory",
    "PeerEvents",
    "SessionDescription",
    "IceCandidate",
    "RemoteDescriptionError",
    # Authorization
    "API_KEY_PREFIX",
    "AuthResult",
    "Authorizer",
    "BearerTokenAuthorizer",
    "generate_api_key",
    "normalize_auth_result",
    "normalize_status",
    "validate_api_key",
]
