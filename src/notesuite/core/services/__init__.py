"""
Service layer: the access control engine, the token ledger, the public
link engine and the CRUD services built on top of them.
"""

from .access_control import AccessControl, AccessDecision, authorize, effective_capability
from .auth_service import AuthService
from .health_service import HealthService
from .interfaces import IAuthService, IHealthService, INoteService, ISharingService
from .maintenance_service import MaintenanceService
from .note_service import NoteService
from .public_link_service import PublicLinkService
from .sharing_service import SharingService
from .tag_service import TagService
from .token_ledger import CleanupReport, DeviceInfo, TokenLedger

__all__ = [
    # Interfaces
    "IAuthService",
    "INoteService",
    "ISharingService",
    "IHealthService",
    # Core engines
    "AccessControl",
    "AccessDecision",
    "authorize",
    "effective_capability",
    "TokenLedger",
    "DeviceInfo",
    "CleanupReport",
    "PublicLinkService",
    # Implementations
    "AuthService",
    "NoteService",
    "SharingService",
    "TagService",
    "HealthService",
    "MaintenanceService",
]
