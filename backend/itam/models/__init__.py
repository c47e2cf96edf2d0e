# Database models
from itam.models.tenant import Tenant
from itam.models.admin_lock import TenantAdminLock
from itam.models.user import User, UserInvitation
from itam.models.asset import Asset, SoftwareLicense
from itam.models.ticket import Ticket, TicketComment, TicketActivity
from itam.models.audit import AuditLog
from itam.models.settings import MasterData, UserPreferences

__all__ = [
    "Tenant",
    "TenantAdminLock",
    "User",
    "UserInvitation",
    "Asset",
    "SoftwareLicense",
    "Ticket",
    "TicketComment",
    "TicketActivity",
    "AuditLog",
    "MasterData",
    "UserPreferences",
]
