"""
User administration and invitations
"""
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from itam.core.clock import Clock, utcnow
from itam.core.config import settings
from itam.core.context import ActorContext
from itam.core.database import transaction
from itam.core.exceptions import AuthenticationFailed, NotFoundOrForbidden, PermissionDenied, ValidationFailed
from itam.core.logging import get_logger
from itam.models.user import User, UserInvitation
from itam.repositories.user_repository import InvitationRepository, TenantRepository, UserRepository
from itam.schemas.user import InvitationCreate, UserCreate, normalize_email
from itam.services.audit_log import AuditActions, AuditLogger, ResourceTypes, snapshot
from itam.services.roles import Role, can_assign_role, check_permission, normalize_role

logger = get_logger(__name__)


@dataclass
class AcceptedInvitation:
    user: User
    invitation: UserInvitation


class UserService:
    """Role-checked user management within one tenant"""

    def __init__(
        self,
        db: Session,
        audit: AuditLogger,
        clock: Clock = utcnow,
        token_factory: Callable[[], str] = lambda: secrets.token_urlsafe(32),
    ):
        self.db = db
        self.audit = audit
        self.clock = clock
        self.token_factory = token_factory
        self.users = UserRepository(db)
        self.invitations = InvitationRepository(db)
        self.tenants = TenantRepository(db)

    def list_users(self, actor: ActorContext, role: Optional[str] = None, is_active: Optional[bool] = None) -> List[User]:
        return self.users.list_users(actor.tenant_id, role=role, is_active=is_active)

    def get_user(self, actor: ActorContext, user_id: str) -> User:
        return self.users.get_or_raise(actor.tenant_id, user_id)

    def create_user(self, actor: ActorContext, data: UserCreate) -> User:
        role = normalize_role(data.role)
        if not can_assign_role(actor.role, role):
            raise PermissionDenied(f"Your role cannot grant {role.value}")
        fields = data.model_dump(exclude={"role"})
        user = self.users.create_user(actor.tenant_id, role=role.value, invited_by=actor.user_id, **fields)
        self.audit.record(
            actor, AuditActions.USER_CREATE, ResourceTypes.USER, user.id,
            after=user, description=f"Created user {user.email} as {user.role}",
        )
        return user

    def update_role(self, actor: ActorContext, user_id: str, new_role: str) -> User:
        target_role = normalize_role(new_role)
        if not can_assign_role(actor.role, target_role):
            raise PermissionDenied(f"Your role cannot grant {target_role.value}")
        user = self._manageable_user(actor, user_id)
        before = snapshot(user)
        user = self.users.update(actor.tenant_id, user_id, role=target_role.value)
        self.audit.record(
            actor, AuditActions.USER_ROLE_UPDATE, ResourceTypes.USER, user.id,
            before=before, after=user,
            description=f"Changed role of {user.email} from {before['role']} to {user.role}",
        )
        return user

    def deactivate_user(self, actor: ActorContext, user_id: str) -> User:
        return self._set_active(actor, user_id, False)

    def activate_user(self, actor: ActorContext, user_id: str) -> User:
        return self._set_active(actor, user_id, True)

    def create_invitation(self, actor: ActorContext, data: InvitationCreate) -> UserInvitation:
        role = normalize_role(data.role)
        if not can_assign_role(actor.role, role):
            raise PermissionDenied(f"Your role cannot invite a {role.value}")
        email = normalize_email(data.email)
        now = self.clock()
        if self.users.get_by_email(actor.tenant_id, email) is not None:
            raise ValidationFailed.single("email", "already_member", "A user with this email already exists")
        if self.invitations.get_pending(actor.tenant_id, email, now) is not None:
            raise ValidationFailed.single("email", "already_invited", "A pending invitation already exists for this email")

        invitation = self.invitations.create(
            actor.tenant_id,
            email=email,
            first_name=data.first_name,
            last_name=data.last_name,
            role=role.value,
            token=self.token_factory(),
            status="pending",
            invited_by=actor.user_id,
            expires_at=now + timedelta(days=settings.INVITATION_TTL_DAYS),
            created_at=now,
        )
        self.audit.record(
            actor, AuditActions.USER_INVITE, ResourceTypes.INVITATION, invitation.id,
            after=invitation, description=f"Invited {email} as {role.value}",
        )
        return invitation

    def accept_invitation(self, token: str, password: str, hasher: Callable[[str], str]) -> AcceptedInvitation:
        """Consume the invitation and create its user in one transaction.

        Unknown, already consumed and expired tokens are all rejected the same way.
        """
        now = self.clock()
        try:
            with transaction(self.db):
                invitation = self.invitations.claim(token, now)
                if invitation is None:
                    raise NotFoundOrForbidden("Invitation", "Invalid or expired invitation")
                user = self.users.add_user(
                    invitation.tenant_id,
                    email=invitation.email,
                    first_name=invitation.first_name,
                    last_name=invitation.last_name,
                    role=normalize_role(invitation.role).value,
                    password_hash=hasher(password),
                    invited_by=invitation.invited_by,
                )
        except NotFoundOrForbidden:
            if self.invitations.expire_stale(token, now):
                logger.info("Marked stale invitation as expired")
            raise

        self.audit.record(
            ActorContext.for_user(user), AuditActions.USER_INVITE_ACCEPT, ResourceTypes.INVITATION, invitation.id,
            after=user, description=f"{user.email} accepted an invitation",
        )
        return AcceptedInvitation(user=user, invitation=invitation)

    def authenticate(
        self,
        organization_slug: str,
        email: str,
        password: str,
        verifier: Callable[[str, str], bool],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> User:
        """Check credentials within one organization and record the attempt.

        Unknown organizations, unknown emails, inactive accounts and wrong
        passwords all fail with the same error.
        """
        tenant = self.tenants.get_by_slug(organization_slug.strip().lower())
        user = self.users.get_by_email(tenant.id, email) if tenant is not None else None
        if user is None or not user.is_active or not verifier(password, user.password_hash or ""):
            attempt = ActorContext.auth_attempt(
                email, tenant.id if tenant is not None else None, ip_address=ip_address, user_agent=user_agent
            )
            self.audit.record(
                attempt, AuditActions.LOGIN_FAILED, ResourceTypes.USER, user.id if user is not None else None,
                description=f"Failed login for {attempt.email}",
            )
            logger.warning(f"Failed login for tenant {attempt.tenant_id}")
            raise AuthenticationFailed()

        user = self.users.update(tenant.id, user.id, last_login_at=self.clock())
        self.audit.record(
            ActorContext.for_user(user, ip_address=ip_address, user_agent=user_agent),
            AuditActions.LOGIN, ResourceTypes.USER, user.id, description=f"{user.email} signed in",
        )
        return user

    def _manageable_user(self, actor: ActorContext, user_id: str) -> User:
        if user_id == actor.user_id:
            raise PermissionDenied("You cannot modify your own account")
        user = self.users.get_or_raise(actor.tenant_id, user_id)
        if normalize_role(user.role).rank >= normalize_role(actor.role).rank:
            raise PermissionDenied("You can only modify users below your own role")
        return user

    def _set_active(self, actor: ActorContext, user_id: str, is_active: bool) -> User:
        if not check_permission(actor.role, Role.ADMIN.value):
            raise PermissionDenied("Only administrators can change account status")
        user = self._manageable_user(actor, user_id)
        before = snapshot(user)
        user = self.users.update(actor.tenant_id, user_id, is_active=is_active)
        action = AuditActions.USER_ACTIVATE if is_active else AuditActions.USER_DEACTIVATE
        self.audit.record(
            actor, action, ResourceTypes.USER, user.id,
            before=before, after=user,
            description=f"{'Activated' if is_active else 'Deactivated'} {user.email}",
        )
        return user
