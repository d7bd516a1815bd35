"""
Route admission: pure decisions over (session, route requirements).

Three gates, evaluated coarse first:
  - auth_required_gate: login-only views vs. guest-only views
  - public_gate: storefront views, closed to admin roles
  - role_gate: explicit allow-list on a leaf view
Nothing is cached; every navigation asks again.
"""

from enum import Enum
from typing import AbstractSet, Optional, assert_never

from api.models import Role
from state.session import Session

LOGIN_ROUTE = "/login"
SHOP_HOME = "/"
ADMIN_HOME = "/admin/dashboard"


class Decision(Enum):
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_ROLE_HOME = "redirect_role_home"


class Access(Enum):
    """Coarse grouping a route belongs to."""

    GUEST_ONLY = "guest_only"  # login, register, forgot password
    PUBLIC = "public"  # storefront, anyone but admins
    AUTHENTICATED = "authenticated"
    OPEN = "open"  # no coarse gate at all


def home_route_for(role: Role) -> str:
    """The one place that knows where each role lands."""
    match role:
        case Role.USER:
            return SHOP_HOME
        case Role.ADMIN | Role.SUPER_ADMIN:
            return ADMIN_HOME
        case _:
            assert_never(role)


def auth_required_gate(session: Session, require_auth: bool) -> Decision:
    if require_auth and not session.is_authenticated:
        return Decision.REDIRECT_LOGIN
    if not require_auth and session.is_authenticated:
        return Decision.REDIRECT_ROLE_HOME
    return Decision.ALLOW


def public_gate(session: Session) -> Decision:
    if session.is_admin:
        return Decision.REDIRECT_ROLE_HOME
    return Decision.ALLOW


def role_gate(session: Session, allowed_roles: AbstractSet[Role]) -> Decision:
    if not session.is_authenticated:
        return Decision.REDIRECT_LOGIN
    if session.role not in allowed_roles:
        return Decision.REDIRECT_ROLE_HOME
    return Decision.ALLOW


def admit(
    session: Session,
    access: Access,
    allowed_roles: Optional[AbstractSet[Role]] = None,
) -> Decision:
    """Coarse gate first; the role allow-list only sees what got through."""
    if access is Access.GUEST_ONLY:
        decision = auth_required_gate(session, require_auth=False)
    elif access is Access.AUTHENTICATED:
        decision = auth_required_gate(session, require_auth=True)
    elif access is Access.PUBLIC:
        decision = public_gate(session)
    else:
        decision = Decision.ALLOW

    if decision is not Decision.ALLOW:
        return decision
    if allowed_roles is not None:
        return role_gate(session, allowed_roles)
    return Decision.ALLOW


def redirect_target(decision: Decision, session: Session) -> Optional[str]:
    """Where a decision sends the user; None for ALLOW."""
    if decision is Decision.ALLOW:
        return None
    if decision is Decision.REDIRECT_LOGIN:
        return LOGIN_ROUTE
    if session.role is None:
        return SHOP_HOME
    return home_route_for(session.role)
