from fastapi import Depends

from auth.jwt_handler import get_current_user
from errors import Redirect
from models.user import Role, Session

LANDING = {
    Role.cook: "/cook/dashboard",
    Role.customer: "/customer/dashboard",
}


def landing_for(session: Session) -> str:
    return LANDING[session.role]


def require_role(*roles: Role):
    """Dependency that lets only the given roles through.

    Anyone else is sent to their own dashboard rather than shown an error.
    With no roles, any authenticated session passes.
    """

    async def guard(current_user: Session = Depends(get_current_user)) -> Session:
        if roles and current_user.role not in roles:
            raise Redirect(landing_for(current_user))
        return current_user

    return guard
