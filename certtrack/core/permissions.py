"""Permission Matrix — role x resource x action, answered without IO.

Invariants:
    - Admin is granted every action on every resource unconditionally
    - Members are checked against MEMBER_PERMISSIONS; anything unlisted is denied
    - The matrix answers "is this action class allowed for this role" only;
      row-level ownership is checked separately with is_owner()

Design Decisions:
    - studyPlans / achievements grant every action to members because the
      caller scopes them to the member's own records
"""

from certtrack.core.domain_types import Action, Resource, UserRole

ALL_ACTIONS: frozenset[Action] = frozenset(Action)

MEMBER_PERMISSIONS: dict[Resource, frozenset[Action]] = {
    Resource.USERS: frozenset({Action.READ, Action.UPDATE_SELF}),
    Resource.CERTIFICATIONS: frozenset({Action.READ}),
    Resource.STUDY_PLANS: ALL_ACTIONS,
    Resource.ACHIEVEMENTS: ALL_ACTIONS,
    Resource.NOTIFICATIONS: frozenset({Action.READ, Action.UPDATE}),
}


def role_allows(role: UserRole, resource: Resource | str, action: Action | str) -> bool:
    if role == UserRole.ADMIN:
        return True
    try:
        resource, action = Resource(resource), Action(action)
    except ValueError:
        return False
    return action in MEMBER_PERMISSIONS.get(resource, frozenset())


def is_owner(user_id: str, role: UserRole, record_user_id: str) -> bool:
    return role == UserRole.ADMIN or user_id == record_user_id
