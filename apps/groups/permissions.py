from typing import Optional

from apps.accounts.models import SystemRole

from .models import GroupRole

PRIVILEGED_ROLES = (GroupRole.ADMIN, GroupRole.MODERATOR)


def is_privileged(*, member_role: Optional[str], is_creator: bool, system_role: str) -> bool:
    """
    Decide whether an actor may manage a group.

    True if the actor's membership role is admin or moderator, the actor
    created the group, or the actor is a system admin.
    """
    return (
        member_role in PRIVILEGED_ROLES
        or is_creator
        or system_role == SystemRole.ADMIN
    )


def actor_is_privileged(group, user) -> bool:
    """Evaluate ``is_privileged`` for a loaded group and user."""
    return is_privileged(
        member_role=group.get_user_role(user),
        is_creator=group.is_creator(user),
        system_role=user.role,
    )


def can_delete_group(group, user) -> bool:
    return group.is_creator(user) or user.role == SystemRole.ADMIN
