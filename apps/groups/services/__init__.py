"""
Groups app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and lock the group row.
"""

from ..exceptions import (
    GroupsServiceError,
    GroupNotFoundError,
    MemberNotFoundError,
    JoinRequestNotFoundError,
    AlreadyMemberError,
    JoinRequestPendingError,
    NotMemberError,
    CannotRemoveCreatorError,
    CannotChangeCreatorRoleError,
    InsufficientPermissionsError,
    InactiveUserError,
    InvalidRoleError,
    InvalidGroupDataError,
)

from .group_management import (
    create_group,
    update_group,
    delete_group,
    deactivate_group_posts,
    get_group_by_id,
    get_locked_group,
    list_groups,
    get_user_groups,
)

from .membership_management import (
    JoinStatus,
    request_join,
    leave_group,
    add_member,
    remove_member,
    get_group_members,
)

from .join_requests import (
    list_join_requests,
    approve_request,
    reject_request,
)

from .role_management import (
    update_member_role,
)


__all__ = [
    # Exceptions
    'GroupsServiceError',
    'GroupNotFoundError',
    'MemberNotFoundError',
    'JoinRequestNotFoundError',
    'AlreadyMemberError',
    'JoinRequestPendingError',
    'NotMemberError',
    'CannotRemoveCreatorError',
    'CannotChangeCreatorRoleError',
    'InsufficientPermissionsError',
    'InactiveUserError',
    'InvalidRoleError',
    'InvalidGroupDataError',

    # Group Management
    'create_group',
    'update_group',
    'delete_group',
    'deactivate_group_posts',
    'get_group_by_id',
    'get_locked_group',
    'list_groups',
    'get_user_groups',

    # Membership Management
    'JoinStatus',
    'request_join',
    'leave_group',
    'add_member',
    'remove_member',
    'get_group_members',

    # Join Requests
    'list_join_requests',
    'approve_request',
    'reject_request',

    # Role Management
    'update_member_role',
]
