from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import error_response
from apps.core.validation import UUID_PATTERN

from .models import Group
from .serializers import (
    GroupSerializer,
    GroupCreateSerializer,
    GroupUpdateSerializer,
    GroupListSerializer,
    GroupMemberSerializer,
    JoinRequestSerializer,
    AddMemberSerializer,
    UpdateMemberRoleSerializer,
    JoinResultSerializer,
)

from apps.groups.services import (
    create_group,
    update_group,
    delete_group,
    get_group_by_id,
    list_groups,
    get_user_groups,
    JoinStatus,
    request_join,
    leave_group,
    add_member,
    remove_member,
    get_group_members,
    list_join_requests,
    approve_request,
    reject_request,
    update_member_role,
    # Exceptions
    GroupsServiceError,
)


class GroupPagination(PageNumberPagination):
    """Custom pagination for groups."""
    page_size = 10
    page_size_query_param = 'page_size'
    max_page_size = 100


class GroupViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Group CRUD and membership workflow.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Active groups (searchable) with the caller's membership status
    create: Create a new group (caller becomes its admin)
    retrieve: Group detail; pending requests only for privileged callers
    update / partial_update: Edit a group (privileged)
    destroy: Soft-delete a group and its posts (creator or system admin)
    """

    serializer_class = GroupSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = GroupPagination
    lookup_value_regex = UUID_PATTERN
    queryset = Group.objects.filter(is_active=True)

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return GroupListSerializer
        elif self.action == 'create':
            return GroupCreateSerializer
        elif self.action in ['update', 'partial_update']:
            return GroupUpdateSerializer
        return GroupSerializer

    def _detail(self, group, status_code=status.HTTP_200_OK):
        serializer = GroupSerializer(group, context={'request': self.request})
        return Response(serializer.data, status=status_code)

    @extend_schema(parameters=[OpenApiParameter('search', OpenApiTypes.STR)])
    def list(self, request, *args, **kwargs):
        """List active groups with the caller's membership status."""
        groups = list_groups(user=request.user, search=request.query_params.get('search'))

        page = self.paginate_queryset(groups)
        if page is not None:
            serializer = GroupListSerializer(page, many=True, context={'request': request})
            return self.get_paginated_response(serializer.data)

        serializer = GroupListSerializer(groups, many=True, context={'request': request})
        return Response(serializer.data)

    def retrieve(self, request, *args, **kwargs):
        """Get group details."""
        try:
            group = get_group_by_id(group_id=self.kwargs['pk'])
        except GroupsServiceError as e:
            return error_response(e)
        return self._detail(group)

    def create(self, request, *args, **kwargs):
        """Create a new group."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            group = create_group(
                name=serializer.validated_data['name'],
                creator=request.user,
                description=serializer.validated_data.get('description', ''),
                is_private=serializer.validated_data.get('is_private', False),
                tags=serializer.validated_data.get('tags'),
            )
        except GroupsServiceError as e:
            return error_response(e)

        return self._detail(get_group_by_id(group_id=group.id), status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        """Update a group; PUT and PATCH both accept partial data."""
        serializer = GroupUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            group = update_group(
                group_id=self.kwargs['pk'],
                user=request.user,
                **serializer.validated_data
            )
        except GroupsServiceError as e:
            return error_response(e)

        return self._detail(get_group_by_id(group_id=group.id))

    def destroy(self, request, *args, **kwargs):
        """Soft-delete a group."""
        try:
            deactivated = delete_group(group_id=self.kwargs['pk'], user=request.user)
        except GroupsServiceError as e:
            return error_response(e)

        return Response({
            'message': 'Group deleted successfully',
            'deactivated_posts': deactivated,
        })

    @extend_schema(request=None, responses={200: JoinResultSerializer})
    @action(detail=True, methods=['post'])
    def join(self, request, pk=None):
        """Join a public group or request to join a private one."""
        try:
            result = request_join(group_id=pk, user=request.user)
        except GroupsServiceError as e:
            return error_response(e)

        if result == JoinStatus.PENDING:
            message = 'Join request sent to group admins'
        else:
            message = 'Successfully joined the group'

        return Response({'status': result.value, 'message': message})

    @action(detail=True, methods=['post'])
    def leave(self, request, pk=None):
        """Leave a group."""
        try:
            leave_group(group_id=pk, user=request.user)
        except GroupsServiceError as e:
            return error_response(e)

        return Response({'message': 'Successfully left the group'})

    @extend_schema(request=AddMemberSerializer, responses={200: GroupMemberSerializer(many=True)})
    @action(detail=True, methods=['get', 'post'])
    def members(self, request, pk=None):
        """List members, or add one directly (privileged)."""
        if request.method == 'GET':
            try:
                memberships = get_group_members(group_id=pk)
            except GroupsServiceError as e:
                return error_response(e)
            return Response(GroupMemberSerializer(memberships, many=True).data)

        serializer = AddMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            membership = add_member(
                group_id=pk,
                user_id=serializer.validated_data['user_id'],
                role=serializer.validated_data['role'],
                added_by=request.user,
            )
        except GroupsServiceError as e:
            return error_response(e)

        return Response(GroupMemberSerializer(membership).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=['delete'],
        url_path=rf'members/(?P<user_id>{UUID_PATTERN})',
    )
    def remove_member(self, request, pk=None, user_id=None):
        """Remove a member from the group (privileged)."""
        try:
            remove_member(group_id=pk, user_id=user_id, removed_by=request.user)
        except GroupsServiceError as e:
            return error_response(e)

        return Response({'message': 'Member removed successfully'})

    @extend_schema(request=UpdateMemberRoleSerializer, responses={200: GroupMemberSerializer})
    @action(
        detail=True,
        methods=['put', 'patch'],
        url_path=rf'members/(?P<user_id>{UUID_PATTERN})/role',
    )
    def member_role(self, request, pk=None, user_id=None):
        """Update a member's role (privileged)."""
        serializer = UpdateMemberRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            membership = update_member_role(
                group_id=pk,
                user_id=user_id,
                new_role=serializer.validated_data['role'],
                updated_by=request.user
            )
        except GroupsServiceError as e:
            return error_response(e)

        return Response(GroupMemberSerializer(membership).data)

    @extend_schema(responses={200: JoinRequestSerializer(many=True)})
    @action(detail=True, methods=['get'], url_path='requests')
    def join_requests(self, request, pk=None):
        """List pending join requests (privileged)."""
        try:
            pending = list_join_requests(group_id=pk, user=request.user)
        except GroupsServiceError as e:
            return error_response(e)

        return Response(JoinRequestSerializer(pending, many=True).data)

    @extend_schema(request=None, responses={200: GroupMemberSerializer})
    @action(
        detail=True,
        methods=['post'],
        url_path=rf'requests/(?P<user_id>{UUID_PATTERN})/approve',
    )
    def approve_request(self, request, pk=None, user_id=None):
        """Approve a pending join request (privileged)."""
        try:
            membership = approve_request(group_id=pk, user_id=user_id, approved_by=request.user)
        except GroupsServiceError as e:
            return error_response(e)

        return Response(GroupMemberSerializer(membership).data)

    @extend_schema(request=None)
    @action(
        detail=True,
        methods=['post'],
        url_path=rf'requests/(?P<user_id>{UUID_PATTERN})/reject',
    )
    def reject_request(self, request, pk=None, user_id=None):
        """Reject a pending join request (privileged)."""
        try:
            reject_request(group_id=pk, user_id=user_id, rejected_by=request.user)
        except GroupsServiceError as e:
            return error_response(e)

        return Response({'message': 'Request rejected'})


@extend_schema(
    responses={200: GroupListSerializer(many=True)},
    description="Get all active groups where the current user is a member.",
    tags=['groups'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_groups(request):
    """Get all groups where user is a member."""
    groups = get_user_groups(user=request.user)
    serializer = GroupListSerializer(groups, many=True, context={'request': request})
    return Response(serializer.data)
