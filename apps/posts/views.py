from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import ServiceError, error_response
from apps.core.media import MediaStorage
from apps.core.validation import UUID_PATTERN

from .models import Post
from .serializers import (
    PostSerializer,
    PostListSerializer,
    PostCreateSerializer,
    PostUpdateSerializer,
    CommentSerializer,
    CommentInputSerializer,
    LikeResultSerializer,
    FeedQuerySerializer,
)

from apps.posts.services import (
    create_post,
    update_post,
    delete_post,
    get_post_by_id,
    list_posts,
    get_group_feed,
    get_user_feed,
    toggle_like,
    add_comment,
    remove_comment,
    toggle_comment_like,
    edit_comment,
)


FEED_PARAMETERS = [
    OpenApiParameter('ordering', OpenApiTypes.STR, description='created_at, like_count or comment_count; prefix with - for descending'),
    OpenApiParameter('page', OpenApiTypes.INT),
    OpenApiParameter('page_size', OpenApiTypes.INT),
]


class PostPagination(PageNumberPagination):
    """Custom pagination for posts."""
    page_size = 10
    page_size_query_param = 'page_size'
    max_page_size = 100


class PostViewSet(viewsets.ModelViewSet):
    """
    ViewSet for posts, likes and comments.

    list: Feed of active posts (?group=, ?author=, ?ordering=)
    create: Create a post in a group (JSON or multipart with ``media`` files)
    retrieve: Post with comments
    update / partial_update: Edit a post (author or system admin)
    destroy: Soft-delete a post (author or system admin)
    """

    serializer_class = PostSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = PostPagination
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    lookup_value_regex = UUID_PATTERN
    queryset = Post.objects.filter(is_active=True)

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action in ['list', 'group_feed', 'user_feed']:
            return PostListSerializer
        elif self.action == 'create':
            return PostCreateSerializer
        elif self.action in ['update', 'partial_update']:
            return PostUpdateSerializer
        return PostSerializer

    def _paginated(self, queryset):
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = PostListSerializer(page, many=True, context=self.get_serializer_context())
            return self.get_paginated_response(serializer.data)

        serializer = PostListSerializer(queryset, many=True, context=self.get_serializer_context())
        return Response(serializer.data)

    def _detail(self, post_id, status_code=status.HTTP_200_OK):
        post = get_post_by_id(post_id=post_id)
        serializer = PostSerializer(post, context=self.get_serializer_context())
        return Response(serializer.data, status=status_code)

    @extend_schema(parameters=FEED_PARAMETERS + [
        OpenApiParameter('group', OpenApiTypes.UUID),
        OpenApiParameter('author', OpenApiTypes.UUID),
    ])
    def list(self, request, *args, **kwargs):
        """Feed of active posts visible to the caller."""
        params = FeedQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        try:
            posts = list_posts(user=request.user, **params.validated_data)
        except ServiceError as e:
            return error_response(e)

        return self._paginated(posts)

    def retrieve(self, request, *args, **kwargs):
        """Get a post with its comments."""
        try:
            return self._detail(self.kwargs['pk'])
        except ServiceError as e:
            return error_response(e)

    @extend_schema(request=PostCreateSerializer, responses={201: PostSerializer})
    def create(self, request, *args, **kwargs):
        """
        Create a post.

        Files are stored before the post is created and removed again if
        the post is rejected.
        """
        serializer = PostCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        storage = MediaStorage()
        try:
            stored = storage.store_many(data.get('media', []))
        except ServiceError as e:
            return error_response(e)

        try:
            post = create_post(
                author=request.user,
                group_id=data['group_id'],
                content=data['content'],
                media=stored,
                tags=data.get('tags'),
                visibility=data['visibility'],
            )
        except ServiceError as e:
            storage.delete_many(item.storage_name for item in stored)
            return error_response(e)

        return self._detail(post.id, status.HTTP_201_CREATED)

    @extend_schema(request=PostUpdateSerializer, responses={200: PostSerializer})
    def update(self, request, *args, **kwargs):
        """Edit a post; PUT and PATCH both accept partial data."""
        serializer = PostUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            post = update_post(
                post_id=self.kwargs['pk'],
                user=request.user,
                **serializer.validated_data
            )
        except ServiceError as e:
            return error_response(e)

        return self._detail(post.id)

    def destroy(self, request, *args, **kwargs):
        """Soft-delete a post."""
        try:
            delete_post(post_id=self.kwargs['pk'], user=request.user)
        except ServiceError as e:
            return error_response(e)

        return Response({'message': 'Post deleted successfully'})

    @extend_schema(request=None, responses={200: LikeResultSerializer})
    @action(detail=True, methods=['post'])
    def like(self, request, pk=None):
        """Like or unlike a post."""
        try:
            post, liked = toggle_like(post_id=pk, user=request.user)
        except ServiceError as e:
            return error_response(e)

        return Response({'is_liked': liked, 'like_count': post.like_count})

    @extend_schema(request=CommentInputSerializer, responses={201: CommentSerializer})
    @action(detail=True, methods=['post'])
    def comments(self, request, pk=None):
        """Add a comment."""
        serializer = CommentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            comment = add_comment(
                post_id=pk,
                user=request.user,
                content=serializer.validated_data['content'],
            )
        except ServiceError as e:
            return error_response(e)

        data = CommentSerializer(comment, context=self.get_serializer_context()).data
        return Response(data, status=status.HTTP_201_CREATED)

    @extend_schema(request=CommentInputSerializer, responses={200: CommentSerializer})
    @action(
        detail=True,
        methods=['patch', 'delete'],
        url_path=rf'comments/(?P<comment_id>{UUID_PATTERN})',
    )
    def comment_detail(self, request, pk=None, comment_id=None):
        """Edit (comment author) or remove (comment or post author) a comment."""
        if request.method == 'DELETE':
            try:
                post = remove_comment(post_id=pk, comment_id=comment_id, user=request.user)
            except ServiceError as e:
                return error_response(e)
            return Response({
                'message': 'Comment deleted successfully',
                'comment_count': post.comment_count,
            })

        serializer = CommentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            comment = edit_comment(
                post_id=pk,
                comment_id=comment_id,
                user=request.user,
                content=serializer.validated_data['content'],
            )
        except ServiceError as e:
            return error_response(e)

        return Response(CommentSerializer(comment, context=self.get_serializer_context()).data)

    @extend_schema(request=None, responses={200: LikeResultSerializer})
    @action(
        detail=True,
        methods=['post'],
        url_path=rf'comments/(?P<comment_id>{UUID_PATTERN})/like',
    )
    def comment_like(self, request, pk=None, comment_id=None):
        """Like or unlike a comment."""
        try:
            comment, liked = toggle_comment_like(post_id=pk, comment_id=comment_id, user=request.user)
        except ServiceError as e:
            return error_response(e)

        return Response({'is_liked': liked, 'like_count': comment.likes.count()})

    @extend_schema(parameters=FEED_PARAMETERS, responses={200: PostListSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path=rf'group/(?P<group_id>{UUID_PATTERN})')
    def group_feed(self, request, group_id=None):
        """Posts of a group (members and system admins)."""
        try:
            posts = get_group_feed(
                group_id=group_id,
                user=request.user,
                ordering=request.query_params.get('ordering'),
            )
        except ServiceError as e:
            return error_response(e)

        return self._paginated(posts)

    @extend_schema(parameters=FEED_PARAMETERS, responses={200: PostListSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path=rf'user/(?P<user_id>{UUID_PATTERN})')
    def user_feed(self, request, user_id=None):
        """Posts written by a user."""
        try:
            posts = get_user_feed(
                user_id=user_id,
                viewer=request.user,
                ordering=request.query_params.get('ordering'),
            )
        except ServiceError as e:
            return error_response(e)

        return self._paginated(posts)
