import logging

from django.db.models import Avg, Count, F, Q
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from gamehub.pagination import get_page_params, paginate, positive_int
from notifications.services import (
    notify_comment_created,
    notify_comment_liked,
    notify_post_liked,
    notify_post_rated,
)

from .models import Comment, Post, Rating
from .permissions import IsAuthorOrAdmin
from .ranking import SORT_OPTIONS, relevance_score, sort_posts, tags_match, trending_score
from .serializers import (
    CommentSerializer,
    CommentUpdateSerializer,
    PostDetailSerializer,
    PostListSerializer,
    PostWriteSerializer,
    RatingSerializer,
    RatingWriteSerializer,
    serialize_comment_tree,
)

logger = logging.getLogger(__name__)

TRENDING_DEFAULT_LIMIT = 10
SEARCH_DEFAULT_LIMIT = 20
RATING_FILTERS = {"5": 5, "4+": 4, "3+": 3}


def annotated_posts(queryset=None):
    """Posts with the counters list views display, computed in one query."""
    if queryset is None:
        queryset = Post.objects.all()
    return queryset.select_related("author").annotate(
        likes_count=Count("likes", distinct=True),
        comments_count=Count("comments", distinct=True),
        avg_rating=Avg("ratings__value"),
    )


def _filter_by_tags(posts, tags):
    wanted = {tag.strip().lower() for tag in tags if tag.strip()}
    if not wanted:
        return list(posts)
    return [post for post in posts if wanted & {str(t).lower() for t in post.tags or []}]


def _permission_denied(message):
    return Response({"detail": message}, status=status.HTTP_403_FORBIDDEN)


# ---  Post Views ---


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticatedOrReadOnly])
def post_list_create(request):
    """
    GET: Paginated list of posts, newest first. Optional `tag` filter.
    POST: Create a new post (authenticated users).
    """
    if request.method == "GET":
        page, limit = get_page_params(request)
        queryset = annotated_posts()

        tag = request.query_params.get("tag")
        if tag:
            queryset = _filter_by_tags(queryset, [tag])

        posts, total, total_pages = paginate(queryset, page, limit)
        serializer = PostListSerializer(posts, many=True, context={"request": request})
        return Response(
            {
                "total_posts": total,
                "total_pages": total_pages,
                "current_page": page,
                "posts": serializer.data,
            }
        )

    elif request.method == "POST":
        serializer = PostWriteSerializer(data=request.data)

        if serializer.is_valid():
            post = serializer.save(author=request.user)
            logger.info("Post %s created by user %s", post.pk, request.user.pk)
            return Response(
                {
                    "url": post.get_url(),
                    "message": "Post created successfully.",
                    "post": PostListSerializer(post).data,
                },
                status=status.HTTP_201_CREATED,
            )

        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(["GET", "PUT", "PATCH", "DELETE"])
@permission_classes([IsAuthorOrAdmin])
def post_detail(request, pk):
    """
    GET: Post with its comment tree, rating summary and the viewer's state.
    PUT/PATCH/DELETE: Author or admin only.
    """
    if request.method == "GET":
        post = get_object_or_404(annotated_posts(), pk=pk)
        serializer = PostDetailSerializer(post, context={"request": request})
        return Response(serializer.data)

    post = get_object_or_404(Post, pk=pk)
    if not IsAuthorOrAdmin().has_object_permission(request, post_detail, post):
        return _permission_denied("You can only edit or delete your own posts.")

    if request.method in ["PUT", "PATCH"]:
        partial = request.method == "PATCH"
        write_serializer = PostWriteSerializer(post, data=request.data, partial=partial)

        if write_serializer.is_valid():
            write_serializer.save()
            logger.info("Post %s updated by user %s", post.pk, request.user.pk)
            return Response(
                {"message": "Post updated successfully.", "url": post.get_url()},
                status=status.HTTP_200_OK,
            )

        return Response(write_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    elif request.method == "DELETE":
        # Comments, ratings and notifications about the post cascade with it
        logger.info("Post %s deleted by user %s", post.pk, request.user.pk)
        post.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# --- Post Interactions ---


@api_view(["POST"])
@permission_classes([AllowAny])
def post_increment_views(request, pk):
    updated = Post.objects.filter(pk=pk).update(views=F("views") + 1)
    if not updated:
        return Response({"detail": "Post not found."}, status=status.HTTP_404_NOT_FOUND)
    views = Post.objects.values_list("views", flat=True).get(pk=pk)
    return Response({"views": views})


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def post_like(request, pk):
    """Toggle the current user's like. Only a new like notifies the author."""
    post = get_object_or_404(Post.objects.select_related("author"), pk=pk)

    if post.likes.filter(pk=request.user.pk).exists():
        post.likes.remove(request.user)
        liked = False
    else:
        post.likes.add(request.user)
        liked = True
        notify_post_liked(post, request.user)

    return Response({"liked": liked, "likes_count": post.likes.count()})


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def post_save(request, pk):
    post = get_object_or_404(Post, pk=pk)

    if post.saved_by.filter(pk=request.user.pk).exists():
        post.saved_by.remove(request.user)
        saved = False
    else:
        post.saved_by.add(request.user)
        saved = True

    saved_ids = list(request.user.saved_posts.values_list("id", flat=True))
    return Response({"saved": saved, "saved_posts": saved_ids})


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def saved_posts(request):
    posts = annotated_posts(Post.objects.filter(saved_by=request.user))
    serializer = PostListSerializer(posts, many=True, context={"request": request})
    return Response(serializer.data)


# --- Discovery ---


@api_view(["GET"])
@permission_classes([AllowAny])
def post_search(request):
    """
    Full-text-ish search over title, content, game name and tags.

    Filters: rating (5, 4+, 3+ on the average rating), tags (comma separated,
    any match), author (username contains), date_from/date_to (YYYY-MM-DD).
    """
    params = request.query_params
    query = params.get("q", "").strip()
    if not query:
        return Response(
            {"detail": "Search query is required."}, status=status.HTTP_400_BAD_REQUEST
        )

    sort = params.get("sort", "relevance")
    if sort not in SORT_OPTIONS:
        sort = "relevance"
    page, limit = get_page_params(request, default_limit=SEARCH_DEFAULT_LIMIT)

    # Tags are a JSON list, so they are matched on their values in Python
    # rather than on the encoded column text
    tag_hits = [
        pk for pk, post_tags in Post.objects.values_list("pk", "tags") if tags_match(post_tags, query)
    ]
    queryset = annotated_posts(
        Post.objects.filter(
            Q(title__icontains=query)
            | Q(content__icontains=query)
            | Q(game_name__icontains=query)
            | Q(pk__in=tag_hits)
        )
    )

    rating = params.get("rating", "all")
    if rating in RATING_FILTERS:
        queryset = queryset.filter(avg_rating__gte=RATING_FILTERS[rating])

    author = params.get("author", "all")
    if author and author != "all":
        queryset = queryset.filter(author__username__icontains=author)

    for param, lookup in (("date_from", "created_at__date__gte"), ("date_to", "created_at__date__lte")):
        raw = params.get(param)
        if not raw:
            continue
        try:
            day = parse_date(raw)
        except ValueError:
            day = None
        if day is None:
            return Response(
                {"detail": f"Invalid {param}, expected YYYY-MM-DD."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        queryset = queryset.filter(**{lookup: day})

    tags = params.get("tags", "all")
    if tags and tags != "all":
        posts = _filter_by_tags(queryset, tags.split(","))
    else:
        posts = list(queryset)

    scores = {
        post.pk: relevance_score(post, query, post.likes_count, post.avg_rating)
        for post in posts
    }
    posts = sort_posts(posts, sort, scores)
    page_posts, total, total_pages = paginate(posts, page, limit)

    logger.info("Search %r returned %s posts", query, total)
    return Response(
        {
            "posts": PostListSerializer(page_posts, many=True, context={"request": request}).data,
            "pagination": {
                "current_page": page,
                "total_pages": total_pages,
                "total_posts": total,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
            "search_info": {
                "query": query,
                "applied_filters": {
                    "rating": rating,
                    "tags": tags,
                    "author": author,
                    "sort": sort,
                    "date_range": {
                        "from": params.get("date_from"),
                        "to": params.get("date_to"),
                    },
                },
            },
        }
    )


@api_view(["GET"])
@permission_classes([AllowAny])
def post_trending(request):
    limit = min(positive_int(request.query_params.get("limit"), TRENDING_DEFAULT_LIMIT), 50)

    posts = list(annotated_posts())
    for post in posts:
        post.score = trending_score(post.views, post.likes_count, post.avg_rating)
    posts.sort(key=lambda p: p.score, reverse=True)
    posts = posts[:limit]

    data = PostListSerializer(posts, many=True, context={"request": request}).data
    for item, post in zip(data, posts):
        item["score"] = round(post.score, 2)
    return Response(data)


# --- Comment Views ---


@api_view(["GET"])
@permission_classes([AllowAny])
def post_comments(request, pk):
    post = get_object_or_404(Post, pk=pk)
    comments = post.comments.select_related("author").prefetch_related("likes", "dislikes")
    return Response(serialize_comment_tree(comments, {"request": request}))


@api_view(["POST"])
@permission_classes([IsAuthenticated])  # Only authenticated users can create comments
def comment_create(request):
    """
    POST: Create a comment, or a reply when `parent` is given.
    The post ID is provided in the request body.
    """
    serializer = CommentSerializer(data=request.data, context={"request": request})

    if serializer.is_valid():
        # Automatically set the author to the requesting authenticated user
        comment = serializer.save(author=request.user)
        notify_comment_created(comment)
        logger.info(
            "Comment %s created on post %s by user %s",
            comment.pk,
            comment.post_id,
            request.user.pk,
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(["GET", "PUT", "PATCH", "DELETE"])
@permission_classes([IsAuthorOrAdmin])
def comment_detail(request, pk):
    """
    GET: Public.
    PUT, PATCH, DELETE: Restricted to the author or an admin.
    """
    comment = get_object_or_404(Comment, pk=pk)

    # In function-based views DRF only runs has_permission automatically,
    # the object-level check has to be called by hand.
    permission_checker = IsAuthorOrAdmin()

    if not permission_checker.has_object_permission(request, comment_detail, comment):
        return _permission_denied(
            "Permission denied. You must be the author or an administrator to change this comment."
        )

    if request.method == "GET":
        serializer = CommentSerializer(comment, context={"request": request})
        return Response(serializer.data)

    elif request.method in ["PUT", "PATCH"]:
        partial = request.method == "PATCH"
        serializer = CommentUpdateSerializer(comment, data=request.data, partial=partial)

        if serializer.is_valid():
            serializer.save()
            return Response(CommentSerializer(comment, context={"request": request}).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    elif request.method == "DELETE":
        # Replies go with their parent (on_delete=CASCADE)
        comment.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


def _reaction_response(comment, request):
    return Response(
        {
            "liked": comment.likes.filter(pk=request.user.pk).exists(),
            "disliked": comment.dislikes.filter(pk=request.user.pk).exists(),
            "likes_count": comment.likes.count(),
            "dislikes_count": comment.dislikes.count(),
        }
    )


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def comment_like(request, pk):
    """Toggle a like. Liking clears an existing dislike by the same user."""
    comment = get_object_or_404(Comment.objects.select_related("author", "post"), pk=pk)

    if comment.likes.filter(pk=request.user.pk).exists():
        comment.likes.remove(request.user)
    else:
        comment.dislikes.remove(request.user)
        comment.likes.add(request.user)
        notify_comment_liked(comment, request.user)

    return _reaction_response(comment, request)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def comment_dislike(request, pk):
    """Toggle a dislike. Disliking clears an existing like by the same user."""
    comment = get_object_or_404(Comment, pk=pk)

    if comment.dislikes.filter(pk=request.user.pk).exists():
        comment.dislikes.remove(request.user)
    else:
        comment.likes.remove(request.user)
        comment.dislikes.add(request.user)

    return _reaction_response(comment, request)


# --- Rating Views ---


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def rate_post(request, pk):
    """Create or update the current user's 1-5 rating of a post."""
    post = get_object_or_404(Post.objects.select_related("author"), pk=pk)

    serializer = RatingWriteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    value = serializer.validated_data["value"]
    previous = Rating.objects.filter(post=post, user=request.user).values_list("value", flat=True).first()
    rating, created = Rating.objects.update_or_create(
        post=post, user=request.user, defaults={"value": value}
    )
    if previous != value:
        notify_post_rated(rating)
    logger.info("User %s rated post %s with %s", request.user.pk, post.pk, value)

    avg_rating, total = post.rating_summary()
    return Response(
        {
            "message": "Rated successfully.",
            "rating": RatingSerializer(rating).data,
            "avg_rating": round(avg_rating, 2),
            "total_ratings": total,
        },
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@api_view(["GET"])
@permission_classes([AllowAny])
def post_ratings(request, pk):
    post = get_object_or_404(annotated_posts(), pk=pk)
    ratings = post.ratings.select_related("user")
    avg_rating, total = post.rating_summary()

    return Response(
        {
            "post": PostListSerializer(post, context={"request": request}).data,
            "avg_rating": round(avg_rating, 2),
            "total_ratings": total,
            "ratings": RatingSerializer(ratings, many=True).data,
        }
    )


@api_view(["GET", "DELETE"])
@permission_classes([IsAuthenticated])
def my_rating(request, pk):
    post = get_object_or_404(Post, pk=pk)
    rating = Rating.objects.filter(post=post, user=request.user).first()
    if rating is None:
        return Response(
            {"detail": "You have not rated this post."}, status=status.HTTP_404_NOT_FOUND
        )

    if request.method == "GET":
        return Response(RatingSerializer(rating).data)

    rating.delete()
    logger.info("User %s removed their rating of post %s", request.user.pk, post.pk)
    return Response({"message": "Rating deleted successfully."})
