import logging

from django.conf import settings
from django.contrib.auth.tokens import default_token_generator
from django.db.models import Avg, Count, Q, Sum
from django.shortcuts import get_object_or_404
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from gamehub.exceptions import AlreadyFollowingError, NotFollowingError, SelfActionError
from notifications.services import notify_followed
from posts.models import Comment, Post, Rating
from posts.serializers import PostListSerializer

from .emails import send_password_reset_confirmation, send_password_reset_email
from .models import User
from .permissions import IsSelfOrAdmin
from .serializers import (
    PasswordResetConfirmSerializer,
    PasswordResetRequestSerializer,
    PublicUserSerializer,
    UserSerializer,
    UserSerializerWithToken,
)

logger = logging.getLogger(__name__)

SEARCH_RESULTS_LIMIT = 20

# Only admins may toggle these through the API
ADMIN_ONLY_FIELDS = ("is_active",)


def _strip_admin_fields(request, serializer):
    if not request.user.is_staff:
        for field in ADMIN_ONLY_FIELDS:
            serializer.validated_data.pop(field, None)


def get_user_stats(user):
    """Aggregate activity on everything `user` has published."""
    posts = Post.objects.filter(author=user)
    post_totals = posts.aggregate(total_posts=Count("id"), total_views=Sum("views"))
    total_likes = Post.likes.through.objects.filter(post__author=user).count()
    total_comments = Comment.objects.filter(post__author=user).count()
    avg_rating = Rating.objects.filter(post__author=user).aggregate(avg=Avg("value"))["avg"]

    return {
        "total_posts": post_totals["total_posts"],
        "total_views": post_totals["total_views"] or 0,
        "total_likes": total_likes,
        "total_comments": total_comments,
        "avg_rating": round(float(avg_rating or 0), 1),
    }


# --- Accounts ---


@api_view(["GET"])
@permission_classes([IsAdminUser])  # Restricts access to only admin (is_staff=True) users
def getUsers(request):
    users = User.objects.all()
    serializer = UserSerializer(users, many=True)
    return Response(serializer.data)


@api_view(["POST"])
@permission_classes([AllowAny])  # Allows unauthenticated access for registration
def registerUser(request):
    serializer = UserSerializerWithToken(data=request.data)

    if serializer.is_valid():
        _strip_admin_fields(request, serializer)
        # save() runs the serializer's create(), which hashes the password
        user = serializer.save()
        logger.info("Registered user %s (%s)", user.pk, user.username)

        response_data = {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "token": serializer.data["token"],
            "message": "User registered successfully.",
        }
        return Response(response_data, status=status.HTTP_201_CREATED)

    # Missing fields, invalid emails and duplicate email/username end up here
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(["GET"])
@permission_classes([AllowAny])
def searchUsers(request):
    query = request.query_params.get("q", "").strip()
    if not query:
        return Response(
            {"detail": "Search query is required."}, status=status.HTTP_400_BAD_REQUEST
        )

    users = User.objects.filter(
        Q(username__icontains=query) | Q(email__icontains=query), is_active=True
    )[:SEARCH_RESULTS_LIMIT]
    serializer = PublicUserSerializer(users, many=True)
    return Response(serializer.data)


@api_view(["GET", "PUT", "PATCH"])
@permission_classes([IsAuthenticated])
def userProfile(request):
    user = request.user

    if request.method == "GET":
        serializer = UserSerializer(user)
        return Response(serializer.data)

    partial = request.method == "PATCH"
    serializer = UserSerializer(user, data=request.data, partial=partial)
    if serializer.is_valid():
        _strip_admin_fields(request, serializer)
        serializer.save()
        logger.info("User %s updated their profile", user.pk)
        return Response(
            {"message": "Profile updated successfully.", "user": serializer.data}
        )
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(["GET", "PUT", "PATCH", "DELETE"])
@permission_classes([IsSelfOrAdmin])
def userDetail(request, pk):
    user = get_object_or_404(User, pk=pk)

    # In function-based views DRF only runs has_permission automatically
    permission_checker = IsSelfOrAdmin()
    if not permission_checker.has_object_permission(request, userDetail, user):
        return Response(
            {"detail": "Permission denied. You can only manage your own account."},
            status=status.HTTP_403_FORBIDDEN,
        )

    if request.method == "GET":
        serializer = PublicUserSerializer(user)
        return Response(serializer.data)

    elif request.method in ["PUT", "PATCH"]:
        partial = request.method == "PATCH"
        serializer = UserSerializer(user, data=request.data, partial=partial)
        if serializer.is_valid():
            _strip_admin_fields(request, serializer)
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    elif request.method == "DELETE":
        logger.info("User %s deleted by user %s", user.pk, request.user.pk)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# --- Activity ---


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def myStats(request):
    return Response(get_user_stats(request.user))


@api_view(["GET"])
def userStats(request, pk):
    user = get_object_or_404(User, pk=pk)
    return Response(get_user_stats(user))


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def myPosts(request):
    posts = Post.objects.filter(author=request.user).select_related("author")
    serializer = PostListSerializer(posts, many=True)
    return Response(serializer.data)


@api_view(["GET"])
def userPosts(request, pk):
    user = get_object_or_404(User, pk=pk)
    posts = Post.objects.filter(author=user).select_related("author")
    serializer = PostListSerializer(posts, many=True)
    return Response(serializer.data)


# --- Follow graph ---


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def followUser(request, pk):
    target = get_object_or_404(User, pk=pk)
    if target.pk == request.user.pk:
        raise SelfActionError("You cannot follow yourself.")
    if request.user.is_following(target):
        raise AlreadyFollowingError()

    request.user.following.add(target)
    notify_followed(target, request.user)
    logger.info("User %s followed user %s", request.user.pk, target.pk)
    return Response(
        {"message": "Followed successfully.", "followers_count": target.followers.count()}
    )


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def unfollowUser(request, pk):
    target = get_object_or_404(User, pk=pk)
    if target.pk == request.user.pk:
        raise SelfActionError("You cannot unfollow yourself.")
    if not request.user.is_following(target):
        raise NotFollowingError()

    request.user.following.remove(target)
    logger.info("User %s unfollowed user %s", request.user.pk, target.pk)
    return Response(
        {"message": "Unfollowed successfully.", "followers_count": target.followers.count()}
    )


@api_view(["GET"])
def userFollowers(request, pk):
    user = get_object_or_404(User, pk=pk)
    serializer = PublicUserSerializer(user.followers.all(), many=True)
    return Response(serializer.data)


@api_view(["GET"])
def userFollowing(request, pk):
    user = get_object_or_404(User, pk=pk)
    serializer = PublicUserSerializer(user.following.all(), many=True)
    return Response(serializer.data)


# --- Password reset ---


def _user_from_uid(uidb64):
    try:
        uid = force_str(urlsafe_base64_decode(uidb64))
        return User.objects.get(pk=uid)
    except (TypeError, ValueError, OverflowError, User.DoesNotExist):
        return None


@api_view(["POST"])
@permission_classes([AllowAny])
def forgotPassword(request):
    serializer = PasswordResetRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    email = serializer.validated_data["email"]
    user = User.objects.filter(email__iexact=email, is_active=True).first()
    if user is not None:
        uidb64 = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        reset_url = f"{settings.FRONTEND_URL}/reset-password/{uidb64}/{token}"
        send_password_reset_email(user, reset_url)
    else:
        logger.info("Password reset requested for unknown email")

    # Same answer whether or not the account exists
    return Response(
        {"message": "If an account exists for this email, a reset link has been sent."}
    )


@api_view(["GET", "POST"])
@permission_classes([AllowAny])
def resetPassword(request, uidb64, token):
    user = _user_from_uid(uidb64)
    valid = user is not None and default_token_generator.check_token(user, token)

    if request.method == "GET":
        return Response({"valid": valid})

    if not valid:
        return Response(
            {"detail": "The reset link is invalid or has expired."},
            status=status.HTTP_400_BAD_REQUEST,
        )

    serializer = PasswordResetConfirmSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user.set_password(serializer.validated_data["password"])
    user.save()
    send_password_reset_confirmation(user)
    logger.info("Password reset completed for user %s", user.pk)
    return Response({"message": "Password has been reset successfully."})
