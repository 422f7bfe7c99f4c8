from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .serializers import LoginSerializer
from .views import (
    followUser,
    forgotPassword,
    getUsers,
    myPosts,
    myStats,
    registerUser,
    resetPassword,
    searchUsers,
    unfollowUser,
    userDetail,
    userFollowers,
    userFollowing,
    userPosts,
    userProfile,
    userStats,
)

urlpatterns = [
    path("", getUsers, name="users"),
    path("register/", registerUser, name="register"),
    # Simple JWT login, extended to return the user next to the tokens
    path(
        "login/",
        TokenObtainPairView.as_view(serializer_class=LoginSerializer),
        name="login",
    ),
    path("login/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("search/", searchUsers, name="user-search"),
    path("me/", userProfile, name="me"),
    path("me/stats/", myStats, name="me-stats"),
    path("me/posts/", myPosts, name="me-posts"),
    path("forgot-password/", forgotPassword, name="forgot-password"),
    path(
        "reset-password/<str:uidb64>/<str:token>/",
        resetPassword,
        name="reset-password",
    ),
    path("<int:pk>/", userDetail, name="user-detail"),
    path("<int:pk>/stats/", userStats, name="user-stats"),
    path("<int:pk>/posts/", userPosts, name="user-posts"),
    path("<int:pk>/follow/", followUser, name="user-follow"),
    path("<int:pk>/unfollow/", unfollowUser, name="user-unfollow"),
    path("<int:pk>/followers/", userFollowers, name="user-followers"),
    path("<int:pk>/following/", userFollowing, name="user-following"),
]
