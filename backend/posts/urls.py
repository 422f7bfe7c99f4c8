from django.urls import path

from .views import (
    comment_create,
    comment_detail,
    comment_dislike,
    comment_like,
    my_rating,
    post_comments,
    post_detail,
    post_increment_views,
    post_like,
    post_list_create,
    post_ratings,
    post_save,
    post_search,
    post_trending,
    rate_post,
    saved_posts,
)

urlpatterns = [
    # ----------------------------------------------------------------------
    # 1. POST Endpoints
    # ----------------------------------------------------------------------
    # Endpoint: /api/posts/
    # Methods: GET (paginated list), POST (create - authenticated users)
    path("", post_list_create, name="post-list-create"),
    path("saved/", saved_posts, name="post-saved-list"),
    path("search/", post_search, name="post-search"),
    path("trending/", post_trending, name="post-trending"),
    # Endpoint: /api/posts/<int:pk>/
    # Methods: GET (retrieve), PUT/PATCH/DELETE (author or admin)
    path("<int:pk>/", post_detail, name="post-detail"),
    path("<int:pk>/views/", post_increment_views, name="post-views"),
    path("<int:pk>/like/", post_like, name="post-like"),
    path("<int:pk>/save/", post_save, name="post-save"),
    path("<int:pk>/comments/", post_comments, name="post-comments"),
    # ----------------------------------------------------------------------
    # 2. RATING Endpoints
    # ----------------------------------------------------------------------
    path("<int:pk>/rate/", rate_post, name="post-rate"),
    path("<int:pk>/ratings/", post_ratings, name="post-ratings"),
    path("<int:pk>/ratings/me/", my_rating, name="post-my-rating"),
    # ----------------------------------------------------------------------
    # 3. COMMENT Endpoints
    # ----------------------------------------------------------------------
    # Endpoint: /api/posts/comments/
    # Methods: POST (create comment or reply - authenticated users)
    path("comments/", comment_create, name="comment-create"),
    # Endpoint: /api/posts/comments/<int:pk>/
    # Methods: GET (public), PUT, PATCH and DELETE (author or admin)
    path("comments/<int:pk>/", comment_detail, name="comment-detail"),
    path("comments/<int:pk>/like/", comment_like, name="comment-like"),
    path("comments/<int:pk>/dislike/", comment_dislike, name="comment-dislike"),
]
