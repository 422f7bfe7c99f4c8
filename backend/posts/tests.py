from django.urls import reverse
from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase

# We use the APIClient for making requests to DRF views
from rest_framework.test import APIClient
from rest_framework import status

from notifications.models import Notification

from .models import Comment, Post, Rating
from .ranking import relevance_score, trending_score
from .tree import build_comment_tree

# Get the custom user model dynamically
User = get_user_model()

# --- URL Name Definitions ---
# These names match posts/urls.py
POST_LIST_CREATE_URL = reverse("post-list-create")
POST_SEARCH_URL = reverse("post-search")
POST_TRENDING_URL = reverse("post-trending")
SAVED_POSTS_URL = reverse("post-saved-list")
COMMENT_CREATE_URL = reverse("comment-create")


# Helper functions to generate URLs for detail views (e.g., /api/posts/1/)
def post_url(name, post_id):
    return reverse(name, kwargs={"pk": post_id})


def post_detail_url(post_id):
    return post_url("post-detail", post_id)


def comment_url(name, comment_id):
    return reverse(name, kwargs={"pk": comment_id})


def comment_detail_url(comment_id):
    return comment_url("comment-detail", comment_id)


# --- Helper Functions for Test Setup ---


def create_user(**params):
    """Create and return a new regular user."""
    return User.objects.create_user(**params)


def create_superuser(**params):
    """Create and return a new admin user."""
    return User.objects.create_superuser(**params)


def create_post(user, **params):
    """Create and return a new post, setting required fields if missing."""
    defaults = {
        "title": "Default Test Review",
        "content": "<p>Default test content.</p>",
        "excerpt": "Default excerpt.",
    }
    defaults.update(params)
    return Post.objects.create(author=user, **defaults)


def create_comment(user, post, **params):
    """Create and return a new comment."""
    defaults = {"content": "Default test comment."}
    defaults.update(params)
    return Comment.objects.create(author=user, post=post, **defaults)


# ----------------------------------------------------------------------
# A. Public Post API Tests (Read Access)
# ----------------------------------------------------------------------


class PublicPostAPITests(TestCase):
    """Test public access (unauthenticated) to post endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.user = create_user(email="public@test.com", password="password123")
        self.post = create_post(self.user, title="Elden Ring Review", tags=["rpg", "souls"])
        self.other_post = create_post(self.user, title="Celeste Review", tags=["platformer"])

    # --- LIST VIEW (/api/posts/) ---

    def test_retrieve_posts_list_paginated(self):
        """Test GET /api/posts/ returns every post with pagination info."""
        res = self.client.get(POST_LIST_CREATE_URL)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["total_posts"], 2)
        self.assertEqual(res.data["total_pages"], 1)
        self.assertEqual(res.data["current_page"], 1)
        self.assertEqual(len(res.data["posts"]), 2)

    def test_list_respects_limit(self):
        """Test ?limit splits the list into pages."""
        res = self.client.get(POST_LIST_CREATE_URL, {"page": 2, "limit": 1})

        self.assertEqual(res.data["total_pages"], 2)
        self.assertEqual(res.data["current_page"], 2)
        self.assertEqual(len(res.data["posts"]), 1)

    def test_list_limit_capped_at_fifty(self):
        """Test ?limit above 50 is clamped to 50 posts per page."""
        for i in range(51):
            create_post(self.user, title=f"Filler {i}")

        res = self.client.get(POST_LIST_CREATE_URL, {"limit": 100})

        self.assertEqual(len(res.data["posts"]), 50)
        self.assertEqual(res.data["total_posts"], 53)
        self.assertEqual(res.data["total_pages"], 2)

    def test_list_invalid_page_params_fall_back_to_defaults(self):
        """Test non-numeric or < 1 page/limit values use page 1 and 10 per page."""
        for i in range(11):
            create_post(self.user, title=f"Filler {i}")

        for params in ({"page": "abc", "limit": "xyz"}, {"page": 0, "limit": -3}):
            res = self.client.get(POST_LIST_CREATE_URL, params)

            self.assertEqual(res.status_code, status.HTTP_200_OK)
            self.assertEqual(res.data["current_page"], 1)
            self.assertEqual(len(res.data["posts"]), 10)
            self.assertEqual(res.data["total_pages"], 2)

    def test_list_page_past_the_end_is_empty(self):
        res = self.client.get(POST_LIST_CREATE_URL, {"page": 5})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["posts"], [])
        self.assertEqual(res.data["total_pages"], 1)

    def test_list_filter_by_tag(self):
        """Test ?tag only keeps posts carrying that tag."""
        res = self.client.get(POST_LIST_CREATE_URL, {"tag": "RPG"})

        self.assertEqual(res.data["total_posts"], 1)
        self.assertEqual(res.data["posts"][0]["title"], self.post.title)

    # --- DETAIL VIEW (/api/posts/<pk>/) ---

    def test_retrieve_post_detail_success(self):
        """Test GET /api/posts/<pk>/ returns the post and an anonymous viewer state."""
        res = self.client.get(post_detail_url(self.post.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["title"], self.post.title)
        self.assertEqual(res.data["comments"], [])
        self.assertFalse(res.data["is_liked"])
        self.assertFalse(res.data["is_saved"])
        self.assertIsNone(res.data["user_rating"])

    def test_retrieve_missing_post_404(self):
        """Test GET /api/posts/<pk>/ returns 404 for an unknown post."""
        res = self.client.get(post_detail_url(9999))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_increment_views(self):
        """Test POST /api/posts/<pk>/views/ counts a view without authentication."""
        url = post_url("post-views", self.post.id)
        self.client.post(url)
        res = self.client.post(url)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["views"], 2)

    def test_increment_views_missing_post_404(self):
        res = self.client.post(post_url("post-views", 9999))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    # --- WRITE OPERATIONS (FORBIDDEN) ---

    def test_create_post_anonymous_unauthorized(self):
        """Test POST /api/posts/ is denied for anonymous users."""
        res = self.client.post(POST_LIST_CREATE_URL, {"title": "Attempt", "content": "x"})
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_like_anonymous_unauthorized(self):
        """Test liking requires authentication."""
        res = self.client.post(post_url("post-like", self.post.id))
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)


# ----------------------------------------------------------------------
# B. Authoring Tests (Create / Update / Delete)
# ----------------------------------------------------------------------


class AuthorPostAPITests(TestCase):
    """Test that any user may write reviews, and only the author or an admin may change them."""

    def setUp(self):
        self.client = APIClient()
        self.author = create_user(email="author@test.com", password="password123")
        self.other_user = create_user(email="other@test.com", password="password123")
        self.admin = create_superuser(email="admin@test.com", password="adminpassword")
        self.client.force_authenticate(user=self.author)

        self.post = create_post(self.author, title="Hollow Knight Review")
        self.payload = {
            "title": "New Review Title",
            "content": (
                "<h2>Section Header</h2>"
                "<p>This is the first paragraph. It contains some <strong>bold text</strong>.</p>"
                "<ul><li>Item one</li><li>Item two</li></ul>"
                '<p><a href="http://safe-link.com">Read More</a></p>'
            ),
            "excerpt": "New excerpt.",
            "tags": ["Indie", "metroidvania", "indie"],
            "game_id": 9767,
            "game_name": "Hollow Knight",
        }

    # --- CREATE (POST) ---

    def test_create_post_success(self):
        """Test POST /api/posts/ creates a post owned by the requesting user."""
        res = self.client.post(POST_LIST_CREATE_URL, self.payload)

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertIn("url", res.data)
        self.assertIn("message", res.data)

        post = Post.objects.get(title=self.payload["title"])
        self.assertEqual(post.author, self.author)
        self.assertEqual(post.slug, "new-review-title")
        self.assertEqual(res.data["url"], f"/posts/new-review-title-{post.id}/")
        # Tags are lower-cased and de-duplicated
        self.assertEqual(post.tags, ["indie", "metroidvania"])

    def test_create_post_sanitizes_content_stripping_script_tag(self):
        """Test POST /api/posts/ strips malicious <script> tags from 'content'."""
        malicious_content = (
            "<h1>Safe Title</h1><script>alert('XSS attempt')</script><p>Safe text.</p>"
        )
        safe_content_expected = "<h1>Safe Title</h1>alert('XSS attempt')<p>Safe text.</p>"

        payload = self.payload.copy()
        payload["content"] = malicious_content
        res = self.client.post(POST_LIST_CREATE_URL, payload)

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        post = Post.objects.get(title=payload["title"])
        self.assertNotIn("<script>", post.content.lower())
        self.assertEqual(post.content, safe_content_expected)

    def test_create_post_generates_excerpt(self):
        """Test a missing excerpt is derived from the content text."""
        payload = self.payload.copy()
        payload.pop("excerpt")
        payload["content"] = "<p>Great <strong>combat</strong>.</p>"
        res = self.client.post(POST_LIST_CREATE_URL, payload)

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        post = Post.objects.get(title=payload["title"])
        self.assertEqual(post.excerpt, "Great combat.")

    def test_create_post_blank_title_rejected(self):
        """Test a whitespace-only title is a validation error."""
        payload = self.payload.copy()
        payload["title"] = "   "
        res = self.client.post(POST_LIST_CREATE_URL, payload)

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("title", res.data)

    # --- UPDATE ACCESS (PUT/PATCH) ---

    def test_full_update_post_PUT_success(self):
        """Test PUT /api/posts/<pk>/ fully updates a post."""
        payload = self.payload.copy()
        payload["title"] = "Fully Updated Title"
        res = self.client.put(post_detail_url(self.post.id), payload)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.post.refresh_from_db()
        self.assertEqual(self.post.title, "Fully Updated Title")
        self.assertEqual(res.data["url"], self.post.get_url())

    def test_update_post_other_user_forbidden(self):
        """Test PATCH is denied for a user who did not write the post."""
        self.client.force_authenticate(user=self.other_user)
        res = self.client.patch(post_detail_url(self.post.id), {"title": "Unauthorized"})

        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
        self.post.refresh_from_db()
        self.assertEqual(self.post.title, "Hollow Knight Review")

    def test_update_post_admin_success(self):
        """Test an admin may edit anybody's post."""
        self.client.force_authenticate(user=self.admin)
        res = self.client.patch(post_detail_url(self.post.id), {"title": "Moderated"})
        self.assertEqual(res.status_code, status.HTTP_200_OK)

    # --- DELETE ACCESS (DELETE) ---

    def test_delete_post_success(self):
        """Test DELETE /api/posts/<pk>/ removes the post and its comments."""
        create_comment(self.other_user, self.post)
        res = self.client.delete(post_detail_url(self.post.id))

        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Post.objects.filter(id=self.post.id).exists())
        self.assertEqual(Comment.objects.count(), 0)

    def test_delete_post_removes_comments_and_ratings(self):
        """Test DELETE /api/posts/<pk>/ cascades to the post's comments, replies and ratings."""
        comment = create_comment(self.other_user, self.post)
        create_comment(self.author, self.post, parent=comment)
        Rating.objects.create(post=self.post, user=self.other_user, value=4)
        kept = create_post(self.other_user, title="Untouched")
        Rating.objects.create(post=kept, user=self.author, value=2)

        res = self.client.delete(post_detail_url(self.post.id))

        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Comment.objects.filter(post_id=self.post.id).exists())
        self.assertFalse(Rating.objects.filter(post_id=self.post.id).exists())
        self.assertEqual(Rating.objects.filter(post=kept).count(), 1)

    # --- EXCERPT ---

    def test_patch_content_refreshes_generated_excerpt(self):
        """Test an excerpt derived from the content follows later content edits."""
        payload = dict(self.payload, content="<p>First draft.</p>")
        payload.pop("excerpt")
        self.client.post(POST_LIST_CREATE_URL, payload)
        post = Post.objects.get(title=payload["title"])
        self.assertEqual(post.excerpt, "First draft.")

        res = self.client.patch(post_detail_url(post.id), {"content": "<p>Final review.</p>"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        post.refresh_from_db()
        self.assertEqual(post.excerpt, "Final review.")

    def test_patch_content_keeps_custom_excerpt(self):
        """Test a hand-written excerpt survives a content edit."""
        res = self.client.patch(post_detail_url(self.post.id), {"content": "<p>Rewritten.</p>"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.post.refresh_from_db()
        self.assertEqual(self.post.excerpt, "Default excerpt.")

    def test_delete_post_other_user_forbidden(self):
        self.client.force_authenticate(user=self.other_user)
        res = self.client.delete(post_detail_url(self.post.id))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)


# ----------------------------------------------------------------------
# C. Likes, Saves and Notifications
# ----------------------------------------------------------------------


class PostInteractionTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.author = create_user(email="author@test.com", password="password123")
        self.reader = create_user(email="reader@test.com", password="password123")
        self.post = create_post(self.author)
        self.client.force_authenticate(user=self.reader)

    def test_like_toggles(self):
        """Test the first like adds, the second removes."""
        url = post_url("post-like", self.post.id)

        res = self.client.post(url)
        self.assertTrue(res.data["liked"])
        self.assertEqual(res.data["likes_count"], 1)

        res = self.client.post(url)
        self.assertFalse(res.data["liked"])
        self.assertEqual(res.data["likes_count"], 0)

    def test_like_notifies_author_once(self):
        """Test a like sends the author a notification, unliking does not."""
        url = post_url("post-like", self.post.id)
        self.client.post(url)
        self.client.post(url)

        notifications = Notification.objects.filter(recipient=self.author)
        self.assertEqual(notifications.count(), 1)
        self.assertEqual(notifications[0].type, Notification.Type.LIKE)
        self.assertEqual(notifications[0].actor, self.reader)

    def test_liking_own_post_is_silent(self):
        """Test authors get no notification for their own likes."""
        self.client.force_authenticate(user=self.author)
        self.client.post(post_url("post-like", self.post.id))
        self.assertEqual(Notification.objects.count(), 0)

    def test_detail_shows_viewer_state(self):
        self.client.post(post_url("post-like", self.post.id))
        self.client.post(post_url("post-save", self.post.id))

        res = self.client.get(post_detail_url(self.post.id))
        self.assertTrue(res.data["is_liked"])
        self.assertTrue(res.data["is_saved"])
        self.assertEqual(res.data["likes_count"], 1)

    def test_save_toggles_and_lists_saved_posts(self):
        """Test saving returns the saved ids and shows up in /saved/."""
        res = self.client.post(post_url("post-save", self.post.id))
        self.assertTrue(res.data["saved"])
        self.assertEqual(res.data["saved_posts"], [self.post.id])

        res = self.client.get(SAVED_POSTS_URL)
        self.assertEqual(len(res.data), 1)

        res = self.client.post(post_url("post-save", self.post.id))
        self.assertFalse(res.data["saved"])
        self.assertEqual(res.data["saved_posts"], [])


# ----------------------------------------------------------------------
# D. Search and Trending
# ----------------------------------------------------------------------


class DiscoveryAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.alice = create_user(email="alice@test.com", password="password123", username="alice")
        self.bob = create_user(email="bob@test.com", password="password123", username="bob")

        self.zelda = create_post(
            self.alice, title="Zelda", game_name="Breath of the Wild", tags=["adventure"], views=5
        )
        self.mario = create_post(
            self.bob,
            title="Mario Odyssey",
            content="<p>Better than zelda?</p>",
            tags=["platformer"],
            views=100,
        )
        self.doom = create_post(self.bob, title="Doom Eternal", tags=["shooter"])

        Rating.objects.create(post=self.zelda, user=self.bob, value=5)
        Rating.objects.create(post=self.mario, user=self.alice, value=3)

    def test_search_requires_query(self):
        res = self.client.get(POST_SEARCH_URL)
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search_ranks_title_match_first(self):
        """Test an exact title match outranks a match in the body."""
        res = self.client.get(POST_SEARCH_URL, {"q": "zelda"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        titles = [p["title"] for p in res.data["posts"]]
        self.assertEqual(titles, ["Zelda", "Mario Odyssey"])
        self.assertEqual(res.data["pagination"]["total_posts"], 2)
        self.assertFalse(res.data["pagination"]["has_next"])
        self.assertEqual(res.data["search_info"]["query"], "zelda")

    def test_search_matches_tags(self):
        res = self.client.get(POST_SEARCH_URL, {"q": "shooter"})
        self.assertEqual([p["title"] for p in res.data["posts"]], ["Doom Eternal"])

    def test_search_matches_non_ascii_tags(self):
        """Test tags are matched on their values, accents included."""
        create_post(self.alice, title="Arceus", tags=["Pokémon", "rpg"])

        res = self.client.get(POST_SEARCH_URL, {"q": "pokémon"})

        self.assertEqual([p["title"] for p in res.data["posts"]], ["Arceus"])

    def test_search_punctuation_does_not_match_tag_encoding(self):
        """Test characters of the stored tag list format ([ , ") match nothing."""
        for query in ("[", ",", '"'):
            res = self.client.get(POST_SEARCH_URL, {"q": query})

            self.assertEqual(res.status_code, status.HTTP_200_OK)
            self.assertEqual(res.data["posts"], [], query)

    def test_search_rating_filter(self):
        """Test rating=4+ keeps only posts averaging four stars or more."""
        res = self.client.get(POST_SEARCH_URL, {"q": "zelda", "rating": "4+"})
        self.assertEqual([p["title"] for p in res.data["posts"]], ["Zelda"])

    def test_search_author_filter(self):
        res = self.client.get(POST_SEARCH_URL, {"q": "zelda", "author": "bob"})
        self.assertEqual([p["title"] for p in res.data["posts"]], ["Mario Odyssey"])

    def test_search_sort_by_views(self):
        res = self.client.get(POST_SEARCH_URL, {"q": "zelda", "sort": "views"})
        self.assertEqual([p["title"] for p in res.data["posts"]], ["Mario Odyssey", "Zelda"])

    def test_search_invalid_date_rejected(self):
        res = self.client.get(POST_SEARCH_URL, {"q": "zelda", "date_from": "yesterday"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_trending_orders_by_score(self):
        """Test trending puts the most viewed post first and reports its score."""
        res = self.client.get(POST_TRENDING_URL, {"limit": 2})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data), 2)
        self.assertEqual(res.data[0]["title"], "Mario Odyssey")
        self.assertEqual(res.data[0]["score"], 46.0)


# ----------------------------------------------------------------------
# E. Comment API Tests
# ----------------------------------------------------------------------


class CommentAPITests(TestCase):
    """Test comment creation, threading and management endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.author = create_user(email="commenter@test.com", password="password123")
        self.other_user = create_user(email="otheruser@test.com", password="password123")
        self.post_author = create_user(email="writer@test.com", password="password123")
        self.admin = create_superuser(email="admin@test.com", password="adminpassword")

        self.post = create_post(self.post_author, title="Post with Comments")
        self.comment = create_comment(self.author, self.post, content="First comment by author")

        self.comment_payload = {
            "post": self.post.id,
            "content": "A brand new comment.",
        }

    # --- COMMENT CREATION (POST /api/posts/comments/) ---

    def test_create_comment_authenticated_user_success(self):
        """Test POST /api/posts/comments/ creates a comment and notifies the post author."""
        self.client.force_authenticate(user=self.other_user)
        res = self.client.post(COMMENT_CREATE_URL, self.comment_payload)

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        comment = Comment.objects.get(content=self.comment_payload["content"])
        self.assertEqual(comment.author, self.other_user)
        self.assertIsNone(comment.parent)

        notification = Notification.objects.get(recipient=self.post_author)
        self.assertEqual(notification.type, Notification.Type.COMMENT)

    def test_create_reply_notifies_parent_author(self):
        """Test a reply is threaded under its parent and notifies the parent's author."""
        self.client.force_authenticate(user=self.post_author)
        payload = dict(self.comment_payload, parent=self.comment.id)
        res = self.client.post(COMMENT_CREATE_URL, payload)

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["parent"], self.comment.id)
        notification = Notification.objects.get(recipient=self.author)
        self.assertEqual(notification.type, Notification.Type.REPLY)

    def test_reply_to_comment_of_other_post_rejected(self):
        other_post = create_post(self.post_author, title="Elsewhere")
        self.client.force_authenticate(user=self.other_user)
        payload = {"post": other_post.id, "parent": self.comment.id, "content": "Lost?"}
        res = self.client.post(COMMENT_CREATE_URL, payload)

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("parent", res.data)

    def test_create_empty_comment_rejected(self):
        self.client.force_authenticate(user=self.other_user)
        res = self.client.post(COMMENT_CREATE_URL, {"post": self.post.id, "content": "   "})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_comment_anonymous_unauthorized(self):
        """Test POST /api/posts/comments/ is denied for anonymous users."""
        res = self.client.post(COMMENT_CREATE_URL, self.comment_payload)
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    # --- THREADS (GET /api/posts/<pk>/comments/) ---

    def test_comments_are_nested(self):
        """Test replies are returned inside their parent, oldest first."""
        reply = create_comment(self.post_author, self.post, parent=self.comment, content="Reply")
        create_comment(self.other_user, self.post, content="Second top-level")

        res = self.client.get(post_url("post-comments", self.post.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data), 2)
        self.assertEqual(res.data[0]["id"], self.comment.id)
        self.assertEqual([r["id"] for r in res.data[0]["replies"]], [reply.id])
        self.assertEqual(res.data[1]["replies"], [])

    # --- COMMENT DETAIL RETRIEVAL (GET /api/posts/comments/<pk>/) ---

    def test_retrieve_comment_detail_anonymous_success(self):
        """Test GET on a single comment is public."""
        res = self.client.get(comment_detail_url(self.comment.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["content"], "First comment by author")

    # --- COMMENT MANAGEMENT (PUT/PATCH/DELETE) ---

    def test_update_comment_by_author_success(self):
        """Test PATCH allows the comment author to update the content."""
        self.client.force_authenticate(user=self.author)
        res = self.client.patch(comment_detail_url(self.comment.id), {"content": "Updated by author."})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.comment.refresh_from_db()
        self.assertEqual(self.comment.content, "Updated by author.")

    def test_update_comment_by_non_author_forbidden(self):
        """Test PATCH is denied to a user who is not the author or admin."""
        self.client.force_authenticate(user=self.other_user)
        res = self.client.patch(comment_detail_url(self.comment.id), {"content": "Attempted"})
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_comment_by_admin_success(self):
        """Test PATCH allows the admin to update any comment."""
        self.client.force_authenticate(user=self.admin)
        res = self.client.patch(comment_detail_url(self.comment.id), {"content": "Moderated."})
        self.assertEqual(res.status_code, status.HTTP_200_OK)

    def test_comment_post_cannot_be_moved(self):
        """Test PATCH only touches the text, not the post a comment belongs to."""
        other_post = create_post(self.post_author, title="Elsewhere")
        self.client.force_authenticate(user=self.author)
        self.client.patch(comment_detail_url(self.comment.id), {"post": other_post.id})

        self.comment.refresh_from_db()
        self.assertEqual(self.comment.post, self.post)

    def test_delete_comment_removes_replies(self):
        """Test DELETE removes the comment together with its replies."""
        create_comment(self.other_user, self.post, parent=self.comment)
        self.client.force_authenticate(user=self.author)
        res = self.client.delete(comment_detail_url(self.comment.id))

        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(Comment.objects.count(), 0)

    def test_delete_comment_by_non_author_forbidden(self):
        """Test DELETE is denied to a user who is not the author or admin."""
        self.client.force_authenticate(user=self.other_user)
        res = self.client.delete(comment_detail_url(self.comment.id))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    # --- REACTIONS ---

    def test_like_and_dislike_are_exclusive(self):
        """Test disliking a liked comment removes the like, and vice versa."""
        self.client.force_authenticate(user=self.other_user)

        res = self.client.post(comment_url("comment-like", self.comment.id))
        self.assertTrue(res.data["liked"])
        self.assertEqual(res.data["likes_count"], 1)

        res = self.client.post(comment_url("comment-dislike", self.comment.id))
        self.assertFalse(res.data["liked"])
        self.assertTrue(res.data["disliked"])
        self.assertEqual(res.data["likes_count"], 0)
        self.assertEqual(res.data["dislikes_count"], 1)

        res = self.client.post(comment_url("comment-dislike", self.comment.id))
        self.assertFalse(res.data["disliked"])
        self.assertEqual(res.data["dislikes_count"], 0)

    def test_comment_like_notifies_comment_author(self):
        self.client.force_authenticate(user=self.other_user)
        self.client.post(comment_url("comment-like", self.comment.id))

        notification = Notification.objects.get(recipient=self.author)
        self.assertEqual(notification.comment, self.comment)


# ----------------------------------------------------------------------
# F. Rating API Tests
# ----------------------------------------------------------------------


class RatingAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.author = create_user(email="author@test.com", password="password123")
        self.rater = create_user(email="rater@test.com", password="password123")
        self.post = create_post(self.author)
        self.client.force_authenticate(user=self.rater)
        self.rate_url = post_url("post-rate", self.post.id)

    def test_rate_then_update(self):
        """Test the first rating is created (201) and a second one replaces it (200)."""
        res = self.client.post(self.rate_url, {"value": 4})
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["avg_rating"], 4.0)
        self.assertEqual(res.data["total_ratings"], 1)

        res = self.client.post(self.rate_url, {"value": 2})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["avg_rating"], 2.0)
        self.assertEqual(Rating.objects.filter(post=self.post).count(), 1)

    def test_rating_out_of_range_rejected(self):
        for value in (0, 6):
            res = self.client.post(self.rate_url, {"value": value})
            self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_rating_notifies_only_on_change(self):
        """Test re-submitting the same value does not notify the author again."""
        self.client.post(self.rate_url, {"value": 5})
        self.client.post(self.rate_url, {"value": 5})

        notifications = Notification.objects.filter(recipient=self.author)
        self.assertEqual(notifications.count(), 1)
        self.assertEqual(notifications[0].type, Notification.Type.POST_RATING)

    def test_post_ratings_summary(self):
        other = create_user(email="second@test.com", password="password123")
        Rating.objects.create(post=self.post, user=self.rater, value=5)
        Rating.objects.create(post=self.post, user=other, value=2)

        res = self.client.get(post_url("post-ratings", self.post.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["avg_rating"], 3.5)
        self.assertEqual(res.data["total_ratings"], 2)
        self.assertEqual(len(res.data["ratings"]), 2)

    def test_my_rating_get_and_delete(self):
        url = post_url("post-my-rating", self.post.id)
        res = self.client.get(url)
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

        Rating.objects.create(post=self.post, user=self.rater, value=3)
        res = self.client.get(url)
        self.assertEqual(res.data["value"], 3)

        res = self.client.delete(url)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(Rating.objects.filter(post=self.post).exists())

    def test_delete_my_rating_when_not_rated_404(self):
        """Test DELETE /api/posts/<pk>/ratings/me/ answers 404 when the viewer never rated."""
        other = create_user(email="second@test.com", password="password123")
        Rating.objects.create(post=self.post, user=other, value=5)

        res = self.client.delete(post_url("post-my-rating", self.post.id))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(Rating.objects.filter(post=self.post).count(), 1)

    def test_detail_includes_user_rating(self):
        self.client.post(self.rate_url, {"value": 4})
        res = self.client.get(post_detail_url(self.post.id))

        self.assertEqual(res.data["user_rating"], 4)
        self.assertEqual(res.data["rating_count"], 1)
        self.assertEqual(res.data["avg_rating"], 4.0)


# ----------------------------------------------------------------------
# G. Unit Tests (Threading and Scoring)
# ----------------------------------------------------------------------


class CommentTreeTests(SimpleTestCase):
    def test_replies_nested_in_order(self):
        comments = [
            {"id": 1, "parent": None},
            {"id": 2, "parent": 1},
            {"id": 3, "parent": None},
            {"id": 4, "parent": 2},
            {"id": 5, "parent": 1},
        ]
        tree = build_comment_tree(comments)

        self.assertEqual([n["id"] for n in tree], [1, 3])
        self.assertEqual([n["id"] for n in tree[0]["replies"]], [2, 5])
        self.assertEqual([n["id"] for n in tree[0]["replies"][0]["replies"]], [4])

    def test_orphan_becomes_root(self):
        """Test a reply whose parent is missing is shown at the top level."""
        tree = build_comment_tree([{"id": 7, "parent": 99}])
        self.assertEqual([n["id"] for n in tree], [7])

    def test_input_is_not_mutated(self):
        comments = [{"id": 1, "parent": None}]
        build_comment_tree(comments)
        self.assertNotIn("replies", comments[0])


class ScoringTests(SimpleTestCase):
    def test_trending_score_weights(self):
        self.assertAlmostEqual(trending_score(10, 10, 5), 4 + 3 + 10)
        self.assertEqual(trending_score(0, 0, None), 0)

    def test_relevance_title_beats_content(self):
        title_hit = Post(title="Zelda", content="", views=0, tags=[])
        body_hit = Post(title="Other", content="zelda inside", views=0, tags=[])

        self.assertEqual(relevance_score(title_hit, "Zelda", 0, 0), 100)
        self.assertEqual(relevance_score(body_hit, "zelda", 0, 0), 10)
