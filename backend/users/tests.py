from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.core import mail
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode
from rest_framework import status
from rest_framework.test import APIClient

from notifications.models import Notification
from posts.models import Comment, Post, Rating

User = get_user_model()

USERS_URL = reverse("users")
REGISTER_URL = reverse("register")
LOGIN_URL = reverse("login")
ME_URL = reverse("me")
ME_STATS_URL = reverse("me-stats")
SEARCH_URL = reverse("user-search")
FORGOT_PASSWORD_URL = reverse("forgot-password")


def user_url(name, user_id):
    return reverse(name, kwargs={"pk": user_id})


def reset_url(user, token=None):
    uidb64 = urlsafe_base64_encode(force_bytes(user.pk))
    token = token or default_token_generator.make_token(user)
    return reverse("reset-password", kwargs={"uidb64": uidb64, "token": token})


def create_user(**params):
    """Create and return a new regular user."""
    return User.objects.create_user(**params)


# ----------------------------------------------------------------------
# A. Registration and Login
# ----------------------------------------------------------------------


class AuthAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.payload = {
            "email": "newplayer@test.com",
            "username": "newplayer",
            "password": "strongpass1",
        }

    def test_register_success(self):
        """Test POST /api/users/register/ creates a user and returns an access token."""
        res = self.client.post(REGISTER_URL, self.payload)

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["username"], "newplayer")
        self.assertIn("token", res.data)
        self.assertNotIn("password", res.data)

        user = User.objects.get(email="newplayer@test.com")
        self.assertTrue(user.check_password("strongpass1"))

    def test_register_cannot_create_inactive_account(self):
        """Test is_active sent at registration is ignored."""
        payload = dict(self.payload, is_active=False)
        res = self.client.post(REGISTER_URL, payload)

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertTrue(User.objects.get(email="newplayer@test.com").is_active)

    def test_register_duplicate_email_rejected(self):
        create_user(email="newplayer@test.com", password="password123", username="taken")
        res = self.client.post(REGISTER_URL, self.payload)

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", res.data)

    def test_register_short_password_rejected(self):
        """Test passwords shorter than six characters are refused."""
        payload = dict(self.payload, password="abc")
        res = self.client.post(REGISTER_URL, payload)

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", res.data)

    def test_login_returns_tokens_and_user(self):
        """Test POST /api/users/login/ with email and password."""
        create_user(email="player@test.com", password="password123", username="player")
        res = self.client.post(LOGIN_URL, {"email": "player@test.com", "password": "password123"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertIn("access", res.data)
        self.assertIn("refresh", res.data)
        self.assertEqual(res.data["user"]["username"], "player")

    def test_login_wrong_password_unauthorized(self):
        create_user(email="player@test.com", password="password123")
        res = self.client.post(LOGIN_URL, {"email": "player@test.com", "password": "nope"})
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_token_authenticates_requests(self):
        """Test the access token from login works as a Bearer token."""
        create_user(email="player@test.com", password="password123")
        res = self.client.post(LOGIN_URL, {"email": "player@test.com", "password": "password123"})

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {res.data['access']}")
        res = self.client.get(ME_URL)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["email"], "player@test.com")


# ----------------------------------------------------------------------
# B. Profiles and Accounts
# ----------------------------------------------------------------------


class ProfileAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = create_user(email="me@test.com", password="password123", username="me")
        self.other = create_user(email="other@test.com", password="password123", username="other")
        self.admin = User.objects.create_superuser(email="admin@test.com", password="adminpassword")

    def test_me_requires_authentication(self):
        res = self.client.get(ME_URL)
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_own_profile(self):
        """Test PATCH /api/users/me/ updates profile fields."""
        self.client.force_authenticate(user=self.user)
        res = self.client.patch(ME_URL, {"bio": "Speedrunner", "first_name": "Sam"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.bio, "Speedrunner")
        self.assertEqual(res.data["user"]["full_name"], "Sam")

    def test_update_password_is_hashed(self):
        self.client.force_authenticate(user=self.user)
        self.client.patch(ME_URL, {"password": "brandnew99"})

        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("brandnew99"))

    def test_regular_user_cannot_deactivate_through_profile(self):
        self.client.force_authenticate(user=self.user)
        self.client.patch(ME_URL, {"is_active": False})

        self.user.refresh_from_db()
        self.assertTrue(self.user.is_active)

    def test_public_profile_hides_email(self):
        """Test GET /api/users/<pk>/ is public and leaves out private fields."""
        res = self.client.get(user_url("user-detail", self.other.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["username"], "other")
        self.assertNotIn("email", res.data)

    def test_update_other_user_forbidden(self):
        self.client.force_authenticate(user=self.user)
        res = self.client.patch(user_url("user-detail", self.other.id), {"bio": "hacked"})
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_can_delete_user(self):
        self.client.force_authenticate(user=self.admin)
        res = self.client.delete(user_url("user-detail", self.other.id))

        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(id=self.other.id).exists())

    def test_user_list_admin_only(self):
        self.client.force_authenticate(user=self.user)
        self.assertEqual(self.client.get(USERS_URL).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        res = self.client.get(USERS_URL)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data), 3)

    def test_search_users(self):
        res = self.client.get(SEARCH_URL, {"q": "oth"})
        self.assertEqual([u["username"] for u in res.data], ["other"])

    def test_search_requires_query(self):
        res = self.client.get(SEARCH_URL)
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)


# ----------------------------------------------------------------------
# C. Following
# ----------------------------------------------------------------------


class FollowAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = create_user(email="fan@test.com", password="password123", username="fan")
        self.star = create_user(email="star@test.com", password="password123", username="star")
        self.client.force_authenticate(user=self.user)

    def test_follow_and_unfollow(self):
        """Test following updates both sides and unfollowing reverts it."""
        res = self.client.post(user_url("user-follow", self.star.id))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["followers_count"], 1)
        self.assertTrue(self.user.is_following(self.star))

        res = self.client.get(user_url("user-followers", self.star.id))
        self.assertEqual([u["username"] for u in res.data], ["fan"])
        res = self.client.get(user_url("user-following", self.user.id))
        self.assertEqual([u["username"] for u in res.data], ["star"])

        res = self.client.post(user_url("user-unfollow", self.star.id))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["followers_count"], 0)

    def test_follow_sends_notification(self):
        self.client.post(user_url("user-follow", self.star.id))

        notification = Notification.objects.get(recipient=self.star)
        self.assertEqual(notification.type, Notification.Type.FOLLOW)
        self.assertEqual(notification.actor, self.user)

    def test_follow_twice_rejected(self):
        self.client.post(user_url("user-follow", self.star.id))
        res = self.client.post(user_url("user-follow", self.star.id))

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["status_code"], 400)

    def test_follow_self_rejected(self):
        res = self.client.post(user_url("user-follow", self.user.id))
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unfollow_without_following_rejected(self):
        res = self.client.post(user_url("user-unfollow", self.star.id))
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)


# ----------------------------------------------------------------------
# D. Activity Stats
# ----------------------------------------------------------------------


class StatsAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = create_user(email="writer@test.com", password="password123")
        self.reader = create_user(email="reader@test.com", password="password123")
        self.other_reader = create_user(email="reader2@test.com", password="password123")

        first = Post.objects.create(author=self.user, title="First", content="a", views=10)
        second = Post.objects.create(author=self.user, title="Second", content="b", views=5)
        first.likes.add(self.reader, self.other_reader)
        second.likes.add(self.reader)
        Comment.objects.create(post=first, author=self.reader, content="Nice")
        Rating.objects.create(post=first, user=self.reader, value=5)
        Rating.objects.create(post=second, user=self.reader, value=4)

    def test_my_stats(self):
        """Test the totals cover every post written by the user."""
        self.client.force_authenticate(user=self.user)
        res = self.client.get(ME_STATS_URL)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(
            res.data,
            {
                "total_posts": 2,
                "total_views": 15,
                "total_likes": 3,
                "total_comments": 1,
                "avg_rating": 4.5,
            },
        )

    def test_stats_of_user_without_posts(self):
        res = self.client.get(user_url("user-stats", self.reader.id))

        self.assertEqual(res.data["total_posts"], 0)
        self.assertEqual(res.data["total_views"], 0)
        self.assertEqual(res.data["avg_rating"], 0)

    def test_user_posts(self):
        res = self.client.get(user_url("user-posts", self.user.id))
        self.assertEqual(len(res.data), 2)


# ----------------------------------------------------------------------
# E. Password Reset
# ----------------------------------------------------------------------


@override_settings(
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
    FRONTEND_URL="http://frontend.test",
)
class PasswordResetAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = create_user(email="forgetful@test.com", password="oldpassword")

    def test_forgot_password_sends_link(self):
        res = self.client.post(FORGOT_PASSWORD_URL, {"email": "forgetful@test.com"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["forgetful@test.com"])
        self.assertIn("http://frontend.test/reset-password/", mail.outbox[0].body)

    def test_forgot_password_unknown_email_same_answer(self):
        """Test an unknown address gets the same response and no email."""
        res = self.client.post(FORGOT_PASSWORD_URL, {"email": "nobody@test.com"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 0)

    def test_reset_password_with_valid_token(self):
        url = reset_url(self.user)
        self.assertTrue(self.client.get(url).data["valid"])

        res = self.client.post(url, {"password": "newpassword1"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("newpassword1"))
        # Confirmation email
        self.assertEqual(len(mail.outbox), 1)

    def test_reset_link_single_use(self):
        """Test a token stops working once the password has changed."""
        url = reset_url(self.user)
        self.client.post(url, {"password": "newpassword1"})

        self.assertFalse(self.client.get(url).data["valid"])
        res = self.client.post(url, {"password": "another123"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reset_password_bad_token(self):
        res = self.client.post(reset_url(self.user, token="bad-token"), {"password": "newpassword1"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
