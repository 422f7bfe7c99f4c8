from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from posts.models import Post

from .models import Notification
from .services import notify, notify_post_liked, preview

User = get_user_model()

NOTIFICATIONS_URL = reverse("notification-list-create")
STATS_URL = reverse("notification-stats")
READ_ALL_URL = reverse("notification-read-all")


def notification_url(name, notification_id):
    return reverse(name, kwargs={"pk": notification_id})


def create_user(**params):
    return User.objects.create_user(**params)


# ----------------------------------------------------------------------
# A. Service Tests
# ----------------------------------------------------------------------


class NotifyServiceTests(TestCase):
    def setUp(self):
        self.author = create_user(email="author@test.com", password="password123")
        self.fan = create_user(email="fan@test.com", password="password123")
        self.post = Post.objects.create(author=self.author, title="Portal 2", content="x")

    def test_notify_creates_record_with_default_title(self):
        notification = notify(self.author, self.fan, Notification.Type.FOLLOW, "fan followed you")

        self.assertIsNotNone(notification)
        self.assertEqual(notification.title, "New follower")
        self.assertFalse(notification.is_read)
        self.assertEqual(notification.data, {})

    def test_self_notification_is_skipped(self):
        """Test acting on your own content never notifies you."""
        self.assertIsNone(notify_post_liked(self.post, self.author))
        self.assertEqual(Notification.objects.count(), 0)

    def test_post_like_payload(self):
        notification = notify_post_liked(self.post, self.fan)

        self.assertEqual(notification.recipient, self.author)
        self.assertEqual(notification.post, self.post)
        self.assertEqual(notification.data, {"post_title": "Portal 2"})

    def test_preview_truncates(self):
        self.assertEqual(preview("short"), "short")
        self.assertEqual(preview("x" * 60), "x" * 50 + "...")


# ----------------------------------------------------------------------
# B. Inbox API Tests
# ----------------------------------------------------------------------


class NotificationAPITests(TestCase):
    """Test the authenticated user's notification inbox."""

    def setUp(self):
        self.client = APIClient()
        self.user = create_user(email="me@test.com", password="password123")
        self.actor = create_user(email="actor@test.com", password="password123")
        self.stranger = create_user(email="stranger@test.com", password="password123")
        self.client.force_authenticate(user=self.user)

        self.follow = notify(self.user, self.actor, Notification.Type.FOLLOW, "followed you")
        self.like = notify(self.user, self.actor, Notification.Type.LIKE, "liked your review")
        self.foreign = notify(self.stranger, self.actor, Notification.Type.LIKE, "not yours")

    def test_list_requires_authentication(self):
        self.client.force_authenticate(user=None)
        res = self.client.get(NOTIFICATIONS_URL)
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_own_notifications_newest_first(self):
        """Test GET /api/notifications/ only returns the caller's notifications."""
        res = self.client.get(NOTIFICATIONS_URL)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        ids = [n["id"] for n in res.data["notifications"]]
        self.assertEqual(ids, [self.like.id, self.follow.id])
        self.assertEqual(res.data["unread_count"], 2)
        self.assertEqual(res.data["pagination"]["total"], 2)
        self.assertEqual(res.data["notifications"][0]["actor"]["id"], self.actor.id)

    def test_list_filters(self):
        self.follow.is_read = True
        self.follow.save()

        res = self.client.get(NOTIFICATIONS_URL, {"unread_only": "true"})
        self.assertEqual([n["id"] for n in res.data["notifications"]], [self.like.id])

        res = self.client.get(NOTIFICATIONS_URL, {"type": "follow"})
        self.assertEqual([n["id"] for n in res.data["notifications"]], [self.follow.id])

    def test_list_unknown_type_rejected(self):
        res = self.client.get(NOTIFICATIONS_URL, {"type": "poke"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_pagination(self):
        res = self.client.get(NOTIFICATIONS_URL, {"limit": 1})

        self.assertEqual(len(res.data["notifications"]), 1)
        self.assertEqual(res.data["pagination"]["total_pages"], 2)
        self.assertTrue(res.data["pagination"]["has_next"])
        self.assertFalse(res.data["pagination"]["has_prev"])

    def test_stats(self):
        self.like.is_read = True
        self.like.save()
        res = self.client.get(STATS_URL)

        self.assertEqual(
            res.data,
            {
                "total_count": 2,
                "unread_count": 1,
                "read_count": 1,
                "type_breakdown": {"follow": 1, "like": 1},
            },
        )

    def test_mark_read(self):
        res = self.client.patch(notification_url("notification-read", self.like.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["is_read"])
        self.like.refresh_from_db()
        self.assertTrue(self.like.is_read)

    def test_mark_read_other_users_notification_404(self):
        """Test another user's notification looks like a missing one."""
        res = self.client.patch(notification_url("notification-read", self.foreign.id))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_mark_all_read(self):
        res = self.client.put(READ_ALL_URL)

        self.assertEqual(res.data["updated"], 2)
        self.assertFalse(Notification.objects.filter(recipient=self.user, is_read=False).exists())
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_delete(self):
        res = self.client.delete(notification_url("notification-delete", self.follow.id))

        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Notification.objects.filter(id=self.follow.id).exists())

    def test_delete_other_users_notification_404(self):
        res = self.client.delete(notification_url("notification-delete", self.foreign.id))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Notification.objects.filter(id=self.foreign.id).exists())


# ----------------------------------------------------------------------
# C. Manual Notification Tests
# ----------------------------------------------------------------------


class CreateNotificationAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = create_user(email="sender@test.com", password="password123")
        self.target = create_user(email="target@test.com", password="password123")
        self.client.force_authenticate(user=self.user)

    def test_create_mention(self):
        """Test POST /api/notifications/ sends a notification from the caller."""
        payload = {
            "recipient": self.target.id,
            "type": "mention",
            "message": "sender mentioned you",
            "data": {"context": "review"},
        }
        res = self.client.post(NOTIFICATIONS_URL, payload)

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        notification = Notification.objects.get(recipient=self.target)
        self.assertEqual(notification.actor, self.user)
        self.assertEqual(notification.title, "New mention")
        self.assertEqual(notification.data, {"context": "review"})

    def test_create_for_self_rejected(self):
        payload = {"recipient": self.user.id, "type": "mention", "message": "me"}
        res = self.client.post(NOTIFICATIONS_URL, payload)

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Notification.objects.count(), 0)

    def test_create_invalid_type_rejected(self):
        payload = {"recipient": self.target.id, "type": "poke", "message": "hi"}
        res = self.client.post(NOTIFICATIONS_URL, payload)
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
