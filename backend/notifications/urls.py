from django.urls import path

from .views import (
    notification_delete,
    notification_list_create,
    notification_mark_all_read,
    notification_mark_read,
    notification_stats,
)

urlpatterns = [
    # Endpoint: /api/notifications/
    # Methods: GET (current user's inbox), POST (send a notification)
    path("", notification_list_create, name="notification-list-create"),
    path("stats/", notification_stats, name="notification-stats"),
    path("read-all/", notification_mark_all_read, name="notification-read-all"),
    path("<int:pk>/read/", notification_mark_read, name="notification-read"),
    path("<int:pk>/", notification_delete, name="notification-delete"),
]
