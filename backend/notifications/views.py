import logging

from django.db.models import Count
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from gamehub.exceptions import SelfActionError
from gamehub.pagination import get_page_params, paginate

from .models import Notification
from .serializers import NotificationCreateSerializer, NotificationSerializer
from .services import notify

logger = logging.getLogger(__name__)


def _truthy(value):
    return str(value).lower() in ("1", "true", "yes")


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def notification_list_create(request):
    """
    GET: The current user's notifications, newest first.
         Filters: unread_only, type. Paginated with page/limit.
    POST: Send a notification from the current user to somebody else.
    """
    if request.method == "GET":
        page, limit = get_page_params(request)
        queryset = Notification.objects.filter(recipient=request.user).select_related("actor")

        if _truthy(request.query_params.get("unread_only", "")):
            queryset = queryset.filter(is_read=False)

        notification_type = request.query_params.get("type")
        if notification_type:
            if notification_type not in Notification.Type.values:
                return Response(
                    {"detail": f"Unknown notification type: {notification_type}."},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            queryset = queryset.filter(type=notification_type)

        notifications, total, total_pages = paginate(queryset, page, limit)
        unread_count = Notification.objects.filter(recipient=request.user, is_read=False).count()

        return Response(
            {
                "notifications": NotificationSerializer(notifications, many=True).data,
                "pagination": {
                    "current_page": page,
                    "total_pages": total_pages,
                    "total": total,
                    "has_next": page < total_pages,
                    "has_prev": page > 1,
                },
                "unread_count": unread_count,
            }
        )

    serializer = NotificationCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    recipient = serializer.validated_data.pop("recipient")
    if recipient.pk == request.user.pk:
        raise SelfActionError("You cannot send a notification to yourself.")

    notification = notify(recipient, request.user, **serializer.validated_data)
    return Response(NotificationSerializer(notification).data, status=status.HTTP_201_CREATED)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def notification_stats(request):
    queryset = Notification.objects.filter(recipient=request.user)
    total = queryset.count()
    unread = queryset.filter(is_read=False).count()
    breakdown = {
        row["type"]: row["count"]
        for row in queryset.order_by().values("type").annotate(count=Count("id"))
    }
    return Response(
        {
            "total_count": total,
            "unread_count": unread,
            "read_count": total - unread,
            "type_breakdown": breakdown,
        }
    )


@api_view(["PUT", "PATCH"])
@permission_classes([IsAuthenticated])
def notification_mark_read(request, pk):
    # Other users' notifications are indistinguishable from missing ones
    notification = get_object_or_404(Notification, pk=pk, recipient=request.user)
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=["is_read", "updated_at"])
    return Response(NotificationSerializer(notification).data)


@api_view(["PUT", "PATCH"])
@permission_classes([IsAuthenticated])
def notification_mark_all_read(request):
    updated = Notification.objects.filter(recipient=request.user, is_read=False).update(
        is_read=True
    )
    logger.info("User %s marked %s notifications as read", request.user.pk, updated)
    return Response({"updated": updated})


@api_view(["DELETE"])
@permission_classes([IsAuthenticated])
def notification_delete(request, pk):
    notification = get_object_or_404(Notification, pk=pk, recipient=request.user)
    notification.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
