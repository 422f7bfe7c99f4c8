from django.contrib.auth import get_user_model
from rest_framework import serializers

from users.serializers import UserSummarySerializer

from .models import Notification

User = get_user_model()


class NotificationSerializer(serializers.ModelSerializer):
    actor = UserSummarySerializer(read_only=True)

    class Meta:
        model = Notification
        fields = (
            "id",
            "recipient",
            "actor",
            "type",
            "post",
            "comment",
            "title",
            "message",
            "is_read",
            "data",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class NotificationCreateSerializer(serializers.ModelSerializer):
    """Manual notifications (e.g. mentions). The actor is always the caller."""

    recipient = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True))
    title = serializers.CharField(max_length=200, required=False, allow_blank=True)

    class Meta:
        model = Notification
        fields = ("recipient", "type", "post", "comment", "title", "message", "data")

    def validate_data(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Expected a JSON object.")
        return value
