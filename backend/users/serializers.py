from django.contrib.auth.hashers import make_password
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Full user representation, used for the owner and for admins."""

    full_name = serializers.SerializerMethodField()
    followers_count = serializers.SerializerMethodField()
    following_count = serializers.SerializerMethodField()

    # Define password explicitly as write-only for security and input control
    password = serializers.CharField(
        write_only=True,
        required=True,
        style={"input_type": "password"},
    )

    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "full_name",
            "avatar_url",
            "bio",
            "followers_count",
            "following_count",
            "is_staff",
            "is_active",
            "created_at",
            "updated_at",
            "password",
        )
        read_only_fields = ["id", "full_name", "is_staff", "created_at", "updated_at"]

    def get_full_name(self, obj):
        return obj.get_full_name()

    def get_followers_count(self, obj):
        return obj.followers.count()

    def get_following_count(self, obj):
        return obj.following.count()

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)

    def update(self, instance, validated_data):
        # Hash a new password and save everything in a single database call
        raw_password = validated_data.pop("password", None)
        if raw_password:
            validated_data["password"] = make_password(raw_password)
        return super().update(instance, validated_data)


class UserSerializerWithToken(UserSerializer):
    token = serializers.SerializerMethodField(read_only=True)

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ("token",)

    def get_token(self, obj):
        token = RefreshToken.for_user(obj)
        return str(token.access_token)


class PublicUserSerializer(serializers.ModelSerializer):
    """What anybody may see about a user: no email, no flags."""

    followers_count = serializers.SerializerMethodField()
    following_count = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = (
            "id",
            "username",
            "avatar_url",
            "bio",
            "followers_count",
            "following_count",
            "created_at",
        )
        read_only_fields = fields

    def get_followers_count(self, obj):
        return obj.followers.count()

    def get_following_count(self, obj):
        return obj.following.count()


class UserSummarySerializer(serializers.ModelSerializer):
    """Minimal user shape embedded in posts, comments, ratings and notifications."""

    class Meta:
        model = User
        fields = ("id", "username", "avatar_url")
        read_only_fields = fields


class LoginSerializer(TokenObtainPairSerializer):
    """Simple JWT login that also returns the authenticated user."""

    def validate(self, attrs):
        data = super().validate(attrs)
        data["user"] = UserSerializer(self.user).data
        return data


class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()


class PasswordResetConfirmSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True, style={"input_type": "password"})

    def validate_password(self, value):
        validate_password(value)
        return value
