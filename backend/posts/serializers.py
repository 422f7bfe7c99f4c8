import bleach
from rest_framework import serializers

from users.serializers import UserSummarySerializer

from .models import RATING_MAX, RATING_MIN, Comment, Post, Rating
from .tree import build_comment_tree

# --- Content sanitizing ---

ALLOWED_TAGS = set(bleach.sanitizer.ALLOWED_TAGS) | {
    "p",
    "br",
    "h1",
    "h2",
    "h3",
    "h4",
    "ul",
    "ol",
    "li",
    "u",
    "s",
    "pre",
    "hr",
    "span",
    "img",
}
ALLOWED_ATTRIBUTES = {
    "a": ["href", "title", "rel", "target"],
    "img": ["src", "alt", "title"],
    "abbr": ["title"],
    "acronym": ["title"],
}
EXCERPT_LENGTH = 300


def clean_html(value):
    """Strip every tag/attribute outside the allow-list (e.g. <script>)."""
    return bleach.clean(value, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES, strip=True)


def make_excerpt(html):
    text = " ".join(bleach.clean(html, tags=set(), strip=True).split())
    if len(text) <= EXCERPT_LENGTH:
        return text
    return text[: EXCERPT_LENGTH - 3].rstrip() + "..."


def _viewer(serializer):
    request = serializer.context.get("request")
    if request is None or not request.user.is_authenticated:
        return None
    return request.user


# ------------------------------------
# --- Comment Serializers ---
# ------------------------------------


class CommentSerializer(serializers.ModelSerializer):
    author = UserSummarySerializer(read_only=True)
    likes_count = serializers.SerializerMethodField()
    dislikes_count = serializers.SerializerMethodField()
    is_liked = serializers.SerializerMethodField()
    is_disliked = serializers.SerializerMethodField()

    class Meta:
        model = Comment
        # 'post' is required on creation; 'parent' is only set for replies
        fields = (
            "id",
            "post",
            "parent",
            "author",
            "content",
            "likes_count",
            "dislikes_count",
            "is_liked",
            "is_disliked",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "author", "created_at", "updated_at")

    # .all() so prefetched likes/dislikes are reused instead of re-queried
    def get_likes_count(self, obj):
        return len(obj.likes.all())

    def get_dislikes_count(self, obj):
        return len(obj.dislikes.all())

    def get_is_liked(self, obj):
        viewer = _viewer(self)
        return viewer is not None and any(u.pk == viewer.pk for u in obj.likes.all())

    def get_is_disliked(self, obj):
        viewer = _viewer(self)
        return viewer is not None and any(u.pk == viewer.pk for u in obj.dislikes.all())

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError("Comment cannot be empty.")
        return value.strip()

    def validate(self, attrs):
        """A reply must stay in the same post as the comment it answers."""
        parent = attrs.get("parent")
        post = attrs.get("post")
        if parent is not None and post is not None and parent.post_id != post.id:
            raise serializers.ValidationError(
                {"parent": "The parent comment belongs to a different post."}
            )
        return attrs


class CommentUpdateSerializer(serializers.ModelSerializer):
    """Only the text of a comment can change after it has been posted."""

    class Meta:
        model = Comment
        fields = ("content",)

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError("Comment cannot be empty.")
        return value.strip()


def serialize_comment_tree(comments, context=None):
    """Serialize comments of one post (oldest first) and nest the replies."""
    flat = CommentSerializer(comments, many=True, context=context or {}).data
    return build_comment_tree(flat)


# ------------------------------------
# --- Post Serializers ---
# ------------------------------------


# ----------------- 1. BASE/LIST SERIALIZER -----------------
class PostListSerializer(serializers.ModelSerializer):
    author = UserSummarySerializer(read_only=True)
    url = serializers.SerializerMethodField()
    likes_count = serializers.SerializerMethodField()
    comments_count = serializers.SerializerMethodField()
    avg_rating = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = (
            "id",
            "author",
            "title",
            "excerpt",
            "cover_image_url",
            "tags",
            "game_id",
            "game_name",
            "views",
            "likes_count",
            "comments_count",
            "avg_rating",
            "url",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields

    def get_url(self, obj):
        """Generates the combined slug-ID URL for the post."""
        return obj.get_url()

    # Querysets annotated in the views carry these values already
    def get_likes_count(self, obj):
        if hasattr(obj, "likes_count"):
            return obj.likes_count
        return obj.likes.count()

    def get_comments_count(self, obj):
        if hasattr(obj, "comments_count"):
            return obj.comments_count
        return obj.comments.count()

    def get_avg_rating(self, obj):
        if hasattr(obj, "avg_rating"):
            return round(float(obj.avg_rating or 0), 2)
        return round(obj.rating_summary()[0], 2)


# ----------------- 2. DETAIL SERIALIZER -----------------
class PostDetailSerializer(PostListSerializer):
    comments = serializers.SerializerMethodField()
    rating_count = serializers.SerializerMethodField()
    is_liked = serializers.SerializerMethodField()
    is_saved = serializers.SerializerMethodField()
    user_rating = serializers.SerializerMethodField()

    class Meta(PostListSerializer.Meta):
        fields = PostListSerializer.Meta.fields + (
            "content",
            "comments",
            "rating_count",
            "is_liked",
            "is_saved",
            "user_rating",
        )
        read_only_fields = fields

    def get_comments(self, obj):
        comments = obj.comments.select_related("author").prefetch_related("likes", "dislikes")
        return serialize_comment_tree(comments, self.context)

    def get_rating_count(self, obj):
        return obj.ratings.count()

    def get_is_liked(self, obj):
        viewer = _viewer(self)
        return viewer is not None and obj.likes.filter(pk=viewer.pk).exists()

    def get_is_saved(self, obj):
        viewer = _viewer(self)
        return viewer is not None and obj.saved_by.filter(pk=viewer.pk).exists()

    def get_user_rating(self, obj):
        viewer = _viewer(self)
        if viewer is None:
            return None
        rating = obj.ratings.filter(user=viewer).first()
        return rating.value if rating else None


# ----------------- 3. Write SERIALIZER -----------------
class PostWriteSerializer(serializers.ModelSerializer):
    """
    Serializer used for creating (POST) and updating (PUT/PATCH) a Post.
    The author is set in the view from request.user.
    """

    tags = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False
    )
    url = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = (
            "id",
            "title",
            "content",
            "excerpt",
            "cover_image_url",
            "tags",
            "game_id",
            "game_name",
            "url",
        )
        read_only_fields = ["id", "url"]
        # 'slug' is generated in Post.save()

    def get_url(self, obj):
        return obj.get_url()

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title cannot be blank.")
        return value

    def validate_content(self, value):
        cleaned = clean_html(value)
        if not cleaned.strip():
            raise serializers.ValidationError("Content cannot be blank.")
        return cleaned

    def validate_tags(self, value):
        # Normalised, de-duplicated, order kept
        seen = []
        for tag in value:
            tag = tag.strip().lower()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    def create(self, validated_data):
        if not validated_data.get("excerpt"):
            validated_data["excerpt"] = make_excerpt(validated_data["content"])
        return super().create(validated_data)

    def update(self, instance, validated_data):
        # An excerpt that was generated follows the content; a hand-written one is kept
        if "content" in validated_data:
            excerpt = validated_data.get("excerpt")
            generated = not instance.excerpt or instance.excerpt == make_excerpt(instance.content)
            if excerpt == "" or (excerpt is None and generated):
                validated_data["excerpt"] = make_excerpt(validated_data["content"])
        return super().update(instance, validated_data)


# ------------------------------------
# --- Rating Serializers ---
# ------------------------------------


class RatingSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Rating
        fields = ("id", "post", "user", "value", "created_at", "updated_at")
        read_only_fields = fields


class RatingWriteSerializer(serializers.Serializer):
    value = serializers.IntegerField(min_value=RATING_MIN, max_value=RATING_MAX)
