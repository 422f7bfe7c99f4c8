from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Avg, Count
from django.utils.text import slugify

# We reference the custom User model using settings.AUTH_USER_MODEL
User = settings.AUTH_USER_MODEL

RATING_MIN = 1
RATING_MAX = 5


class Post(models.Model):
    """A game review."""

    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="posts",
    )

    # Essential post fields
    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, blank=True)
    content = models.TextField()
    excerpt = models.CharField(max_length=300, blank=True)
    cover_image_url = models.URLField(max_length=500, blank=True)
    tags = models.JSONField(default=list, blank=True)

    # Game metadata copied from the RAWG catalogue when the review is written
    game_id = models.PositiveIntegerField(null=True, blank=True)
    game_name = models.CharField(max_length=200, blank=True)

    # Interaction fields
    views = models.PositiveIntegerField(default=0)
    likes = models.ManyToManyField(User, related_name="liked_posts", blank=True)
    saved_by = models.ManyToManyField(User, related_name="saved_posts", blank=True)

    # Management fields
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Post"
        verbose_name_plural = "Posts"

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        # Automatically generate a slug from the title
        self.slug = slugify(self.title)
        super().save(*args, **kwargs)

    def get_url(self):
        return f"/posts/{self.slug}-{self.id}/"

    def rating_summary(self):
        """Returns (average, count). The average is 0 when nobody rated the post."""
        summary = self.ratings.aggregate(avg=Avg("value"), total=Count("id"))
        return float(summary["avg"] or 0), summary["total"]


class Comment(models.Model):
    # on_delete=models.CASCADE means if the Post is deleted, all its comments are also deleted.
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name="comments")
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name="comments")

    # Replies point at the comment they answer; top-level comments have no parent.
    # Deleting a comment removes the whole thread below it.
    parent = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="replies",
    )

    content = models.TextField()
    likes = models.ManyToManyField(User, related_name="liked_comments", blank=True)
    dislikes = models.ManyToManyField(User, related_name="disliked_comments", blank=True)

    # Management fields
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        # Oldest first, so the tree reads top-down in conversation order
        ordering = ["created_at", "id"]
        verbose_name = "Comment"
        verbose_name_plural = "Comments"

    def __str__(self):
        # Display the first 50 characters of the comment body
        snippet = self.content[:50].replace("\n", " ")
        return f"Comment: '{snippet}...' on Post: '{self.post.title[:30]}...'"


class Rating(models.Model):
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name="ratings")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="ratings")
    value = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(RATING_MIN), MaxValueValidator(RATING_MAX)]
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]
        constraints = [
            models.UniqueConstraint(fields=["post", "user"], name="unique_rating_per_user_per_post"),
        ]

    def __str__(self):
        return f"{self.value}/5 on {self.post_id} by {self.user_id}"
