"""
Notification fan-out.

Views call the helpers below after an interaction has been stored. A
notification is only written when somebody *else* interacted with the
recipient's content; acting on your own post, comment or profile is silent.
"""

import logging

from .models import Notification

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 50

TITLES = {
    Notification.Type.LIKE.value: "New like",
    Notification.Type.COMMENT.value: "New comment",
    Notification.Type.REPLY.value: "New reply",
    Notification.Type.FOLLOW.value: "New follower",
    Notification.Type.POST_RATING.value: "New rating",
    Notification.Type.MENTION.value: "New mention",
}


def preview(text, length=PREVIEW_LENGTH):
    text = (text or "").strip()
    return text[:length] + ("..." if len(text) > length else "")


def notify(recipient, actor, type, message, post=None, comment=None, data=None, title=None):
    """
    Create a notification for `recipient` unless it would be self-addressed.

    Returns the created Notification, or None when nothing was written.
    """
    if recipient is None or actor is None or recipient.pk == actor.pk:
        return None

    notification = Notification.objects.create(
        recipient=recipient,
        actor=actor,
        type=type,
        post=post,
        comment=comment,
        title=title or TITLES[Notification.Type(type).value],
        message=message,
        data=data or {},
    )
    logger.info(
        "Notification %s (%s) sent to user %s from user %s",
        notification.pk,
        type,
        recipient.pk,
        actor.pk,
    )
    return notification


# --- Interaction helpers ---


def notify_post_liked(post, actor):
    return notify(
        post.author,
        actor,
        Notification.Type.LIKE,
        f'{actor.username} liked your review "{post.title}"',
        post=post,
        data={"post_title": post.title},
    )


def notify_comment_liked(comment, actor):
    return notify(
        comment.author,
        actor,
        Notification.Type.LIKE,
        f'{actor.username} liked your comment on "{comment.post.title}"',
        post=comment.post,
        comment=comment,
        data={"post_title": comment.post.title, "comment_preview": preview(comment.content)},
    )


def notify_comment_created(comment):
    """Replies notify the parent comment's author, top-level comments the post's author."""
    post = comment.post
    data = {"post_title": post.title, "comment_preview": preview(comment.content)}

    if comment.parent_id:
        return notify(
            comment.parent.author,
            comment.author,
            Notification.Type.REPLY,
            f'{comment.author.username} replied to your comment in "{post.title}"',
            post=post,
            comment=comment,
            data=data,
        )

    return notify(
        post.author,
        comment.author,
        Notification.Type.COMMENT,
        f'{comment.author.username} commented on your review "{post.title}"',
        post=post,
        comment=comment,
        data=data,
    )


def notify_followed(target, actor):
    return notify(
        target,
        actor,
        Notification.Type.FOLLOW,
        f"{actor.username} started following you",
    )


def notify_post_rated(rating):
    post = rating.post
    return notify(
        post.author,
        rating.user,
        Notification.Type.POST_RATING,
        f'{rating.user.username} rated your review "{post.title}" {rating.value} stars',
        post=post,
        data={"post_title": post.title, "rating": rating.value},
    )
