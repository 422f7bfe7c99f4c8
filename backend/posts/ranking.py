"""Scoring used by the trending list and the search endpoint."""

TRENDING_VIEWS_WEIGHT = 0.4
TRENDING_LIKES_WEIGHT = 0.3
TRENDING_RATING_WEIGHT = 2

SORT_OPTIONS = ("relevance", "newest", "oldest", "rating", "views", "likes")


def trending_score(views, likes, avg_rating):
    return (
        views * TRENDING_VIEWS_WEIGHT
        + likes * TRENDING_LIKES_WEIGHT
        + (avg_rating or 0) * TRENDING_RATING_WEIGHT
    )


def _match_score(value, query, exact, partial):
    value = (value or "").lower()
    if not value or query not in value:
        return 0
    return exact if value == query else partial


def tags_match(tags, query):
    """True when `query` is a substring of any tag, ignoring case."""
    query = query.lower()
    return any(query in str(tag).lower() for tag in tags or [])


def relevance_score(post, query, likes, avg_rating):
    """
    Title matches weigh most, then game name, tags and body text.
    Popular posts get a small boost on top.
    """
    query = query.lower()
    score = _match_score(post.title, query, 100, 50)
    score += _match_score(post.game_name, query, 80, 30)
    if tags_match(post.tags, query):
        score += 20
    if query in (post.content or "").lower():
        score += 10

    score += likes * 2
    score += post.views * 0.1
    score += (avg_rating or 0) * 5
    return score


def sort_posts(posts, sort, scores=None):
    """
    Order annotated posts (`likes_count`, `avg_rating`) in memory.

    Every key breaks ties by newest first.
    """
    if sort == "relevance" and scores is not None:
        # Newest first, then a stable sort on score keeps that as tie-break
        posts = sorted(posts, key=lambda p: p.created_at, reverse=True)
        return sorted(posts, key=lambda p: scores[p.pk], reverse=True)
    if sort == "oldest":
        return sorted(posts, key=lambda p: p.created_at)

    key_by_sort = {
        "rating": lambda p: p.avg_rating or 0,
        "views": lambda p: p.views,
        "likes": lambda p: p.likes_count,
    }
    posts = sorted(posts, key=lambda p: p.created_at, reverse=True)
    if sort in key_by_sort:
        posts = sorted(posts, key=key_by_sort[sort], reverse=True)
    return posts
