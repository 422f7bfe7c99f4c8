from django.core.paginator import EmptyPage, Paginator

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50


def positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def get_page_params(request, default_limit=DEFAULT_PAGE_SIZE, max_limit=MAX_PAGE_SIZE):
    """Read `page` and `limit` from the query string, falling back to defaults."""
    page = positive_int(request.query_params.get("page"), 1)
    limit = min(positive_int(request.query_params.get("limit"), default_limit), max_limit)
    return page, limit


def paginate(items, page, limit):
    """
    Slice a queryset (or list) for the requested page.

    Returns (page_items, total, total_pages). Pages past the end are empty,
    not an error, and an empty collection has zero pages.
    """
    paginator = Paginator(items, limit)
    if not paginator.count:
        return [], 0, 0
    try:
        page_items = paginator.page(page).object_list
    except EmptyPage:
        page_items = []
    return page_items, paginator.count, paginator.num_pages
