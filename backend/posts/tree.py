def build_comment_tree(comments):
    """
    Nest a flat list of serialized comments into reply threads.

    Each item is a dict with at least `id` and `parent` (None for top-level
    comments). Every node gets a `replies` list. Input order is kept at every
    level, so passing comments oldest-first yields oldest-first threads.
    A comment whose parent is not in the list is promoted to the root level.
    """
    nodes = {}
    for comment in comments:
        node = dict(comment)
        node["replies"] = []
        nodes[node["id"]] = node

    roots = []
    for node in nodes.values():
        parent = nodes.get(node["parent"]) if node["parent"] is not None else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent["replies"].append(node)
    return roots