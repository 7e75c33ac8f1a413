"""
Display ordering for a flat list of SubCategories.

Top-level entries come first, then nested entries grouped by parent id.
Within each group entries sort by sort_order, then name.
"""

import sys
import logging

from .taxonomy import is_top_level

# Unset sort_order sorts last within its group
MISSING_SORT_ORDER = sys.maxsize


def _sortable_id(value):
    """Key that orders ids numerically when possible, textually otherwise."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value, "")
    return (1, 0, str(value))


def display_sort_key(node):
    """
    Total sort key for one SubCategory.

    (group, parent, sort_order, folded name, name, id)
    """
    if is_top_level(node):
        group = (0, _sortable_id(None))
    else:
        group = (1, _sortable_id(node["parent_id"]))

    sort_order = node.get("sort_order")
    if sort_order is None:
        sort_order = MISSING_SORT_ORDER

    name = str(node.get("name") or "")
    return (group, sort_order, name.casefold(), name, _sortable_id(node.get("id")))


def find_dangling_children(nodes):
    """Return nested nodes whose parent is missing from the snapshot."""
    known_ids = {node.get("id") for node in nodes}
    return [
        node for node in nodes
        if not is_top_level(node) and node["parent_id"] not in known_ids
    ]


def order_for_display(nodes):
    """
    Arrange SubCategories for display.

    Nested nodes whose parent is not in the snapshot keep their literal
    parent_id for grouping; they are logged, not dropped or promoted.
    The input list is not modified.

    Args:
        nodes: Unordered list of SubCategory dictionaries

    Returns:
        New list in display order
    """
    for orphan in find_dangling_children(nodes):
        logging.warning(
            f"Subcategory {orphan.get('id')} '{orphan.get('name')}' references missing parent "
            f"{orphan['parent_id']}; listing it under that id"
        )

    return sorted(nodes, key=display_sort_key)


def format_hierarchy(nodes, categories=None):
    """
    Render SubCategories as indented text lines.

    Args:
        nodes: SubCategory dictionaries (any order)
        categories: Optional Category dictionaries used for category names

    Returns:
        List of strings, one per node
    """
    category_names = {c.get("id"): c.get("name") for c in (categories or [])}
    lines = []
    for node in order_for_display(nodes):
        status = "" if node.get("is_active", True) else " (inactive)"
        if is_top_level(node):
            category = category_names.get(node.get("category_id"), node.get("category_id"))
            lines.append(f"{node.get('name')} [{node.get('slug')}] id={node.get('id')} category={category}{status}")
        else:
            lines.append(f"  └ {node.get('name')} [{node.get('slug')}] id={node.get('id')} parent={node['parent_id']}{status}")
    return lines
