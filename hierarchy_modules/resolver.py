"""
Parent candidate resolution for nested SubCategories.

Two tiers, strictly sequential:

1. Primary: the backend's available-parents route.
2. Fallback: the full SubCategory list for the category, filtered here.

Any primary failure falls through to the fallback. A fallback failure is
raised to the caller, so an empty result always means "no top-level
SubCategories yet" and never "lookup failed". Nothing is cached; call again
whenever the category or the node being edited changes.
"""

import logging

from . import catalog_api
from .errors import CapabilityAbsent, HierarchyError
from .ordering import display_sort_key
from .taxonomy import is_top_level


def filter_parent_candidates(nodes, category_id, exclude_id=None):
    """
    Keep nodes that may legally act as a parent.

    Args:
        nodes: SubCategory dictionaries
        category_id: Category the parent must belong to
        exclude_id: Node being edited, never offered as its own parent

    Returns:
        List of top-level nodes of the category, input order preserved
    """
    return [
        node for node in nodes
        if node.get("category_id") == category_id
        and is_top_level(node)
        and (exclude_id is None or node.get("id") != exclude_id)
    ]


def _primary_lookup(cfg, category_id, exclude_id):
    """Return candidates from the available-parents route, or None to fall back."""
    try:
        nodes = catalog_api.list_available_parents(cfg, category_id, exclude_id=exclude_id)
        # The route is scoped to the category; records may leave it out
        return [
            node if node.get("category_id") is not None else {**node, "category_id": category_id}
            for node in nodes
        ]
    except CapabilityAbsent as e:
        logging.info(f"Available-parents lookup not deployed ({e}); using full subcategory list")
    except HierarchyError as e:
        logging.warning(f"Available-parents lookup failed for category {category_id}: {e}; using full subcategory list")
    return None


def resolve_available_parents(cfg, category_id, exclude_id=None):
    """
    Resolve the SubCategories that may be chosen as parent in a category.

    Args:
        cfg: Configuration dictionary
        category_id: Selected category
        exclude_id: Id of the SubCategory being edited, if any

    Returns:
        List of top-level SubCategories of category_id, excluding exclude_id.
        Empty when the category has no top-level SubCategories.

    Raises:
        HierarchyError: If the fallback list cannot be fetched
    """
    if category_id is None:
        return []

    candidates = _primary_lookup(cfg, category_id, exclude_id)
    tier = "available-parents"
    if candidates is None:
        candidates = catalog_api.list_all_subcategories(cfg, category_id=category_id)
        tier = "fallback"

    parents = filter_parent_candidates(candidates, category_id, exclude_id)
    dropped = len(candidates) - len(parents)
    if dropped and tier == "available-parents":
        logging.warning(f"Dropped {dropped} ineligible parent candidate(s) returned by available-parents route")

    logging.info(f"Resolved {len(parents)} parent candidate(s) for category {category_id} via {tier}")
    return parents


def resolve_children(cfg, parent_id):
    """
    Nested SubCategories under a top-level SubCategory, in display order.

    Records that omit parent_id are taken to belong to parent_id; records
    naming another parent are dropped.

    Returns:
        List of SubCategory dictionaries whose parent_id is parent_id
    """
    children = []
    for node in catalog_api.list_children(cfg, parent_id):
        if "parent_id" not in node:
            node = {**node, "parent_id": parent_id}
        if node["parent_id"] == parent_id:
            children.append(node)
    return sorted(children, key=display_sort_key)
