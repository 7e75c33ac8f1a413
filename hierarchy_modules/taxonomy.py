"""
Category and SubCategory records for the two-level catalog taxonomy.

Records are plain dictionaries with canonical keys:

    id, name, slug, category_id, parent_id, sort_order, is_active, description

A SubCategory whose parent_id is None (or absent) is top-level. A nested
SubCategory points at a top-level SubCategory of the same category, so a tree
under a Category is never deeper than two levels.
"""

import re
import logging

from .errors import InvalidHierarchy

# Alternate spellings seen in backend payloads, checked in order
PARENT_KEYS = ("parent_id", "parentId", "parent_subcategory_id", "parentSubcategoryId")
PARENT_OBJECT_KEYS = ("parent", "parentSubcategory")
CATEGORY_KEYS = ("category_id", "categoryId")
SORT_ORDER_KEYS = ("sort_order", "sortOrder")
ACTIVE_KEYS = ("is_active", "isActive")


def _coerce_id(value):
    """Turn numeric strings into ints and blank values into None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None
        if value.isdigit():
            return int(value)
    return value


def _first_present(raw, keys):
    """Return (found, value) for the first key present in raw."""
    for key in keys:
        if key in raw:
            return True, raw[key]
    return False, None


def _parent_linkage(raw):
    """
    Return (found, parent_id) from any parent spelling in raw.

    The first non-null spelling wins. found is False only when no spelling
    is present at all.
    """
    found = False
    for key in PARENT_KEYS:
        if key in raw:
            found = True
            value = _coerce_id(raw[key])
            if value is not None:
                return True, value
    for key in PARENT_OBJECT_KEYS:
        if key in raw:
            found = True
            parent = raw[key]
            if isinstance(parent, dict) and parent.get("id") is not None:
                return True, _coerce_id(parent["id"])
    return found, None


def normalize_category(raw):
    """Normalize a Category payload to {id, name}."""
    return {
        "id": _coerce_id(raw.get("id")),
        "name": raw.get("name") or ""
    }


def normalize_subcategory(raw):
    """
    Normalize a SubCategory payload to canonical keys.

    parent_id stays absent when the payload carries no parent linkage at all,
    so write responses that omit it can be told apart from an explicit null.

    Args:
        raw: SubCategory dictionary as returned by the backend

    Returns:
        New dictionary with canonical keys
    """
    node = {
        "id": _coerce_id(raw.get("id")),
        "name": raw.get("name") or "",
        "slug": raw.get("slug") or "",
    }

    found, category_id = _first_present(raw, CATEGORY_KEYS)
    if not found and isinstance(raw.get("category"), dict):
        found, category_id = True, raw["category"].get("id")
    node["category_id"] = _coerce_id(category_id)

    found, parent_id = _parent_linkage(raw)
    if found:
        node["parent_id"] = parent_id

    found, sort_order = _first_present(raw, SORT_ORDER_KEYS)
    if found and sort_order is not None:
        try:
            node["sort_order"] = int(sort_order)
        except (TypeError, ValueError):
            logging.debug(f"Ignoring non-integer sort_order {sort_order!r} on subcategory {node['id']}")

    found, is_active = _first_present(raw, ACTIVE_KEYS)
    if not found:
        is_active = True
    elif isinstance(is_active, str):
        is_active = is_active.strip().lower() in ("true", "1", "yes")
    node["is_active"] = bool(is_active)

    if raw.get("description"):
        node["description"] = raw["description"]

    return node


def is_top_level(node):
    """True when the node has no parent."""
    return node.get("parent_id") is None


def slugify(text):
    """
    Build a URL-safe slug from a display name.

    Examples:
        'Polarized Lenses' -> 'polarized-lenses'
        'Kids & Teens'     -> 'kids--teens'
    """
    slug = re.sub(r"\s+", "-", (text or "").strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def validate_subcategory_payload(payload):
    """
    Check required fields of a create/update payload.

    Raises:
        InvalidHierarchy: If name, slug or category is missing, or parent_id
            is not a positive integer
    """
    if not str(payload.get("name") or "").strip():
        raise InvalidHierarchy("SubCategory name is required")
    if not str(payload.get("slug") or "").strip():
        raise InvalidHierarchy("SubCategory slug is required")
    category_id = payload.get("category_id")
    if category_id in (None, ""):
        raise InvalidHierarchy("Category is required")
    if isinstance(category_id, bool) or not isinstance(category_id, int):
        raise InvalidHierarchy(f"Invalid category id: {category_id!r}")

    parent_id = payload.get("parent_id")
    if parent_id is not None:
        if isinstance(parent_id, bool) or not isinstance(parent_id, int) or parent_id <= 0:
            raise InvalidHierarchy(f"Invalid parent subcategory id: {parent_id!r}")


def validate_parent_assignment(node, parent):
    """
    Check that parent may hold node as a nested SubCategory.

    Args:
        node: SubCategory being created or edited (id may be None on create)
        parent: Proposed parent SubCategory

    Raises:
        InvalidHierarchy: On self-parenting, a nested parent or a parent
            from another category
    """
    if node.get("id") is not None and node.get("id") == parent.get("id"):
        raise InvalidHierarchy("A subcategory cannot be its own parent")

    if not is_top_level(parent):
        raise InvalidHierarchy(
            f"'{parent.get('name')}' is already nested under subcategory {parent.get('parent_id')}; "
            "only top-level subcategories can be parents"
        )

    if node.get("category_id") != parent.get("category_id"):
        raise InvalidHierarchy(
            f"Parent '{parent.get('name')}' belongs to category {parent.get('category_id')}, "
            f"not {node.get('category_id')}"
        )


def find_sibling_conflicts(nodes, candidate, exclude_id=None):
    """
    Find existing siblings that clash with candidate on name or slug.

    Siblings share category_id and parent_id (all top-level nodes of a
    category are siblings of each other). Names compare case-insensitively.

    Args:
        nodes: Snapshot of SubCategories
        candidate: Proposed SubCategory (name, slug, category_id, parent_id)
        exclude_id: Id of the node being edited, ignored in the snapshot

    Returns:
        List of conflicting nodes, empty when the candidate is unique
    """
    name = str(candidate.get("name") or "").strip().lower()
    slug = str(candidate.get("slug") or "").strip()
    parent_id = candidate.get("parent_id")
    category_id = candidate.get("category_id")

    conflicts = []
    for node in nodes:
        if exclude_id is not None and node.get("id") == exclude_id:
            continue
        if node.get("category_id") != category_id or node.get("parent_id") != parent_id:
            continue
        same_name = bool(name) and str(node.get("name") or "").strip().lower() == name
        same_slug = bool(slug) and node.get("slug") == slug
        if same_name or same_slug:
            conflicts.append(node)
    return conflicts


def resolve_lineage(node, nodes):
    """
    Locate a SubCategory inside its two-level tree.

    Args:
        node: SubCategory to locate
        nodes: Snapshot used to look up the parent's category when the node
            itself does not carry one

    Returns:
        Dictionary with category_id, top_level_id and nested_id (None when
        the node is top-level)
    """
    if is_top_level(node):
        return {
            "category_id": node.get("category_id"),
            "top_level_id": node.get("id"),
            "nested_id": None
        }

    category_id = node.get("category_id")
    if category_id is None:
        parent = next((n for n in nodes if n.get("id") == node["parent_id"]), None)
        if parent is not None:
            category_id = parent.get("category_id")

    return {
        "category_id": category_id,
        "top_level_id": node["parent_id"],
        "nested_id": node.get("id")
    }
