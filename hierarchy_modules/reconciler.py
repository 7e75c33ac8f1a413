"""
Write-side reconciliation for SubCategories.

Some backends accept parent_id on create/update but leave it out of the echoed
record. reconcile() fills it back in only when the field is missing entirely.
Uniqueness errors are classified against parent-scoped sibling uniqueness so
the operator learns whether the backend agrees with that model.
"""

import logging

from . import catalog_api
from .errors import ApiError, ConstraintViolation, InvalidHierarchy
from .taxonomy import (
    find_sibling_conflicts,
    slugify,
    validate_parent_assignment,
    validate_subcategory_payload,
)

SCOPE_SAME_PARENT = "same-parent"
SCOPE_GLOBAL = "global"

PARENT_SCOPE_PHRASES = ("parent", "sibling", "same level")
UNIQUENESS_PHRASES = ("already exists", "already exist", "duplicate", "unique", "taken", "in use")


def reconcile(server_result, requested_parent_id):
    """
    Fill in parent_id on a write response that omitted it.

    An explicit parent_id in the response, including None, is kept as is.

    Args:
        server_result: Normalized SubCategory returned by create/update
        requested_parent_id: parent_id that was sent (None for top-level)

    Returns:
        New SubCategory dictionary that always has a parent_id key
    """
    result = dict(server_result)
    if "parent_id" not in result:
        logging.debug(
            f"Response for subcategory {result.get('id')} omitted parent_id; "
            f"using requested value {requested_parent_id}"
        )
        result["parent_id"] = requested_parent_id
    return result


def mentions_parent_scope(error_message):
    """True when the backend wording refers to parent or sibling scoping."""
    text = (error_message or "").lower()
    return any(phrase in text for phrase in PARENT_SCOPE_PHRASES)


def is_uniqueness_error(status_code, error_message):
    """True for a duplicate name/slug rejection."""
    if status_code == 409:
        return True
    if status_code not in (400, 422):
        return False
    text = (error_message or "").lower()
    return any(phrase in text for phrase in UNIQUENESS_PHRASES)


def classify_write_conflict(error_message, requested_parent_id):
    """
    Decide what a uniqueness violation means for the requested placement.

    Args:
        error_message: Error text reported by the backend
        requested_parent_id: parent_id of the rejected write (None for top-level)

    Returns:
        Dictionary with "scope" ("same-parent" or "global") and "message"
    """
    detail = (error_message or "").strip() or "Name or slug already exists"

    if requested_parent_id is None:
        return {
            "scope": SCOPE_GLOBAL,
            "message": (
                f"{detail}. Top-level subcategory names and slugs must be unique within the category. "
                "The same name may be accepted as a nested subcategory under a parent."
            )
        }

    if mentions_parent_scope(error_message):
        return {
            "scope": SCOPE_SAME_PARENT,
            "message": (
                f"{detail}. A sibling under parent {requested_parent_id} already uses this name or slug. "
                "The same name or slug is allowed under a different parent."
            )
        }

    return {
        "scope": SCOPE_GLOBAL,
        "message": (
            f"{detail}. The backend may be enforcing name/slug uniqueness across the whole category "
            f"rather than per parent (requested parent {requested_parent_id})."
        )
    }


def build_payload(form):
    """
    Build a create/update payload from operator input.

    Slug is generated from the name when blank. Top-level nodes carry an
    explicit parent_id of None so an update can clear nesting.

    Args:
        form: Dictionary with name, slug, category_id, parent_id, is_active,
            sort_order and description (all optional here)

    Returns:
        Payload dictionary
    """
    name = str(form.get("name") or "").strip()
    slug = str(form.get("slug") or "").strip() or slugify(name)

    payload = {
        "name": name,
        "slug": slug,
        "category_id": _to_int(form.get("category_id")),
        "parent_id": _to_int(form.get("parent_id")),
        "is_active": bool(form.get("is_active", True)),
    }

    if form.get("sort_order") not in (None, ""):
        try:
            payload["sort_order"] = int(form["sort_order"])
        except (TypeError, ValueError):
            raise InvalidHierarchy(f"Invalid sort order: {form['sort_order']!r}")

    description = str(form.get("description") or "").strip()
    if description:
        payload["description"] = description

    return payload


def _to_int(value):
    """Cast form ids to int; blank becomes None, garbage is kept for validation."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return value


def _check_snapshot(payload, snapshot, existing_id):
    """Validate a payload against a snapshot of the category's SubCategories."""
    parent_id = payload.get("parent_id")
    if parent_id is not None:
        parent = next((n for n in snapshot if n.get("id") == parent_id), None)
        if parent is None:
            logging.warning(f"Parent subcategory {parent_id} is not in the current snapshot; leaving the check to the backend")
        else:
            validate_parent_assignment({**payload, "id": existing_id}, parent)

        if existing_id is not None and any(n.get("parent_id") == existing_id for n in snapshot):
            raise InvalidHierarchy(
                f"Subcategory {existing_id} has nested subcategories and cannot itself be nested"
            )

    conflicts = find_sibling_conflicts(snapshot, payload, exclude_id=existing_id)
    if conflicts:
        names = ", ".join(f"'{c.get('name')}' ({c.get('slug')})" for c in conflicts)
        classification = classify_write_conflict(
            f"Duplicate under the same parent: {names}", parent_id
        )
        raise ConstraintViolation(classification["message"], scope=classification["scope"])


def save_subcategory(cfg, form, existing_id=None, snapshot=None):
    """
    Create or update a SubCategory and reconcile the response.

    Args:
        cfg: Configuration dictionary
        form: Operator input (see build_payload)
        existing_id: Id of the SubCategory to update; None to create
        snapshot: Optional snapshot of SubCategories for client-side checks

    Returns:
        Reconciled SubCategory dictionary

    Raises:
        InvalidHierarchy: Payload or parent placement is invalid
        ConstraintViolation: Name/slug already used, with scope classification
        ApiError: Any other backend failure
    """
    payload = build_payload(form)
    validate_subcategory_payload(payload)

    if snapshot is not None:
        _check_snapshot(payload, snapshot, existing_id)

    try:
        if existing_id is None:
            result = catalog_api.create_subcategory(cfg, payload)
        else:
            result = catalog_api.update_subcategory(cfg, existing_id, payload)
    except ApiError as e:
        if not is_uniqueness_error(e.status_code, e.message):
            raise
        classification = classify_write_conflict(e.message, payload["parent_id"])
        logging.warning(f"Subcategory write rejected ({classification['scope']}): {e.message}")
        raise ConstraintViolation(
            classification["message"],
            scope=classification["scope"],
            status_code=e.status_code,
            payload=e.payload
        ) from e

    return reconcile(result, payload["parent_id"])
