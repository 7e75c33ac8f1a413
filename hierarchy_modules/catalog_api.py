"""
Admin API operations for the Catalog Hierarchy Console.

This module contains all functions that talk to the catalog REST backend.
Responses arrive wrapped as {success, message, data: {...}}; every function
unwraps and normalizes them, so callers only ever see canonical records.
"""

import logging
import requests
from .config import get_api_settings, DEFAULT_PAGE_LIMIT, MAX_PAGES
from .errors import ApiError, CapabilityAbsent, TransientLookupFailure
from .taxonomy import normalize_category, normalize_subcategory

SUBCATEGORIES_PATH = "/admin/subcategories"
AVAILABLE_PARENTS_PATH = "/admin/subcategories/available-parents"
CATEGORIES_PATH = "/admin/categories"


def _error_message(payload, status_code):
    """Pull a readable message out of an error payload."""
    if isinstance(payload, dict):
        if payload.get("message"):
            return str(payload["message"])
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            if isinstance(first, dict):
                return str(first.get("msg") or first.get("message") or first)
            return str(first)
        if payload.get("error"):
            return str(payload["error"])
    return f"HTTP {status_code}"


def _request(cfg, method, path, params=None, payload=None, expect_body=True):
    """
    Send one request to the admin API.

    Args:
        cfg: Configuration dictionary
        method: "get", "post", "put" or "delete"
        path: Path below API_BASE_URL
        params: Optional query parameters
        payload: Optional JSON body
        expect_body: Whether a JSON body is required on success

    Returns:
        Decoded JSON body ({} when none was expected)

    Raises:
        TransientLookupFailure: Network error, timeout, 5xx or bad JSON
        ApiError: Any other failed status (is_route_missing set for 404)
    """
    base_url, headers, timeout = get_api_settings(cfg)
    url = f"{base_url}{path}"
    kwargs = {"headers": headers, "timeout": timeout}
    if params:
        kwargs["params"] = params
    if payload is not None:
        kwargs["json"] = payload

    logging.debug(f"{method.upper()} {url} params={params}")
    try:
        response = getattr(requests, method)(url, **kwargs)
    except requests.exceptions.Timeout as e:
        raise TransientLookupFailure(f"Timed out calling {method.upper()} {path}: {e}") from e
    except requests.exceptions.RequestException as e:
        raise TransientLookupFailure(f"Network error calling {method.upper()} {path}: {e}") from e

    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = None

    if status >= 400:
        message = _error_message(body, status)
        if status >= 500:
            raise TransientLookupFailure(message, status_code=status, payload=body)
        raise ApiError(message, status_code=status, payload=body)

    if isinstance(body, dict) and body.get("success") is False:
        raise ApiError(_error_message(body, status), status_code=status, payload=body)

    if body is None:
        if expect_body and status != 204:
            raise TransientLookupFailure(
                f"Invalid JSON in response to {method.upper()} {path}", status_code=status
            )
        return {}

    return body


def _unwrap_data(body):
    """Strip the {success, message, data} envelope."""
    if isinstance(body, dict) and "data" in body and body["data"] is not None:
        return body["data"]
    return body


def _extract_list(body, key):
    """Extract a list of records from a response body."""
    data = _unwrap_data(body)
    if isinstance(data, dict):
        data = data.get(key, data.get("items", []))
    if not isinstance(data, list):
        logging.warning(f"Expected a list of {key}, got {type(data).__name__}")
        return []
    return [item for item in data if isinstance(item, dict)]


def _extract_record(body, key):
    """Extract a single record from a response body."""
    data = _unwrap_data(body)
    if isinstance(data, dict) and isinstance(data.get(key), dict):
        return data[key]
    if isinstance(data, dict):
        return data
    raise TransientLookupFailure(f"Unexpected {key} response shape: {type(data).__name__}")


def list_categories(cfg):
    """
    Retrieve all categories.

    Returns:
        List of normalized Category dictionaries
    """
    body = _request(cfg, "get", CATEGORIES_PATH)
    categories = [normalize_category(c) for c in _extract_list(body, "categories")]
    logging.info(f"Retrieved {len(categories)} categories")
    return categories


def _fetch_subcategory_page(cfg, category_id, is_active, page, limit):
    """Fetch one page; returns (records, pagination block or {})."""
    params = {
        "page": page,
        "limit": limit,
        "sortBy": "sort_order",
        "sortOrder": "asc"
    }
    if category_id is not None:
        params["category_id"] = category_id
    if is_active is not None:
        params["is_active"] = str(bool(is_active)).lower()

    body = _request(cfg, "get", SUBCATEGORIES_PATH, params=params)
    records = [normalize_subcategory(s) for s in _extract_list(body, "subcategories")]

    data = _unwrap_data(body)
    pagination = data.get("pagination") if isinstance(data, dict) else None
    if not isinstance(pagination, dict) and isinstance(body, dict):
        pagination = body.get("pagination")
    return records, pagination if isinstance(pagination, dict) else {}


def _page_count(pagination):
    """Number of pages reported by the backend, or None."""
    for key in ("pages", "totalPages", "total_pages"):
        value = pagination.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def list_subcategories(cfg, category_id=None, is_active=None, page=1, limit=None):
    """
    Retrieve one page of subcategories, optionally filtered by category.

    Args:
        cfg: Configuration dictionary
        category_id: Category to filter by (server-side)
        is_active: Optional active-status filter
        page: Page number, starting at 1
        limit: Page size (PAGE_LIMIT from config when None)

    Returns:
        List of normalized SubCategory dictionaries
    """
    if limit is None:
        limit = int(cfg.get("PAGE_LIMIT") or DEFAULT_PAGE_LIMIT)
    records, _ = _fetch_subcategory_page(cfg, category_id, is_active, page, limit)
    return records


def list_all_subcategories(cfg, category_id=None):
    """
    Retrieve every subcategory of a category, following pagination.

    The page count or total from the response's pagination block decides when
    to stop. Without one, a short page ends the listing. An empty page or a
    page of already-seen ids always ends it.

    Returns:
        List of normalized SubCategory dictionaries

    Raises:
        ApiError: If the listing has not ended after MAX_PAGES requests
    """
    limit = int(cfg.get("PAGE_LIMIT") or DEFAULT_PAGE_LIMIT)
    subcategories = []
    seen_ids = set()
    page = 1
    while True:
        if page > MAX_PAGES:
            raise ApiError(f"Subcategory listing for category {category_id} exceeded {MAX_PAGES} pages")

        batch, pagination = _fetch_subcategory_page(cfg, category_id, None, page, limit)
        fresh = [n for n in batch if n.get("id") is None or n.get("id") not in seen_ids]
        if not fresh:
            if batch:
                logging.warning(f"Page {page} of subcategories repeated earlier records; stopping")
            break
        subcategories.extend(fresh)
        seen_ids.update(n.get("id") for n in fresh)

        pages = _page_count(pagination)
        total = pagination.get("total")
        if pages is not None:
            if page >= pages:
                break
        elif isinstance(total, int) and not isinstance(total, bool):
            if len(subcategories) >= total:
                break
        elif len(batch) < limit:
            break
        page += 1

    logging.info(f"Retrieved {len(subcategories)} subcategories (category {category_id}, {page} page(s))")
    return subcategories


def get_subcategory(cfg, subcategory_id):
    """Retrieve a single subcategory by id."""
    body = _request(cfg, "get", f"{SUBCATEGORIES_PATH}/{subcategory_id}")
    return normalize_subcategory(_extract_record(body, "subcategory"))


def list_available_parents(cfg, category_id, exclude_id=None):
    """
    Ask the backend which subcategories may act as parents in a category.

    Not every deployment exposes this route.

    Args:
        cfg: Configuration dictionary
        category_id: Category to scope the lookup to
        exclude_id: Subcategory being edited, if any

    Returns:
        List of normalized SubCategory dictionaries

    Raises:
        CapabilityAbsent: If the route does not exist on this backend
    """
    params = {"category_id": category_id}
    if exclude_id is not None:
        params["exclude_id"] = exclude_id

    try:
        body = _request(cfg, "get", AVAILABLE_PARENTS_PATH, params=params)
    except ApiError as e:
        if e.is_route_missing:
            raise CapabilityAbsent(
                f"Available-parents route not found: {e.message}",
                status_code=e.status_code,
                payload=e.payload
            ) from e
        raise

    return [normalize_subcategory(s) for s in _extract_list(body, "subcategories")]


def list_children(cfg, parent_id):
    """
    Retrieve nested subcategories under a top-level subcategory.

    Tries /subcategories/{id}/subcategories first and /subcategories/{id}/nested
    once if that route is missing.
    """
    try:
        body = _request(cfg, "get", f"/subcategories/{parent_id}/subcategories")
    except ApiError as e:
        if not e.is_route_missing:
            raise
        logging.info(f"Children route missing for subcategory {parent_id}, trying nested route")
        body = _request(cfg, "get", f"/subcategories/{parent_id}/nested")

    return [normalize_subcategory(s) for s in _extract_list(body, "subcategories")]


def create_subcategory(cfg, payload):
    """
    Create a subcategory.

    Returns:
        Normalized SubCategory as echoed by the backend (parent_id may be absent)
    """
    body = _request(cfg, "post", SUBCATEGORIES_PATH, payload=payload)
    created = normalize_subcategory(_extract_record(body, "subcategory"))
    logging.info(f"Created subcategory {created.get('id')} '{created.get('name')}'")
    return created


def update_subcategory(cfg, subcategory_id, payload):
    """
    Update a subcategory.

    Returns:
        Normalized SubCategory as echoed by the backend (parent_id may be absent)
    """
    body = _request(cfg, "put", f"{SUBCATEGORIES_PATH}/{subcategory_id}", payload=payload)
    updated = normalize_subcategory(_extract_record(body, "subcategory"))
    logging.info(f"Updated subcategory {subcategory_id} '{updated.get('name')}'")
    return updated


def delete_subcategory(cfg, subcategory_id):
    """Delete a subcategory. Cascade behavior is up to the backend."""
    _request(cfg, "delete", f"{SUBCATEGORIES_PATH}/{subcategory_id}", expect_body=False)
    logging.info(f"Deleted subcategory {subcategory_id}")
    return True
