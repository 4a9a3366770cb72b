"""
Input validators — run on product form data before any network call.
"""

from urllib.parse import urlparse


def validate_product_name(name) -> tuple[bool, str]:
    """Name is required and at least 2 characters once trimmed."""
    name = (name or "").strip() if isinstance(name, str) else ""
    if not name:
        return False, "Product name is required"
    if len(name) < 2:
        return False, "Product name must be at least 2 characters"
    return True, ""


def validate_price(price) -> tuple[bool, str]:
    """Price must be a positive number."""
    if price is None or (isinstance(price, str) and not price.strip()):
        return False, "Unit price is required"
    if isinstance(price, bool):
        return False, "Unit price must be a valid positive number"
    try:
        p = float(price)
    except (ValueError, TypeError):
        return False, "Unit price must be a valid positive number"
    if p != p or p <= 0 or p == float("inf"):
        return False, "Unit price must be a valid positive number"
    return True, ""


def validate_image_url(url) -> tuple[bool, str]:
    """Absolute http(s) URL with a host."""
    url = url.strip() if isinstance(url, str) else ""
    if not url:
        return False, "Image URL is required"
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False, "Please enter a valid URL"
    return True, ""


def validate_product(data: dict) -> dict[str, str]:
    """Check every product field and return ``{field: message}`` for the failures."""
    errors = {}
    checks = (
        ("name", validate_product_name),
        ("unit_price", validate_price),
        ("image_url", validate_image_url),
    )
    for field, check in checks:
        ok, msg = check(data.get(field))
        if not ok:
            errors[field] = msg
    return errors
