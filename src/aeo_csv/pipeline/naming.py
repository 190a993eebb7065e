"""
Naming helpers shared by header mapping and export filenames.

Header normalization:
- Trim whitespace
- Lowercase
- Collapse whitespace runs into a single underscore

File part normalization:
- Lowercase
- Replace every run of non [a-z0-9] characters with '-'
- Strip leading/trailing '-'
"""

import re


def normalize_header(name: str) -> str:
    """
    Normalize a CSV header cell or alias for comparison.

    "  Query Text " -> "query_text"
    """
    if name is None:
        return ""
    return re.sub(r"\s+", "_", str(name).strip().lower())


def safe_file_part(value: str) -> str:
    """
    Make a value safe to embed in a download filename.

    "Product Features / EU" -> "product-features-eu"
    """
    if value is None:
        return ""
    slug = re.sub(r"[^a-z0-9]+", "-", str(value).strip().lower())
    return slug.strip("-")
