"""Utilities for deriving column keys from display names."""

import re
import unicodedata


def column_key(name: str) -> str:
    """
    Convert a column display name to a stable column key.

    Column keys are stored on tasks as their status, so they must be
    lowercase alphanumeric with underscores and start with a letter.

    Examples:
        "In Review" -> "in_review"
        "QA / Testing!" -> "qa_testing"
        "2nd Pass" -> "col_2nd_pass"
        "✓✓" -> "column"
    """
    # Normalize unicode characters
    name = unicodedata.normalize("NFKD", name)
    name = name.encode("ascii", "ignore").decode("ascii")

    name = name.lower()

    # Any run of non-alphanumerics becomes a single underscore
    name = re.sub(r"[^a-z0-9]+", "_", name).strip("_")

    if name and name[0].isdigit():
        name = f"col_{name}"

    return name or "column"
