import re
from typing import List, Literal, Optional

from utils import config

PLACEHOLDER_IMAGE = "(no image)"


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    # If no headers, take the first row as header and remove it from rows
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [[str(cell).replace("|", "\\|") for cell in row] for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def format_price(amount: Optional[float]) -> str:
    """Rupee amount with thousands separators, '-' when unknown."""
    if amount is None:
        return "-"
    return f"₹{amount:,.2f}"


def build_image_url(raw: Optional[str], api_url: Optional[str] = None) -> str:
    """
    Turn a backend image path into a full URL.

    Handles "/images/p/a.jpg", "images/p/a.jpg", Windows backslashes and
    "./" prefixes. Absolute http(s), protocol-relative and data: URLs are
    returned untouched.
    """
    if not raw or not raw.strip():
        return PLACEHOLDER_IMAGE

    raw = raw.strip()
    if re.match(r"^(https?:)?//", raw, re.IGNORECASE) or raw.startswith("data:"):
        return raw

    path = raw.replace("\\", "/")
    path = re.sub(r"^\./?", "", path)
    if not path.startswith("/"):
        path = "/" + path

    return config.image_base_url(api_url) + path


def build_first_image(
    images: Optional[List[str]], api_url: Optional[str] = None
) -> str:
    if not images:
        return PLACEHOLDER_IMAGE
    return build_image_url(images[0], api_url)
