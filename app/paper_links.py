"""Resolution of source-paper links.

Source papers are identified by their derived PDF filename. A hosted link
table (filename -> URL) takes precedence; otherwise a paper found in the
local papers folder links to the API's /papers mount, deep-linked to the
cited page.
"""

import json
import logging
import os
from typing import Mapping, Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)


def load_link_table(path: str) -> dict[str, str]:
    """Load the hosted link table from a JSON object file.

    Args:
        path: Path to a JSON file mapping PDF filenames to URLs.

    Returns:
        The mapping, or an empty dict when the file does not exist.
    """
    if not path or not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Paper link table {path} must be a JSON object")
    links = {str(k): str(v) for k, v in data.items() if v}
    logger.info(f"Loaded {len(links)} paper links from {path}")
    return links


def to_preview_url(url: str) -> str:
    """Turn a hosted "view" link into its embeddable "preview" form."""
    return url.replace("/view", "/preview", 1)


class PaperLinkResolver:
    def __init__(
        self,
        links: Optional[Mapping[str, str]] = None,
        local_base_url: Optional[str] = None,
        papers_dir: Optional[str] = None,
    ):
        self.links = dict(links or {})
        self.local_base_url = local_base_url.rstrip("/") if local_base_url else None
        self.papers_dir = papers_dir

    def _has_local_copy(self, pdf_file: str) -> bool:
        if not self.local_base_url or not self.papers_dir:
            return False
        return os.path.isfile(os.path.join(self.papers_dir, pdf_file))

    def resolve(self, pdf_file: str, page: Optional[int] = None) -> Optional[str]:
        hosted = self.links.get(pdf_file)
        if hosted:
            return to_preview_url(hosted)
        if self._has_local_copy(pdf_file):
            url = f"{self.local_base_url}/papers/{quote(pdf_file)}"
            if page:
                url += f"#page={page}"
            return url
        return None
