"""Context assembly for the generation prompt.

This module formats retrieved passages and figures into a single
prompt-ready block, deduplicates source papers by title, and derives the
PDF filename used to link each paper.
"""

import re

from app.models import ContextItem, ImageResult, SourcePaper

TEXT_SECTION_HEADER = "### Relevant Text from Research Papers:\n\n"
FIGURE_SECTION_HEADER = "### Relevant Figures/Charts Available:\n\n"

# Whitespace set the hosted link table filenames were derived with.
_WS = r"\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
_UNSAFE_CHARS = re.compile(rf"[^a-zA-Z0-9{_WS}-]")
_WHITESPACE = re.compile(rf"[{_WS}]+")


def create_pdf_filename(paper_title: str) -> str:
    """Derive a filesystem-safe PDF filename from a paper title.

    The chat UI looks documents up by this name, so it must stay stable:
    the same title always yields the same filename.

    Args:
        paper_title: Paper title as stored in the index.

    Returns:
        Filename of at most 80 characters plus the ``.pdf`` suffix.
    """
    cleaned = _UNSAFE_CHARS.sub("", paper_title)
    cleaned = _WHITESPACE.sub("_", cleaned)
    return cleaned[:80] + ".pdf"


def build_context_block(
    text_items: list[ContextItem], image_items: list[ContextItem]
) -> str:
    """Format retrieved items into the research context block.

    Args:
        text_items: Text passages in retrieval order.
        image_items: Figures in retrieval order.

    Returns:
        Context string tagging every passage and figure with its paper title
        and page. Empty when there is nothing to include.
    """
    parts: list[str] = []
    if text_items:
        parts.append(TEXT_SECTION_HEADER)
        for item in text_items:
            parts.append(f'[Paper: "{item.source}", Page {item.page}]\n{item.content}\n\n')
    if image_items:
        parts.append(FIGURE_SECTION_HEADER)
        for item in image_items:
            parts.append(
                f'[Figure from: "{item.source}", Page {item.page}]\n'
                f"Figure Description: {item.content}\n\n"
            )
    return "".join(parts)


def unique_sources(text_items: list[ContextItem]) -> list[SourcePaper]:
    """Deduplicate source papers by title.

    The first occurrence of a title wins, including its page number.
    Two different papers sharing a title collapse into one entry.
    """
    seen: dict[str, SourcePaper] = {}
    for item in text_items:
        if item.source not in seen:
            seen[item.source] = SourcePaper(
                title=item.source,
                page=item.page,
                pdf_file=create_pdf_filename(item.source),
            )
    return list(seen.values())


def image_results(image_items: list[ContextItem]) -> list[ImageResult]:
    return [
        ImageResult(
            url=item.image_url or "",
            source=item.source,
            page=item.page,
            description=item.content,
            pdf_file=create_pdf_filename(item.source),
            score=item.score,
        )
        for item in image_items
    ]
