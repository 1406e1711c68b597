"""Tests for context assembly, source deduplication and filename derivation."""

import re

import pytest

from app.models import ContextItem
from app.rag.context import (
    build_context_block,
    create_pdf_filename,
    image_results,
    unique_sources,
)


def _text(source, page, content="passage", score=0.8):
    return ContextItem(type="text", content=content, source=source, page=page, score=score)


def _image(source, page, caption="caption", url="https://img/1.png", score=0.6):
    return ContextItem(
        type="image", content=caption, source=source, page=page, image_url=url, score=score
    )


class TestCreatePdfFilename:
    def test_known_titles(self):
        assert (
            create_pdf_filename(
                "Glacial lake changes and the identification of potentially dangerous glacial lakes"
            )
            == "Glacial_lake_changes_and_the_identification_of_potentially_dangerous_glacial_lak.pdf"
        )
        assert create_pdf_filename("atmosphere-13-00764-v2") == "atmosphere-13-00764-v2.pdf"
        assert create_pdf_filename("j.atmosres.2021.105481") == "jatmosres2021105481.pdf"
        assert create_pdf_filename("atmosphere-14-00454 (1)") == "atmosphere-14-00454_1.pdf"

    def test_strips_punctuation_and_collapses_whitespace(self):
        assert (
            create_pdf_filename("Assessing climate trends in the Northwestern Himalayas:  a review")
            == "Assessing_climate_trends_in_the_Northwestern_Himalayas_a_review.pdf"
        )

    def test_removed_characters_leave_adjacent_spaces(self):
        assert create_pdf_filename("Himalayas & Tibet") == "Himalayas_Tibet.pdf"
        assert create_pdf_filename("A : B") == "A_B.pdf"

    def test_truncates_to_80_characters(self):
        name = create_pdf_filename("x" * 200)
        assert name == "x" * 80 + ".pdf"

    @pytest.mark.parametrize(
        "title, expected",
        [
            ("A\x1fB\ufeffC", "AB_C.pdf"),
            ("A\x85B", "AB.pdf"),
            ("A\u00a0B\u3000C", "A_B_C.pdf"),
            ("A\vB", "A_B.pdf"),
        ],
    )
    def test_whitespace_set_matches_link_table(self, title, expected):
        assert create_pdf_filename(title) == expected

    def test_deterministic(self):
        title = "Seasonal Spatio-Temporal Variability (1980–2020)"
        assert create_pdf_filename(title) == create_pdf_filename(title)

    @pytest.mark.parametrize(
        "title",
        [
            "Évolution des glaciers — Népal",
            "Water Resources Research - 2023 - Swarnkar - Increasing Flood Frequencies",
            "  leading and trailing  ",
            "tabs\tand\nnewlines",
            "",
        ],
    )
    def test_output_alphabet(self, title):
        name = create_pdf_filename(title)
        assert name.endswith(".pdf")
        assert re.fullmatch(r"[A-Za-z0-9_-]{0,80}\.pdf", name)


class TestBuildContextBlock:
    def test_empty(self):
        assert build_context_block([], []) == ""

    def test_text_and_figures(self):
        block = build_context_block(
            [_text("Paper A", 5, "Moraine failure."), _text("Paper B", 2, "Ice avalanches.")],
            [_image("Paper C", 9, "Lake area 1990-2020")],
        )
        assert block == (
            "### Relevant Text from Research Papers:\n\n"
            '[Paper: "Paper A", Page 5]\nMoraine failure.\n\n'
            '[Paper: "Paper B", Page 2]\nIce avalanches.\n\n'
            "### Relevant Figures/Charts Available:\n\n"
            '[Figure from: "Paper C", Page 9]\nFigure Description: Lake area 1990-2020\n\n'
        )

    def test_figures_only(self):
        block = build_context_block([], [_image("Paper C", 1)])
        assert block.startswith("### Relevant Figures/Charts Available:")
        assert "Relevant Text" not in block


class TestUniqueSources:
    def test_first_occurrence_wins(self):
        sources = unique_sources(
            [_text("Paper A", 5), _text("Paper B", 1), _text("Paper A", 12)]
        )
        assert [(s.title, s.page) for s in sources] == [("Paper A", 5), ("Paper B", 1)]
        assert sources[0].pdf_file == "Paper_A.pdf"

    def test_empty(self):
        assert unique_sources([]) == []


class TestImageResults:
    def test_projection(self):
        results = image_results([_image("Paper C", 9, "Lake area", "https://img/9.png", 0.61)])
        assert results[0].url == "https://img/9.png"
        assert results[0].description == "Lake area"
        assert results[0].pdf_file == "Paper_C.pdf"
        assert results[0].score == 0.61
