"""End-to-end tests for the query pipeline with mocked services."""

from unittest.mock import patch

import pytest

from app.models import ChatTurn
from app.rag.pipeline import QueryPipeline, shape_response
from app.rag.retriever import filter_matches, partition_items

GLOF_PAPER = "Glacial lake changes and the identification of potentially dangerous glacial lakes"


def _user_prompt(mock_openai):
    messages = mock_openai.chat.completions.create.call_args.kwargs["messages"]
    return messages[-1]["content"]


class TestQueryPipeline:
    def test_glacier_lake_scenario(self, pipeline, mock_openai, mock_store, make_match):
        mock_store.search.return_value = [
            make_match(score=0.81, page=5, content="Moraine dams fail under ice avalanches."),
            make_match(score=0.45, page=12, content="GLOF frequency is increasing."),
            make_match(
                score=0.6,
                content_type="image",
                page=8,
                content="Figure 4: Lake area growth",
                image_url="https://img/fig4.png",
            ),
        ]

        response = pipeline.answer("What causes glacier lake outburst floods?")

        assert response.message == "Grounded answer."
        assert len(response.sources) == 1
        assert response.sources[0].title == GLOF_PAPER
        assert response.sources[0].page == 5
        assert len(response.images) == 1
        assert response.images[0].url == "https://img/fig4.png"

        prompt = _user_prompt(mock_openai)
        assert f'[Paper: "{GLOF_PAPER}", Page 5]' in prompt
        assert f'[Paper: "{GLOF_PAPER}", Page 12]' in prompt
        assert prompt.count("[Figure from:") == 1
        assert "User Question: What causes glacier lake outburst floods?" in prompt

    def test_low_scores_never_reach_context_or_response(
        self, pipeline, mock_openai, mock_store, make_match
    ):
        mock_store.search.return_value = [
            make_match(score=0.3, title="Weak Paper", content="weak passage"),
            make_match(
                score=0.2,
                content_type="image",
                title="Weak Figure Paper",
                content="weak figure",
                image_url="https://img/weak.png",
            ),
            make_match(score=0.5, title="Strong Paper", content="strong passage"),
        ]

        response = pipeline.answer("question")

        prompt = _user_prompt(mock_openai)
        assert "weak passage" not in prompt
        assert "weak figure" not in prompt
        assert [s.title for s in response.sources] == ["Strong Paper"]
        assert response.images == []

    def test_long_history_trimmed_to_last_six(self, pipeline, mock_openai):
        history = [
            ChatTurn(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
            for i in range(10)
        ]

        pipeline.answer("question", history)

        messages = mock_openai.chat.completions.create.call_args.kwargs["messages"]
        assert [m["content"] for m in messages[1:-1]] == [f"turn {i}" for i in range(4, 10)]

    def test_truncates_images_and_sources(self, pipeline, mock_store, make_match):
        matches = [make_match(score=0.9, title=f"Paper {i}", page=1) for i in range(10)]
        matches += [
            make_match(
                score=0.8,
                content_type="image",
                title=f"Figure Paper {i}",
                image_url=f"https://img/{i}.png",
            )
            for i in range(7)
        ]
        mock_store.search.return_value = matches

        response = pipeline.answer("question")

        assert len(response.sources) == 6
        assert [s.title for s in response.sources] == [f"Paper {i}" for i in range(6)]
        assert len(response.images) == 4

    def test_no_matches_still_generates(self, pipeline, mock_openai):
        response = pipeline.answer("question")
        assert response.sources == []
        assert response.images == []
        assert "Research Context:\n\n\nUser Question: question" in _user_prompt(mock_openai)

    def test_stage_failure_propagates(self, pipeline, mock_openai, mock_store):
        mock_store.search.side_effect = RuntimeError("index down")
        with pytest.raises(RuntimeError):
            pipeline.answer("question")
        mock_openai.chat.completions.create.assert_not_called()

    @patch("app.rag.pipeline.build_vector_store")
    @patch("app.rag.pipeline.GeneratorClient")
    @patch("app.rag.pipeline.EmbeddingClient")
    def test_builds_clients_from_settings(self, mock_embed, mock_gen, mock_build, settings):
        pipeline = QueryPipeline(settings)
        mock_embed.assert_called_once_with(settings)
        mock_gen.assert_called_once_with(settings)
        mock_build.assert_called_once_with(settings)
        assert pipeline.vs is mock_build.return_value


class TestShapeResponse:
    def test_limits_are_configurable(self, make_match):
        items = filter_matches(
            [make_match(score=0.9, title=f"P{i}") for i in range(3)]
            + [
                make_match(score=0.9, content_type="image", title=f"F{i}", image_url="https://img")
                for i in range(3)
            ],
            0.3,
        )
        context = partition_items(items)
        response = shape_response(
            "a", context.text_items, context.image_items, max_images=1, max_sources=2
        )
        assert len(response.images) == 1
        assert len(response.sources) == 2

    def test_sources_come_from_text_only(self, make_match):
        context = partition_items(
            filter_matches(
                [make_match(score=0.9, content_type="image", title="Fig", image_url="https://img")],
                0.3,
            )
        )
        response = shape_response("a", context.text_items, context.image_items)
        assert response.sources == []
        assert response.images[0].source == "Fig"
