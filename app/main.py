"""Main Streamlit application for the Himalayan Climate Research Assistant.

This module provides the chat interface: the conversation transcript,
markdown answers, related figures with a full-size viewer, and source
paper links. Answers come from the chat API (see app.api).
"""

import html
from typing import List, Optional

import streamlit as st

from app.client import ChatApiClient, ChatMessage, dedupe_sources, display_title
from app.config import Settings, load_settings
from app.models import ImageResult, SourcePaper
from app.paper_links import PaperLinkResolver, load_link_table

SUGGESTED_QUESTIONS = [
    "What are the main impacts of climate change on Himalayan glaciers?",
    "How has temperature changed in the Himalayan region over the past decades?",
    "What are the environmental variables affecting Himalayan ecosystems?",
    "Show me data about precipitation patterns in the Himalayas",
    "What causes glacier lake outburst floods in the Himalayas?",
    "How does climate change affect biodiversity in the Himalayan region?",
]


@st.cache_resource
def get_css_content() -> str:
    """Return CSS content for the chat UI.

    Returns:
        CSS content as a string. Cached to avoid rebuilding on every rerun.
    """
    return r"""
        <style>
        /* Light Mode Colors */
        :root {
            --background: #FFFFFF;
            --ui-panel: #F0F9FF;
            --primary-text: #0C4A6E;
            --secondary-text: #525252;
            --accent: #0369A1;
            --pdf-red: #EF4444;
            --chip-grey: #F3F4F6;
        }

        /* Dark Mode Colors */
        @media (prefers-color-scheme: dark) {
            :root {
                --background: #121212;
                --ui-panel: #1E293B;
                --primary-text: #E0F2FE;
                --secondary-text: #AAAAAA;
                --accent: #38BDF8;
                --pdf-red: #F87171;
                --chip-grey: #2B2B2B;
            }
        }

        .stApp {
            background-color: var(--background);
        }

        h1 {
            color: var(--primary-text) !important;
            font-weight: 700;
            letter-spacing: -0.02em;
        }

        /* Source paper cards */
        .source-card {
            display: flex;
            align-items: center;
            justify-content: space-between;
            gap: 0.5rem;
            padding: 0.5rem 0.75rem;
            margin-bottom: 0.5rem;
            border: 1px solid var(--ui-panel);
            border-radius: 0.5rem;
            background-color: var(--background);
            text-decoration: none !important;
        }

        a.source-card:hover {
            border-color: var(--accent);
            background-color: var(--ui-panel);
        }

        .source-card .source-title {
            color: var(--primary-text);
            font-size: 0.875rem;
            font-weight: 500;
        }

        .source-card .source-page {
            color: var(--secondary-text);
            font-size: 0.75rem;
        }

        .source-card .source-icon {
            color: var(--pdf-red);
        }

        .reference-chip {
            color: var(--secondary-text);
            background-color: var(--chip-grey);
            font-size: 0.7rem;
            padding: 0.1rem 0.5rem;
            border-radius: 0.25rem;
        }

        .figure-caption {
            color: var(--secondary-text);
            font-size: 0.8rem;
        }
        </style>
    """


def inject_custom_css() -> None:
    """Inject custom CSS for the research assistant UI."""
    st.markdown(get_css_content(), unsafe_allow_html=True)


def init_state() -> None:
    """Initialize Streamlit session state variables."""
    if "messages" not in st.session_state:
        st.session_state["messages"] = []
    if "pending_question" not in st.session_state:
        # Question currently awaiting a response; None when idle.
        st.session_state["pending_question"] = None


def submit_question(question: str) -> None:
    """Append the user's question and move to the awaiting-response state."""
    question = question.strip()
    if not question or st.session_state["pending_question"] is not None:
        return
    st.session_state["messages"].append(ChatMessage(role="user", content=question))
    st.session_state["pending_question"] = question


def clear_chat() -> None:
    st.session_state["messages"] = []
    st.session_state["pending_question"] = None


@st.dialog("Figure", width="large")
def show_image_dialog(image: ImageResult) -> None:
    """Full-size figure viewer.

    Args:
        image: Figure to display.
    """
    st.markdown(f"**{image.source}**")
    st.caption(f"Page {image.page}")
    st.image(image.url)
    st.markdown("**Figure Description:**")
    st.write(image.description)


def render_images(msg_idx: int, images: List[ImageResult], busy: bool = False) -> None:
    """Display the figure grid of an assistant message.

    Args:
        msg_idx: Index of the message in the transcript, used for widget keys.
        images: Figures to display.
        busy: True while a request is in flight; the expand buttons are disabled.
    """
    st.markdown("#### 📊 Related Figures & Charts")
    cols = st.columns(2)
    for img_idx, image in enumerate(images):
        with cols[img_idx % 2]:
            with st.container(border=True):
                st.image(image.url)
                st.markdown(f"**{display_title(image.source)}**")
                st.caption(f"Page {image.page}")
                st.markdown(
                    f'<p class="figure-caption">{html.escape(image.description[:160])}</p>',
                    unsafe_allow_html=True,
                )
                if st.button(
                    "Click to expand", key=f"expand_{msg_idx}_{img_idx}", disabled=busy
                ):
                    show_image_dialog(image)


def source_card_html(source: SourcePaper, url: Optional[str]) -> str:
    """Build the HTML for a single source paper card.

    Papers with a resolvable link open in a new tab; the rest render as
    inert reference chips.
    """
    title = html.escape(display_title(source.title))
    tooltip = html.escape(f"{source.title} - Page {source.page}", quote=True)
    body = (
        f'<span class="source-icon">📄</span>'
        f'<span style="flex: 1; min-width: 0;">'
        f'<span class="source-title">{title}</span><br>'
        f'<span class="source-page">Page {source.page}</span></span>'
    )
    if url:
        href = html.escape(url, quote=True)
        return (
            f'<a class="source-card" href="{href}" target="_blank" rel="noopener" title="{tooltip}">'
            f"{body}<span>↗</span></a>"
        )
    return (
        f'<div class="source-card" title="{tooltip}">'
        f'{body}<span class="reference-chip">Reference</span></div>'
    )


def render_sources(sources: List[SourcePaper], resolver: PaperLinkResolver) -> None:
    st.markdown("#### 📚 Source Papers")
    st.caption("(Click to view if available)")
    cols = st.columns(2)
    for idx, source in enumerate(dedupe_sources(sources)):
        url = resolver.resolve(source.pdf_file, source.page)
        with cols[idx % 2]:
            st.markdown(source_card_html(source, url), unsafe_allow_html=True)


def render_message(
    idx: int, message: ChatMessage, resolver: PaperLinkResolver, busy: bool = False
) -> None:
    with st.chat_message(message.role):
        if message.role != "assistant":
            # User text is shown verbatim, not as markdown
            st.text(message.content)
            return
        st.markdown(message.content)
        if message.images:
            st.divider()
            render_images(idx, message.images, busy=busy)
        if message.sources:
            st.divider()
            render_sources(message.sources, resolver)


def welcome_screen() -> None:
    """Display the empty-chat welcome screen with suggested questions."""
    st.subheader("Welcome to Your Research Assistant")
    st.markdown(
        "Ask me anything about Himalayan climate, glaciology, environmental variables, "
        "and atmospheric science. I'll search the research papers and show you "
        "relevant figures and citations."
    )
    st.caption("💡 Try asking one of these questions:")
    cols = st.columns(2)
    for idx, question in enumerate(SUGGESTED_QUESTIONS):
        with cols[idx % 2]:
            if st.button(f"→ {question}", key=f"suggested_{idx}", use_container_width=True):
                submit_question(question)
                st.rerun()


def chat_ui(client: ChatApiClient, resolver: PaperLinkResolver) -> None:
    """Main chat interface.

    Args:
        client: Client for the chat API.
        resolver: Resolver for source paper links.
    """
    messages: List[ChatMessage] = st.session_state["messages"]
    is_loading = st.session_state["pending_question"] is not None

    if not messages:
        welcome_screen()

    for idx, message in enumerate(messages):
        render_message(idx, message, resolver, busy=is_loading)

    # Input stays disabled while a request is in flight
    user_input = st.chat_input(
        "Ask about Himalayan climate research…", disabled=is_loading
    )
    if user_input and not is_loading:
        submit_question(user_input)
        st.rerun()

    if is_loading:
        question = st.session_state["pending_question"]
        with st.chat_message("assistant"):
            with st.spinner("Searching research papers..."):
                # The pending question is already the last transcript entry
                reply = client.send(question, messages[:-1])
        messages.append(reply)
        st.session_state["pending_question"] = None
        st.rerun()


@st.cache_resource
def get_settings() -> Settings:
    """Load and cache application settings.

    Returns:
        Settings instance loaded from environment variables.
    """
    return load_settings()


@st.cache_resource
def get_chat_client(settings: Settings) -> ChatApiClient:
    return ChatApiClient(
        settings.chat_api_url,
        timeout=settings.chat_api_timeout,
        history_turns=settings.history_turns,
    )


@st.cache_resource
def get_link_resolver(settings: Settings) -> PaperLinkResolver:
    return PaperLinkResolver(
        load_link_table(settings.paper_links_path),
        local_base_url=settings.chat_api_url,
        papers_dir=settings.papers_dir,
    )


def main() -> None:
    """Main entry point for the Streamlit application."""
    st.set_page_config(
        page_title="Himalayan Climate Research Assistant",
        page_icon="🏔️",
        layout="wide",
    )

    settings = get_settings()
    init_state()
    inject_custom_css()

    header, actions = st.columns([5, 1])
    with header:
        st.title("🏔️ Himalayan Climate Research Assistant")
        st.caption("AI-powered insights from peer-reviewed research papers")
    with actions:
        if st.session_state["messages"]:
            st.button(
                "New Chat",
                on_click=clear_chat,
                disabled=st.session_state["pending_question"] is not None,
            )

    chat_ui(get_chat_client(settings), get_link_resolver(settings))


if __name__ == "__main__":
    main()
