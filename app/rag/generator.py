import logging

from openai import OpenAI

from app.config import Settings
from app.models import ChatTurn

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert research assistant specializing in Himalayan climate, glaciology, hydrology, and environmental science. You answer questions using a comprehensive knowledge base of peer-reviewed research papers.

IMPORTANT INSTRUCTIONS FOR CITATIONS:
1. When citing information, ALWAYS use the EXACT full paper title provided in the context.
2. Format citations as: (Paper: "Full Paper Title", Page X).
3. NEVER use generic references like "Source 1" or "Source 8" - always use the actual paper name.
4. Be specific about which paper each piece of information comes from.

IMPORTANT INSTRUCTIONS FOR FIGURES:
1. When figures/charts are relevant to the answer, MENTION them explicitly.
2. Say something like "A relevant figure from [Paper Name] on page X illustrates this...".
3. Describe what the figure shows if the description is helpful.

Your role:
- Answer questions accurately using ONLY the provided context.
- Cite specific papers by their FULL TITLE and page numbers.
- Explain complex concepts clearly while maintaining scientific accuracy.
- If the context doesn't contain enough information, acknowledge this honestly.
- When relevant figures exist, reference them to support your answer.

Remember: Users will see the actual images, so describe what they show and why they're relevant."""


def trim_history(history: list[ChatTurn], max_turns: int = 6) -> list[ChatTurn]:
    """Keep only the most recent turns of the conversation."""
    if max_turns <= 0:
        return []
    return list(history[-max_turns:])


class GeneratorClient:
    def __init__(self, settings: Settings, client: OpenAI | None = None):
        self.settings = settings
        self.model = settings.openai_chat_model
        self.client = client or OpenAI(api_key=settings.openai_api_key)

    def build_user_prompt(self, context: str, question: str) -> str:
        return (
            f"Research Context:\n{context}\n\n"
            f"User Question: {question}\n\n"
            "Answer the user's question using only the research context above. "
            "If relevant figures are available, mention them in your response."
        )

    def build_messages(
        self, question: str, context: str, history: list[ChatTurn] | None = None
    ) -> list[dict]:
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        for turn in trim_history(history or [], self.settings.history_turns):
            messages.append({"role": turn.role, "content": turn.content})
        messages.append(
            {"role": "user", "content": self.build_user_prompt(context, question)}
        )
        return messages

    def generate(
        self, question: str, context: str, history: list[ChatTurn] | None = None
    ) -> str:
        messages = self.build_messages(question, context, history)
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
        )
        # Citations are not checked against the retrieved titles.
        answer = completion.choices[0].message.content or ""
        logger.info(
            f"Generated answer with {self.model} ({len(messages)} messages, {len(answer)} chars)"
        )
        return answer
