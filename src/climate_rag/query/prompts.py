"""
Query-understanding prompts - externalized for versioning and testing.

Each classifier's behaviour is mostly defined by its prompt. Keeping them
here means they can be reviewed on their own and the formatting helpers
can be tested without any API calls.
"""

from __future__ import annotations

from typing import Sequence

from climate_rag.core.protocols import ChatMessage

KEEP_ORIGINAL = "KEEP_ORIGINAL"


# ---------------------------------------------------------------------------
# SMALL TALK CLASSIFIER
# ---------------------------------------------------------------------------

SMALL_TALK_SYSTEM_PROMPT = """You are a query classifier. Determine if the user's message requires database search OR can be handled without it.

SKIP DATABASE (classify as SMALL_TALK):
- Pure greetings with NO question: hi, hello, hey
- Thank you with NO follow-up: thanks, thank you
- Pure goodbyes: bye, goodbye, see you later
- Meta questions about the conversation: "I have a non-climate question", "Can I ask about something else?"

REQUIRES DATABASE (classify as SUBSTANTIVE):
- ANY follow-up request: "show me", "tell me more", "what about X"
- Acknowledgments WITH implied questions: "cool, but...", "sure" when continuing a conversation
- Requests for details: "papers", "researchers", "publications", "who", "what"
- Short replies in the middle of a conversation: "another", "more", "sure"
- Information requests: "What is BECCS?", "Tell me about climate change"

CRITICAL RULES:
- If conversation history exists and the user says something short like "sure", "cool", "show me" -> SUBSTANTIVE
- ONLY classify as SMALL_TALK for a pure greeting/thanks/goodbye with NO implied continuation
- When in doubt -> SUBSTANTIVE

OUTPUT: Respond with ONLY "SMALL_TALK" or "SUBSTANTIVE"
"""


def build_small_talk_messages(
    message: str,
    has_history: bool,
) -> list[ChatMessage]:
    """Messages for the small-talk classifier."""
    history_note = (
        "Conversation history: EXISTS (the user is mid-conversation)"
        if has_history
        else "Conversation history: NONE (this is the first message)"
    )
    return [
        {"role": "system", "content": SMALL_TALK_SYSTEM_PROMPT},
        {"role": "user", "content": f"{history_note}\n\nMessage: {message}"},
    ]


# ---------------------------------------------------------------------------
# SPELLING CORRECTION
# ---------------------------------------------------------------------------

SPELLING_SYSTEM_PROMPT = """You are a spell checker for climate/energy research queries. Fix obvious typos while preserving technical terms and acronyms.

Rules:
- Fix misspellings (nucleaer -> nuclear, energi -> energy, sustainible -> sustainable)
- Preserve these terms exactly: {protected_terms}
- Preserve other acronyms, proper nouns and Swedish words
- If the query looks correct, return it unchanged
- Return ONLY the corrected query, nothing else
- Don't add punctuation or change capitalization unless fixing typos"""


def build_spelling_messages(query: str, protected_terms: Sequence[str]) -> list[ChatMessage]:
    """Messages for the spelling corrector."""
    return [
        {
            "role": "system",
            "content": SPELLING_SYSTEM_PROMPT.format(protected_terms=", ".join(protected_terms)),
        },
        {"role": "user", "content": query},
    ]


# ---------------------------------------------------------------------------
# VAGUE QUERY REWRITING
# ---------------------------------------------------------------------------

REWRITE_SYSTEM_PROMPT = f"""You are a query analysis and rewriting assistant.

TASK: Decide if the user's query is vague or context-dependent. If YES, rewrite it. If NO, return "{KEEP_ORIGINAL}".

A query is VAGUE if it:
- Contains pronouns without clear referents (this, that, it, them, they, he, she)
- Refers to previous topics ("the research", "the project", "those papers")
- Asks about previously mentioned entities ("who are they?", "list them", "tell me more")
- Lacks the context needed to search ("what about it?", "how does that work?")

A query is SPECIFIC if it:
- Contains clear nouns and topics ("What is BECCS?", "KTH wind energy research")
- Can be understood without conversation history

REWRITING RULES (only if vague):
- Extract key entities, topics and acronyms from the conversation history
- Replace pronouns with specific nouns
- CRITICAL: Preserve technical terms and acronyms exactly (BECCS, CCS, AI, ...) and project names
- For "list them"/"who are they" about people, return ONLY the research TOPIC (e.g. "BECCS", NOT "BECCS researchers")
- Keep it concise: max 10 words, preferably 1-3 words for name queries

OUTPUT FORMAT:
- If vague: return ONLY the rewritten query
- If specific: return exactly "{KEEP_ORIGINAL}"

EXAMPLES:

History: User asked about BECCS at Stockholm Exergi. Bot explained it's a carbon capture project.
Query: "What is the research about?"
Output: BECCS carbon capture research Stockholm Exergi

History: Bot explained "Most of the BECCS work comes from groups at KTH".
Query: "list them"
Output: BECCS

History: Previous discussion about BECCS.
Query: "What is KTH doing with bioenergy?"
Output: {KEEP_ORIGINAL}"""


def format_history(
    history: Sequence[ChatMessage],
    max_turns: int = 6,
    max_chars: int = 400,
) -> str:
    """Render the last turns as 'User: ...' / 'Assistant: ...' lines."""
    lines = []
    for turn in list(history)[-max_turns:]:
        speaker = "User" if turn.get("role") == "user" else "Assistant"
        lines.append(f"{speaker}: {(turn.get('content') or '')[:max_chars]}")
    return "\n".join(lines)


def build_rewrite_messages(query: str, history_text: str) -> list[ChatMessage]:
    """Messages for the vague-query rewriter."""
    return [
        {"role": "system", "content": REWRITE_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": (
                f"Conversation history:\n{history_text}\n\n"
                f'User query: "{query}"\n\nYour response:'
            ),
        },
    ]
