"""
Canned replies used when Gemini is unavailable.

This is keyword-triggered template selection, not a language model:
the message is lower-cased, matched against keyword lists in priority
order, and one reply is drawn at random from the first matching category.
"""
import random
from typing import Dict, List, Optional, Sequence, Tuple

from chat_relay.models.chat import Turn

# Checked top to bottom; first category with a matching substring wins.
CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("greeting", ("hello", "hi", "hey")),
    ("code", ("code", "program", "function", "python", "javascript", "bug", "debug")),
    ("technical", ("how to", "how do", "explain", "what is", "technical", "work")),
    ("creative", ("write", "story", "poem", "creative", "idea")),
]

DEFAULT_CATEGORY = "default"

RESPONSES: Dict[str, List[str]] = {
    "greeting": [
        "Hello! I'm your AI assistant. How can I help you today?",
        "Hi there! What would you like to talk about?",
        "Hey! I'm here to help. What's on your mind?",
    ],
    "code": [
        "I'd be happy to help with your code! Could you share the snippet and describe what it should do?",
        "Programming questions are great. Which language are you working in, and what error or behaviour are you seeing?",
        "Let's look at that code together. Paste the relevant part and I'll walk through it with you.",
        "Debugging is easier with details. What did you expect to happen, and what happened instead?",
    ],
    "technical": [
        "That's a good technical question. Breaking it into smaller steps usually helps; which part is unclear?",
        "Happy to explain! Could you tell me a bit more about the context so I can pitch the answer right?",
        "Technical topics often have several layers. Do you want a quick overview or a detailed walkthrough?",
    ],
    "creative": [
        "I love creative projects! What tone or style are you going for?",
        "Let's get writing. Give me a theme, a few characters, or a mood to start from.",
        "Creative work is fun to brainstorm. Who is the audience, and how long should it be?",
    ],
    DEFAULT_CATEGORY: [
        "That's interesting! Could you tell me more about what you're looking for?",
        "I'm here to help with questions, coding, writing and more. What would you like to explore?",
        "Thanks for your message! Could you give me a little more detail so I can help?",
        "Good question. Can you share some more context?",
    ],
}


def categorize(message: str) -> str:
    """Return the reply category a message falls into."""
    text = (message or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


class FallbackResponder:
    """Picks a canned reply for a message, with an injectable random source."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def respond(self, message: str, history: Optional[Sequence[Turn]] = None) -> str:
        # history is accepted to mirror the provider call; it is not consulted
        return self._rng.choice(RESPONSES[categorize(message)])
