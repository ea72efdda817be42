"""
List the Gemini models available to the configured API key.

    chat-relay-models            # or: python -m chat_relay.list_models
"""
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from chat_relay.config import load_settings
from chat_relay.exceptions import ProviderError
from chat_relay.services.gemini import GeminiClient

log = logging.getLogger("gemini")


async def fetch_model_names(settings) -> list:
    client = GeminiClient.from_settings(settings)
    try:
        return await client.list_models()
    finally:
        await client.close()


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env", override=True)
    settings = load_settings()

    if not settings.gemini_enabled:
        log.error("GEMINI_API_KEY is missing or invalid. Please check your .env file.")
        return 1

    try:
        names = asyncio.run(fetch_model_names(settings))
    except ProviderError as e:
        log.error(f"Error fetching models: {e.user_message} ({e.detail})")
        return 1

    print("Available Gemini models:\n")
    for name in names:
        print(f"- {name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
