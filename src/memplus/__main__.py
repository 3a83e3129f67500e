"""Entry point: python -m memplus [capture|recall|show]

- capture:          Read a turn as JSON from stdin, log and merge its facts
- recall <prompt>:  Print the context block for a prompt
- show:             Print the current profile
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys

from memplus.config import MemplusConfig, load_config
from memplus.hooks.capture import CaptureHandler
from memplus.hooks.recall import RecallHandler, TurnCounter
from memplus.memory.extraction import ConversationTurn, LLMExtractor
from memplus.memory.profile import render_profile
from memplus.memory.store import ProfileStore

logger = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def build_extractor(config: MemplusConfig) -> LLMExtractor | None:
    """LLM extractor for the configured engine, or None to use rules only."""
    name = config.extraction.engine
    if not name:
        return None
    if name != "anthropic_api":
        logger.warning("Unknown extraction engine %r, using rule-based summaries", name)
        return None
    if not config.extraction.api_key:
        logger.info("No API key for %s, using rule-based summaries", name)
        return None
    try:
        from memplus.engines.anthropic_api import AnthropicAPIEngine

        engine = AnthropicAPIEngine(
            model=config.extraction.model,
            timeout=config.extraction.timeout,
            api_key=config.extraction.api_key,
        )
    except ImportError:
        logger.warning("Anthropic engine unavailable (install 'memplus[api]')")
        return None
    return LLMExtractor(engine, max_summary=config.summary_max_bullets)


def _read_turn(raw: str) -> tuple[ConversationTurn | None, list | None]:
    """Accept either {"user": ..., "assistant": ...} or {"messages": [...]}."""
    data = json.loads(raw)
    if isinstance(data, dict) and isinstance(data.get("messages"), list):
        return None, data["messages"]
    if isinstance(data, list):
        return None, data
    if isinstance(data, dict):
        user, assistant = data.get("user"), data.get("assistant")
        return ConversationTurn(
            user=user if isinstance(user, str) else "",
            assistant=assistant if isinstance(assistant, str) else "",
        ), None
    return None, None


async def _capture(config: MemplusConfig, store: ProfileStore) -> int:
    if not config.auto_capture:
        logger.info("auto_capture disabled, nothing to do")
        return 0
    raw = sys.stdin.read()
    if not raw.strip():
        return 0
    try:
        turn, messages = _read_turn(raw)
    except json.JSONDecodeError as e:
        print(f"Invalid JSON on stdin: {e}", file=sys.stderr)
        return 1

    handler = CaptureHandler(store, config, extractor=build_extractor(config))
    if turn is not None:
        outcome = await handler.handle(turn)
    elif messages is not None:
        outcome = await handler.handle_messages(messages)
    else:
        outcome = None

    if outcome:
        for bullet in outcome.summary:
            print(f"- {bullet}")
    return 0


async def _recall(config: MemplusConfig, store: ProfileStore, args: list[str]) -> int:
    if not config.auto_recall:
        return 0
    counter = TurnCounter()
    if "--turn" in args:
        i = args.index("--turn")
        try:
            counter.turn = int(args[i + 1]) - 1
        except (IndexError, ValueError):
            print("--turn expects an integer", file=sys.stderr)
            return 1
        args = args[:i] + args[i + 2 :]

    block = await RecallHandler(store, config).handle(" ".join(args), counter)
    if block:
        print(block)
    return 0


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    config = load_config()
    _setup_logging("DEBUG" if config.debug else config.log_level)
    store = ProfileStore.for_workspace(config.workspace)

    if cmd == "capture":
        sys.exit(asyncio.run(_capture(config, store)))
    elif cmd == "recall":
        sys.exit(asyncio.run(_recall(config, store, sys.argv[2:])))
    elif cmd == "show":
        print(render_profile(store.read_profile()), end="")
    else:
        print("Usage: python -m memplus [capture|recall|show]")
        print("  capture            Read a turn as JSON from stdin and store it")
        print("  recall <prompt>    Print recalled context for a prompt")
        print("  show               Print the current profile")
        sys.exit(1)


if __name__ == "__main__":
    main()
