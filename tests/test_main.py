"""Tests for the command-line entry point helpers."""

import io
import json
from pathlib import Path

import pytest

from memplus.__main__ import _capture, _read_turn, _recall, build_extractor
from memplus.config import ExtractionConfig, MemplusConfig
from memplus.memory.extraction import ConversationTurn, LLMExtractor
from memplus.memory.store import ProfileStore


class TestBuildExtractor:
    def test_disabled_engine(self):
        config = MemplusConfig(extraction=ExtractionConfig(engine="", api_key="sk-test"))
        assert build_extractor(config) is None

    def test_unknown_engine(self):
        config = MemplusConfig(extraction=ExtractionConfig(engine="mystery", api_key="sk-test"))
        assert build_extractor(config) is None

    def test_missing_api_key(self):
        config = MemplusConfig(extraction=ExtractionConfig(api_key=None))
        assert build_extractor(config) is None

    def test_anthropic_engine(self):
        config = MemplusConfig(summary_max_bullets=2, extraction=ExtractionConfig(api_key="sk-test"))
        extractor = build_extractor(config)
        assert isinstance(extractor, LLMExtractor)
        assert extractor.max_summary == 2


class TestReadTurn:
    def test_turn_object(self):
        turn, messages = _read_turn('{"user": "hello there", "assistant": "hi"}')
        assert turn == ConversationTurn(user="hello there", assistant="hi")
        assert messages is None

    def test_messages_object(self):
        turn, messages = _read_turn('{"messages": [{"role": "user", "content": "x"}]}')
        assert turn is None
        assert messages == [{"role": "user", "content": "x"}]

    def test_null_and_non_string_fields_become_empty(self):
        turn, _ = _read_turn('{"user": null, "assistant": 42}')
        assert turn == ConversationTurn(user="", assistant="")

    def test_bare_list(self):
        assert _read_turn("[]") == (None, [])

    def test_scalar(self):
        assert _read_turn("42") == (None, None)

    def test_invalid_json(self):
        with pytest.raises(json.JSONDecodeError):
            _read_turn("{not json")


class TestCommands:
    @pytest.fixture
    def config(self, tmp_path: Path) -> MemplusConfig:
        return MemplusConfig(workspace=tmp_path, extraction=ExtractionConfig(engine=""))

    @pytest.mark.asyncio
    async def test_capture_from_stdin(self, config, monkeypatch, capsys):
        store = ProfileStore.for_workspace(config.workspace)
        payload = {"user": "I prefer dark mode for every editor I use.", "assistant": "Noted."}
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(payload)))

        assert await _capture(config, store) == 0

        assert capsys.readouterr().out.startswith("- Preference: dark mode")
        assert len(store.daily_files()) == 1

    @pytest.mark.asyncio
    async def test_capture_invalid_json(self, config, monkeypatch):
        store = ProfileStore.for_workspace(config.workspace)
        monkeypatch.setattr("sys.stdin", io.StringIO("{oops"))
        assert await _capture(config, store) == 1

    @pytest.mark.asyncio
    async def test_recall_bad_turn_flag(self, config):
        store = ProfileStore.for_workspace(config.workspace)
        assert await _recall(config, store, ["--turn", "x", "hello"]) == 1

    @pytest.mark.asyncio
    async def test_recall_profile_on_turn(self, config, capsys):
        store = ProfileStore.for_workspace(config.workspace)
        store.update_profile({"Identity": ["Name is Ada"]})
        config.profile_frequency = 5

        assert await _recall(config, store, ["--turn", "5", "what", "is", "new"]) == 0

        assert "- Name is Ada" in capsys.readouterr().out
