"""
Unit Tests for CLI Commands

Tests the CLI entry points without network access. Component builders
are patched or run offline.

STAFF ENGINEER PATTERNS:
------------------------
1. Mock the expensive builders
2. Test CLI argument parsing
3. Verify exit codes
4. Test error handling
"""

import json

import pytest
from unittest.mock import patch, MagicMock

from climate_rag.cli import commands
from climate_rag.config.settings import get_settings, reset_settings
from climate_rag.config.vocabulary import reset_vocabulary
from climate_rag.core.errors import LookupUnavailableError
from climate_rag.retrieval.document import Document, ScoredDocument


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch):
    """Fresh settings and no root-logger reconfiguration per test."""
    monkeypatch.setattr(commands, "setup_logging", lambda: None)
    monkeypatch.setattr(commands, "_load_env", lambda: None)
    monkeypatch.setattr(commands, "init_phoenix", MagicMock(return_value=False))
    monkeypatch.setattr(commands, "shutdown_phoenix", MagicMock())
    monkeypatch.delenv("CLIMATE_RAG_VOCABULARY", raising=False)
    reset_settings()
    reset_vocabulary()
    yield
    reset_settings()
    reset_vocabulary()


@pytest.fixture
def engine():
    engine = MagicMock()
    engine.search.return_value = [
        ScoredDocument(
            document=Document(
                id="beccs",
                title="BECCS Research Overview",
                content="BECCS ...",
                year=2024,
                url="https://www.kth.se/energy/beccs-overview",
            ),
            vector_score=0.82,
            keyword_score=1.0,
            similarity=0.978,
        )
    ]
    return engine


# ---------------------------------------------------------------------------
# LOAD_ENV TESTS
# ---------------------------------------------------------------------------


class TestLoadEnv:
    """Test environment loading."""

    def test_load_env_does_not_raise(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        from climate_rag.cli.commands import load_dotenv

        load_dotenv()


# ---------------------------------------------------------------------------
# MAIN CLI DISPATCH TESTS
# ---------------------------------------------------------------------------


class TestMainCliDispatch:
    """Test main CLI dispatches to correct handlers."""

    @pytest.mark.parametrize("command,handler", [
        ("search", "run_search_cli"),
        ("normalize", "run_normalize_cli"),
        ("ask", "run_ask_cli"),
    ])
    def test_dispatch(self, command, handler):
        with patch.object(commands, handler) as mock_handler:
            mock_handler.return_value = 0
            result = commands.main([command, "BECCS", "--offline"])

        mock_handler.assert_called_once_with(["BECCS", "--offline"])
        assert result == 0

    def test_unknown_command_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            commands.main(["train"])
        assert exc_info.value.code == 2

    def test_retrieval_error_exit_code(self):
        with patch.object(commands, "run_search_cli", side_effect=LookupUnavailableError("db down")):
            assert commands.main(["search", "BECCS"]) == 1

    def test_observability_initialized_and_flushed(self):
        with patch.object(commands, "run_search_cli", return_value=0):
            commands.main(["search", "BECCS"])

        commands.init_phoenix.assert_called_once_with()
        commands.shutdown_phoenix.assert_called_once_with()

    def test_observability_flushed_on_error(self):
        with patch.object(commands, "run_search_cli", side_effect=LookupUnavailableError("db down")):
            commands.main(["search", "BECCS"])

        commands.shutdown_phoenix.assert_called_once_with()

    def test_keyboard_interrupt_exit_code(self, capsys):
        with patch.object(commands, "run_search_cli", side_effect=KeyboardInterrupt):
            assert commands.main(["search", "BECCS"]) == 130
        assert "Interrupted" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# SEARCH COMMAND
# ---------------------------------------------------------------------------


class TestSearchCli:

    def test_text_output(self, engine, capsys):
        with patch("climate_rag.assistant.factory.build_search_engine", return_value=engine):
            assert commands.run_search_cli(["BECCS", "--limit", "3", "--threshold", "0.6"]) == 0

        engine.search.assert_called_once_with("BECCS", limit=3, threshold=0.6)
        out = capsys.readouterr().out
        assert "BECCS Research Overview" in out
        assert "https://www.kth.se/energy/beccs-overview" in out

    def test_json_output(self, engine, capsys):
        with patch("climate_rag.assistant.factory.build_search_engine", return_value=engine):
            commands.run_search_cli(["BECCS", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert data[0]["title"] == "BECCS Research Overview"
        assert data[0]["keyword_score"] == 1.0

    def test_no_results(self, engine, capsys):
        engine.search.return_value = []
        with patch("climate_rag.assistant.factory.build_search_engine", return_value=engine):
            commands.run_search_cli(["BECCS"])

        assert "No documents found." in capsys.readouterr().out

    def test_offline_uses_mock_embeddings(self, engine):
        with patch("climate_rag.assistant.factory.build_search_engine", return_value=engine) as build:
            commands.run_search_cli(["BECCS", "--offline"])

        settings = build.call_args[0][0]
        assert settings.embedding.use_mock is True

    def test_offline_leaves_global_settings_untouched(self, engine, monkeypatch):
        monkeypatch.delenv("USE_MOCK_EMBEDDINGS", raising=False)
        with patch("climate_rag.assistant.factory.build_search_engine", return_value=engine) as build:
            commands.run_search_cli(["BECCS", "--offline"])

        assert build.call_args[0][0] is not get_settings()
        assert get_settings().embedding.use_mock is False


# ---------------------------------------------------------------------------
# NORMALIZE / ASK COMMANDS
# ---------------------------------------------------------------------------


class TestNormalizeCli:

    def test_offline_small_talk(self, capsys):
        assert commands.run_normalize_cli(["hi", "--offline"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["is_small_talk"] is True

    def test_offline_keywords(self, capsys):
        commands.run_normalize_cli(["What is KTH doing with BECCS?", "--offline"])

        data = json.loads(capsys.readouterr().out)
        assert data["keywords"] == ["BECCS"]
        assert data["is_kth_specific"] is True

    def test_history_file(self, tmp_path, capsys):
        history = tmp_path / "turns.json"
        history.write_text(json.dumps([{"role": "user", "content": "What is BECCS?"}]))

        commands.run_normalize_cli(["tell me more", "--history", str(history), "--offline"])

        assert json.loads(capsys.readouterr().out)["is_small_talk"] is False

    def test_history_file_must_be_list(self, tmp_path):
        history = tmp_path / "turns.json"
        history.write_text(json.dumps({"role": "user"}))

        with pytest.raises(ValueError):
            commands.run_normalize_cli(["hi", "--history", str(history), "--offline"])


class TestAskCli:

    def test_offline_prints_prompt_and_sources(self, capsys):
        turn = MagicMock()
        turn.system_prompt = "SYSTEM PROMPT"
        turn.sources = [{"title": "BECCS Research Overview", "year": 2024, "url": "https://kth.se/b"}]
        assistant = MagicMock()
        assistant.prepare_turn.return_value = turn

        with patch("climate_rag.assistant.factory.build_assistant", return_value=assistant):
            assert commands.run_ask_cli(["What is BECCS?", "--offline"]) == 0

        out = capsys.readouterr().out
        assert "SYSTEM PROMPT" in out
        assert "[1] BECCS Research Overview (2024) - https://kth.se/b" in out
        assistant.respond.assert_not_called()

    def test_online_prints_answer(self, capsys):
        reply = MagicMock()
        reply.text = "BECCS captures CO2."
        reply.sources = []
        assistant = MagicMock()
        assistant.respond.return_value = reply

        with patch("climate_rag.assistant.factory.build_assistant", return_value=assistant):
            commands.run_ask_cli(["What is BECCS?"])

        assert "BECCS captures CO2." in capsys.readouterr().out
