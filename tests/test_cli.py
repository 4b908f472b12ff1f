"""Tests for the command-line entry point."""

from hybridchat import __main__ as cli


class TestMain:
    def test_unknown_mode(self, capsys):
        assert cli.main(["bogus"]) == 1
        assert "Unknown mode" in capsys.readouterr().out

    def test_client_needs_host_and_port(self, capsys):
        assert cli.main(["client", "127.0.0.1"]) == 1
        assert "Usage" in capsys.readouterr().out

    def test_invalid_port_reported(self, capsys, monkeypatch):
        monkeypatch.delenv("HYBRIDCHAT_PORT", raising=False)
        assert cli.main(["server", "99999"]) == 1
        assert "Invalid settings" in capsys.readouterr().out

    def test_interactive_prompt(self, monkeypatch):
        answers = iter(["client", "10.1.2.3", "4000"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
        assert cli.prompt_args() == ["client", "10.1.2.3", "4000"]

    def test_interactive_eof(self, monkeypatch, capsys):
        def no_input(prompt=""):
            raise EOFError
        monkeypatch.setattr("builtins.input", no_input)
        assert cli.main([]) == 1
        assert "Usage" in capsys.readouterr().out
