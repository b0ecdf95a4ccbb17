"""Tests for the console prompt helpers."""

import io

import pytest

from epitrim.errors import InputError
from epitrim.prompt import ask_milliseconds, get_standard_user_input, pause


class TestGetStandardUserInput:
    def test_reads_one_line(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("jpn\r\nignored\n"))
        assert get_standard_user_input("Audio language: ") == "jpn"
        assert capsys.readouterr().out == "Audio language: "

    def test_eof(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        with pytest.raises(InputError):
            get_standard_user_input("> ")


class TestAskMilliseconds:
    def test_retries_until_number(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("ten\n-5\n10000\n"))
        assert ask_milliseconds("Ad length: ") == 10000
        assert "'ten' is not a number" in capsys.readouterr().out


def test_pause(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("\n"))
    pause()
    assert "Press 'Enter' to continue..." in capsys.readouterr().out
