"""Tests for the flashcards-gen CLI."""

import json

import pytest

from app.modules.flashcards import cli
from app.modules.flashcards.errors import GenerationFailure
from app.modules.flashcards.models.flashcards import Flashcard


class FakeClient:
    instances: list["FakeClient"] = []

    def __init__(self, endpoint=None, *, timeout=None) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        FakeClient.instances.append(self)

    async def generate(self, text: str):
        if "fail" in text:
            raise GenerationFailure()
        return [Flashcard(front="What color is the sky?", back="Blue")]


@pytest.fixture(autouse=True)
def fake_client(monkeypatch):
    FakeClient.instances = []
    monkeypatch.setattr(cli, "GenerationClient", FakeClient)


class TestRequestCommand:
    def test_prints_batch_as_json(self, capsys) -> None:
        code = cli.main(
            ["request", "-t", "The sky is blue.", "--endpoint", "http://gen.test/api/generate"]
        )

        assert code == 0
        assert json.loads(capsys.readouterr().out) == [
            {"front": "What color is the sky?", "back": "Blue"}
        ]
        assert FakeClient.instances[0].endpoint == "http://gen.test/api/generate"

    def test_reads_text_file(self, tmp_path, capsys) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("The sky is blue.", encoding="utf-8")

        assert cli.main(["request", "--text-file", str(path)]) == 0
        assert "What color is the sky?" in capsys.readouterr().out

    def test_generation_failure_exit_code(self, capsys) -> None:
        code = cli.main(["request", "-t", "please fail"])

        assert code == 1
        assert "error occurred while generating" in capsys.readouterr().out


class TestLoadText:
    def test_requires_text(self) -> None:
        with pytest.raises(SystemExit):
            cli.main(["request"])

    def test_rejects_both_sources(self, tmp_path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("x", encoding="utf-8")

        with pytest.raises(SystemExit):
            cli.main(["request", "-t", "x", "--text-file", str(path)])

    def test_rejects_blank_text(self) -> None:
        with pytest.raises(SystemExit):
            cli.main(["request", "-t", "   "])


def test_generate_command_uses_local_generator(monkeypatch, capsys) -> None:
    seen = []

    def fake_sync(text: str):
        seen.append(text)
        return [Flashcard(front="Q", back="A")]

    monkeypatch.setattr(cli, "generate_flashcards_sync", fake_sync)

    assert cli.main(["generate", "-t", "Some notes"]) == 0
    assert seen == ["Some notes"]
    assert json.loads(capsys.readouterr().out) == [{"front": "Q", "back": "A"}]
