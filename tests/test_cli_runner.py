import json

import pytest
from config import NarrationEvalSettings
from orchestration.evaluation_service import NarrationEvaluator

import orchestration.cli_runner as cli_runner


@pytest.fixture
def no_credentials(monkeypatch):
    monkeypatch.setattr(cli_runner, "settings", NarrationEvalSettings(OPENAI_API_KEY=""))
    monkeypatch.setattr(cli_runner, "setup_logging", lambda: None)


@pytest.fixture
def location_file(tmp_path):
    path = tmp_path / "location.json"
    path.write_text(
        json.dumps({"name": "Purge Planet", "type": "Planet", "dimension": "Replacement Dimension"}),
        encoding="utf-8",
    )
    return path


def test_run_quick_evaluation_prints_result(no_credentials, location_file, tmp_path, capsys):
    narration_file = tmp_path / "narration.txt"
    narration_file.write_text("Purge Planet, Morty. Pointless violence. Burp.", encoding="utf-8")

    code = cli_runner.run(str(location_file), str(narration_file), "quick", explain=True)

    out = capsys.readouterr().out
    assert code == 0
    assert '"mode": "quick"' in out
    assert '"Nihilism"' in out


def test_run_without_narration_or_credentials_fails(no_credentials, location_file):
    assert cli_runner.run(str(location_file), None, "full") == 1


def test_run_with_missing_location_file_fails(no_credentials, tmp_path):
    assert cli_runner.run(str(tmp_path / "missing.json"), None, "quick") == 1


class ClosingGenerator:
    def __init__(self) -> None:
        self.calls: list[float] = []
        self.closed = False

    async def generate(self, prompt: str, *, model: str, temperature: float) -> str:
        self.calls.append(temperature)
        if len(self.calls) == 1:
            return "Purge Planet, Morty. Everyone here is an idiot. Burp."
        return "CREATIVITY_SCORE: 70\nFEEDBACK: Solid."

    async def aclose(self) -> None:
        self.closed = True


def test_run_generates_and_judges_with_one_generator(no_credentials, location_file, monkeypatch, capsys):
    generator = ClosingGenerator()
    built = []

    def fake_build_evaluator(config):
        built.append(config)
        return NarrationEvaluator(generator=generator)

    monkeypatch.setattr(cli_runner, "build_evaluator", fake_build_evaluator)

    code = cli_runner.run(str(location_file), None, "full")

    out = capsys.readouterr().out
    assert code == 0
    assert built == [cli_runner.settings]
    assert generator.calls == [0.8, 0.3]
    assert '"creativity": 70' in out
    assert generator.closed


def test_run_closes_evaluator_when_evaluation_fails(no_credentials, location_file, monkeypatch, tmp_path):
    generator = ClosingGenerator()
    monkeypatch.setattr(
        cli_runner, "build_evaluator", lambda config: NarrationEvaluator(generator=generator)
    )

    assert cli_runner.run(str(location_file), str(tmp_path / "missing.txt"), "full") == 1
    assert generator.closed
