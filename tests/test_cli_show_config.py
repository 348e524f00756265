from pathlib import Path

from typer.testing import CliRunner

from powerseq.cli import app

runner = CliRunner()

EXAMPLES = Path(__file__).resolve().parents[1] / "examples"


def test_show_lists_operations():
    r = runner.invoke(app, ["show", str(EXAMPLES / "power_sequence.py")])
    assert r.exit_code == 0, r.output
    for name in ("hibernate", "activate", "idle"):
        assert name in r.stdout


def test_show_without_declarations(tmp_path: Path):
    p = tmp_path / "plain.py"
    p.write_text("def f():\n    return 1\n", encoding="utf-8")
    r = runner.invoke(app, ["show", str(p)])
    assert r.exit_code == 0
    assert "No @power_state declarations found" in r.stdout


def test_config_defaults():
    r = runner.invoke(app, ["config"])
    assert r.exit_code == 0, r.output
    assert "Config:" in r.stdout
    assert "- strategy: rewrite" in r.stdout
    assert "- success_names: Ok" in r.stdout


def test_config_with_file():
    r = runner.invoke(app, ["config", "--config-file", str(EXAMPLES / "stub-config.yaml")])
    assert r.exit_code == 0, r.output
    assert "- strategy: stub" in r.stdout
    assert "- success_names: Ok, Success" in r.stdout


def test_verbose_flag_accepted():
    r = runner.invoke(app, ["--verbose", "config"])
    assert r.exit_code == 0, r.output


def test_show_with_config_file():
    r = runner.invoke(
        app,
        ["show", str(EXAMPLES / "power_sequence.py"), "--config-file", str(EXAMPLES / "stub-config.yaml")],
    )
    assert r.exit_code == 0, r.output
    assert "Strategy: stub" in r.stdout
    assert "hibernate" in r.stdout


def test_show_defaults_to_rewrite():
    r = runner.invoke(app, ["show", str(EXAMPLES / "power_sequence.py")])
    assert r.exit_code == 0, r.output
    assert "Strategy: rewrite" in r.stdout


def test_config_with_malformed_yaml(tmp_path: Path):
    p = tmp_path / "broken.yaml"
    p.write_text("strategy: [rewrite\n", encoding="utf-8")
    r = runner.invoke(app, ["config", "--config-file", str(p)])
    assert r.exit_code == 2
    assert "E_CONFIG_FILE_INVALID" in r.output
    assert "Traceback" not in r.output
