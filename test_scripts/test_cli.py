import json

from printprep import __main__ as cli


def test_tray_command_uses_product_config(tmp_path, capsys):
    config = tmp_path / "papers.json"
    config.write_text(json.dumps({"paperSizes": {}, "defaultTrayMapping": {"457x305": "Bypass"}}))

    assert cli.main(["--products", str(config), "tray", "304.8", "457.2"]) == 0
    assert json.loads(capsys.readouterr().out) == "Bypass"


def test_print_command_reports_failure_for_missing_file(tmp_path, capsys):
    code = cli.main(["print", str(tmp_path / "missing.pdf"), "--printer", "Office"])
    assert code == 1
    out = json.loads(capsys.readouterr().out)
    assert out["success"] is False
    assert "does not exist" in out["error"]
