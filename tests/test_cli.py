"""Terminal client smoke tests."""
import json

import cli_resolve


def test_single_resolution_prints_offers(capsys):
    code = cli_resolve.main(["--asin", "B0BXQBHL5D", "--zip", "10001", "--no-backend"])
    out = capsys.readouterr().out
    assert code == 0
    assert "offers: 3" in out
    assert "Best Buy" in out


def test_missing_identifier_is_rejected(capsys):
    assert cli_resolve.main(["--zip", "10001", "--no-backend"]) == 2


def test_batch_mode(tmp_path, capsys):
    batch = tmp_path / "requests.jsonl"
    request = {"identifiers": {"asin": "B0BXQBHL5D"}, "platform": "amazon", "url": "https://a", "zip": "10001"}
    batch.write_text(json.dumps(request) + "\n\n" + json.dumps(request) + "\n", encoding="utf-8")

    assert cli_resolve.main(["--batch", str(batch), "--no-backend"]) == 0
    out = capsys.readouterr().out
    assert "cached: False" in out
    assert "cached: True" in out


def test_batch_mode_rejects_bad_lines(tmp_path):
    batch = tmp_path / "bad.jsonl"
    batch.write_text('{"identifiers": {}}\n', encoding="utf-8")
    assert cli_resolve.main(["--batch", str(batch), "--no-backend"]) == 2
