import json
import subprocess
import sys
from pathlib import Path

from deed_resolver import __main__ as cli
from deed_resolver.models import BatchRun, BatchSummary, ScrapeResult


SRC = Path(__file__).resolve().parents[1] / "src"


def test_dry_run_prints_plan_without_browser():
    cmd = [
        sys.executable,
        "-m",
        "deed_resolver",
        "--dry-run",
        "--address",
        "6409 Winding Arch Dr Durham NC 27713",
        "--address",
        "1 Nowhere Rd Smallville KS",
        "--log-json",
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True, check=False, cwd=str(SRC))
    assert proc.returncode == 0, proc.stderr
    lines = [line for line in proc.stdout.splitlines() if line.startswith("{")]
    payloads = [json.loads(line) for line in lines]
    assert payloads[0]["jurisdiction"] == "durham_nc"
    assert payloads[1]["jurisdiction"] is None
    assert payloads[-1] == {"total": 2, "routed": 1, "unrouted": 1}


def test_csv_input_and_json_output(tmp_path, monkeypatch, capsys):
    csv_path = tmp_path / "addresses.csv"
    csv_path.write_text("address,note\n1 Main St Durham NC,a\n2 Main St Durham NC,b\n", encoding="utf-8")
    out_path = tmp_path / "out.json"
    seen = {}

    class _FakeOrchestrator:
        def run_sync(self, addresses, county=None, state=None, on_result=None):
            seen["addresses"] = list(addresses)
            results = [
                ScrapeResult(address=addresses[0], parcel_id="0719-01", county="Durham", state="NC"),
                ScrapeResult(address=addresses[1], error="nope", error_type="SelectorNotFound"),
            ]
            for i, r in enumerate(results):
                on_result(i, r)
            return BatchRun(results=results, summary=BatchSummary.from_results(results))

    def build(settings):
        seen["settings"] = settings
        return _FakeOrchestrator()

    monkeypatch.setattr(cli, "build_orchestrator", build)
    cli.main(
        [
            "--input-csv",
            str(csv_path),
            "--output",
            str(out_path),
            "--concurrency",
            "3",
            "--documents",
            "--log-json",
        ]
    )

    assert seen["addresses"] == ["1 Main St Durham NC", "2 Main St Durham NC"]
    assert seen["settings"].concurrency == 3
    assert seen["settings"].include_documents is True

    stdout = capsys.readouterr().out
    json_lines = [json.loads(line) for line in stdout.splitlines() if line.startswith("{")]
    assert json_lines[-1] == {"total": 2, "successful": 1, "failed": 1}
    assert json_lines[0]["status"] == "success"
    assert "Main St" not in "".join(line for line in stdout.splitlines() if line.startswith("{"))

    written = json.loads(out_path.read_text(encoding="utf-8"))
    assert written["summary"]["failed"] == 1
    assert written["results"][0]["parcel_id"] == "0719-01"


def test_missing_addresses_is_usage_error(capsys):
    try:
        cli.main([])
    except SystemExit as exc:
        assert exc.code == 2
    else:
        raise AssertionError("expected SystemExit")
