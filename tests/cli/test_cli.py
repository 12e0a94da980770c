import json
from pathlib import Path

import pytest

from trafficeval import cli


def extract_json_from_stdout(output: str) -> str:
    """Return the first balanced JSON object from stdout with status lines."""
    json_start = output.find("{")
    if json_start == -1:
        return output

    depth = 0
    for i in range(json_start, len(output)):
        if output[i] == "{":
            depth += 1
        elif output[i] == "}":
            depth -= 1
            if depth == 0:
                return output[json_start : i + 1]
    return output


# evaluate


def test_evaluate_writes_results_file(sample_data_dir: Path, tmp_path: Path) -> None:
    results_path = tmp_path / "res.json"

    src = sample_data_dir / "checkout.yaml"
    cli.main(["evaluate", str(src), "-r", str(results_path)])

    data = json.loads(results_path.read_text())
    assert data["multiplier"] == 1.0
    assert set(data["flows"]) == {"checkout", "search"}
    checkout = data["flows"]["checkout"]
    assert checkout["results"]["users"]["currentQPS"] == 2000
    assert checkout["results"]["users"]["bottleneckType"] == "max_capacity"
    assert checkout["results"]["auth"]["bottleneckType"] == "rate_limit"
    assert checkout["order"] == ["gw", "auth", "orders", "users"]
    assert sorted(checkout["bottlenecks"]) == ["auth", "users"]
    assert data["flows"]["search"]["results"]["index"]["currentQPS"] == 600


def test_evaluate_stdout_and_default_results(
    sample_data_dir: Path, tmp_path: Path, capsys, monkeypatch
) -> None:
    snapshot = (sample_data_dir / "checkout_snapshot.json").resolve()
    monkeypatch.chdir(tmp_path)

    cli.main(["evaluate", str(snapshot), "--stdout"])
    out = capsys.readouterr().out

    assert "✅ Results written to:" in out
    assert (tmp_path / "checkout_snapshot.results.json").exists()
    payload = json.loads(extract_json_from_stdout(out[out.index("✅") :]))
    results = payload["flows"]["checkout"]["results"]
    assert payload["multiplier"] == 2
    assert results["1"]["currentQPS"] == 2000
    assert results["2"]["bottleneckType"] == "rate_limit"
    assert results["3"]["currentQPS"] == 500


def test_evaluate_no_results_flag(
    sample_data_dir: Path, tmp_path: Path, capsys, monkeypatch
) -> None:
    src = (sample_data_dir / "checkout.yaml").resolve()
    monkeypatch.chdir(tmp_path)

    cli.main(["evaluate", str(src), "--no-results"])
    out = capsys.readouterr().out

    assert not (tmp_path / "checkout.results.json").exists()
    assert "📊 Flow: checkout" in out
    assert "Bottlenecks: 2" in out


def test_evaluate_multiplier_override_and_flow_filter(
    sample_data_dir: Path, tmp_path: Path
) -> None:
    out_path = tmp_path / "half.json"
    cli.main(
        [
            "evaluate",
            str(sample_data_dir / "checkout.yaml"),
            "--multiplier",
            "0.5",
            "--flow",
            "search",
            "-r",
            str(out_path),
        ]
    )

    data = json.loads(out_path.read_text())
    assert data["multiplier"] == 0.5
    assert list(data["flows"]) == ["search"]
    index = data["flows"]["search"]["results"]["index"]
    assert index["currentQPS"] == 300
    assert index["isBottleneck"] is False


def test_evaluate_output_dir_default_naming(
    sample_data_dir: Path, tmp_path: Path
) -> None:
    out_dir = tmp_path / "out"
    cli.main(["evaluate", str(sample_data_dir / "checkout.yaml"), "-o", str(out_dir)])
    assert (out_dir / "checkout.results.json").exists()


def test_evaluate_relative_results_under_output_dir(
    sample_data_dir: Path, tmp_path: Path, monkeypatch
) -> None:
    src = (sample_data_dir / "checkout.yaml").resolve()
    out_dir = tmp_path / "out"
    monkeypatch.chdir(tmp_path)

    cli.main(["evaluate", str(src), "-o", str(out_dir), "-r", "custom.json"])

    assert (out_dir / "custom.json").exists()
    assert not (tmp_path / "checkout.results.json").exists()


def test_results_path_rules(tmp_path: Path) -> None:
    src = Path("flows/checkout.yaml")
    out = tmp_path / "out"
    assert cli._results_path(src, None, None) == Path("checkout.results.json")
    assert cli._results_path(src, out, None) == out / "checkout.results.json"
    assert cli._results_path(src, out, Path("r.json")) == out / "r.json"
    assert cli._results_path(src, None, Path("r.json")) == Path("r.json")
    absolute = tmp_path / "abs.json"
    assert cli._results_path(src, out, absolute) == absolute


def test_evaluate_reports_cycles(tmp_path: Path, capsys) -> None:
    doc = {
        "name": "loop",
        "nodes": [{"id": n, "dailyQPS": 10} for n in ("a", "b", "c")],
        "edges": [
            {"source": "a", "target": "b"},
            {"source": "b", "target": "c"},
            {"source": "c", "target": "b"},
        ],
    }
    src = tmp_path / "loop.json"
    src.write_text(json.dumps(doc))

    cli.main(["evaluate", str(src), "--no-results"])
    out = capsys.readouterr().out

    assert "call cycle" in out
    assert "b, c" in out


def test_evaluate_missing_file_exits_one(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["evaluate", str(tmp_path / "missing.yaml")])
    assert exc_info.value.code == 1
    assert "Input file not found" in capsys.readouterr().out


def test_evaluate_unknown_flow_exits_one(sample_data_dir: Path, capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(
            [
                "evaluate",
                str(sample_data_dir / "checkout.yaml"),
                "-f",
                "nope",
                "--no-results",
            ]
        )
    assert exc_info.value.code == 1
    assert "ValueError" in capsys.readouterr().out


def test_evaluate_unsupported_format_exits_one(tmp_path: Path, capsys) -> None:
    src = tmp_path / "flow.txt"
    src.write_text("x")
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["evaluate", str(src)])
    assert exc_info.value.code == 1
    assert "Unsupported input format" in capsys.readouterr().out


def test_evaluate_duplicate_flow_names_exit_one(tmp_path: Path, capsys) -> None:
    src = tmp_path / "dup.yaml"
    src.write_text(
        "flows:\n"
        "  - {name: dup, nodes: [{id: x}]}\n"
        "  - {name: dup, nodes: [{id: p}]}\n"
    )
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["evaluate", str(src), "--no-results"])
    assert exc_info.value.code == 1
    assert "Duplicate flow name 'dup'" in capsys.readouterr().out


# inspect


def test_inspect_summary(sample_data_dir: Path, capsys) -> None:
    cli.main(["inspect", str(sample_data_dir / "checkout_snapshot.json")])
    out = capsys.readouterr().out

    assert "✅ Input loaded" in out
    assert "Flows: 1" in out
    assert "Global Multiplier: 2" in out
    assert "Edges with unknown endpoints (ignored): 1" in out
    assert "Entry Nodes: 1" in out


def test_inspect_detail_tables(sample_data_dir: Path, capsys) -> None:
    cli.main(["inspect", str(sample_data_dir / "checkout.yaml"), "--detail"])
    out = capsys.readouterr().out

    assert "📁 checkout" in out
    assert "📁 search" in out
    assert "Active Flow: checkout" in out
    assert "Rate Limit" in out
    assert "user-db" in out
    assert "Multiplier" in out


# export


def test_export_json_snapshot_round_trip(
    sample_data_dir: Path, tmp_path: Path, capsys
) -> None:
    target = tmp_path / "search.json"
    src = sample_data_dir / "checkout.yaml"
    cli.main(["export", str(src), str(target), "-f", "search"])

    assert "✅ Exported to:" in capsys.readouterr().out
    data = json.loads(target.read_text())
    assert data["name"] == "search"
    assert data["multiplier"] == 1.0
    index = next(n for n in data["nodes"] if n["id"] == "index")
    assert index["data"]["currentQPS"] == 600
    assert index["data"]["status"] == "critical"


def test_export_yaml_then_evaluate(sample_data_dir: Path, tmp_path: Path) -> None:
    target = tmp_path / "copy.yaml"
    cli.main(["export", str(sample_data_dir / "checkout_snapshot.json"), str(target)])
    assert target.exists()

    results = tmp_path / "copy.results.json"
    cli.main(["evaluate", str(target), "-r", str(results)])
    data = json.loads(results.read_text())
    assert data["multiplier"] == 2
    assert data["flows"]["checkout"]["results"]["2"]["bottleneckType"] == "rate_limit"


def test_export_workbook(sample_data_dir: Path, tmp_path: Path) -> None:
    pd = pytest.importorskip("pandas")
    pytest.importorskip("openpyxl")
    target = tmp_path / "flows.xlsx"

    cli.main(["export", str(sample_data_dir / "checkout.yaml"), str(target)])

    sheets = pd.read_excel(target, sheet_name=None)
    assert set(sheets) == {"Nodes", "Edges", "Config"}
    assert len(sheets["Nodes"]) == 6
    assert sheets["Config"]["Global Multiplier"].iloc[0] == 1


def test_export_unsupported_target_exits_one(
    sample_data_dir: Path, tmp_path: Path, capsys
) -> None:
    with pytest.raises(SystemExit) as exc_info:
        src = sample_data_dir / "checkout.yaml"
        cli.main(["export", str(src), str(tmp_path / "x.csv")])
    assert exc_info.value.code == 1
    assert "Unsupported output format" in capsys.readouterr().out


# global options


def test_no_args_prints_help_and_exits_zero(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main([])
    assert exc_info.value.code == 0
    assert "evaluate" in capsys.readouterr().out


def test_unknown_command_exits_two() -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["simulate"])
    assert exc_info.value.code == 2


def test_format_helpers() -> None:
    assert cli._format_qps(1000.0) == "1,000"
    assert cli._format_qps(12.5) == "12.5"
    assert cli._format_qps("n/a") == "n/a"
    assert cli._format_duration(0.25) == "250.0 ms"
    assert cli._format_duration(2) == "2.00 s"
    assert cli._format_table(["A"], []) == ""
    table = cli._format_table(["A", "B"], [["x", "yy"]], min_width=2)
    assert table.splitlines()[0] == "   A  | B "
