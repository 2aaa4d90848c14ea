import json

import pytest

from opa import cli
from opa.errors import InvalidData, InvalidHypothesis


@pytest.fixture
def data_csv(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text(
        "pre,mid,post,site\n1,2,3,north\n3,2,1,south\n1,3,2,north\n2,1,3,south\n",
        encoding="utf-8",
    )
    return path


def test_parse_hypothesis():
    assert cli.parse_hypothesis("1, 2,2,3").values == (1.0, 2.0, 2.0, 3.0)
    with pytest.raises(InvalidHypothesis):
        cli.parse_hypothesis("1,a")


def test_load_data_splits_group_column(data_csv):
    frame, group = cli.load_data(data_csv, "site")
    assert list(frame.columns) == ["pre", "mid", "post"]
    assert group == ["north", "south", "north", "south"]
    with pytest.raises(InvalidData, match="group column"):
        cli.load_data(data_csv, "region")


def test_main_fit_command_writes_artifacts(monkeypatch, tmp_path, capsys):
    out = tmp_path / "artifacts"
    monkeypatch.setattr(
        "sys.argv",
        [
            "opa",
            "fit",
            "--data",
            str(tmp_path / "data.csv"),
            "--hypothesis",
            "1,2,3",
            "--group-column",
            "site",
            "--output",
            str(out),
            "--nreps",
            "20",
            "--seed",
            "3",
        ],
    )
    (tmp_path / "data.csv").write_text(
        "pre,mid,post,site\n1,2,3,north\n3,2,1,south\n1,3,2,north\n", encoding="utf-8"
    )
    assert cli.main() == 0
    assert "Report written to" in capsys.readouterr().out

    payload = json.loads((out / "fit.json").read_text(encoding="utf-8"))
    assert payload["grouped"] is True
    assert payload["columns"] == ["pre", "mid", "post"]
    assert payload["config"]["nreps"] == 20
    assert [group["label"] for group in payload["groups"]] == ["north", "south"]
    assert (out / "report.md").exists()
    events = [
        json.loads(line)["event_type"]
        for line in (out / "events.jsonl").read_text(encoding="utf-8").splitlines()
    ]
    assert events == ["fit_started", "fit_completed"]


def test_main_fit_command_reads_config_file(monkeypatch, tmp_path):
    data_path = tmp_path / "numeric.csv"
    data_path.write_text("a,b,c\n1,2,3\n1,3,2\n", encoding="utf-8")
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps({"cval_method": "exact", "pairing_type": "adjacent"}), encoding="utf-8"
    )
    out = tmp_path / "exact"
    monkeypatch.setattr(
        "sys.argv",
        [
            "opa",
            "fit",
            "--data",
            str(data_path),
            "--hypothesis",
            "1,2,3",
            "--config",
            str(config_path),
            "--output",
            str(out),
        ],
    )
    assert cli.main() == 0
    payload = json.loads((out / "fit.json").read_text(encoding="utf-8"))
    assert payload["config"]["cval_method"] == "exact"
    assert payload["config"]["pairing_type"] == "adjacent"
    assert payload["groups"][0]["cvals"]["n_permutations"] == 12
    assert payload["total_pairs"] == 4


def test_main_fit_command_reports_invalid_hypothesis(monkeypatch, tmp_path, data_csv):
    monkeypatch.setattr(
        "sys.argv",
        [
            "opa",
            "fit",
            "--data",
            str(data_csv),
            "--hypothesis",
            "1,2",
            "--group-column",
            "site",
            "--output",
            str(tmp_path / "bad"),
        ],
    )
    assert cli.main() == 2


def test_main_conditions_command_writes_tables(monkeypatch, tmp_path, data_csv, capsys):
    out = tmp_path / "conditions"
    monkeypatch.setattr(
        "sys.argv",
        [
            "opa",
            "conditions",
            "--data",
            str(data_csv),
            "--hypothesis",
            "1,2,3",
            "--group-column",
            "site",
            "--output",
            str(out),
            "--nreps",
            "10",
            "--seed",
            "1",
        ],
    )
    assert cli.main() == 0
    assert "Pairwise cvals:" in capsys.readouterr().out
    assert (out / "condition_pccs.csv").exists()
    assert (out / "condition_cvals.csv").exists()


def test_main_report_command_regenerates_markdown(monkeypatch, tmp_path, data_csv, capsys):
    out = tmp_path / "artifacts"
    monkeypatch.setattr(
        "sys.argv",
        [
            "opa",
            "fit",
            "--data",
            str(data_csv),
            "--hypothesis",
            "1,2,3",
            "--output",
            str(out),
            "--nreps",
            "10",
        ],
    )
    # Without --group-column the site labels are not numeric, so drop them first.
    data_csv.write_text("pre,mid,post\n1,2,3\n3,2,1\n", encoding="utf-8")
    assert cli.main() == 0
    (out / "report.md").unlink()

    monkeypatch.setattr("sys.argv", ["opa", "report", "--artifacts", str(out)])
    assert cli.main() == 0
    assert "Report written to" in capsys.readouterr().out
    report = (out / "report.md").read_text(encoding="utf-8")
    assert "- Hypothesis: 1 2 3" in report
    assert "- pooled: PCC 50.00" in report


def test_main_report_command_tolerates_malformed_json(monkeypatch, tmp_path):
    artifacts_dir = tmp_path / "artifacts"
    artifacts_dir.mkdir(parents=True, exist_ok=True)
    (artifacts_dir / "fit.json").write_text("{bad json", encoding="utf-8")
    monkeypatch.setattr("sys.argv", ["opa", "report", "--artifacts", str(artifacts_dir)])

    assert cli.main() == 0
    report = (artifacts_dir / "report.md").read_text(encoding="utf-8")
    assert "Ordinal Pattern Analysis Report" in report
    assert "No readable fit" in report


def test_main_fit_command_reports_non_numeric_columns(monkeypatch, tmp_path, data_csv):
    # Without --group-column the text column "site" is read as data.
    monkeypatch.setattr(
        "sys.argv",
        [
            "opa",
            "fit",
            "--data",
            str(data_csv),
            "--hypothesis",
            "1,2,3,4",
            "--output",
            str(tmp_path / "text_column"),
        ],
    )
    assert cli.main() == 2
    assert not (tmp_path / "text_column" / "fit.json").exists()
