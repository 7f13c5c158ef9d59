import csv

import pytest

from route_core import main as main_module


def _write_corner(path):
    east = [(5.0 * i, 0.0, float(i)) for i in range(21)]
    north = [(100.0, 5.0 * j, float(20 + j)) for j in range(1, 21)]
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(["x", "y", "z"])
        writer.writerows(east + north)


def _run(monkeypatch, tmp_path, *args):
    monkeypatch.setattr(main_module, "configure_logging", lambda *_args: None)
    return main_module.main(["--config", str(tmp_path / "none.ini"), *args])


def test_summary_reports_track(monkeypatch, tmp_path, capsys):
    points = tmp_path / "corner.csv"
    _write_corner(points)

    status = _run(monkeypatch, tmp_path, "summary", str(points))

    out = capsys.readouterr().out
    assert status == 0
    assert "points: 41" in out
    assert "loop: almost_loop" in out
    assert "nodes: 2" in out


def test_bend_reports_replaced_range(monkeypatch, tmp_path, capsys):
    points = tmp_path / "corner.csv"
    _write_corner(points)

    status = _run(
        monkeypatch, tmp_path,
        "bend", str(points), "--x", "92", "--y", "8", "--radius", "12", "--spacing", "2",
    )

    assert status == 0
    assert "replaces points 16-24" in capsys.readouterr().out


def test_bend_reports_problem(monkeypatch, tmp_path, capsys):
    points = tmp_path / "corner.csv"
    _write_corner(points)

    status = _run(monkeypatch, tmp_path, "bend", str(points), "--x", "500", "--y", "500")

    assert status == 1
    assert "cannot apply" in capsys.readouterr().out


def test_missing_input_is_an_error(monkeypatch, tmp_path):
    assert _run(monkeypatch, tmp_path, "summary", str(tmp_path / "missing.csv")) == 2


def test_bad_row_is_an_error(monkeypatch, tmp_path):
    points = tmp_path / "bad.csv"
    points.write_text("x,y,z\n1,2,3\n4,five,6\n", encoding="utf-8")

    assert _run(monkeypatch, tmp_path, "summary", str(points)) == 2


def test_short_row_names_its_line(tmp_path):
    points = tmp_path / "short.csv"
    points.write_text("x,y,z\n1,2,3\n4,5\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"short\.csv:3: expected three columns"):
        main_module.load_points(points, lat_lon=False)


def test_short_row_is_an_error(monkeypatch, tmp_path):
    points = tmp_path / "short.csv"
    points.write_text("1,2,3\n4,5\n", encoding="utf-8")

    assert _run(monkeypatch, tmp_path, "summary", str(points)) == 2
