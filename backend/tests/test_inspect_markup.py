from scripts.inspect_markup import main
from conftest import FIXTURES_DIR


def test_inspect_markup_prints_result_candidates_and_urls(capsys):
    exit_code = main([str(FIXTURES_DIR / "maps_directions.html"), "--all", "--urls"])
    out = capsys.readouterr().out

    assert exit_code == 0
    assert "source: app_init_state" in out
    assert "3 unique candidate(s):" in out
    assert "[21.031700, 105.812500]  protobuf_pb" in out
    assert "https://www.google.com/maps/dir/" in out


def test_inspect_markup_missing_file_fails(tmp_path):
    assert main([str(tmp_path / "missing.html")]) == 1


def test_inspect_markup_all_lists_place_marker_and_center_candidates(tmp_path, capsys):
    page = tmp_path / "page.html"
    page.write_text("!3d21.0285!4d105.8342 center=21.03%2C105.85", encoding="utf-8")

    assert main([str(page), "--all"]) == 0
    out = capsys.readouterr().out
    assert "source: not_found" in out
    assert "[21.028500, 105.834200]  protobuf_lat_lng" in out
    assert "[21.030000, 105.850000]  static_map_center" in out
