import pytest

from isokit.__main__ import main, parse_arguments


@pytest.fixture(autouse=True)
def quiet_logging(mocker):
    # Keep the CLI from replacing the test session's log handlers
    return mocker.patch("isokit.__main__.setup_logging")


@pytest.fixture
def town(tmp_path, make_map, grass_tileset):
    body = (grass_tileset
            + '<layer name="Ground" width="2" height="2">'
              '<data encoding="csv">1,1,1,1</data></layer>'
            + '<group name="House+1">'
              '<layer name="Walls" width="2" height="2" visible="0">'
              '<data encoding="csv">2,0,0,0</data></layer>'
              '</group>')
    path = tmp_path / "town.tmx"
    path.write_text(make_map(body))
    return path


def test_defaults():
    args = parse_arguments(["town.tmx"])
    assert args.map_file == "town.tmx"
    assert args.assets is None
    assert args.limit == 10
    assert args.external_tilesets is True
    assert args.verbose is False


def test_report(town, capsys):
    assert main([str(town), "--limit", "2"]) == 0
    out = capsys.readouterr().out

    assert "=== World ===" in out
    assert "World size: 2 x 2 x 2 cells" in out
    assert "Nodes:      5 placed" in out
    assert "- Ground: z=0" in out
    assert "  - Walls: z=1" in out
    assert "(hidden)" in out
    assert "=== Paint order (2 of 5) ===" in out


def test_assets_directory_resolves_textures(town, asset_dir, capsys):
    assert main([str(town), "--assets", str(asset_dir), "--limit", "0"]) == 0
    out = capsys.readouterr().out
    assert "tiles/grass" in out
    assert "tiles/tower" in out
    assert "Warnings:   0" in out


def test_failed_load_exits_with_error(tmp_path, caplog, quiet_logging):
    with caplog.at_level("ERROR", logger="isokit.cli"):
        assert main([str(tmp_path / "missing.tmx"), "-v"]) == 1
    assert "missing.tmx" in caplog.text
    quiet_logging.assert_called_once()
