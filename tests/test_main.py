import argparse
import os

import pytest

from photo_uploader import main as main_mod
from photo_uploader.encoder import decode_data_url
from photo_uploader.settings_manager import SettingsManager
from tests.helpers.images import solid_png


@pytest.fixture
def settings(tmp_path):
    return SettingsManager(str(tmp_path / "settings.json"))


def test_cli_logging_options_set_env(monkeypatch):
    monkeypatch.delenv("PHOTO_UPLOADER_LOG_LEVEL", raising=False)
    monkeypatch.delenv("PHOTO_UPLOADER_LOG_CATS", raising=False)
    remaining = main_mod._apply_cli_logging_options(["--log-level", "debug", "crop", "--log-cats", "decoder", "a.png"])
    assert remaining == ["crop", "a.png"]
    assert os.environ["PHOTO_UPLOADER_LOG_LEVEL"] == "debug"
    assert os.environ["PHOTO_UPLOADER_LOG_CATS"] == "decoder"


def test_cli_logging_options_passthrough(monkeypatch):
    monkeypatch.delenv("PHOTO_UPLOADER_LOG_LEVEL", raising=False)
    assert main_mod._apply_cli_logging_options(["-style", "fusion"]) == ["-style", "fusion"]
    assert "PHOTO_UPLOADER_LOG_LEVEL" not in os.environ


def test_parse_size():
    assert main_mod._parse_size("400x300") == (400, 300)
    assert main_mod._parse_size("10X20") == (10, 20)
    for bad in ("400", "0x10", "axb", "-5x5"):
        with pytest.raises(argparse.ArgumentTypeError):
            main_mod._parse_size(bad)


@pytest.mark.usefixtures("requires_pyvips")
def test_crop_command_writes_data_url(tmp_path, settings):
    src = tmp_path / "me.png"
    src.write_bytes(solid_png(300, 400))
    out = tmp_path / "photo.txt"

    rc = main_mod._run_crop([str(src), "-o", str(out), "--container", "300x300"], settings)

    assert rc == 0
    mime, payload = decode_data_url(out.read_text(encoding="utf-8"))
    assert mime == "image/jpeg"
    assert payload[:2] == b"\xff\xd8"


@pytest.mark.usefixtures("requires_pyvips")
def test_crop_command_prints_to_stdout(tmp_path, settings, capsys):
    src = tmp_path / "me.png"
    src.write_bytes(solid_png(120, 160))
    assert main_mod._run_crop([str(src)], settings) == 0
    assert capsys.readouterr().out.strip().startswith("data:image/jpeg;base64,")


def test_crop_command_rejects_gif(tmp_path, settings, capsys):
    src = tmp_path / "anim.gif"
    src.write_bytes(b"GIF89a" + b"\x00" * 16)
    assert main_mod._run_crop([str(src)], settings) == 2
    assert "JPG/PNG" in capsys.readouterr().err


def test_crop_command_rejects_oversized(tmp_path, settings, capsys):
    settings.set("max_size_mb", 0.0001)
    src = tmp_path / "big.png"
    src.write_bytes(b"\x00" * 1024)
    assert main_mod._run_crop([str(src)], settings) == 2
    assert "under" in capsys.readouterr().err
