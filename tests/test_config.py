from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from config import AnalysisConfig, AppConfig, ScanConfig
from errors import ConfigLoadError


def test_analysis_defaults() -> None:
    cfg = AnalysisConfig()
    assert cfg.phash_threshold == 10
    assert cfg.blur_threshold == 250.0
    assert cfg.regroup_every == 50
    assert cfg.discard_bytes_after_processing is True
    assert (cfg.normalize_size, cfg.hash_size, cfg.dct_size) == (256, 32, 8)


def test_regroup_every_clamped() -> None:
    assert AnalysisConfig(regroup_every=-5).regroup_every == 1


def test_negative_phash_threshold_rejected() -> None:
    with pytest.raises(ValidationError):
        AnalysisConfig(phash_threshold=-1)


def test_extensions_normalized() -> None:
    cfg = ScanConfig(include_ext=["JPG", " .Png ", ""])
    assert cfg.include_ext == [".jpg", ".png"]


def test_load_defaults_without_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    cfg = AppConfig.load()
    assert cfg.analysis == AnalysisConfig()


def test_load_from_toml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "clean.toml").write_text(
        "[scan]\ninclude_ext = ['png']\n\n"
        "[analysis]\nphash_threshold = 4\nregroup_every = 0\n",
        encoding="utf-8",
    )
    cfg = AppConfig.load()
    assert cfg.scan.include_ext == [".png"]
    assert cfg.analysis.phash_threshold == 4
    assert cfg.analysis.regroup_every == 1


def test_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PCLEAN_BLUR_THRESHOLD", "99.5")
    monkeypatch.setenv("PCLEAN_REGROUP_EVERY", "7")
    cfg = AppConfig.load()
    assert cfg.analysis.blur_threshold == 99.5
    assert cfg.analysis.regroup_every == 7


def test_bad_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PCLEAN_PHASH_THRESHOLD", "ten")
    with pytest.raises(ConfigLoadError):
        AppConfig.load()


def test_invalid_toml(tmp_path: Path) -> None:
    bad = tmp_path / "clean.toml"
    bad.write_text("[analysis\n", encoding="utf-8")
    with pytest.raises(ConfigLoadError):
        AppConfig.load(bad)


def test_invalid_values(tmp_path: Path) -> None:
    bad = tmp_path / "clean.toml"
    bad.write_text("[analysis]\nphash_threshold = -3\n", encoding="utf-8")
    with pytest.raises(ConfigLoadError):
        AppConfig.load(bad)


def test_missing_explicit_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError):
        AppConfig.load(tmp_path / "nope.toml")
