import logging

import pytest

from dguikit.translations import find_translation, translation_candidates


def _touch(directory, name):
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(b"")
    return path


@pytest.fixture
def empty_dirs(tmp_path):
    app = tmp_path / "app"
    cwd = tmp_path / "cwd"
    app.mkdir()
    cwd.mkdir()
    return app, cwd


def test_candidates_full_name_then_language():
    assert translation_candidates("app", "zh_CN") == ["app_zh_CN", "app_zh"]


def test_candidates_normalise_dash():
    assert translation_candidates("app", "pt-BR") == ["app_pt_BR", "app_pt"]


def test_candidates_first_is_full_name():
    result = translation_candidates("tool", "de_DE")
    assert result[0] == "tool_de_DE"
    assert all(item.startswith("tool_") for item in result)


def test_finds_file_in_given_dir(tmp_path, empty_dirs):
    app, cwd = empty_dirs
    given = tmp_path / "given"
    _touch(given, "app_zh_CN.qm")
    found = find_translation("app", [given], ["zh_CN"], app, cwd)
    assert found == (given / "app_zh_CN", "zh_CN")


def test_falls_back_to_language_file(tmp_path, empty_dirs):
    app, cwd = empty_dirs
    given = tmp_path / "given"
    _touch(given, "app_zh.qm")
    found = find_translation("app", [given], ["zh_CN"], app, cwd)
    assert found == (given / "app_zh", "zh_CN")


def test_full_name_preferred_over_language(tmp_path, empty_dirs):
    app, cwd = empty_dirs
    first = tmp_path / "first"
    second = tmp_path / "second"
    _touch(first, "app_zh.qm")
    _touch(second, "app_zh_CN.qm")
    found = find_translation("app", [first, second], ["zh_CN"], app, cwd)
    assert found[0] == second / "app_zh_CN"


def test_app_dir_translations_searched(empty_dirs):
    app, cwd = empty_dirs
    _touch(app / "translations", "app_fr.qm")
    found = find_translation("app", [], ["fr_FR"], app, cwd)
    assert found == (app / "translations" / "app_fr", "fr_FR")


def test_cwd_translations_searched(empty_dirs):
    app, cwd = empty_dirs
    _touch(cwd / "translations", "app_fr_FR.qm")
    found = find_translation("app", [], ["fr_FR"], app, cwd)
    assert found == (cwd / "translations" / "app_fr_FR", "fr_FR")


def test_locale_fallback_order(tmp_path, empty_dirs):
    app, cwd = empty_dirs
    given = tmp_path / "given"
    _touch(given, "app_de.qm")
    _touch(given, "app_ja.qm")
    found = find_translation("app", [given], ["es_ES", "de_DE", "ja_JP"], app, cwd)
    assert found == (given / "app_de", "de_DE")


def test_missing_returns_none_and_warns(tmp_path, empty_dirs, caplog):
    app, cwd = empty_dirs
    with caplog.at_level(logging.WARNING, logger="dguikit.translations"):
        found = find_translation("app", [tmp_path / "nothing"], ["zh_CN"], app, cwd)
    assert found is None
    assert "app_zh_CN.qm" in caplog.text


def test_english_missing_is_not_reported(empty_dirs, caplog):
    app, cwd = empty_dirs
    with caplog.at_level(logging.WARNING, logger="dguikit.translations"):
        found = find_translation("app", [], ["en_US"], app, cwd)
    assert found is None
    assert "can not find" not in caplog.text


def test_directory_named_like_file_is_ignored(tmp_path, empty_dirs):
    app, cwd = empty_dirs
    given = tmp_path / "given"
    (given / "app_zh_CN.qm").mkdir(parents=True)
    assert find_translation("app", [given], ["zh_CN"], app, cwd) is None


def test_no_locales_gives_none(empty_dirs):
    app, cwd = empty_dirs
    assert find_translation("app", [], [], app, cwd) is None