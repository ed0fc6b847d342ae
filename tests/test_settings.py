import configparser

from tl_repo.settings import TranslationSettings


def test_load_missing_file(tmp_path):
    settings = TranslationSettings.load(tmp_path / "config.ini")
    assert settings.translation_repo_index is None
    assert settings.localized_data_dir is None


def test_save_preserves_other_sections(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("[General]\nlogMode = verbose\n", encoding="utf-8")

    settings = TranslationSettings(path, translation_repo_index="https://h/index.json")
    assert settings.save()

    config = configparser.ConfigParser()
    config.read(path, encoding="utf-8")
    assert config.get("General", "logMode") == "verbose"
    assert config.get("TranslationRepo", "translation_repo_index") == "https://h/index.json"
    assert not config.has_option("TranslationRepo", "localized_data_dir")

    loaded = TranslationSettings.load(path)
    assert loaded.translation_repo_index == "https://h/index.json"
    assert loaded.localized_data_dir is None


def test_cleared_value_is_removed(tmp_path):
    path = tmp_path / "config.ini"
    settings = TranslationSettings(path, translation_repo_index="a", localized_data_dir="/data")
    settings.save()

    settings.localized_data_dir = None
    settings.save()

    assert TranslationSettings.load(path).localized_data_dir is None
