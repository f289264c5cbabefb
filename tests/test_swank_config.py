import logging

import pytest

from swank.swank_config import SwankConfig, configure_logging, load_config


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    monkeypatch.delenv("SWANK_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_without_any_file():
    config = load_config()
    assert config == SwankConfig()
    assert config.default_namespace == "__main__"
    assert config.class_path_env == "PYTHONPATH"
    assert config.definition_label_template == "(def {{name}})"


def test_explicit_path(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text("default_namespace: app.core\nboot_class_path: ''\nlog_level: debug\n", encoding="utf-8")
    config = load_config(path)
    assert config.default_namespace == "app.core"
    assert config.boot_class_path == ""
    assert config.log_level == "debug"


def test_environment_variable(tmp_path, monkeypatch):
    path = tmp_path / "env.yaml"
    path.write_text("working_directory: /srv/project\n", encoding="utf-8")
    monkeypatch.setenv("SWANK_CONFIG", str(path))
    assert load_config().working_directory == "/srv/project"


def test_working_directory_file(tmp_path):
    (tmp_path / "swank.yaml").write_text("class_path_env: EXTRA_PATH\n", encoding="utf-8")
    assert load_config().class_path_env == "EXTRA_PATH"


def test_empty_file_gives_defaults(tmp_path):
    (tmp_path / "swank.yaml").write_text("", encoding="utf-8")
    assert load_config() == SwankConfig()


def test_unknown_keys_are_rejected(tmp_path):
    (tmp_path / "swank.yaml").write_text("default_namespace: a\ncolour: blue\n", encoding="utf-8")
    with pytest.raises(ValueError, match="colour"):
        load_config()


def test_top_level_must_be_a_mapping(tmp_path):
    (tmp_path / "swank.yaml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_config()


def test_explicit_missing_file_is_an_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_configure_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    configure_logging(SwankConfig(log_level="info", log_format="%(message)s"))
    assert calls == [{"level": logging.INFO, "format": "%(message)s"}]
    with pytest.raises(ValueError):
        configure_logging(SwankConfig(log_level="chatty"))
