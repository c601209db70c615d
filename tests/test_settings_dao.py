# tests/test_settings_dao.py
import pytest

from prompt_builder.config import DEFAULT_PROJECT_ID, DEFAULT_SETTINGS
from prompt_builder.db.settings import SettingsDAO, settings_dao
from prompt_builder.errors import NotFoundError, ValidationError


def test_defaults_after_seed(seeded_db):
    settings = SettingsDAO(seeded_db).get(DEFAULT_PROJECT_ID)

    assert settings.text_transformer_active_action == DEFAULT_SETTINGS["text_transformer_active_action"]
    assert settings.text_transformer_options == DEFAULT_SETTINGS["text_transformer_options"]
    assert settings.ui_settings == {}


def test_update_encodes_dicts_and_ignores_unknown_fields(seeded_db):
    dao = SettingsDAO(seeded_db)

    assert dao.update(DEFAULT_PROJECT_ID, {"theme": "dark"}) is False
    assert dao.update(
        DEFAULT_PROJECT_ID,
        {"ui_settings": {"sidebar": "collapsed"}, "text_transformer_active_action": "rewrite"},
    ) is True

    settings = dao.get(DEFAULT_PROJECT_ID)
    assert settings.ui_settings == {"sidebar": "collapsed"}
    assert settings.text_transformer_active_action == "rewrite"


def test_update_accepts_json_strings_and_rejects_invalid_json(seeded_db):
    dao = SettingsDAO(seeded_db)

    dao.update(DEFAULT_PROJECT_ID, {"ui_settings": '{"zoom": 2}'})
    assert dao.get(DEFAULT_PROJECT_ID).ui_settings == {"zoom": 2}

    with pytest.raises(ValidationError):
        dao.update(DEFAULT_PROJECT_ID, {"ui_settings": "{not json"})


def test_invalid_stored_json_reads_as_empty(seeded_db):
    with seeded_db.transaction() as conn:
        conn.execute("UPDATE project_settings SET ui_settings = 'oops' WHERE project_id = 1")

    assert SettingsDAO(seeded_db).get(DEFAULT_PROJECT_ID).ui_settings == {}


def test_update_creates_row_when_missing(db):
    with db.transaction() as conn:
        conn.execute("INSERT INTO projects (id, name) VALUES (3, 'No settings')")
    dao = SettingsDAO(db)
    assert dao.get(3) is None

    dao.update(3, {"text_transformer_active_action": "rewrite"})

    settings = dao.get(3)
    assert settings.text_transformer_active_action == "rewrite"
    assert settings.text_transformer_options == DEFAULT_SETTINGS["text_transformer_options"]


def test_update_unknown_project_is_not_found(db):
    with pytest.raises(NotFoundError):
        SettingsDAO(db).update(99, {"ui_settings": {}})


def test_settings_dao_rolls_back_as_one_unit(seeded_db):
    with pytest.raises(ValidationError):
        with settings_dao(seeded_db) as dao:
            dao.update(DEFAULT_PROJECT_ID, {"ui_settings": {"theme": "dark"}})
            dao.update(DEFAULT_PROJECT_ID, {"text_transformer_active_action": ""})

    assert SettingsDAO(seeded_db).get(DEFAULT_PROJECT_ID).ui_settings == {}
