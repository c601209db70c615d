# tests/test_projects_dao.py
import time

import pytest

from prompt_builder.config import CONTENT_BLOCK_TYPES, DEFAULT_PROJECT_ID
from prompt_builder.db.components import ComponentDAO
from prompt_builder.db.content import ContentDAO
from prompt_builder.db.projects import ProjectDAO, project_dao
from prompt_builder.db.prompt_sets import PromptSetDAO
from prompt_builder.db.settings import SettingsDAO
from prompt_builder.errors import NotFoundError, PolicyError, ValidationError

SCOPED_TABLES = (
    "project_components",
    "project_prompt_sets",
    "project_prompt_set_visibility",
    "project_content_blocks",
    "project_settings",
)


def _scoped_counts(db, project_id):
    with db.transaction() as conn:
        counts = {
            t: conn.execute(f"SELECT COUNT(*) FROM {t} WHERE project_id = ?", (project_id,)).fetchone()[0]
            for t in SCOPED_TABLES
        }
        counts["project_drafts"] = conn.execute(
            """
            SELECT COUNT(*) FROM project_drafts d
            JOIN project_content_blocks b ON d.content_block_id = b.id
            WHERE b.project_id = ?
            """,
            (project_id,),
        ).fetchone()[0]
    return counts


def _all_drafts(db):
    with db.transaction() as conn:
        return conn.execute("SELECT COUNT(*) FROM project_drafts").fetchone()[0]


def test_create_trims_and_requires_name(db):
    dao = ProjectDAO(db)

    project_id = dao.create("  Launch  ", "  notes ")
    project = dao.get(project_id)
    assert (project.name, project.description) == ("Launch", "notes")

    with pytest.raises(ValidationError):
        dao.create("   ")
    with pytest.raises(ValidationError):
        dao.create(None)


def test_initialize_scaffolds_project(db):
    dao = ProjectDAO(db)
    project_id = dao.create("Fresh")

    dao.initialize(project_id)
    dao.initialize(project_id)

    assert {ps.set_key for ps in PromptSetDAO(db).list(project_id)} == {"custom_build", "blog_post"}
    assert len(ContentDAO(db).list_blocks(project_id)) == len(CONTENT_BLOCK_TYPES)
    assert SettingsDAO(db).get(project_id) is not None
    assert dao.stats(project_id) == {
        "component_count": 0,
        "prompt_set_count": 2,
        "content_block_count": len(CONTENT_BLOCK_TYPES),
        "has_settings": True,
    }


def test_update_project(db):
    dao = ProjectDAO(db)
    project_id = dao.create("Old")
    before = dao.get(project_id)
    time.sleep(0.01)

    assert dao.update(project_id, name="New") is True
    assert dao.update(project_id) is False
    assert dao.update(999, name="Ghost") is False

    after = dao.get(project_id)
    assert after.name == "New"
    assert after.modified_at > before.modified_at
    assert after.created_at == before.created_at


def test_default_project_cannot_be_deleted(seeded_db):
    with pytest.raises(PolicyError):
        ProjectDAO(seeded_db).delete(DEFAULT_PROJECT_ID)
    assert ProjectDAO(seeded_db).get(DEFAULT_PROJECT_ID) is not None


def test_delete_missing_project_is_not_found(db):
    with pytest.raises(NotFoundError):
        ProjectDAO(db).delete(12345)


def test_delete_cascades_only_within_project(seeded_db):
    dao = ProjectDAO(seeded_db)
    default_before = _scoped_counts(seeded_db, DEFAULT_PROJECT_ID)

    with project_dao(seeded_db) as tx:
        project_id = tx.create("Doomed")
        tx.initialize(project_id)
        tx.copy_into(DEFAULT_PROJECT_ID, project_id)
    ContentDAO(seeded_db).create_draft(project_id, "userOutline", content="extra")
    assert all(n > 0 for n in _scoped_counts(seeded_db, project_id).values())

    deleted = dao.delete(project_id)

    assert deleted.name == "Doomed"
    assert dao.get(project_id) is None
    assert all(n == 0 for n in _scoped_counts(seeded_db, project_id).values())
    assert _scoped_counts(seeded_db, DEFAULT_PROJECT_ID) == default_before
    assert _all_drafts(seeded_db) == default_before["project_drafts"]


def test_copy_fidelity(seeded_db):
    components = ComponentDAO(seeded_db)
    prompt_sets = PromptSetDAO(seeded_db)
    content = ContentDAO(seeded_db)
    settings = SettingsDAO(seeded_db)

    # Make the source distinctive
    blog = prompt_sets.get_by_key(DEFAULT_PROJECT_ID, "blog_post")
    tone_id = components.get_type_by_key("tone").id
    prompt_sets.set_visibility(DEFAULT_PROJECT_ID, blog.id, tone_id, False)
    outline_set = prompt_sets.create(DEFAULT_PROJECT_ID, "outline", "Outline", True)
    prompt_sets.set_visibility(DEFAULT_PROJECT_ID, outline_set, tone_id, False)
    content.create_draft(DEFAULT_PROJECT_ID, "userOutline", content="the outline")
    settings.update(DEFAULT_PROJECT_ID, {"ui_settings": {"panel": "wide"}})

    dao = ProjectDAO(seeded_db)
    target = dao.create("Copy")
    dao.initialize(target)
    summary = dao.copy_into(DEFAULT_PROJECT_ID, target)

    def per_type(project_id):
        counts = {}
        for c in components.list(project_id):
            counts[c.type_key] = counts.get(c.type_key, 0) + 1
        return counts

    assert per_type(target) == per_type(DEFAULT_PROJECT_ID)
    assert summary["components"] == components.count(DEFAULT_PROJECT_ID)

    source_sets = {ps.set_key: ps for ps in prompt_sets.list(DEFAULT_PROJECT_ID)}
    target_sets = {ps.set_key: ps for ps in prompt_sets.list(target)}
    assert set(target_sets) == set(source_sets)
    assert len(prompt_sets.list(target)) == len(source_sets)

    def visibility_by_key(project_id, sets):
        by_id = {ps.id: key for key, ps in sets.items()}
        return {
            (by_id[v.prompt_set_id], v.component_type_id): v.is_visible
            for v in prompt_sets.list_visibility(project_id)
        }

    assert visibility_by_key(target, target_sets) == visibility_by_key(DEFAULT_PROJECT_ID, source_sets)

    assert content.get_active_draft(target, "userOutline").content == "the outline"
    assert len(content.list_drafts(target, "userOutline")) == 2
    assert settings.get(target).ui_settings == {"panel": "wide"}


def test_copy_keeps_starter_flags(seeded_db):
    dao = ProjectDAO(seeded_db)
    target = dao.create("Starters")
    dao.initialize(target)
    dao.copy_into(DEFAULT_PROJECT_ID, target)

    assert all(c.is_starter for c in ComponentDAO(seeded_db).list(target))
