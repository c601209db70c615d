# schema.py
"""
Expected shape of the store after all migrations have run.

Used by the integrity checks; the migrations remain the source of truth
for creating it.
"""

SCHEMA = {
    "migrations": {
        "columns": {
            "id": {"type": "INTEGER", "notnull": False},
            "name": {"type": "TEXT", "notnull": True},
            "applied_at": {"type": "TEXT", "notnull": True},
        },
    },

    "component_types": {
        "columns": {
            "id": {"type": "INTEGER", "notnull": False},
            "type_key": {"type": "TEXT", "notnull": True},
            "display_name": {"type": "TEXT", "notnull": True},
            "created_at": {"type": "TIMESTAMP", "notnull": True},
            "modified_at": {"type": "TIMESTAMP", "notnull": True},
        },
    },

    "projects": {
        "columns": {
            "id": {"type": "INTEGER", "notnull": False},
            "name": {"type": "TEXT", "notnull": True},
            "description": {"type": "TEXT", "notnull": True},
            "created_at": {"type": "TIMESTAMP", "notnull": True},
            "modified_at": {"type": "TIMESTAMP", "notnull": True},
        },
    },

    "project_components": {
        "columns": {
            "id": {"type": "INTEGER", "notnull": False},
            "project_id": {"type": "INTEGER", "notnull": True},
            "component_type_id": {"type": "INTEGER", "notnull": True},
            "is_active": {"type": "INTEGER", "notnull": True},
            "is_starter": {"type": "INTEGER", "notnull": True},
            "selection": {"type": "TEXT", "notnull": True},
            "prompt_value": {"type": "TEXT", "notnull": True},
            "user_value": {"type": "TEXT", "notnull": True},
            "created_at": {"type": "TIMESTAMP", "notnull": True},
            "modified_at": {"type": "TIMESTAMP", "notnull": True},
        },
    },

    "project_prompt_sets": {
        "columns": {
            "id": {"type": "INTEGER", "notnull": False},
            "project_id": {"type": "INTEGER", "notnull": True},
            "set_key": {"type": "TEXT", "notnull": True},
            "display_name": {"type": "TEXT", "notnull": True},
            "is_active": {"type": "INTEGER", "notnull": True},
            "created_at": {"type": "TIMESTAMP", "notnull": True},
            "modified_at": {"type": "TIMESTAMP", "notnull": True},
        },
    },

    "project_prompt_set_visibility": {
        "columns": {
            "project_id": {"type": "INTEGER", "notnull": True},
            "prompt_set_id": {"type": "INTEGER", "notnull": True},
            "component_type_id": {"type": "INTEGER", "notnull": True},
            "is_visible": {"type": "INTEGER", "notnull": True},
        },
    },

    "project_content_blocks": {
        "columns": {
            "id": {"type": "INTEGER", "notnull": False},
            "project_id": {"type": "INTEGER", "notnull": True},
            "block_type": {"type": "TEXT", "notnull": True},
            # Soft pointer, may be NULL or dangle
            "active_draft_id": {"type": "TEXT", "notnull": False},
            "created_at": {"type": "TIMESTAMP", "notnull": True},
        },
    },

    "project_drafts": {
        "columns": {
            "id": {"type": "TEXT", "notnull": False},
            "content_block_id": {"type": "INTEGER", "notnull": True},
            "content": {"type": "TEXT", "notnull": True},
            "timestamp": {"type": "TIMESTAMP", "notnull": True},
        },
    },

    "project_settings": {
        "columns": {
            "project_id": {"type": "INTEGER", "notnull": False},
            "text_transformer_active_action": {"type": "TEXT", "notnull": True},
            "text_transformer_options": {"type": "TEXT", "notnull": True},
            "ui_settings": {"type": "TEXT", "notnull": True},
        },
    },
}

# name -> DDL; identical to the statements in 003_indexes.sql so that
# create_indexes() can restore any that went missing.
EXPECTED_INDEXES = {
    "idx_project_components_project_id":
        "CREATE INDEX IF NOT EXISTS idx_project_components_project_id "
        "ON project_components (project_id)",
    "idx_project_components_type_id":
        "CREATE INDEX IF NOT EXISTS idx_project_components_type_id "
        "ON project_components (component_type_id)",
    "idx_project_components_project_type_active":
        "CREATE INDEX IF NOT EXISTS idx_project_components_project_type_active "
        "ON project_components (project_id, component_type_id, is_active)",
    "idx_project_prompt_sets_project_id":
        "CREATE INDEX IF NOT EXISTS idx_project_prompt_sets_project_id "
        "ON project_prompt_sets (project_id)",
    "idx_project_visibility_prompt_set_id":
        "CREATE INDEX IF NOT EXISTS idx_project_visibility_prompt_set_id "
        "ON project_prompt_set_visibility (prompt_set_id)",
    "idx_project_content_blocks_project_id":
        "CREATE INDEX IF NOT EXISTS idx_project_content_blocks_project_id "
        "ON project_content_blocks (project_id)",
    "idx_project_drafts_content_block_id":
        "CREATE INDEX IF NOT EXISTS idx_project_drafts_content_block_id "
        "ON project_drafts (content_block_id)",
}

# Flag columns that must hold 0 or 1
FLAG_COLUMNS = {
    "project_components": ("is_active", "is_starter"),
    "project_prompt_sets": ("is_active",),
    "project_prompt_set_visibility": ("is_visible",),
}

# JSON-encoded text columns
JSON_COLUMNS = {
    "project_settings": ("text_transformer_options", "ui_settings"),
}

# Tables a backup must contain to be restorable
REQUIRED_TABLES = ("migrations", "component_types", "projects", "project_components")
