"""db/content.py

Content blocks (one per block type and project) and their draft history.

The block's active_draft_id is a weak pointer: it is not a foreign key and
is resolved through DraftRef, so a deleted draft reads as "no active draft".
"""
import logging
import uuid
from contextlib import contextmanager
from typing import List, Optional, Tuple

from prompt_builder.config import CONTENT_BLOCK_TYPES
from prompt_builder.db.infra.core import Database
from prompt_builder.errors import NotFoundError, ValidationError
from prompt_builder.models import DraftRef, ProjectContentBlock, ProjectDraft

logger = logging.getLogger(__name__)


def new_draft_id() -> str:
    return f"draft-{uuid.uuid4().hex}"


def validate_block_type(block_type: str) -> str:
    if block_type not in CONTENT_BLOCK_TYPES:
        raise ValidationError(
            f"Invalid block type {block_type!r}; expected one of {', '.join(CONTENT_BLOCK_TYPES)}"
        )
    return block_type


def _row_to_block(row) -> ProjectContentBlock:
    return ProjectContentBlock(
        id=row["id"],
        project_id=row["project_id"],
        block_type=row["block_type"],
        active_draft=DraftRef(row["active_draft_id"]),
        created_at=row["created_at"],
    )


def _row_to_draft(row) -> ProjectDraft:
    return ProjectDraft(
        id=row["id"],
        content_block_id=row["content_block_id"],
        content=row["content"] or "",
        timestamp=row["timestamp"],
    )


class ContentDAO:
    def __init__(self, db: Database):
        if db is None:
            raise ValueError("ContentDAO requires a Database")
        self._db = db

    # -----------------------
    # internal helpers
    # -----------------------

    @contextmanager
    def _connection(self):
        with self._db.transaction() as conn:
            yield conn

    def _require_block(self, project_id: int, block_type: str) -> ProjectContentBlock:
        block = self.get_block(project_id, block_type)
        if block is None:
            raise NotFoundError(f"Content block {block_type} not found in project {project_id}")
        return block

    # -----------------------
    # READ operations
    # -----------------------

    def list_blocks(self, project_id: int) -> List[ProjectContentBlock]:
        logger.debug("Loading content blocks for project %s", project_id)
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT id, project_id, block_type, active_draft_id, created_at
                FROM project_content_blocks
                WHERE project_id = ?
                ORDER BY id
                """,
                (project_id,),
            ).fetchall()
        return [_row_to_block(row) for row in rows]

    def get_block(self, project_id: int, block_type: str) -> Optional[ProjectContentBlock]:
        validate_block_type(block_type)
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT id, project_id, block_type, active_draft_id, created_at
                FROM project_content_blocks
                WHERE project_id = ? AND block_type = ?
                """,
                (project_id, block_type),
            ).fetchone()
        return _row_to_block(row) if row else None

    def list_drafts(self, project_id: int, block_type: str) -> List[ProjectDraft]:
        """Drafts of one block, newest first."""
        block = self._require_block(project_id, block_type)
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT id, content_block_id, content, timestamp
                FROM project_drafts
                WHERE content_block_id = ?
                ORDER BY timestamp DESC, rowid DESC
                """,
                (block.id,),
            ).fetchall()
        return [_row_to_draft(row) for row in rows]

    def get_draft(self, content_block_id: int, draft_id: str) -> Optional[ProjectDraft]:
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT id, content_block_id, content, timestamp
                FROM project_drafts
                WHERE id = ? AND content_block_id = ?
                """,
                (draft_id, content_block_id),
            ).fetchone()
        return _row_to_draft(row) if row else None

    def get_active_draft(self, project_id: int, block_type: str) -> Optional[ProjectDraft]:
        block = self.get_block(project_id, block_type)
        if block is None:
            return None
        return block.active_draft.resolve(lambda draft_id: self.get_draft(block.id, draft_id))

    # -----------------------
    # WRITE operations
    # -----------------------

    def ensure_block(self, project_id: int, block_type: str) -> Tuple[int, bool]:
        """
        Create the block if absent, with a fresh empty draft as its active draft.
        Returns (block_id, created).
        """
        validate_block_type(block_type)
        draft_id = new_draft_id()
        with self._connection() as conn:
            cur = conn.execute(
                """
                INSERT OR IGNORE INTO project_content_blocks
                    (project_id, block_type, active_draft_id)
                VALUES (?, ?, ?)
                """,
                (project_id, block_type, draft_id),
            )
            created = cur.rowcount > 0
            row = conn.execute(
                "SELECT id FROM project_content_blocks WHERE project_id = ? AND block_type = ?",
                (project_id, block_type),
            ).fetchone()
            if created:
                conn.execute(
                    "INSERT INTO project_drafts (id, content_block_id, content) VALUES (?, ?, '')",
                    (draft_id, row["id"]),
                )
        return row["id"], created

    def create_draft(
        self,
        project_id: int,
        block_type: str,
        draft_id: Optional[str] = None,
        content: str = "",
        *,
        make_active: bool = True,
    ) -> str:
        draft_id = draft_id or new_draft_id()
        logger.info("Creating draft %s for %s in project %s", draft_id, block_type, project_id)
        try:
            with self._connection() as conn:
                block = self._require_block(project_id, block_type)
                conn.execute(
                    "INSERT INTO project_drafts (id, content_block_id, content) VALUES (?, ?, ?)",
                    (draft_id, block.id, content or ""),
                )
                if make_active:
                    conn.execute(
                        "UPDATE project_content_blocks SET active_draft_id = ? WHERE id = ?",
                        (draft_id, block.id),
                    )
        except NotFoundError:
            raise
        except Exception:
            logger.exception("Failed to create draft %s", draft_id)
            raise
        return draft_id

    def update_draft_content(self, project_id: int, block_type: str, draft_id: str, content: str) -> bool:
        block = self._require_block(project_id, block_type)
        logger.info("Updating draft %s in project %s", draft_id, project_id)
        with self._connection() as conn:
            cur = conn.execute(
                "UPDATE project_drafts SET content = ? WHERE id = ? AND content_block_id = ?",
                (content or "", draft_id, block.id),
            )
        return cur.rowcount > 0

    def set_active_draft(self, project_id: int, block_type: str, draft_id: str) -> None:
        with self._connection() as conn:
            block = self._require_block(project_id, block_type)
            if self.get_draft(block.id, draft_id) is None:
                raise NotFoundError(f"Draft {draft_id} not found in {block_type}")
            conn.execute(
                "UPDATE project_content_blocks SET active_draft_id = ? WHERE id = ?",
                (draft_id, block.id),
            )

    def delete_draft(self, project_id: int, block_type: str, draft_id: str) -> bool:
        """
        Delete one draft. The block pointer is left untouched and may dangle.
        """
        block = self._require_block(project_id, block_type)
        logger.info("Deleting draft %s from project %s", draft_id, project_id)
        with self._connection() as conn:
            cur = conn.execute(
                "DELETE FROM project_drafts WHERE id = ? AND content_block_id = ?",
                (draft_id, block.id),
            )
        return cur.rowcount > 0


# -----------------------
# Transaction-scoped DAO
# -----------------------

@contextmanager
def content_dao(db: Database):
    """
    Yield a ContentDAO bound to a single transaction.
    """
    with db.transaction():
        yield ContentDAO(db)
