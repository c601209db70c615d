# prompt_builder/db/infra/sql_utils.py
"""
SQL identifier helpers for statements that interpolate table names read
from sqlite_master (row counts, PRAGMA table_info).

 - validate_identifier(name)    -> raises on suspicious/invalid names
 - quote_ident(name)            -> returns a double-quoted, SQL-escaped identifier
"""
from __future__ import annotations


def validate_identifier(name: str) -> None:
    """
    Reject non-strings, empty names and names with NUL/newline characters.
    Raises ValueError/TypeError on invalid input.
    """
    if not isinstance(name, str):
        raise TypeError("Identifier must be a string")
    if not name:
        raise ValueError("Identifier must not be empty")
    if "\x00" in name or "\n" in name or "\r" in name:
        raise ValueError("Identifier contains disallowed control characters")


def quote_ident(name: str) -> str:
    """
    Quote an SQL identifier using double quotes and escape embedded double-quotes.

      quote_ident('projects') -> '"projects"'
      quote_ident('we"ir d') -> '"we""ir d"'
    """
    validate_identifier(name)
    return '"' + name.replace('"', '""') + '"'
