"""SQL condition fragments substituted into catalog templates.

Fragments only ever contain fixed SQL shapes. Every caller supplied value is
carried in ``SqlFragment.params`` and bound by the executor, so the text that
reaches ``str.format`` is built from a closed set of strings.

Column contracts (the aliases each template must expose):

- ``file_type_cond`` reads ``f.info_type``
- ``bad_file_cond`` reads ``d.data_name``
- ``bad_folder_cond`` reads ``c.coll_name``
- ``uuid_list_cond`` reads ``m.meta_attr_value``
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SqlFragment:
    sql: str
    params: dict[str, Any] = field(default_factory=dict)


TRUE = SqlFragment("TRUE")
FALSE = SqlFragment("FALSE")

FOLDER_BASE_NAME = "regexp_replace(c.coll_name, '^.*/', '')"


def merge_params(*sources: Mapping[str, Any] | SqlFragment) -> dict[str, Any]:
    """Combine template parameters with the parameters of each fragment."""
    merged: dict[str, Any] = {}
    for source in sources:
        params = source.params if isinstance(source, SqlFragment) else source
        for key, value in params.items():
            if key in merged and merged[key] != value:
                raise ValueError(f"Conflicting values for bind parameter {key!r}")
            merged[key] = value
    return merged


def _unique(values: Iterable[str] | None) -> list[str]:
    return list(dict.fromkeys(values or ()))


def _text_array(key: str) -> str:
    return f"CAST(:{key} AS text[])"


def _any_of(expr: str, key: str) -> str:
    return f"{expr} = ANY({_text_array(key)})"


def _normalize_dir(path: str) -> str:
    return path.rstrip("/") or "/"


def file_type_cond(info_types: Iterable[str] | None) -> SqlFragment:
    """Restrict files to the given info types; match everything when empty.

    Matching is exact and case sensitive against the stored info type.
    """
    types = _unique(info_types)
    if not types:
        return TRUE
    return SqlFragment(_any_of("f.info_type", "info_types"), {"info_types": types})


def _bad_cond(
    prefix: str,
    name_expr: str,
    path_expr: str | None,
    bad_chars: str | None,
    bad_names: list[str],
    bad_paths: list[str],
) -> SqlFragment:
    clauses: list[str] = []
    params: dict[str, Any] = {}

    chars = _unique(bad_chars)
    if chars:
        key = f"{prefix}_chars"
        clauses.append(
            f"EXISTS (SELECT 1 FROM unnest({_text_array(key)}) AS chars(ch) WHERE strpos({name_expr}, chars.ch) > 0)"
        )
        params[key] = chars

    if bad_names:
        key = f"{prefix}_names"
        clauses.append(_any_of(name_expr, key))
        params[key] = bad_names

    if path_expr is not None and bad_paths:
        key = f"{prefix}_paths"
        clauses.append(_any_of(path_expr, key))
        params[key] = bad_paths

    if not clauses:
        return FALSE
    return SqlFragment("(" + " OR ".join(clauses) + ")", params)


def bad_file_cond(
    folder_path: str,
    bad_chars: str | None,
    bad_names: Iterable[str] | None,
    bad_paths: Iterable[str] | None,
) -> SqlFragment:
    """Flag files in ``folder_path`` that have a bad name or a bad path.

    A file is bad when its name contains any of ``bad_chars``, equals one of
    ``bad_names``, or its full path is in ``bad_paths``. The file query only
    sees files directly inside ``folder_path``, so bad paths are reduced to the
    base names of those whose parent is that folder.
    """
    parent = _normalize_dir(folder_path)
    names = _unique(bad_names)
    for path in _unique(bad_paths):
        if _normalize_dir(posixpath.dirname(path)) == parent:
            base = posixpath.basename(path)
            if base and base not in names:
                names.append(base)
    return _bad_cond("bad_file", "d.data_name", None, bad_chars, names, [])


def bad_folder_cond(
    folder_path: str,
    bad_chars: str | None,
    bad_names: Iterable[str] | None,
    bad_paths: Iterable[str] | None,
) -> SqlFragment:
    """Flag sub-folders of ``folder_path`` that have a bad name or a bad path.

    Characters and names are checked against the folder's base name, paths
    against its full path (``c.coll_name``).
    """
    parent = _normalize_dir(folder_path)
    paths = [p for p in _unique(bad_paths) if _normalize_dir(posixpath.dirname(p)) == parent and p != parent]
    return _bad_cond("bad_folder", FOLDER_BASE_NAME, "c.coll_name", bad_chars, _unique(bad_names), paths)


def uuid_list_cond(uuids: Iterable[Any]) -> SqlFragment:
    """Match the ``ipc_UUID`` AVU against ``uuids``.

    The whole set is bound as a single text array, so its size is not limited
    by the driver's cap on bind parameters. UUID values are compared as text;
    an empty set yields ``FALSE``.
    """
    values = _unique(str(u) for u in uuids)
    if not values:
        return FALSE
    return SqlFragment(_any_of("m.meta_attr_value", "uuids"), {"uuids": values})
