"""Named SQL templates run against the iRODS ICAT.

Templates use two kinds of placeholders:

- ``{name}`` fields, filled by ``render_query`` with trusted SQL fragments
  (condition fragments, whitelisted sort columns and directions)
- ``:name`` bind parameters, bound by the executor (user, zone, path, limit,
  offset and every parameter a fragment introduced)

Templates without ``{}`` fields can be run directly by name.
"""

from enum import Enum

from icat_direct.core.conditions import FOLDER_BASE_NAME
from icat_direct.core.errors import UnknownQuery


class QueryName(str, Enum):
    COUNT_FILES_IN_FOLDER = "count-files-in-folder"
    COUNT_FOLDERS_IN_FOLDER = "count-folders-in-folder"
    COUNT_ITEMS_IN_FOLDER = "count-items-in-folder"
    COUNT_ALL_ITEMS_UNDER_FOLDER = "count-all-items-under-folder"
    COUNT_BAD_ITEMS_IN_FOLDER = "count-bad-items-in-folder"
    FOLDER_PERMISSIONS_FOR_USER = "folder-permissions-for-user"
    FILE_PERMISSIONS_FOR_USER = "file-permissions-for-user"
    LIST_FOLDERS_IN_FOLDER = "list-folders-in-folder"
    FOLDER_LISTING = "folder-listing"
    PAGED_FOLDER_LISTING = "paged-folder-listing"
    SELECT_FILES_WITH_UUIDS = "select-files-with-uuids"
    SELECT_FOLDERS_WITH_UUIDS = "select-folders-with-uuids"
    PAGED_UUID_LISTING = "paged-uuid-listing"


FILE_TYPE_ATTR = "ipc-filetype"
UUID_ATTR = "ipc_UUID"

_USER_GROUPS = """
    user_groups AS (
        SELECT g.group_user_id AS user_id
          FROM r_user_main u
          JOIN r_user_group g ON g.user_id = u.user_id
         WHERE u.user_name = :user
           AND u.zone_name = :zone
    )"""

_FILE_TYPES = f"""
    file_types AS (
        SELECT o.object_id, max(m.meta_attr_value) AS info_type
          FROM r_objt_metamap o
          JOIN r_meta_main m ON m.meta_id = o.meta_id
         WHERE m.meta_attr_name = '{FILE_TYPE_ATTR}'
         GROUP BY o.object_id
    )"""

_UUIDS = f"""
    uuids AS (
        SELECT o.object_id, m.meta_attr_value AS uuid
          FROM r_objt_metamap o
          JOIN r_meta_main m ON m.meta_id = o.meta_id
         WHERE m.meta_attr_name = '{UUID_ATTR}'
    )"""

_MATCHED_UUIDS = f"""
    uuids AS (
        SELECT o.object_id, m.meta_attr_value AS uuid
          FROM r_objt_metamap o
          JOIN r_meta_main m ON m.meta_id = o.meta_id
         WHERE m.meta_attr_name = '{UUID_ATTR}'
           AND {{uuid_cond}}
    )"""


def _visible(object_id: str) -> str:
    return (
        "EXISTS (SELECT 1 FROM r_objt_access a"
        f" WHERE a.object_id = {object_id}"
        " AND a.user_id IN (SELECT user_id FROM user_groups))"
    )


def _with(*ctes: str) -> str:
    return "WITH" + ",".join(ctes)


_CHILD_FOLDER = "c.parent_coll_name = :path AND c.coll_name != :path"


def _folder_rows(where: str, uuid_join: str = "LEFT JOIN") -> str:
    return f"""
        SELECT 'collection' AS type,
               u.uuid,
               c.coll_name AS full_path,
               {FOLDER_BASE_NAME} AS base_name,
               0 AS data_size,
               c.create_ts,
               c.modify_ts,
               CAST(NULL AS varchar) AS info_type
          FROM r_coll_main c
          {uuid_join} uuids u ON u.object_id = c.coll_id
         WHERE {where}
           AND {_visible("c.coll_id")}"""


def _file_rows(where: str, uuid_join: str = "LEFT JOIN") -> str:
    return f"""
        SELECT 'dataobject' AS type,
               u.uuid,
               rtrim(c.coll_name, '/') || '/' || d.data_name AS full_path,
               d.data_name AS base_name,
               max(d.data_size) AS data_size,
               min(d.create_ts) AS create_ts,
               max(d.modify_ts) AS modify_ts,
               f.info_type
          FROM r_data_main d
          JOIN r_coll_main c ON c.coll_id = d.coll_id
          LEFT JOIN file_types f ON f.object_id = d.data_id
          {uuid_join} uuids u ON u.object_id = d.data_id
         WHERE {where}
           AND {_visible("d.data_id")}
         GROUP BY d.data_id, c.coll_name, d.data_name, u.uuid, f.info_type"""


_PAGE = """
 ORDER BY p.type ASC, {sort_column} {sort_direction}, p.full_path ASC
 LIMIT :limit OFFSET :offset"""


QUERIES: dict[QueryName, str] = {
    QueryName.COUNT_FILES_IN_FOLDER: _with(_USER_GROUPS)
    + f"""
SELECT count(DISTINCT d.data_id) AS count
  FROM r_data_main d
  JOIN r_coll_main c ON c.coll_id = d.coll_id
 WHERE c.coll_name = :path
   AND {_visible("d.data_id")}""",
    QueryName.COUNT_FOLDERS_IN_FOLDER: _with(_USER_GROUPS)
    + f"""
SELECT count(*) AS count
  FROM r_coll_main c
 WHERE {_CHILD_FOLDER}
   AND {_visible("c.coll_id")}""",
    QueryName.COUNT_ITEMS_IN_FOLDER: _with(_USER_GROUPS, _FILE_TYPES)
    + f"""
SELECT (SELECT count(DISTINCT d.data_id)
          FROM r_data_main d
          JOIN r_coll_main c ON c.coll_id = d.coll_id
          LEFT JOIN file_types f ON f.object_id = d.data_id
         WHERE c.coll_name = :path
           AND {_visible("d.data_id")}
           AND {{file_type_cond}})
     + (SELECT count(*)
          FROM r_coll_main c
         WHERE {_CHILD_FOLDER}
           AND {_visible("c.coll_id")}) AS total""",
    QueryName.COUNT_ALL_ITEMS_UNDER_FOLDER: _with(
        _USER_GROUPS,
        """
    subtree AS (
        SELECT c.coll_id, c.coll_name
          FROM r_coll_main c
         WHERE c.coll_name = :path
            OR starts_with(c.coll_name, rtrim(:path, '/') || '/')
    )""",
    )
    + f"""
SELECT (SELECT count(*)
          FROM subtree s
         WHERE s.coll_name != :path
           AND {_visible("s.coll_id")})
     + (SELECT count(DISTINCT d.data_id)
          FROM r_data_main d
          JOIN subtree s ON s.coll_id = d.coll_id
         WHERE {_visible("d.data_id")}) AS total""",
    QueryName.COUNT_BAD_ITEMS_IN_FOLDER: _with(_USER_GROUPS, _FILE_TYPES)
    + f"""
SELECT (SELECT count(DISTINCT d.data_id)
          FROM r_data_main d
          JOIN r_coll_main c ON c.coll_id = d.coll_id
          LEFT JOIN file_types f ON f.object_id = d.data_id
         WHERE c.coll_name = :path
           AND {_visible("d.data_id")}
           AND {{file_type_cond}}
           AND {{bad_file_cond}})
     + (SELECT count(*)
          FROM r_coll_main c
         WHERE {_CHILD_FOLDER}
           AND {_visible("c.coll_id")}
           AND {{bad_folder_cond}}) AS total_filtered""",
    QueryName.FOLDER_PERMISSIONS_FOR_USER: """
SELECT a.access_type_id
  FROM r_coll_main c
  JOIN r_objt_access a ON a.object_id = c.coll_id
 WHERE c.coll_name = :path
   AND a.user_id IN (SELECT g.group_user_id
                       FROM r_user_main u
                       JOIN r_user_group g ON g.user_id = u.user_id
                      WHERE u.user_name = :user)""",
    QueryName.FILE_PERMISSIONS_FOR_USER: """
SELECT a.access_type_id
  FROM r_data_main d
  JOIN r_coll_main c ON c.coll_id = d.coll_id
  JOIN r_objt_access a ON a.object_id = d.data_id
 WHERE c.coll_name = :parent_path
   AND d.data_name = :base_name
   AND a.user_id IN (SELECT g.group_user_id
                       FROM r_user_main u
                       JOIN r_user_group g ON g.user_id = u.user_id
                      WHERE u.user_name = :user)""",
    QueryName.LIST_FOLDERS_IN_FOLDER: _with(_USER_GROUPS, _UUIDS)
    + "\nSELECT p.* FROM ("
    + _folder_rows(_CHILD_FOLDER)
    + "\n) AS p\n ORDER BY p.base_name ASC",
    QueryName.FOLDER_LISTING: _with(_USER_GROUPS, _FILE_TYPES, _UUIDS)
    + "\nSELECT p.full_path FROM ("
    + _folder_rows(_CHILD_FOLDER)
    + "\n UNION ALL"
    + _file_rows("c.coll_name = :path")
    + "\n) AS p\n ORDER BY p.full_path ASC",
    QueryName.PAGED_FOLDER_LISTING: _with(_USER_GROUPS, _FILE_TYPES, _UUIDS)
    + "\nSELECT p.* FROM ("
    + _folder_rows(_CHILD_FOLDER)
    + "\n UNION ALL"
    + _file_rows("c.coll_name = :path AND {file_type_cond}")
    + "\n) AS p"
    + _PAGE,
    QueryName.SELECT_FILES_WITH_UUIDS: f"""
SELECT DISTINCT m.meta_attr_value AS uuid,
       rtrim(c.coll_name, '/') || '/' || d.data_name AS path
  FROM r_meta_main m
  JOIN r_objt_metamap o ON o.meta_id = m.meta_id
  JOIN r_data_main d ON d.data_id = o.object_id
  JOIN r_coll_main c ON c.coll_id = d.coll_id
 WHERE m.meta_attr_name = '{UUID_ATTR}'
   AND {{uuid_cond}}""",
    QueryName.SELECT_FOLDERS_WITH_UUIDS: f"""
SELECT DISTINCT m.meta_attr_value AS uuid,
       c.coll_name AS path
  FROM r_meta_main m
  JOIN r_objt_metamap o ON o.meta_id = m.meta_id
  JOIN r_coll_main c ON c.coll_id = o.object_id
 WHERE m.meta_attr_name = '{UUID_ATTR}'
   AND {{uuid_cond}}""",
    QueryName.PAGED_UUID_LISTING: _with(_USER_GROUPS, _FILE_TYPES, _MATCHED_UUIDS)
    + "\nSELECT p.* FROM ("
    + _folder_rows("TRUE", uuid_join="JOIN")
    + "\n UNION ALL"
    + _file_rows("TRUE", uuid_join="JOIN")
    + "\n) AS p"
    + _PAGE,
}


def get_template(name: QueryName | str, catalog: dict[QueryName, str] | None = None) -> str:
    """Look up the SQL template for ``name``; raise ``UnknownQuery`` if absent."""
    catalog = QUERIES if catalog is None else catalog
    try:
        return catalog[QueryName(name)]
    except (ValueError, KeyError):
        raise UnknownQuery(name) from None


def render_query(name: QueryName | str, catalog: dict[QueryName, str] | None = None, **fragments: str) -> str:
    """Substitute trusted SQL fragments into the template for ``name``."""
    template = get_template(name, catalog)
    try:
        return template.format(**fragments)
    except KeyError as exc:
        raise ValueError(f"query {QueryName(name).value} needs fragment {exc.args[0]!r}") from None
