from enum import Enum

from icat_direct.core.errors import InvalidArgument


class SortColumn(str, Enum):
    TYPE = "type"
    MODIFY_TS = "modify-ts"
    CREATE_TS = "create-ts"
    DATA_SIZE = "data-size"
    BASE_NAME = "base-name"
    FULL_PATH = "full-path"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


SORT_COLUMNS: dict[SortColumn, str] = {
    SortColumn.TYPE: "p.type",
    SortColumn.MODIFY_TS: "p.modify_ts",
    SortColumn.CREATE_TS: "p.create_ts",
    SortColumn.DATA_SIZE: "p.data_size",
    SortColumn.BASE_NAME: "p.base_name",
    SortColumn.FULL_PATH: "p.full_path",
}

SORT_ORDERS: dict[SortOrder, str] = {
    SortOrder.ASC: "ASC",
    SortOrder.DESC: "DESC",
}


def validate_sort(column: SortColumn | str, order: SortOrder | str) -> tuple[str, str]:
    """Map a symbolic sort column and order onto whitelisted SQL text.

    Raises ``InvalidArgument`` for anything outside the whitelist.
    """
    try:
        sort_column = SortColumn(column)
    except ValueError:
        raise InvalidArgument(f"Invalid sort-column {column!r}") from None
    try:
        sort_order = SortOrder(order)
    except ValueError:
        raise InvalidArgument(f"Invalid sort-order {order!r}") from None
    return SORT_COLUMNS[sort_column], SORT_ORDERS[sort_order]
