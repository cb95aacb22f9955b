from enum import Enum
from typing import Annotated, Literal, NamedTuple

from pydantic import BaseModel, Field, TypeAdapter

RAW_INFO_TYPE = "raw"


class EntryType(str, Enum):
    DATAOBJECT = "dataobject"
    COLLECTION = "collection"


class _BaseEntry(BaseModel):
    full_path: str
    base_name: str
    uuid: str | None = None
    data_size: int | None = None
    create_ts: str | None = None
    modify_ts: str | None = None
    info_type: str | None = None
    access_type_id: int | None = None


class FileEntry(_BaseEntry):
    type: Literal["dataobject"] = "dataobject"

    def with_normalized_info_type(self) -> "FileEntry":
        """Report a missing info type as ``raw``."""
        if self.info_type:
            return self
        return self.model_copy(update={"info_type": RAW_INFO_TYPE})


class FolderEntry(_BaseEntry):
    type: Literal["collection"] = "collection"


Entry = Annotated[FileEntry | FolderEntry, Field(discriminator="type")]

_entry_adapter: TypeAdapter[FileEntry | FolderEntry] = TypeAdapter(Entry)


def entry_from_row(row: dict) -> FileEntry | FolderEntry:
    """Build the tagged entry variant for a listing row."""
    return _entry_adapter.validate_python(row)


class UuidPath(NamedTuple):
    uuid: str
    path: str
