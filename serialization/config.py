"""
Serializer Configuration — options read from the serializer context.

    appendNewline   bool, default true   (NATIVE only)
    columns         space-separated header names, default: no projection
    format          NATIVE | CSV, default NATIVE
    delimiter       first character is used, default tab (CSV only)
    jsonBody        bool, default false
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional

from collector.config import parse_bool

APPEND_NEWLINE = "appendNewline"
COLUMNS = "columns"
FORMAT = "format"
DELIMITER = "delimiter"
JSON_BODY = "jsonBody"

FORMAT_NATIVE = "NATIVE"
FORMAT_CSV = "CSV"
DELIMITER_DEFAULT = "\t"


@dataclass(frozen=True)
class SerializerConfig:
    append_newline: bool = True
    columns: Optional[str] = None
    format: str = FORMAT_NATIVE
    delimiter: str = DELIMITER_DEFAULT
    json_body: bool = False

    @classmethod
    def from_context(cls, context: Mapping[str, str]) -> "SerializerConfig":
        delimiter = context.get(DELIMITER)
        return cls(
            append_newline=parse_bool(context.get(APPEND_NEWLINE), True),
            columns=context.get(COLUMNS) or None,
            format=context.get(FORMAT) or FORMAT_NATIVE,
            delimiter=delimiter[0] if delimiter else DELIMITER_DEFAULT,
            json_body=parse_bool(context.get(JSON_BODY), False),
        )

    @property
    def column_list(self) -> Optional[List[str]]:
        if self.columns is None:
            return None
        return self.columns.split() or None
