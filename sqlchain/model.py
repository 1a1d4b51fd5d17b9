"""Record base class.

Records are plain dataclasses deriving from :class:`Model`:

```python
@dataclass
class User(Model):
    table_name: ClassVar[str] = "users"

    id: int
    name: str
    age: int


User.bind(database)
```
"""

import dataclasses
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from typing_extensions import Self

from sqlchain.exceptions import ImproperConfigurationError
from sqlchain.typing import RowMapping

if TYPE_CHECKING:
    from sqlchain.protocols import DatabaseProtocol

__all__ = ("Model",)


class Model:
    """Schema information and row materialization for a dataclass record."""

    table_name: ClassVar[str] = ""
    primary_key_name: ClassVar[str] = "id"
    database: "ClassVar[Optional[DatabaseProtocol]]" = None

    @classmethod
    def bind(cls, database: "Optional[DatabaseProtocol]") -> None:
        """Set the database this record type is read from and written to."""
        cls.database = database

    @classmethod
    def column_names(cls) -> "list[str]":
        """Column names in field declaration order.

        Raises:
            ImproperConfigurationError: If the class is not a dataclass.
        """
        if not dataclasses.is_dataclass(cls):
            msg = f"{cls.__name__} must be decorated with @dataclass to be used as a record"
            raise ImproperConfigurationError(msg)
        return [field.name for field in dataclasses.fields(cls)]

    @classmethod
    def from_rs(cls, row: RowMapping) -> Self:
        """Build a record from a result row.

        Table-qualified keys (``users.name``) are matched on the column part and
        keys that are not columns of this record are ignored.
        """
        columns = set(cls.column_names())
        values: dict[str, Any] = {}
        for key, value in row.items():
            column = key.rsplit(".", 1)[-1]
            if column in columns:
                values[column] = value
        return cls(**values)
