from __future__ import annotations

from datetime import date, datetime

from erp.time_utils import to_utc_z


class SerializableMixin:
    """
    Column-driven `to_dict` shared by every model.

    Datetimes are rendered ISO-8601 with a trailing 'Z', dates as YYYY-MM-DD.
    Models list columns that must never leave the server in `__hidden_fields__`.
    """
    __hidden_fields__: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        data = {}
        for column in self.__table__.columns:
            if column.key in self.__hidden_fields__:
                continue
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                value = to_utc_z(value)
            elif isinstance(value, date):
                value = value.isoformat()
            data[column.key] = value
        return data

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={getattr(self, 'id', None)}>"
