from catalog.fields.unix_timestamp import (
    UnixTimestampField,
    UnixTimestampType,
    utc_now,
)

__all__ = ["UnixTimestampField", "UnixTimestampType", "utc_now"]
