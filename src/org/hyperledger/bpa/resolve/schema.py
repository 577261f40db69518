from typing import Optional

SCHEMA_MARKER = "2"


def schema_get_name(schema_id: Optional[str]) -> str:
    """Extract the schema name from a schema identifier.

    Indy schema ids look like ``<issuer did>:2:<name>:<version>``; for those the
    name segment is returned. Other ``:`` separated ids yield their last
    segment, and ids without a separator are returned as-is.
    """
    if not schema_id:
        return ""
    parts = schema_id.split(":")
    if len(parts) == 4 and parts[1] == SCHEMA_MARKER:
        return parts[2]
    return parts[-1]
