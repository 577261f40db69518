"""Connection label parsing.

Partners that do not expose a public DID on the connection sometimes embed
one in their connection label, in the form ``did:sov:<id>:<label>``.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict

LABEL_DELIMITER = ":"


class ConnectionLabel(BaseModel):
    """Label text and the DID that was embedded in it, if any."""

    model_config = ConfigDict(frozen=True)

    label: str
    did: Optional[str] = None


def split_label(label: Optional[str]) -> ConnectionLabel:
    """Split a connection label into a DID prefix and a display label.

    A label made of exactly four ``:`` separated segments is read as
    ``method:namespace:identifier:displayLabel``. Anything else is a plain
    display label. The DID part is not validated; a bad one simply fails to
    resolve later.

    Args:
        label: Connection label as sent by the partner

    Returns:
        ConnectionLabel with the display label and the optional DID
    """
    if not label:
        return ConnectionLabel(label="")

    parts = label.split(LABEL_DELIMITER)
    if len(parts) == 4:
        return ConnectionLabel(
            label=parts[3], did=LABEL_DELIMITER.join(parts[:3])
        )
    return ConnectionLabel(label=label)
