"""
Snapshot codec: LedgerSnapshot <-> portable JSON document.

The document has exactly three arrays, "expenses", "categories" and
"budgets", with camelCase record fields. Amounts are written as JSON
strings so no precision is lost; JSON numbers are accepted on read.
"""

import logging

from pydantic import ValidationError

from ledger_share.errors import CorruptSnapshotError
from ledger_share.schemas.ledger import LedgerSnapshot
from ledger_share.schemas.sharing import InvitationEnvelope

logger = logging.getLogger(__name__)

SNAPSHOT_MIME_TYPE = "application/json"


class LedgerSnapshotCodec:

    def encode(self, snapshot: LedgerSnapshot) -> bytes:
        return snapshot.model_dump_json(by_alias=True).encode("utf-8")

    def decode(self, content: bytes) -> LedgerSnapshot:
        """
        Parse a snapshot document.

        Raises CorruptSnapshotError for anything that is not a
        complete, well-typed snapshot. Nothing partial is returned.
        """
        return _decode(LedgerSnapshot, content, "snapshot")

    def encode_invitation(self, envelope: InvitationEnvelope) -> bytes:
        return envelope.model_dump_json(by_alias=True).encode("utf-8")

    def decode_invitation(self, content: bytes) -> InvitationEnvelope:
        """Parse an invitation envelope; unknown roles are rejected."""
        return _decode(InvitationEnvelope, content, "invitation")


def _decode(model, content: bytes, what: str):
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.warning("Rejected %s document: not UTF-8", what)
        raise CorruptSnapshotError(f"Malformed {what} document: not UTF-8") from e

    try:
        return model.model_validate_json(text)
    except ValidationError as e:
        logger.warning(
            "Rejected %s document with %d error(s)", what, e.error_count()
        )
        raise CorruptSnapshotError(
            f"Malformed {what} document: {e.error_count()} error(s)",
            validation_errors=e.errors(include_url=False),
        ) from e
