"""NBT error codes and exception class.

Every failure the tag tree reports to callers is an NbtError carrying one
of the ERR_* codes below.  Callers match on `.code`, never on message text.
"""

from __future__ import annotations

# ── Error codes ──────────────────────────────────────────────

ERR_TYPE_MISMATCH: str = "ERR_TYPE_MISMATCH"                  # slot/accessor kind clash
ERR_MISSING_OR_WRONG_TYPE: str = "ERR_MISSING_OR_WRONG_TYPE"  # value accessor, no default
ERR_NAME_MISMATCH: str = "ERR_NAME_MISMATCH"                  # c[k] = tag with tag.name != k
ERR_INVALID_OPERATION: str = "ERR_INVALID_OPERATION"          # append-style write, etc.
ERR_EXHAUSTED_ITERATOR: str = "ERR_EXHAUSTED_ITERATOR"        # cursor past the end
ERR_LIMIT_DEPTH: str = "ERR_LIMIT_DEPTH"                      # nesting exceeds max depth
ERR_DUP_KEY: str = "ERR_DUP_KEY"                              # duplicate name, strict decode
ERR_CORRUPT: str = "ERR_CORRUPT"                              # malformed binary input
ERR_VALUE: str = "ERR_VALUE"                                  # leaf value out of range

ALL_CODES = (
    ERR_TYPE_MISMATCH,
    ERR_MISSING_OR_WRONG_TYPE,
    ERR_NAME_MISMATCH,
    ERR_INVALID_OPERATION,
    ERR_EXHAUSTED_ITERATOR,
    ERR_LIMIT_DEPTH,
    ERR_DUP_KEY,
    ERR_CORRUPT,
    ERR_VALUE,
)


class NbtError(Exception):
    """Exception for tag tree and codec errors.

    The `.code` attribute is one of the ERR_* strings above.
    """

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code
