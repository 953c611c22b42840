# SPDX-License-Identifier: Apache-2.0
"""Foundation primitives shared by the policy kernel, ledger and service layers."""

from civkernel.foundation.canonical import canonical_json, canonical_json_bytes, to_jsonable
from civkernel.foundation.clock import utc_now_iso
from civkernel.foundation.hashing import ENTRY_HASH_FIELD, ZERO_HASH, chain_entry_hash, sha256_digest
from civkernel.foundation.safe_access import (
    is_non_empty_str,
    safe_bool,
    safe_count,
    safe_mapping,
    safe_str,
    safe_str_list,
    strict_bool,
)

__all__ = [
    "ENTRY_HASH_FIELD",
    "canonical_json",
    "canonical_json_bytes",
    "chain_entry_hash",
    "is_non_empty_str",
    "safe_bool",
    "safe_count",
    "safe_mapping",
    "safe_str",
    "safe_str_list",
    "sha256_digest",
    "strict_bool",
    "to_jsonable",
    "utc_now_iso",
    "ZERO_HASH",
]
