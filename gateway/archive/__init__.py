from gateway.archive.allocator import ArchiveAllocator, ArchivedRun
from gateway.archive.naming import ALPHABET, IDENTIFIER_LENGTH, MAX_SEQUENCE, derive_identifier, is_bare_filename
from gateway.archive.provenance import Provenance, hash_caller_address
from gateway.archive.store import ArtifactStore

__all__ = [
    "ALPHABET",
    "IDENTIFIER_LENGTH",
    "MAX_SEQUENCE",
    "ArchiveAllocator",
    "ArchivedRun",
    "ArtifactStore",
    "Provenance",
    "derive_identifier",
    "hash_caller_address",
    "is_bare_filename",
]
