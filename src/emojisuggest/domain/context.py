"""Context value types and content fingerprints."""

from __future__ import annotations

from typing import NewType

__all__ = [
    "Context",
    "ContextHash",
    "create_context",
    "context_trimmed_length",
    "create_context_hash",
    "hash_equals",
    "hash_string_djb2",
    "hash_context_djb2",
]

Context = NewType("Context", str)
ContextHash = NewType("ContextHash", int)

_DJB2_SEED = 5381
_UINT32_MASK = 0xFFFFFFFF


def create_context(text: str) -> Context:
    return Context(text)


def context_trimmed_length(context: Context) -> int:
    return len(context.strip())


def create_context_hash(value: int) -> ContextHash:
    """Wrap ``value`` as an unsigned 32-bit fingerprint."""

    return ContextHash(int(value) & _UINT32_MASK)


def hash_equals(left: ContextHash | None, right: ContextHash | None) -> bool:
    return left is not None and right is not None and left == right


def hash_string_djb2(text: str) -> int:
    """Return the xor-variant djb2 hash of ``text``.

    Iterates UTF-16 code units so hashes match those produced by browser
    runtimes for the same text (astral characters contribute two units).
    Not collision resistant: equal hashes are treated as equal contexts.
    """

    value = _DJB2_SEED
    encoded = text.encode("utf-16-le", errors="surrogatepass")
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        value = (((value << 5) + value) ^ unit) & _UINT32_MASK
    return value


def hash_context_djb2(context: Context) -> ContextHash:
    return create_context_hash(hash_string_djb2(context))
