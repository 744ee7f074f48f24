"""Byte-exact signature matching over a bounded file prefix."""

from app.signatures.models import MediaSignature


class SignatureMatcher:
    """Checks a buffer against the rules of a single signature."""

    def matches(self, data: bytes, signature: MediaSignature | None) -> bool:
        """Return True only if every rule of ``signature`` matches ``data``.

        A missing signature, a signature without rules, or a buffer shorter than
        the signature's prefix never matches.
        """
        if signature is None or not signature.byte_rules:
            return False
        prefix = self.read_prefix(data, signature)
        if len(prefix) < signature.prefix_length:
            return False
        return all(
            prefix[rule.offset:rule.end] == rule.expected for rule in signature.byte_rules
        )

    @staticmethod
    def read_prefix(data: bytes, signature: MediaSignature) -> memoryview:
        return memoryview(data)[: signature.prefix_length]
