from dataclasses import dataclass
from typing import Sequence
from .params import bcolors
from .errors import DimensionMismatchError
from .network import SPNet64

@dataclass(frozen=True)
class VerifyResult:
    index: int
    message: int
    expected: int
    actual: int

    @property
    def matched(self) -> bool:
        return self.expected == self.actual

def kpa_verify(net: SPNet64, keys: Sequence[int], messages: Sequence[int], ciphertexts: Sequence[int]) -> list[VerifyResult]:
    """Re-encrypt every message with `keys` (one round per key) and compare against the known ciphertext.

    Replaces the engine's key sequence and message.
    """
    if len(messages) != len(ciphertexts):
        raise DimensionMismatchError(f"{bcolors.FAIL}Message-Ciphertext array dimension mismatch: {len(messages)} vs {len(ciphertexts)}{bcolors.ENDC}")
    net.set_key_sequence(keys)
    results = []
    for i, (m, c) in enumerate(zip(messages, ciphertexts)):
        net.set_message(m)
        for _ in keys:
            net.do_round()
        results.append(VerifyResult(i, m, c, net.ciphertext))
    return results

def all_matched(results: Sequence[VerifyResult]) -> bool:
    return all(r.matched for r in results)
