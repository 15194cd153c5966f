"""Known-plaintext attacks against one and two rounds of SPNet64."""
from dataclasses import dataclass, field
from typing import Optional, Sequence
import numpy as np
from .params import DTYPE, WORD_BITS, NIBBLE_BITS, SBOX_SIZE, bcolors
from .errors import DimensionMismatchError, AmbiguousRecoveryError, InconsistentSamplesError
from .utils import check_word
from .permutation import permute, invert_permutation, restrict_permutation, chunk_shift, chunk_mask, chunk_image_mask
from .substitution import substitute, invert_sbox
from .trace import Tracer, NULL_TRACER

@dataclass
class ChunkResult:
    position: int          # first MSB-first bit of the chunk
    guess: int             # accepted key1 nibble
    key2_bits: int         # key2 bits recovered at output_mask
    output_mask: int       # image of the chunk under the permutation
    candidates: list[int] = field(default_factory=list)  # every consistent guess

    @property
    def ambiguous(self) -> bool:
        return len(self.candidates) > 1

    @property
    def inconsistent(self) -> bool:
        return not self.candidates

# -----------------------------
# One round
# -----------------------------
def break_one_round(perm, sbox, message: int, ciphertext: int) -> int:
    """Recover the key from one pair: k = S^-1(P^-1(c)) XOR m."""
    perm_inv = invert_permutation(perm)
    sbox_inv = invert_sbox(np.asarray(sbox, dtype=DTYPE))
    unperm = permute(perm_inv, check_word(ciphertext, "ciphertext"))
    return substitute(sbox_inv, unperm) ^ check_word(message, "message")

# -----------------------------
# Two rounds
# -----------------------------
def _key2_bits(sbox: np.ndarray, alt_perm: np.ndarray, out_mask: int, position: int, guess: int, message: int, t: int) -> int:
    shift = chunk_shift(position)
    m_masked = message & chunk_mask(position)
    s_in = (m_masked ^ (guess << shift)) >> shift
    s_out = int(sbox[s_in]) << shift
    # w: what this nibble contributes to the first round output
    w = permute(alt_perm, s_out)
    return w ^ (t & out_mask)

def break_two_rounds(perm, sbox, messages: Sequence[int], ciphertexts: Sequence[int],
                     tracer: Optional[Tracer] = None, strict: bool = False, details: bool = False):
    """Recover (k1, k2) chunk by chunk from known plaintext/ciphertext pairs.

    For every nibble of k1 each of the 16 guesses is checked against all
    samples; a guess survives when every sample yields the same k2 bits on
    the chunk's output positions. The first surviving guess is kept. Further
    survivors are reported to the tracer, or raise AmbiguousRecoveryError
    when strict is set. A chunk with no surviving guess contributes 0 to both
    keys, or raises InconsistentSamplesError when strict is set.

    Returns (k1, k2), or (k1, k2, chunks) when details is set.
    """
    messages = [check_word(m, "message") for m in messages]
    ciphertexts = [check_word(c, "ciphertext") for c in ciphertexts]
    if len(messages) != len(ciphertexts):
        raise DimensionMismatchError(f"{bcolors.FAIL}Message-Ciphertext array dimension mismatch: {len(messages)} vs {len(ciphertexts)}{bcolors.ENDC}")
    tracer = tracer or NULL_TRACER
    sbox = np.asarray(sbox, dtype=DTYPE)
    perm_inv = invert_permutation(perm)
    sbox_inv = invert_sbox(sbox)

    # t = S^-1(P^-1(c)) = P(S(m XOR k1)) XOR k2, independent of the chunk
    ts = [substitute(sbox_inv, permute(perm_inv, c)) for c in ciphertexts]

    k1, k2 = 0, 0
    chunks = []
    for position in range(0, WORD_BITS, NIBBLE_BITS):
        shift = chunk_shift(position)
        mask = chunk_mask(position)
        alt_perm = restrict_permutation(perm, position)
        out_mask = chunk_image_mask(perm, position)
        tracer.chunk_start(position, mask, shift)

        survivors = []
        for guess in range(SBOX_SIZE):
            tracer.guess(position, guess, guess << shift)
            candidate = None
            consistent = True
            for j, (m, t) in enumerate(zip(messages, ts)):
                bits = _key2_bits(sbox, alt_perm, out_mask, position, guess, m, t)
                matched = candidate is None or bits == candidate
                tracer.sample_check(j, m, ciphertexts[j], bits, candidate, matched)
                if candidate is None:
                    candidate = bits
                elif not matched:
                    consistent = False
                    break
            if consistent:
                survivors.append((guess, candidate or 0))

        guess, bits = survivors[0] if survivors else (0, 0)
        candidates = [g for g, _ in survivors]
        if not candidates:
            tracer.no_candidates(position)
            if strict:
                raise InconsistentSamplesError(position)
        elif len(candidates) > 1:
            tracer.ambiguity(position, candidates)
            if strict:
                raise AmbiguousRecoveryError(position, candidates)
        k1 |= guess << shift
        k2 |= bits
        tracer.chunk_solved(position, k1, k2)
        chunks.append(ChunkResult(position, guess, bits, out_mask, candidates))

    if details:
        return k1, k2, chunks
    return k1, k2
