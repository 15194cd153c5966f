import string
import numpy as np
from .params import DTYPE, SBOX_SIZE, bcolors
from .errors import ConstructionError
from .utils import word_to_nibbles, nibbles_to_word

# -----------------------------
# Nibble Substitution
# -----------------------------
def parse_sbox_ruleset(ruleset: str) -> np.ndarray:
    """Decode a 16 hex digit ruleset, e.g. "c56b90ad3ef84712", into a read-only table."""
    if len(ruleset) != SBOX_SIZE:
        raise ConstructionError(f"{bcolors.FAIL}Invalid s-box ruleset length: expected {SBOX_SIZE}, got {len(ruleset)}{bcolors.ENDC}")
    if any(c not in string.hexdigits for c in ruleset):
        raise ConstructionError(f"{bcolors.FAIL}Invalid character in s-box ruleset: {ruleset!r}{bcolors.ENDC}")
    out = np.array([int(c, 16) for c in ruleset], dtype=DTYPE)
    out.setflags(write=False)
    return out

def ruleset_from_sbox(sbox: np.ndarray) -> str:
    return "".join(f"{int(v):x}" for v in sbox)

def substitute(sbox: np.ndarray, word: int) -> int:
    return nibbles_to_word(np.asarray(sbox, dtype=DTYPE)[word_to_nibbles(word)])

def is_bijective_sbox(sbox: np.ndarray) -> bool:
    return len(sbox) == SBOX_SIZE and sorted(int(v) for v in sbox) == list(range(SBOX_SIZE))

def invert_sbox(sbox: np.ndarray) -> np.ndarray:
    # NOTE: no bijectivity check, unlike invert_permutation. A non-bijective
    # table silently yields a wrong inverse (later entries overwrite earlier ones,
    # unreached slots stay 0). Use is_bijective_sbox first if that matters.
    if len(sbox) != SBOX_SIZE:
        raise ConstructionError(f"{bcolors.FAIL}The provided sbox function is not a {SBOX_SIZE}-entry substitution{bcolors.ENDC}")
    if any(int(v) < 0 or int(v) >= SBOX_SIZE for v in sbox):
        raise ConstructionError(f"{bcolors.FAIL}S-box entries must lie in [0, {SBOX_SIZE}){bcolors.ENDC}")
    inv = np.zeros(SBOX_SIZE, dtype=DTYPE)
    for i, v in enumerate(sbox):
        inv[int(v)] = i
    return inv
