import numpy as np
from .params import DTYPE, WORD_BITS, NIBBLE_BITS, NIBBLE_MASK, bcolors
from .errors import ConstructionError, InvalidPermutationError
from .utils import word_to_bits, bits_to_word

# -----------------------------
# Bit Permutation (MSB-first indexing)
# -----------------------------
def make_permutation_table(table) -> np.ndarray:
    """Copy a 64-entry table into a read-only array. Bijectivity is not checked here."""
    arr = np.asarray(list(table), dtype=np.int64)
    if arr.shape != (WORD_BITS,):
        raise ConstructionError(f"{bcolors.FAIL}Invalid perm array length: expected {WORD_BITS}, got {arr.size}{bcolors.ENDC}")
    if arr.min() < 0 or arr.max() >= WORD_BITS:
        raise ConstructionError(f"{bcolors.FAIL}Permutation entries must lie in [0, {WORD_BITS}){bcolors.ENDC}")
    out = arr.astype(DTYPE)
    out.setflags(write=False)
    return out

def permute(table: np.ndarray, word: int) -> int:
    # input bit i lands on output bit table[i]; OR keeps colliding bits like a shift-and-or loop would
    bits = word_to_bits(word)
    out = np.zeros(WORD_BITS, dtype=DTYPE)
    np.bitwise_or.at(out, np.asarray(table, dtype=np.intp), bits)
    return bits_to_word(out)

def invert_permutation(table: np.ndarray) -> np.ndarray:
    idx = np.asarray(table, dtype=np.intp)
    if idx.shape != (WORD_BITS,):
        raise InvalidPermutationError(f"{bcolors.FAIL}The provided permutation function is not a {WORD_BITS}-bit permutation{bcolors.ENDC}")
    if idx.min() < 0 or idx.max() >= WORD_BITS or not np.all(np.bincount(idx, minlength=WORD_BITS) == 1):
        raise InvalidPermutationError(f"{bcolors.FAIL}The provided permutation function does not represent a proper permutation{bcolors.ENDC}")
    inv = np.empty(WORD_BITS, dtype=DTYPE)
    inv[idx] = np.arange(WORD_BITS)
    inv.setflags(write=False)
    return inv

# -----------------------------
# Chunk helpers for the two-round attack
# -----------------------------
def chunk_shift(position: int) -> int:
    return WORD_BITS - NIBBLE_BITS - position

def chunk_mask(position: int) -> int:
    return NIBBLE_MASK << chunk_shift(position)

def restrict_permutation(table: np.ndarray, position: int) -> np.ndarray:
    """Real table on bits [position, position+4), identity elsewhere."""
    alt = np.arange(WORD_BITS, dtype=DTYPE)
    alt[position:position + NIBBLE_BITS] = np.asarray(table, dtype=DTYPE)[position:position + NIBBLE_BITS]
    return alt

def chunk_image_mask(table: np.ndarray, position: int) -> int:
    return permute(restrict_permutation(table, position), chunk_mask(position))
