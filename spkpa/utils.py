# spkpa/utils.py
import numpy as np
from .params import DTYPE, WORD_BITS, WORD_MASK, NIBBLES, NIBBLE_BITS, bcolors
from .errors import ConstructionError

# -----------------------------
# Formatting
# -----------------------------
def hex_str(val: int, pad: bool = True, pad_len: int = 16) -> str:
    return f"0x{val:0{pad_len}x}" if pad else f"0x{val:x}"

def bin_str(val: int, pad: bool = True, pad_len: int = 64) -> str:
    return f"0b{val:0{pad_len}b}" if pad else f"0b{val:b}"

# -----------------------------
# Word <-> array views (MSB first)
# -----------------------------
def check_word(word: int, name: str = "word") -> int:
    if isinstance(word, bool) or not isinstance(word, (int, np.integer)):
        raise ConstructionError(f"{bcolors.FAIL}{name} must be an integer, got {type(word).__name__}{bcolors.ENDC}")
    word = int(word)
    if word < 0 or word > WORD_MASK:
        raise ConstructionError(f"{bcolors.FAIL}{name} must fit in {WORD_BITS} unsigned bits{bcolors.ENDC}")
    return word

def word_to_bits(word: int) -> np.ndarray:
    raw = np.frombuffer(int(word).to_bytes(WORD_BITS // 8, "big"), dtype=np.uint8)
    return np.unpackbits(raw)

def bits_to_word(bits: np.ndarray) -> int:
    assert bits.shape == (WORD_BITS,), f"Expected {WORD_BITS} bits, got {bits.shape}"
    return int.from_bytes(np.packbits(bits.astype(DTYPE)).tobytes(), "big")

def word_to_nibbles(word: int) -> np.ndarray:
    raw = np.frombuffer(int(word).to_bytes(WORD_BITS // 8, "big"), dtype=np.uint8)
    out = np.empty(NIBBLES, dtype=DTYPE)
    out[0::2] = raw >> NIBBLE_BITS
    out[1::2] = raw & 0x0F
    return out

def nibbles_to_word(nibbles: np.ndarray) -> int:
    assert nibbles.shape == (NIBBLES,), f"Expected {NIBBLES} nibbles, got {nibbles.shape}"
    n = nibbles.astype(DTYPE)
    raw = (n[0::2] << NIBBLE_BITS) | (n[1::2] & 0x0F)
    return int.from_bytes(raw.astype(np.uint8).tobytes(), "big")

# -----------------------------
# Parsing
# -----------------------------
def parse_word(text: str) -> int:
    """Parse a 64-bit word given as 0x-prefixed hex or decimal."""
    text = str(text).strip().lower()
    try:
        value = int(text, 16) if text.startswith("0x") else int(text, 10)
    except ValueError:
        raise ConstructionError(f"{bcolors.FAIL}Not a valid word: {text!r}{bcolors.ENDC}")
    return check_word(value)

def parse_word_list(text: str) -> list[int]:
    return [parse_word(s) for s in text.replace(",", " ").split() if s != ""]
