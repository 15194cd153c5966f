from dataclasses import dataclass
import numpy as np

# -----------------------------
# CLI Colors
# -----------------------------
class bcolors:
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKCYAN = '\033[96m'
    OKGREEN = '\033[92m'
    GREY = '\033[90m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'
    UNDERLINE = '\033[4m'

WORD_BITS = 64
NIBBLE_BITS = 4
NIBBLES = WORD_BITS // NIBBLE_BITS  # 16 s-boxes per round
SBOX_SIZE = 1 << NIBBLE_BITS
WORD_MASK = (1 << WORD_BITS) - 1
NIBBLE_MASK = SBOX_SIZE - 1
DTYPE = np.uint8  # table entries and unpacked bits

@dataclass(frozen=True)
class NetParams:
    permutation: np.ndarray  # 64 MSB-first bit indices
    sbox: np.ndarray         # 16 nibble values

    @classmethod
    def from_ruleset(cls, permutation, ruleset: str) -> "NetParams":
        from .permutation import make_permutation_table
        from .substitution import parse_sbox_ruleset
        return cls(make_permutation_table(permutation), parse_sbox_ruleset(ruleset))
