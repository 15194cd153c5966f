from .params import bcolors

# -----------------------------
# Errors
# -----------------------------
class ConstructionError(ValueError):
    """Bad table, ruleset, word or key sequence handed to the network."""

class InvalidPermutationError(ValueError):
    """Permutation table is not a bijection on 0..63."""

class DimensionMismatchError(ValueError):
    """Message and ciphertext sequences differ in length."""

class AmbiguousRecoveryError(ValueError):
    def __init__(self, position: int, candidates: list[int]):
        self.position = position
        self.candidates = candidates
        super().__init__(
            f"{bcolors.FAIL}Chunk [{position}-{position + 3}] is ambiguous, "
            f"consistent guesses: {', '.join(f'{c:x}' for c in candidates)}{bcolors.ENDC}"
        )

class InconsistentSamplesError(ValueError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(
            f"{bcolors.FAIL}No guess for chunk [{position}-{position + 3}] fits every sample; "
            f"the samples were not produced by this network{bcolors.ENDC}"
        )
