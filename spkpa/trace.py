from .params import bcolors
from .utils import hex_str, bin_str

# -----------------------------
# Observer hooks
# -----------------------------
class Tracer:
    """No-op observer. Subclass and override the checkpoints you care about."""

    def header(self, text: str): pass
    def round_start(self, round_no: int, word: int, key: int): pass
    def key_mix(self, word: int): pass
    def substitution(self, word: int): pass
    def permutation(self, word: int): pass
    def round_result(self, round_no: int, ciphertext: int): pass
    def chunk_start(self, position: int, mask: int, shift: int): pass
    def guess(self, position: int, guess: int, masked_guess: int): pass
    def sample_check(self, index: int, message: int, ciphertext: int, key2_bits: int, candidate, matched: bool): pass
    def chunk_solved(self, position: int, key1: int, key2: int): pass
    def ambiguity(self, position: int, candidates: list[int]): pass
    def no_candidates(self, position: int): pass

NULL_TRACER = Tracer()

class ConsoleTracer(Tracer):
    """Prints every checkpoint to stdout."""

    def header(self, text: str):
        n = len(text)
        print()
        print("-" * (n + 6))
        print(f"|  {bcolors.BOLD}{text}{bcolors.ENDC}  |")
        print("-" * (n + 6))
        print()

    def round_start(self, round_no: int, word: int, key: int):
        self.header(f"Round {round_no}")
        print("Performing one round of the SP network on:")
        print(f"m: {hex_str(word)}")
        print(f"k: {hex_str(key)}\n")

    def key_mix(self, word: int):
        print(f"Key mixing result:   {hex_str(word)}")

    def substitution(self, word: int):
        print(f"Substitution result: {hex_str(word)}")

    def permutation(self, word: int):
        print(f"Permutation result:  {hex_str(word)}")

    def round_result(self, round_no: int, ciphertext: int):
        print(f"{bcolors.OKCYAN}Ciphertext after round {round_no}: {hex_str(ciphertext)}{bcolors.ENDC}")

    def chunk_start(self, position: int, mask: int, shift: int):
        self.header(f"NEW CHUNK: [{position}-{position + 3}]")
        print(f"Bitmask: {bin_str(mask)}")
        print(f"Shift:   {shift}\n")

    def guess(self, position: int, guess: int, masked_guess: int):
        print(f"Current guess: {bin_str(guess, pad_len=4)}")
        print(f"Masked guess:  {bin_str(masked_guess)}")

    def sample_check(self, index: int, message: int, ciphertext: int, key2_bits: int, candidate, matched: bool):
        print(f"  m/c #{index + 1}: {hex_str(message)} / {hex_str(ciphertext)}")
        print(f"  w XOR t:  {bin_str(key2_bits)}")
        if candidate is None:
            print(f"  {bcolors.GREY}No k2 guess yet, setting (w XOR t){bcolors.ENDC}")
        elif matched:
            print(f"  {bcolors.OKGREEN}(w XOR t) matched previous k2 guess{bcolors.ENDC}")
        else:
            print(f"  {bcolors.FAIL}(w XOR t) didn't match previous k2 guess, dropping guess{bcolors.ENDC}")

    def chunk_solved(self, position: int, key1: int, key2: int):
        print(f"new k1: {hex_str(key1)}")
        print(f"new k2: {hex_str(key2)}\n")

    def ambiguity(self, position: int, candidates: list[int]):
        guesses = ", ".join(f"{c:x}" for c in candidates)
        print(f"{bcolors.WARNING}Chunk [{position}-{position + 3}] has several consistent guesses ({guesses}); keeping the first{bcolors.ENDC}")

    def no_candidates(self, position: int):
        print(f"{bcolors.FAIL}No guess fits every sample for chunk [{position}-{position + 3}]; leaving it 0{bcolors.ENDC}")
