from dataclasses import dataclass, replace
from typing import Iterable, Optional
import numpy as np
from .params import NetParams, bcolors
from .errors import ConstructionError
from .utils import check_word
from .permutation import permute
from .substitution import substitute
from .trace import Tracer, NULL_TRACER

# -----------------------------
# Round state (pure transitions)
# -----------------------------
@dataclass(frozen=True)
class EngineState:
    message: int
    keys: tuple[int, ...]
    round: int = 0        # rounds completed since the last reset
    ciphertext: int = 0   # 0 until the first round

    @property
    def next_key(self) -> int:
        # round n (1-indexed) uses keys[(n - 1) mod L]
        return self.keys[self.round % len(self.keys)]

def _check_keys(keys: Iterable[int]) -> tuple[int, ...]:
    keys = tuple(check_word(k, "key") for k in keys)
    if not keys:
        raise ConstructionError(f"{bcolors.FAIL}Key sequence cannot be empty{bcolors.ENDC}")
    return keys

def initial_state(message: int, keys: Iterable[int]) -> EngineState:
    return EngineState(message=check_word(message, "message"), keys=_check_keys(keys))

def with_message(state: EngineState, message: int) -> EngineState:
    return EngineState(message=check_word(message, "message"), keys=state.keys)

def with_key_sequence(state: EngineState, keys: Iterable[int]) -> EngineState:
    return EngineState(message=state.message, keys=_check_keys(keys))

def reset_state(state: EngineState) -> EngineState:
    return replace(state, round=0, ciphertext=0)

def round_function(params: NetParams, word: int, key: int, tracer: Tracer = NULL_TRACER) -> int:
    """X_n = P(S(X_{n-1} XOR K_n))"""
    mixed = word ^ key
    tracer.key_mix(mixed)
    subbed = substitute(params.sbox, mixed)
    tracer.substitution(subbed)
    out = permute(params.permutation, subbed)
    tracer.permutation(out)
    return out

def advance(params: NetParams, state: EngineState, tracer: Tracer = NULL_TRACER) -> EngineState:
    key = state.next_key
    round_no = state.round + 1
    word = state.message if round_no == 1 else state.ciphertext
    tracer.round_start(round_no, word, key)
    ciphertext = round_function(params, word, key, tracer)
    tracer.round_result(round_no, ciphertext)
    return replace(state, round=round_no, ciphertext=ciphertext)

def encrypt(params: NetParams, message: int, keys: Iterable[int], rounds: Optional[int] = None, tracer: Tracer = NULL_TRACER) -> int:
    """Run `rounds` rounds (default: one per key) from a fresh state."""
    state = initial_state(message, keys)
    for _ in range(len(state.keys) if rounds is None else rounds):
        state = advance(params, state, tracer)
    return state.ciphertext

# -----------------------------
# Engine
# -----------------------------
class SPNet64:
    """64-bit substitution-permutation network with 4-bit s-boxes.

    The engine owns one EngineState and swaps it for a new one on every
    operation. Tables are read-only and may be shared between engines.
    """

    def __init__(self, permutation, sbox: str, message: int, keys: Iterable[int], tracer: Optional[Tracer] = None):
        self.params = NetParams.from_ruleset(permutation, sbox)
        self.tracer = tracer or NULL_TRACER
        self._state = initial_state(message, keys)

    @classmethod
    def from_params(cls, params: NetParams, message: int, keys: Iterable[int], tracer: Optional[Tracer] = None) -> "SPNet64":
        net = cls.__new__(cls)
        net.params = params
        net.tracer = tracer or NULL_TRACER
        net._state = initial_state(message, keys)
        return net

    @property
    def permutation(self) -> np.ndarray:
        return self.params.permutation

    @property
    def sbox(self) -> np.ndarray:
        return self.params.sbox

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def message(self) -> int:
        return self._state.message

    @property
    def key_sequence(self) -> tuple[int, ...]:
        return self._state.keys

    @property
    def ciphertext(self) -> int:
        return self._state.ciphertext

    @property
    def current_round(self) -> int:
        return self._state.round

    def set_message(self, message: int):
        self._state = with_message(self._state, message)

    def set_key_sequence(self, keys: Iterable[int]):
        self._state = with_key_sequence(self._state, keys)

    def do_round(self):
        self._state = advance(self.params, self._state, self.tracer)

    def reset(self):
        self._state = reset_state(self._state)
