# spkpa/__init__.py
from .params import DTYPE, WORD_BITS, NIBBLE_BITS, NetParams, bcolors
from .errors import (
    ConstructionError, InvalidPermutationError, DimensionMismatchError,
    AmbiguousRecoveryError, InconsistentSamplesError,
)
from .utils import hex_str, bin_str, parse_word, parse_word_list
from .permutation import (
    make_permutation_table, permute, invert_permutation,
    restrict_permutation, chunk_mask, chunk_image_mask,
)
from .substitution import parse_sbox_ruleset, ruleset_from_sbox, substitute, invert_sbox, is_bijective_sbox
from .trace import Tracer, ConsoleTracer
from .network import (
    EngineState, SPNet64,
    initial_state, with_message, with_key_sequence, reset_state,
    round_function, advance, encrypt,
)
from .kpa import ChunkResult, break_one_round, break_two_rounds
from .verify import VerifyResult, kpa_verify, all_matched
from .serialization import SampleSet, read_samples, write_samples, write_recovered_keys, read_recovered_keys
