import numpy as np
from spkpa import (
    NetParams, SPNet64, Tracer, bcolors,
    DimensionMismatchError, AmbiguousRecoveryError, InconsistentSamplesError, InvalidPermutationError,
    encrypt, break_one_round, break_two_rounds, kpa_verify, all_matched,
)
from spkpa import fixtures

PARAMS = NetParams.from_ruleset(fixtures.PERMUTATION, fixtures.SBOX_RULESET)

def random_word(rng):
    return int.from_bytes(rng.bytes(8), "big")

def random_params(rng):
    ruleset = "".join(f"{int(v):x}" for v in rng.permutation(16))
    return NetParams.from_ruleset(rng.permutation(64), ruleset)

class GuessCounter(Tracer):
    def __init__(self):
        self.ambiguous = []
        self.guesses = 0
        self.inconsistent = []

    def guess(self, position, guess, masked_guess):
        self.guesses += 1

    def ambiguity(self, position, candidates):
        self.ambiguous.append((position, candidates))

    def no_candidates(self, position):
        self.inconsistent.append(position)

def test_break_one_round_reference():
    key = break_one_round(PARAMS.permutation, PARAMS.sbox, fixtures.T2_MESSAGE, fixtures.T2_CIPHERTEXT)
    assert encrypt(PARAMS, fixtures.T2_MESSAGE, [key]) == fixtures.T2_CIPHERTEXT

def test_break_one_round_example_key():
    key = break_one_round(PARAMS.permutation, PARAMS.sbox, fixtures.EXAMPLE_MESSAGE, fixtures.EXAMPLE_CIPHERTEXT)
    assert key == fixtures.EXAMPLE_KEY

def test_break_one_round_random():
    rng = np.random.default_rng(7)
    for _ in range(10):
        params = random_params(rng)
        m, k = random_word(rng), random_word(rng)
        c = encrypt(params, m, [k])
        assert break_one_round(params.permutation, params.sbox, m, c) == k

def test_break_one_round_rejects_bad_permutation():
    perm = list(fixtures.PERMUTATION)
    perm[0] = perm[1]
    try:
        break_one_round(perm, PARAMS.sbox, 0, 0)
    except InvalidPermutationError:
        return
    raise AssertionError("expected InvalidPermutationError")

def test_break_two_rounds_reference():
    k1, k2 = break_two_rounds(PARAMS.permutation, PARAMS.sbox, fixtures.T3_MESSAGES, fixtures.T3_CIPHERTEXTS)
    net = SPNet64.from_params(PARAMS, 0, [k1, k2])
    results = kpa_verify(net, [k1, k2], fixtures.T3_MESSAGES, fixtures.T3_CIPHERTEXTS)
    assert len(results) == 6
    assert all_matched(results), [r for r in results if not r.matched]

def test_break_two_rounds_random():
    rng = np.random.default_rng(11)
    for _ in range(3):
        params = random_params(rng)
        k1, k2 = random_word(rng), random_word(rng)
        messages = [random_word(rng) for _ in range(24)]
        ciphertexts = [encrypt(params, m, [k1, k2]) for m in messages]
        g1, g2, chunks = break_two_rounds(params.permutation, params.sbox, messages, ciphertexts, details=True)
        assert all(encrypt(params, m, [g1, g2]) == c for m, c in zip(messages, ciphertexts))
        assert len(chunks) == 16
        for chunk in chunks:
            shift = 60 - chunk.position
            true_nibble = (k1 >> shift) & 0xF
            assert true_nibble in chunk.candidates
            if not chunk.ambiguous:
                assert chunk.guess == true_nibble
                assert chunk.key2_bits == k2 & chunk.output_mask

def test_break_two_rounds_dimension_mismatch():
    try:
        break_two_rounds(PARAMS.permutation, PARAMS.sbox, [1, 2], [3])
    except DimensionMismatchError:
        return
    raise AssertionError("expected DimensionMismatchError")

def test_single_sample_is_ambiguous():
    c = encrypt(PARAMS, fixtures.T1_MESSAGE, [1, 2])
    tracer = GuessCounter()
    k1, k2, chunks = break_two_rounds(PARAMS.permutation, PARAMS.sbox, [fixtures.T1_MESSAGE], [c], tracer=tracer, details=True)
    # every guess agrees with itself on a single sample, so the first one (0) wins
    assert k1 == 0
    assert tracer.guesses == 16 * 16
    assert len(tracer.ambiguous) == 16
    assert all(chunk.candidates == list(range(16)) for chunk in chunks)
    assert encrypt(PARAMS, fixtures.T1_MESSAGE, [k1, k2]) == c

def test_strict_raises_on_ambiguity():
    c = encrypt(PARAMS, fixtures.T1_MESSAGE, [1, 2])
    try:
        break_two_rounds(PARAMS.permutation, PARAMS.sbox, [fixtures.T1_MESSAGE], [c], strict=True)
    except AmbiguousRecoveryError as e:
        assert e.position == 0
        assert e.candidates == list(range(16))
        return
    raise AssertionError("expected AmbiguousRecoveryError")

def test_no_samples_gives_zero_keys():
    assert break_two_rounds(PARAMS.permutation, PARAMS.sbox, [], []) == (0, 0)

FOREIGN_MESSAGES = [1, 2, 3, 4]
FOREIGN_CIPHERTEXTS = [5, 99, 1234, 77777]

def test_samples_from_another_cipher_are_inconsistent():
    tracer = GuessCounter()
    k1, k2, chunks = break_two_rounds(PARAMS.permutation, PARAMS.sbox, FOREIGN_MESSAGES, FOREIGN_CIPHERTEXTS,
                                      tracer=tracer, details=True)
    empty = [c for c in chunks if c.inconsistent]
    assert empty, "expected at least one chunk with no fitting guess"
    for chunk in empty:
        assert chunk.candidates == []
        assert not chunk.ambiguous
        assert chunk.guess == 0 and chunk.key2_bits == 0
        assert (k1 >> (60 - chunk.position)) & 0xF == 0
        assert k2 & chunk.output_mask == 0
    assert tracer.inconsistent == [c.position for c in empty]
    assert all(c.position not in tracer.inconsistent for c in chunks if c.ambiguous)

def test_strict_raises_on_inconsistent_samples():
    # the first chunk already has no fitting guess for these pairs
    try:
        break_two_rounds(PARAMS.permutation, PARAMS.sbox, FOREIGN_MESSAGES, FOREIGN_CIPHERTEXTS, strict=True)
    except InconsistentSamplesError as e:
        assert e.position == 0
        return
    raise AssertionError("strict mode returned keys for samples that fit no key")

def test_verify_detects_wrong_keys():
    net = SPNet64.from_params(PARAMS, 0, [0])
    results = kpa_verify(net, [fixtures.EXAMPLE_KEY ^ 1], [fixtures.EXAMPLE_MESSAGE], [fixtures.EXAMPLE_CIPHERTEXT])
    assert not results[0].matched
    assert results[0].expected == fixtures.EXAMPLE_CIPHERTEXT
    assert not all_matched(results)

def run_tests():
    tests = [
        test_break_one_round_reference,
        test_break_one_round_example_key,
        test_break_one_round_random,
        test_break_one_round_rejects_bad_permutation,
        test_break_two_rounds_reference,
        test_break_two_rounds_random,
        test_break_two_rounds_dimension_mismatch,
        test_single_sample_is_ambiguous,
        test_strict_raises_on_ambiguity,
        test_no_samples_gives_zero_keys,
        test_samples_from_another_cipher_are_inconsistent,
        test_strict_raises_on_inconsistent_samples,
        test_verify_detects_wrong_keys,
    ]
    all_passed = True
    for test in tests:
        print(f"{bcolors.OKBLUE}Running {test.__name__}{bcolors.ENDC}")
        try:
            test()
            print(f"{bcolors.OKGREEN}Success!{bcolors.ENDC}")
        except Exception as e:
            all_passed = False
            print(f"{bcolors.FAIL}Failure: {e!r}{bcolors.ENDC}")
        print("-" * 60)

    if all_passed:
        print(f"{bcolors.BOLD}{bcolors.OKGREEN}All tests passed!{bcolors.ENDC}")
    else:
        print(f"{bcolors.BOLD}{bcolors.FAIL}Some tests failed.{bcolors.ENDC}")

if __name__ == "__main__":
    run_tests()
