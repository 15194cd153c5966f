# test.py
import io
import os
import json
import tempfile
import traceback
from contextlib import redirect_stdout
from dataclasses import dataclass
from typing import Callable, Any, Optional, Dict, List

import numpy as np

from spkpa import (
    NetParams, SPNet64, EngineState,
    ConstructionError, InvalidPermutationError,
    make_permutation_table, permute, invert_permutation, chunk_image_mask,
    parse_sbox_ruleset, substitute, invert_sbox, is_bijective_sbox,
    initial_state, with_message, with_key_sequence, reset_state, advance, encrypt,
    Tracer, SampleSet, read_samples, write_samples, write_recovered_keys, read_recovered_keys,
)
from spkpa import fixtures
from spkpa.cli import main as cli_main

# ---------- helpers ----------
@dataclass
class TestCase:
    __test__ = False
    name: str
    params: Dict[str, Any]
    runner: Callable[[], Any]
    notes: Optional[str] = None

def print_header(title: str):
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)

def run_case(case: TestCase) -> bool:
    print_header(f"TEST: {case.name}")
    for k, v in case.params.items():
        print(f"  - {k}: {v}")
    if case.notes:
        print(f"Notes: {case.notes}")
    try:
        case.runner()
        print("Result: PASS")
        return True
    except Exception as e:
        print("Result: FAIL")
        print("Exception:", repr(e))
        print(traceback.format_exc(limit=3))
        return False

def capture_stdout(func: Callable, *args, **kwargs) -> tuple[Any, str]:
    buf = io.StringIO()
    with redirect_stdout(buf):
        out = func(*args, **kwargs)
    return out, buf.getvalue()

def random_word(rng: np.random.Generator) -> int:
    return int.from_bytes(rng.bytes(8), "big")

def default_params() -> NetParams:
    return NetParams.from_ruleset(fixtures.PERMUTATION, fixtures.SBOX_RULESET)

class RecordingTracer(Tracer):
    def __init__(self):
        self.events = []
        self.keys = []

    def round_start(self, round_no, word, key):
        self.events.append("round_start")
        self.keys.append(key)

    def key_mix(self, word):
        self.events.append("key_mix")

    def substitution(self, word):
        self.events.append("substitution")

    def permutation(self, word):
        self.events.append("permutation")

    def round_result(self, round_no, ciphertext):
        self.events.append("round_result")

# ---------- primitives ----------
def test_permutation_round_trip():
    rng = np.random.default_rng(1)
    for _ in range(8):
        table = make_permutation_table(rng.permutation(64))
        inv = invert_permutation(table)
        for _ in range(16):
            x = random_word(rng)
            assert permute(inv, permute(table, x)) == x

def test_permute_moves_msb_to_table_index():
    table = make_permutation_table(fixtures.PERMUTATION)
    # input bit 0 (MSB) goes to output bit 41
    assert permute(table, 1 << 63) == 1 << (63 - 41)
    # input bit 63 (LSB) goes to output bit 59
    assert permute(table, 1) == 1 << (63 - 59)
    assert permute(table, 0) == 0
    assert permute(table, (1 << 64) - 1) == (1 << 64) - 1

def test_invert_permutation_rejects_non_bijection():
    table = list(range(64))
    table[5] = 4
    for bad in (table, list(range(63)), list(range(1, 65))):
        try:
            invert_permutation(bad)
        except InvalidPermutationError:
            continue
        raise AssertionError(f"no error for {bad}")

def test_substitution_round_trip():
    rng = np.random.default_rng(2)
    for _ in range(8):
        sbox = rng.permutation(16)
        inv = invert_sbox(sbox)
        assert is_bijective_sbox(sbox)
        for _ in range(16):
            x = random_word(rng)
            assert substitute(inv, substitute(sbox, x)) == x

def test_substitute_is_nibblewise_msb_first():
    sbox = parse_sbox_ruleset(fixtures.SBOX_RULESET)
    assert substitute(sbox, 0x0123456789abcdef) == int(fixtures.SBOX_RULESET, 16)
    assert substitute(sbox, 0) == 0xcccccccccccccccc

def test_invert_sbox_does_not_check_bijection():
    sbox = list(range(16))
    sbox[1] = 0
    assert not is_bijective_sbox(sbox)
    inv = invert_sbox(sbox)  # no error
    assert int(inv[0]) == 1 and int(inv[1]) == 0
    assert substitute(inv, substitute(sbox, 0)) == 0x1111111111111111

def test_chunk_image_masks_partition_word():
    table = make_permutation_table(fixtures.PERMUTATION)
    expected = sum(1 << (63 - p) for p in fixtures.PERMUTATION[:4])
    assert chunk_image_mask(table, 0) == expected
    masks = [chunk_image_mask(table, pos) for pos in range(0, 64, 4)]
    total = 0
    for m in masks:
        assert bin(m).count("1") == 4
        assert total & m == 0
        total |= m
    assert total == (1 << 64) - 1

def test_invert_sbox_rejects_out_of_range_entries():
    for bad in ([16] + list(range(1, 16)), [-1] + list(range(1, 16))):
        try:
            invert_sbox(bad)
        except ConstructionError:
            continue
        raise AssertionError(f"no error for {bad}")

# ---------- engine ----------
def test_construction_errors():
    cases = [
        lambda: SPNet64(fixtures.PERMUTATION[:63], fixtures.SBOX_RULESET, 0, [0]),
        lambda: SPNet64(fixtures.PERMUTATION, fixtures.SBOX_RULESET[:15], 0, [0]),
        lambda: SPNet64(fixtures.PERMUTATION, "c56b90ad3ef8471g", 0, [0]),
        lambda: SPNet64(fixtures.PERMUTATION, fixtures.SBOX_RULESET, 0, []),
        lambda: SPNet64(fixtures.PERMUTATION, fixtures.SBOX_RULESET, 1 << 64, [0]),
        lambda: SPNet64([64] + list(fixtures.PERMUTATION[1:]), fixtures.SBOX_RULESET, 0, [0]),
    ]
    for i, build in enumerate(cases):
        try:
            build()
        except ConstructionError:
            continue
        raise AssertionError(f"case {i} did not raise")

def test_example_round():
    net = SPNet64(fixtures.PERMUTATION, fixtures.SBOX_RULESET, fixtures.EXAMPLE_MESSAGE, [fixtures.EXAMPLE_KEY])
    assert net.current_round == 0 and net.ciphertext == 0
    net.do_round()
    assert net.current_round == 1
    assert net.ciphertext == fixtures.EXAMPLE_CIPHERTEXT

def test_tables_are_read_only():
    net = SPNet64(fixtures.PERMUTATION, fixtures.SBOX_RULESET, 0, [0])
    for table in (net.permutation, net.sbox):
        try:
            table[0] = 1
        except ValueError:
            continue
        raise AssertionError("table is writeable")

def test_key_cycling():
    keys = [0x1111, 0x2222, 0x3333]
    tracer = RecordingTracer()
    net = SPNet64(fixtures.PERMUTATION, fixtures.SBOX_RULESET, 0xdeadbeef, keys, tracer=tracer)
    for _ in range(7):
        net.do_round()
    assert net.current_round == 7
    assert tracer.keys == [keys[(n - 1) % 3] for n in range(1, 8)]

def test_rounds_chain_through_ciphertext():
    params = default_params()
    k1, k2 = 0x0123456789abcdef, 0xfedcba9876543210
    net = SPNet64.from_params(params, fixtures.T1_MESSAGE, [k1, k2])
    net.do_round()
    first = net.ciphertext
    net.do_round()
    assert net.ciphertext == encrypt(params, first, [k2])
    assert net.ciphertext == encrypt(params, fixtures.T1_MESSAGE, [k1, k2])

def test_set_message_and_reset():
    keys = [1, 2]
    tracer = RecordingTracer()
    net = SPNet64(fixtures.PERMUTATION, fixtures.SBOX_RULESET, 5, keys, tracer=tracer)
    net.do_round()
    net.set_message(6)
    assert (net.message, net.current_round, net.ciphertext) == (6, 0, 0)
    net.do_round()
    net.do_round()
    net.reset()
    assert (net.message, net.current_round, net.ciphertext) == (6, 0, 0)
    net.do_round()
    net.set_key_sequence([9])
    assert net.current_round == 0
    net.do_round()
    assert tracer.keys == [1, 1, 2, 1, 9]

def test_pure_transitions():
    params = default_params()
    s0 = initial_state(fixtures.EXAMPLE_MESSAGE, [fixtures.EXAMPLE_KEY])
    s1 = advance(params, s0)
    assert s0 == EngineState(fixtures.EXAMPLE_MESSAGE, (fixtures.EXAMPLE_KEY,))
    assert s1.round == 1 and s1.ciphertext == fixtures.EXAMPLE_CIPHERTEXT
    assert with_message(s1, 7) == EngineState(7, s1.keys)
    assert reset_state(s1) == s0
    assert with_key_sequence(s1, [3, 4]) == EngineState(s1.message, (3, 4))

def test_tracer_checkpoints():
    tracer = RecordingTracer()
    encrypt(default_params(), 1, [2], tracer=tracer)
    assert tracer.events == ["round_start", "key_mix", "substitution", "permutation", "round_result"]

def test_words_must_be_integers():
    for bad in (1.7, "0x10", None, True):
        try:
            SPNet64(fixtures.PERMUTATION, fixtures.SBOX_RULESET, bad, [0])
        except ConstructionError:
            pass
        else:
            raise AssertionError(f"message {bad!r} was accepted")
        try:
            SPNet64(fixtures.PERMUTATION, fixtures.SBOX_RULESET, 0, [bad])
        except ConstructionError:
            continue
        raise AssertionError(f"key {bad!r} was accepted")
    net = SPNet64(fixtures.PERMUTATION, fixtures.SBOX_RULESET, np.uint64(fixtures.EXAMPLE_MESSAGE), [fixtures.EXAMPLE_KEY])
    net.do_round()
    assert net.ciphertext == fixtures.EXAMPLE_CIPHERTEXT

# ---------- serialization ----------
def test_samples_json_round_trip():
    tmpdir = tempfile.mkdtemp(prefix="spkpa_test_")
    path = os.path.join(tmpdir, "samples.json")
    samples = SampleSet(default_params(), list(fixtures.T3_MESSAGES), list(fixtures.T3_CIPHERTEXTS))
    write_samples(path, samples)
    with open(path) as f:
        assert json.load(f)["sbox"] == fixtures.SBOX_RULESET
    got = read_samples(path)
    assert got.messages == samples.messages and got.ciphertexts == samples.ciphertexts
    assert [int(x) for x in got.params.permutation] == list(fixtures.PERMUTATION)
    assert [int(x) for x in got.params.sbox] == [int(c, 16) for c in fixtures.SBOX_RULESET]

    keys_path = os.path.join(tmpdir, "keys.json")
    write_recovered_keys(keys_path, [1, 2], {"rounds": 2})
    assert read_recovered_keys(keys_path) == ([1, 2], {"rounds": 2})

# ---------- CLI ----------
def test_cli_demo():
    status, out = capture_stdout(cli_main, ["demo"])
    assert status == 0, out
    assert "mismatch" not in out

def test_cli_encrypt():
    status, out = capture_stdout(cli_main, ["encrypt", "--message", hex(fixtures.EXAMPLE_MESSAGE), "--keys", hex(fixtures.EXAMPLE_KEY)])
    assert status == 0
    assert f"Ciphertext: 0x{fixtures.EXAMPLE_CIPHERTEXT:016x}" in out

def test_cli_break2_with_sample_file():
    tmpdir = tempfile.mkdtemp(prefix="spkpa_test_")
    path = os.path.join(tmpdir, "samples.json")
    out_file = os.path.join(tmpdir, "keys.json")
    write_samples(path, SampleSet(None, list(fixtures.T3_MESSAGES), list(fixtures.T3_CIPHERTEXTS)))
    status, out = capture_stdout(cli_main, ["break2", "--samples", path, "--out_file", out_file])
    assert status == 0, out
    keys, meta = read_recovered_keys(out_file)
    assert len(keys) == 2 and meta["samples"] == 6

def test_cli_reports_errors():
    status, out = capture_stdout(cli_main, ["encrypt", "--message", "0x1", "--keys", "0x2", "--sbox", "zz"])
    assert status == 1 and "ERROR" in out
    status, out = capture_stdout(cli_main, ["break2", "--messages", "0x1", "--ciphertexts", "0x2", "--strict"])
    assert status == 1 and "ambiguous" in out

def test_cli_reports_inconsistent_samples():
    argv = ["break2", "--messages", "1 2 3 4", "--ciphertexts", "5 99 1234 77777"]
    status, out = capture_stdout(cli_main, argv)
    assert status == 1
    assert "No guess fits the samples" in out
    status, out = capture_stdout(cli_main, argv + ["--strict"])
    assert status == 1 and "ERROR" in out and "No guess for chunk [0-3]" in out

# ---------- main test suite ----------
CASES = [
    TestCase("Permutation round trip", {"tables": 8, "words": 16}, test_permutation_round_trip),
    TestCase("Permutation is MSB-first", {"table": "reference"}, test_permute_moves_msb_to_table_index),
    TestCase("Permutation inversion validates", {}, test_invert_permutation_rejects_non_bijection),
    TestCase("Substitution round trip", {"tables": 8, "words": 16}, test_substitution_round_trip),
    TestCase("Substitution is nibblewise", {"ruleset": fixtures.SBOX_RULESET}, test_substitute_is_nibblewise_msb_first),
    TestCase("S-box inversion does not validate", {}, test_invert_sbox_does_not_check_bijection,
             notes="A non-bijective s-box silently yields a wrong inverse."),
    TestCase("Chunk output masks", {}, test_chunk_image_masks_partition_word),
    TestCase("S-box inversion checks entry range", {}, test_invert_sbox_rejects_out_of_range_entries),
    TestCase("Construction errors", {}, test_construction_errors),
    TestCase("Example round", {"m": hex(fixtures.EXAMPLE_MESSAGE), "k": hex(fixtures.EXAMPLE_KEY)}, test_example_round),
    TestCase("Tables are read-only", {}, test_tables_are_read_only),
    TestCase("Key cycling", {"keys": 3, "rounds": 7}, test_key_cycling),
    TestCase("Rounds chain", {}, test_rounds_chain_through_ciphertext),
    TestCase("Message and reset", {}, test_set_message_and_reset),
    TestCase("Pure transitions", {}, test_pure_transitions),
    TestCase("Tracer checkpoints", {}, test_tracer_checkpoints),
    TestCase("Words must be integers", {"bad": "1.7, \"0x10\", None, True"}, test_words_must_be_integers),
    TestCase("Samples JSON", {}, test_samples_json_round_trip),
    TestCase("CLI demo", {}, test_cli_demo),
    TestCase("CLI encrypt", {}, test_cli_encrypt),
    TestCase("CLI break2", {}, test_cli_break2_with_sample_file),
    TestCase("CLI errors", {}, test_cli_reports_errors),
    TestCase("CLI inconsistent samples", {}, test_cli_reports_inconsistent_samples),
]

def main():
    print_header("SPKPA TEST SUITE")
    results: List[bool] = [run_case(case) for case in CASES]
    print_header("SUMMARY")
    passed = sum(1 for r in results if r)
    print(f"Passed {passed}/{len(results)} tests.")

if __name__ == "__main__":
    main()
