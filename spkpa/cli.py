import sys
import argparse
from typing import Optional
from .params import NetParams, bcolors
from .utils import hex_str, parse_word, parse_word_list
from .network import SPNet64, encrypt
from .kpa import break_one_round, break_two_rounds
from .verify import kpa_verify, all_matched
from .serialization import SampleSet, read_samples, write_recovered_keys
from .trace import ConsoleTracer, NULL_TRACER
from . import fixtures

# -----------------------------
# Helpers
# -----------------------------
def build_params(perm_text: Optional[str] = None, sbox: Optional[str] = None) -> NetParams:
    perm = [int(x) for x in perm_text.replace(",", " ").split()] if perm_text else fixtures.PERMUTATION
    return NetParams.from_ruleset(perm, sbox or fixtures.SBOX_RULESET)

def print_verify_report(results) -> bool:
    for r in results:
        print(f"input m-c #{r.index + 1}: {hex_str(r.message)} - {hex_str(r.expected)}")
        print(f"c' with cracked keys: {hex_str(r.actual)}")
        if r.matched:
            print(f"{bcolors.OKGREEN}c <-> c' match verified for m-c pair #{r.index + 1}{bcolors.ENDC}\n")
        else:
            print(f"{bcolors.FAIL}c <-> c' mismatch for m-c pair #{r.index + 1}{bcolors.ENDC}\n")
    return all_matched(results)

def load_sample_args(args, params: NetParams) -> tuple[NetParams, list[int], list[int]]:
    if args.samples:
        samples = read_samples(args.samples)
        return samples.params or params, samples.messages, samples.ciphertexts
    if not args.messages or not args.ciphertexts:
        raise ValueError("Either --samples or both --messages and --ciphertexts are required")
    return params, parse_word_list(args.messages), parse_word_list(args.ciphertexts)

# -----------------------------
# Commands
# -----------------------------
def cmd_encrypt(params: NetParams, message: int, keys: list[int], rounds: Optional[int], verbose: bool = False) -> int:
    tracer = ConsoleTracer() if verbose else NULL_TRACER
    c = encrypt(params, message, keys, rounds, tracer=tracer)
    print(f"Ciphertext: {hex_str(c)}")
    return c

def cmd_break1(params: NetParams, message: int, ciphertext: int) -> tuple[int, bool]:
    key = break_one_round(params.permutation, params.sbox, message, ciphertext)
    print(f"Recovered key: {hex_str(key)}\n")
    net = SPNet64.from_params(params, message, [key])
    ok = print_verify_report(kpa_verify(net, [key], [message], [ciphertext]))
    return key, ok

def cmd_break2(params: NetParams, messages: list[int], ciphertexts: list[int], strict: bool = False,
               verbose: bool = False, out_file: Optional[str] = None) -> tuple[int, int, bool]:
    tracer = ConsoleTracer() if verbose else None
    k1, k2, chunks = break_two_rounds(params.permutation, params.sbox, messages, ciphertexts,
                                      tracer=tracer, strict=strict, details=True)
    print(f"k1: {hex_str(k1)}")
    print(f"k2: {hex_str(k2)}")
    ambiguous = [c.position for c in chunks if c.ambiguous]
    if ambiguous:
        print(f"{bcolors.WARNING}Ambiguous chunks at bit positions: {ambiguous}. More samples will narrow them down.{bcolors.ENDC}")
    inconsistent = [c.position for c in chunks if c.inconsistent]
    if inconsistent:
        print(f"{bcolors.FAIL}No guess fits the samples for chunks at bit positions: {inconsistent}. "
              f"The samples do not match these tables.{bcolors.ENDC}")
    print()
    ok = True
    if messages:
        net = SPNet64.from_params(params, messages[0], [k1, k2])
        ok = print_verify_report(kpa_verify(net, [k1, k2], messages, ciphertexts))
    if out_file:
        write_recovered_keys(out_file, [k1, k2], {"rounds": 2, "samples": len(messages), "ambiguous_chunks": ambiguous, "inconsistent_chunks": inconsistent})
        print(f"Keys written to {out_file}")
    return k1, k2, ok

def cmd_demo(verbose: bool = False) -> bool:
    params = build_params()
    tracer = ConsoleTracer() if verbose else None
    net = SPNet64.from_params(params, fixtures.EXAMPLE_MESSAGE, [fixtures.EXAMPLE_KEY], tracer=tracer)
    net.do_round()
    ok = net.ciphertext == fixtures.EXAMPLE_CIPHERTEXT
    color = bcolors.OKGREEN if ok else bcolors.FAIL
    print(f"{color}Example cipher: {hex_str(net.ciphertext)} (expected {hex_str(fixtures.EXAMPLE_CIPHERTEXT)}){bcolors.ENDC}")

    net.set_message(fixtures.T1_MESSAGE)
    net.set_key_sequence([fixtures.T1_KEY])
    net.do_round()
    print(f"T1 cipher: {hex_str(net.ciphertext)}")

    print("\nT2:")
    _, ok2 = cmd_break1(params, fixtures.T2_MESSAGE, fixtures.T2_CIPHERTEXT)

    print("T3:")
    _, _, ok3 = cmd_break2(params, list(fixtures.T3_MESSAGES), list(fixtures.T3_CIPHERTEXTS), verbose=verbose)
    return ok and ok2 and ok3

# -----------------------------
# Interactive Menu
# -----------------------------
def menu_params() -> NetParams:
    perm_text = input("Permutation table (64 ints, blank = default): ").strip() or None
    sbox = input(f"S-box ruleset (blank = {fixtures.SBOX_RULESET}): ").strip() or None
    return build_params(perm_text, sbox)

def menu_encrypt():
    params = menu_params()
    message = parse_word(input("Message (hex 0x.. or decimal): "))
    keys = parse_word_list(input("Round keys (comma or whitespace separated): "))
    rounds = input(f"Rounds (default {len(keys)}): ").strip()
    verbose = input("Trace rounds? (y/n) [n]: ").strip().lower() == "y"
    cmd_encrypt(params, message, keys, int(rounds) if rounds else None, verbose)

def menu_break1():
    params = menu_params()
    message = parse_word(input("Known message: "))
    ciphertext = parse_word(input("Known ciphertext: "))
    cmd_break1(params, message, ciphertext)

def menu_break2():
    params = menu_params()
    path = input("Samples file (blank = enter pairs): ").strip() or None
    if path:
        samples = read_samples(path)
    else:
        samples = SampleSet(None, parse_word_list(input("Known messages: ")), parse_word_list(input("Known ciphertexts: ")))
    out_file = input("Write keys to (blank = don't): ").strip() or None
    cmd_break2(samples.params or params, samples.messages, samples.ciphertexts, out_file=out_file)

def interactive_menu():
    while True:
        print(f"{bcolors.OKCYAN}SP-KPA: 64-bit SP network and known-plaintext attacks{bcolors.ENDC}")
        print("")
        print(f"{bcolors.BOLD}1){bcolors.ENDC} Encrypt a message")
        print(f"{bcolors.BOLD}2){bcolors.ENDC} Break one round")
        print(f"{bcolors.BOLD}3){bcolors.ENDC} Break two rounds")
        print(f"{bcolors.GREY}4) Run the reference demo{bcolors.ENDC}")
        print(f"{bcolors.BOLD}0){bcolors.ENDC} Exit")
        choice = input(f"{bcolors.BOLD}Choice: {bcolors.ENDC}").strip()
        try:
            match choice:
                case "0":
                    break
                case "1":
                    menu_encrypt()
                case "2":
                    menu_break1()
                case "3":
                    menu_break2()
                case "4":
                    cmd_demo()
                case _:
                    print("Invalid choice")
        except Exception as e:
            print(f"{bcolors.FAIL}ERROR:{bcolors.ENDC}", e)

# -----------------------------
# CLI Main
# -----------------------------
def add_net_args(p: argparse.ArgumentParser):
    p.add_argument("--perm", help="64 permutation indices (comma or whitespace separated)")
    p.add_argument("--sbox", help="16 hex digit s-box ruleset")
    p.add_argument("--verbose", action="store_true", help="Trace intermediate values")

def add_sample_args(p: argparse.ArgumentParser):
    p.add_argument("--samples", help="JSON file with message/ciphertext pairs")
    p.add_argument("--messages", help="Known messages (comma or whitespace separated)")
    p.add_argument("--ciphertexts", help="Known ciphertexts (comma or whitespace separated)")

def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="64-bit SP network with known-plaintext key recovery")
    subparsers = parser.add_subparsers(dest="command")

    encrypt_parser = subparsers.add_parser("encrypt", help="Encrypt a message")
    add_net_args(encrypt_parser)
    encrypt_parser.add_argument("--message", required=True, help="Message word (hex 0x.. or decimal)")
    encrypt_parser.add_argument("--keys", required=True, help="Round keys, used cyclically")
    encrypt_parser.add_argument("--rounds", type=int, help="Number of rounds (default: one per key)")

    break1_parser = subparsers.add_parser("break1", help="Recover the key of one round")
    add_net_args(break1_parser)
    break1_parser.add_argument("--message", required=True, help="Known message")
    break1_parser.add_argument("--ciphertext", required=True, help="Known ciphertext")

    break2_parser = subparsers.add_parser("break2", help="Recover both keys of two rounds")
    add_net_args(break2_parser)
    add_sample_args(break2_parser)
    break2_parser.add_argument("--strict", action="store_true", help="Fail on ambiguous chunks")
    break2_parser.add_argument("--out_file", help="Write recovered keys as JSON")

    verify_parser = subparsers.add_parser("verify", help="Re-encrypt samples with candidate keys")
    add_net_args(verify_parser)
    add_sample_args(verify_parser)
    verify_parser.add_argument("--keys", required=True, help="Candidate round keys")

    demo_parser = subparsers.add_parser("demo", help="Run the reference vectors")
    demo_parser.add_argument("--verbose", action="store_true", help="Trace intermediate values")

    args = parser.parse_args(argv)

    try:
        match args.command:
            case "encrypt":
                cmd_encrypt(build_params(args.perm, args.sbox), parse_word(args.message),
                            parse_word_list(args.keys), args.rounds, args.verbose)
            case "break1":
                _, ok = cmd_break1(build_params(args.perm, args.sbox), parse_word(args.message), parse_word(args.ciphertext))
                return 0 if ok else 1
            case "break2":
                params, messages, ciphertexts = load_sample_args(args, build_params(args.perm, args.sbox))
                _, _, ok = cmd_break2(params, messages, ciphertexts, args.strict, args.verbose, args.out_file)
                return 0 if ok else 1
            case "verify":
                params, messages, ciphertexts = load_sample_args(args, build_params(args.perm, args.sbox))
                keys = parse_word_list(args.keys)
                net = SPNet64.from_params(params, messages[0] if messages else 0, keys)
                return 0 if print_verify_report(kpa_verify(net, keys, messages, ciphertexts)) else 1
            case "demo":
                return 0 if cmd_demo(args.verbose) else 1
            case _:
                interactive_menu()
    except Exception as e:
        print(f"{bcolors.FAIL}ERROR:{bcolors.ENDC}", e)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
