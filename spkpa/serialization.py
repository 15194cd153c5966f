import json
from dataclasses import dataclass, field
from typing import Optional
from .params import NetParams, bcolors
from .errors import DimensionMismatchError
from .utils import hex_str, parse_word
from .substitution import ruleset_from_sbox

# -----------------------------
# Sample Sets
# -----------------------------
@dataclass
class SampleSet:
    params: Optional[NetParams]
    messages: list[int] = field(default_factory=list)
    ciphertexts: list[int] = field(default_factory=list)

def write_samples(path: str, samples: SampleSet):
    payload = {
        "samples": [{"message": hex_str(m), "ciphertext": hex_str(c)} for m, c in zip(samples.messages, samples.ciphertexts)]
    }
    if samples.params is not None:
        payload["permutation"] = [int(x) for x in samples.params.permutation]
        payload["sbox"] = ruleset_from_sbox(samples.params.sbox)
    with open(path, "w") as f:
        json.dump(payload, f, indent=2)

def read_samples(path: str) -> SampleSet:
    with open(path, "r") as f:
        payload = json.load(f)
    params = None
    if "permutation" in payload and "sbox" in payload:
        params = NetParams.from_ruleset(payload["permutation"], payload["sbox"])
    pairs = payload.get("samples", [])
    if any("message" not in p or "ciphertext" not in p for p in pairs):
        raise DimensionMismatchError(f"{bcolors.FAIL}Every sample needs both a message and a ciphertext{bcolors.ENDC}")
    messages = [parse_word(p["message"]) for p in pairs]
    ciphertexts = [parse_word(p["ciphertext"]) for p in pairs]
    return SampleSet(params, messages, ciphertexts)

# -----------------------------
# Recovered keys
# -----------------------------
def write_recovered_keys(path: str, keys: list[int], metadata: Optional[dict] = None):
    payload = {"keys": [hex_str(k) for k in keys]}
    if metadata:
        payload["metadata"] = metadata
    with open(path, "w") as f:
        json.dump(payload, f, indent=2)

def read_recovered_keys(path: str) -> tuple[list[int], dict]:
    with open(path, "r") as f:
        payload = json.load(f)
    return [parse_word(k) for k in payload["keys"]], payload.get("metadata", {})
