import json

import pytest
from py_ecc.optimized_bn128 import G1, G2, curve_order, multiply, normalize

from zk_memory.domain.commitment import commit
from zk_memory.domain.public_inputs import build_public_inputs
from zk_memory.verifiers import AcceptAllVerifier, Groth16Verifier, Verdict, build_verifier

# Toxic waste for a throwaway setup; lets the test produce valid proofs without a circuit.
ALPHA, BETA, GAMMA, DELTA = 5, 7, 11, 13
IC_SCALARS = [17, 19, 23, 29]
A_SCALAR, B_SCALAR = 31, 37

COMMITMENT = commit([0, 1, 0, 1], "verifier-salt")


def _int(coefficient):
    return int(getattr(coefficient, "n", coefficient))


def g1_json(point):
    x, y = normalize(point)
    return [str(_int(x)), str(_int(y)), "1"]


def g2_json(point):
    x, y = normalize(point)
    return [
        [str(_int(x.coeffs[0])), str(_int(x.coeffs[1]))],
        [str(_int(y.coeffs[0])), str(_int(y.coeffs[1]))],
        ["1", "0"],
    ]


def g1_words(point):
    x, y = normalize(point)
    return _int(x).to_bytes(32, "big") + _int(y).to_bytes(32, "big")


def g2_words(point):
    x, y = normalize(point)
    return b"".join(
        _int(c).to_bytes(32, "big") for c in (x.coeffs[1], x.coeffs[0], y.coeffs[1], y.coeffs[0])
    )


def make_proof(public_inputs):
    scalars = [int.from_bytes(word, "big") % curve_order for word in public_inputs]
    vk_x = IC_SCALARS[0] + sum(s * k for s, k in zip(scalars, IC_SCALARS[1:]))
    c_scalar = (
        (A_SCALAR * B_SCALAR - ALPHA * BETA - vk_x * GAMMA) * pow(DELTA, -1, curve_order)
    ) % curve_order
    return (
        g1_words(multiply(G1, A_SCALAR))
        + g2_words(multiply(G2, B_SCALAR))
        + g1_words(multiply(G1, c_scalar))
    )


@pytest.fixture(scope="module")
def vk_json():
    return {
        "protocol": "groth16",
        "curve": "bn128",
        "nPublic": 3,
        "vk_alpha_1": g1_json(multiply(G1, ALPHA)),
        "vk_beta_2": g2_json(multiply(G2, BETA)),
        "vk_gamma_2": g2_json(multiply(G2, GAMMA)),
        "vk_delta_2": g2_json(multiply(G2, DELTA)),
        "IC": [g1_json(multiply(G1, k)) for k in IC_SCALARS],
    }


@pytest.fixture(scope="module")
def verifier(vk_json):
    return Groth16Verifier(vk_json)


def test_groth16_accepts_valid_proof(verifier):
    public_inputs = build_public_inputs(2, COMMITMENT, 0)
    proof = make_proof(public_inputs)
    assert verifier.public_input_count == 3
    assert verifier.verify(proof, public_inputs, COMMITMENT) is Verdict.accept


def test_groth16_rejects_proof_for_another_claim(verifier):
    proof = make_proof(build_public_inputs(2, COMMITMENT, 0))
    forged_inputs = build_public_inputs(2, COMMITMENT, 1)
    assert verifier.verify(proof, forged_inputs, COMMITMENT) is Verdict.reject


def test_groth16_rejects_wrong_commitment_and_input_count(verifier):
    public_inputs = build_public_inputs(2, COMMITMENT, 0)
    proof = make_proof(public_inputs)
    assert verifier.verify(proof, public_inputs, bytes(32)) is Verdict.reject
    assert verifier.verify(proof, public_inputs[:2], COMMITMENT) is Verdict.reject


@pytest.mark.parametrize(
    "proof",
    [b"", bytes(256), b"\xff" * 256, bytes(255)],
)
def test_groth16_rejects_malformed_proof(verifier, proof):
    public_inputs = build_public_inputs(0, COMMITMENT, 0)
    assert verifier.verify(proof, public_inputs, COMMITMENT) is Verdict.reject


def test_groth16_rejects_incomplete_key(vk_json):
    broken = dict(vk_json)
    del broken["vk_delta_2"]
    with pytest.raises(ValueError):
        Groth16Verifier(broken)


def test_accept_all_is_flagged_unsound():
    verifier = AcceptAllVerifier()
    assert not verifier.is_sound
    assert verifier.verify(b"", [], COMMITMENT) is Verdict.accept
    assert bool(Verdict.accept) and not bool(Verdict.reject)


def test_build_verifier(tmp_path, vk_json):
    assert isinstance(build_verifier("accept_all"), AcceptAllVerifier)

    key_path = tmp_path / "verification_key.json"
    key_path.write_text(json.dumps(vk_json))
    verifier = build_verifier("groth16", str(key_path))
    assert isinstance(verifier, Groth16Verifier)
    assert verifier.is_sound

    with pytest.raises(ValueError):
        build_verifier("groth16")
    with pytest.raises(ValueError):
        build_verifier("plonk")
