import pytest

from snapbag_api.services.security import BagTokenSigner


def _flip_bit(signature: str, bit: int) -> str:
    raw = bytearray(bytes.fromhex(signature))
    raw[bit // 8] ^= 1 << (bit % 8)
    return raw.hex()


def test_signature_round_trip() -> None:
    signer = BagTokenSigner(secret="s3cret")
    signature = signer.sign("a1b2c3d4_000001")

    assert len(signature) == 64
    assert signature == signature.lower()
    assert signer.verify("a1b2c3d4_000001", signature)


@pytest.mark.parametrize("bit", [0, 7, 128, 255])
def test_single_bit_mutation_is_rejected(bit: int) -> None:
    signer = BagTokenSigner(secret="s3cret")
    signature = signer.sign("bag-42")

    assert not signer.verify("bag-42", _flip_bit(signature, bit))


def test_signature_is_bound_to_bag_and_secret() -> None:
    signer = BagTokenSigner(secret="s3cret")
    signature = signer.sign("bag-1")

    assert not signer.verify("bag-2", signature)
    assert not BagTokenSigner(secret="other").verify("bag-1", signature)


def test_uppercase_hex_is_accepted() -> None:
    signer = BagTokenSigner(secret="s3cret")
    assert signer.verify("bag-1", signer.sign("bag-1").upper())


@pytest.mark.parametrize(
    "signature",
    ["", "not-hex", "abc", "00" * 31, "00" * 33, None, 12345],
)
def test_malformed_signatures_fail_without_raising(signature) -> None:
    signer = BagTokenSigner(secret="s3cret")
    assert signer.verify("bag-1", signature) is False


def test_whitespace_in_signature_is_rejected() -> None:
    signer = BagTokenSigner(secret="s3cret")
    signature = signer.sign("bag-1")
    spaced = " ".join(signature[i : i + 2] for i in range(0, len(signature), 2))

    assert signer.verify("bag-1", spaced) is False
    assert signer.verify("bag-1", f" {signature} ") is False
    assert signer.verify("bag-1", signature + "\n") is False


def test_non_string_bag_id_fails() -> None:
    signer = BagTokenSigner(secret="s3cret")
    assert signer.verify(None, signer.sign("None")) is False  # type: ignore[arg-type]


def test_default_secret_comes_from_settings(reward_settings) -> None:
    assert BagTokenSigner().sign("bag-1") == BagTokenSigner(secret="test-secret").sign("bag-1")
