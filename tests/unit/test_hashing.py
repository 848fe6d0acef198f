from assetstamp.core.hashing import compute_bytes_digest, is_supported_algorithm


def test_compute_bytes_digest_defaults_to_md5() -> None:
    assert compute_bytes_digest(b"assetstamp") == "fa7aedee77fa245aa4d9a8efd10e8093"


def test_compute_bytes_digest_sha256() -> None:
    assert (
        compute_bytes_digest(b"assetstamp", "sha256")
        == "be29ba55f09c0f0dcc44e26d3c6d1802faf12cd062e7da1f7827657051afeebf"
    )


def test_is_supported_algorithm() -> None:
    assert is_supported_algorithm("SHA256")
    assert not is_supported_algorithm("not-a-hash")
