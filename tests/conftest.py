"""Shared fixtures: the reference key pair, a fixed clock and data files."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from fileseal.clock import fixed_clock
from fileseal.keys import load_private_key, load_public_key
from fileseal.signing import TokenSigner
from fileseal.verifier import TokenVerifier

KEYS_DIR = Path(__file__).parent / "fixtures" / "keys"

# Instant the reference tokens were signed at (2025-01-08T15:17:10Z)
FIXED_TIMESTAMP_DT = datetime.fromtimestamp(1736349430, tz=UTC)

TEST_ISSUER = "test_issuer"
TEST_SUBJECT = "test_subject"
TEST_FILE_NAME = "test.temp"
TEST_FILE_DATA = b"Hello, I am some test file data."
TEST_FILE_DIGEST = "15c416d7bd9890f5cbcc875122837ad3f14a2589d1d163b0a685c86870082270"

# Tokens signed with the reference key at 2025-01-08T15:17:10Z
SUBJECT_TOKEN = (
    b"eyJhbGciOiJSUzUxMiIsInR5cCI6IkpXVCJ9."
    b"eyJpc3MiOiJ0ZXN0X2lzc3VlciIsInN1YiI6InRlc3Rfc3ViamVjdCIsIm5iZiI6MTczNjM0OTQzMCwiaWF0IjoxNzM2MzQ5NDMw"
    b"LCJkaWdlc3QiOiIxNWM0MTZkN2JkOTg5MGY1Y2JjYzg3NTEyMjgzN2FkM2YxNGEyNTg5ZDFkMTYzYjBhNjg1Yzg2ODcwMDgyMjcwIn0."
    b"RmVuxnCntd6DVeFjTNE0-s47i5tALJ0vHgmimTPQSNoTWLM-kn8fipytFfR-yKzAPc5AwpVAE5Z3YNJ-D6C-nphnCSOch6_YDIWT"
    b"VASvIbtYkCby9QMBQvemFMtq07AIIbe59O4krrp5obKmhjtyIFTm7dJiTGC9jj1JCtcR144h_egiDUdkvt3ISpii_BgbhCfVJ4xo"
    b"mPg_0GjknUaKeZZEs1rqZT44rH8-1DicD_eomqp7NZVTMLIiYL9RpbjlyYKbTuODqvRnkzrGhuVjCTiujgCWDVGOaBZE_ExD2XYh"
    b"MhY14p5ezv3Tehp2eqvqPhZ1CHGt4cVCdcmNcAzBIw"
)
FILE_TOKEN = (
    b"eyJhbGciOiJSUzUxMiIsInR5cCI6IkpXVCJ9."
    b"eyJpc3MiOiJ0ZXN0X2lzc3VlciIsInN1YiI6InRlc3QudGVtcCIsIm5iZiI6MTczNjM0OTQzMCwiaWF0IjoxNzM2MzQ5NDMwLCJk"
    b"aWdlc3QiOiIxNWM0MTZkN2JkOTg5MGY1Y2JjYzg3NTEyMjgzN2FkM2YxNGEyNTg5ZDFkMTYzYjBhNjg1Yzg2ODcwMDgyMjcwIn0."
    b"QIPjoKqt2kZ2iW4evv28CkodLZd0sKrZM7_qAK_-gLRRLXwDh_eNYzpfXXlggmcNwmlxTrGJsVOv2F4UdLUKMrImbgNICXGNFQxa"
    b"7BWzFxMKtEOZ12Du8aH5Nka08FHt9GbliZ21yldswXaVM6OtDiGWJcDoX6KQFDgBNQCSlU0Si3E7Y4jyiyWwT_NgMUP_8X1v-fQr"
    b"3249FmSHR4kllbUKY2OaNU5FCi9XefEIcHHWAZtzIynmFQjZFwHRDXMT9cg87xJxwig-rkoqncHRESczQdU0fvhjH7ARfC7VjKEB"
    b"MGu0uvLSPjpEN0oV-NXRzh7uKMFgnaG1-_LlJRm60Q"
)


@pytest.fixture(scope="session")
def private_key():
    return load_private_key(KEYS_DIR / "test_private.pem")


@pytest.fixture(scope="session")
def public_key():
    return load_public_key(KEYS_DIR / "test_public.pem")


@pytest.fixture
def signer() -> TokenSigner:
    """Signer pinned to the reference instant."""
    return TokenSigner(clock=fixed_clock(FIXED_TIMESTAMP_DT))


@pytest.fixture
def verifier() -> TokenVerifier:
    """Verifier pinned to the reference instant."""
    return TokenVerifier(clock=fixed_clock(FIXED_TIMESTAMP_DT))


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary working directory; manifest paths are resolved against it."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def data_files(workdir: Path) -> list[str]:
    """Three files with known content, as relative paths."""
    contents = {
        "alpha.txt": TEST_FILE_DATA,
        "beta.bin": b"\x00\x01\x02\x03" * 64,
        "nested/gamma.json": b'{"key": "value"}',
    }
    for name, content in contents.items():
        path = workdir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return list(contents)
