# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for the XOR masker."""

import pytest

from pyfly_csrf.kernel.exceptions import TokenLengthMismatchException
from pyfly_csrf.security.csrf.masking import Masker, join, split, xor_bytes
from pyfly_csrf.security.csrf.random import SystemByteSource


class _CountingByteSource:
    def __init__(self) -> None:
        self.requests: list[int] = []

    def random_bytes(self, n: int) -> bytes:
        self.requests.append(n)
        return bytes([0xAA]) * n


class TestXor:
    def test_xor(self):
        assert xor_bytes(b"\x0f\xf0", b"\xff\xff") == b"\xf0\x0f"

    def test_xor_length_mismatch(self):
        with pytest.raises(TokenLengthMismatchException):
            xor_bytes(b"\x00", b"\x00\x00")


class TestMasker:
    def test_mask_draws_payload_sized_mask(self):
        source = _CountingByteSource()
        mask, masked = Masker(source).mask(b"\x01\x02\x03")
        assert source.requests == [3]
        assert mask == b"\xaa\xaa\xaa"
        assert masked == b"\xab\xa8\xa9"

    def test_unmask_recovers_payload(self):
        masker = Masker(SystemByteSource())
        payload = b"signed payload bytes"
        assert masker.unmask(*masker.mask(payload)) == payload

    def test_fresh_mask_per_call(self):
        masker = Masker(SystemByteSource())
        payload = bytes(72)
        assert masker.mask_token(payload) != masker.mask_token(payload)

    def test_masked_half_differs_from_payload(self):
        masker = Masker(SystemByteSource())
        payload = b"x" * 72
        _, masked = masker.mask(payload)
        assert masked != payload

    def test_unmask_length_mismatch(self):
        with pytest.raises(TokenLengthMismatchException) as exc_info:
            Masker(SystemByteSource()).unmask(b"\x00" * 4, b"\x00" * 5)
        assert exc_info.value.code == "CSRF_LENGTH_MISMATCH"

    def test_token_round_trip(self):
        masker = Masker(SystemByteSource())
        token = masker.mask_token(b"payload")
        assert len(token) == 14
        assert masker.unmask_token(token) == b"payload"


class TestJoinSplit:
    def test_mask_comes_first(self):
        assert join(b"mm", b"pp") == b"mmpp"
        assert split(b"mmpp") == (b"mm", b"pp")

    def test_split_odd_length(self):
        with pytest.raises(TokenLengthMismatchException):
            split(b"abc")
