import base64
import json
import re
import unittest
from unittest.mock import patch

from jose import jwt

from phastauth.auth.token import (
    ExpiredToken,
    InvalidSignature,
    MalformedToken,
    RandomnessFailure,
    TokenCodec,
)
from helpers import TEST_SECRET, make_settings

TOKEN_SHAPE = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+$")
BASE64URL_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


def decode_segment(segment: str) -> dict:
    return json.loads(base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4)))


class FakeClock:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestMint(unittest.TestCase):

    def setUp(self):
        self.codec = TokenCodec(TEST_SECRET)

    def test_token_has_three_unpadded_segments(self):
        token = self.codec.mint({"id": 7})
        self.assertRegex(token, TOKEN_SHAPE)
        self.assertNotIn("=", token)

    def test_header_is_hs256_jwt(self):
        header = decode_segment(self.codec.mint({"id": 7}).split(".")[0])
        self.assertEqual(header, {"alg": "HS256", "typ": "JWT"})

    def test_round_trip_keeps_claims_and_adds_reserved(self):
        claims = {"role": "reader", "locale": "pt-PT"}
        payload = self.codec.verify(self.codec.mint(claims))

        for key, value in claims.items():
            self.assertEqual(payload[key], value)
        for key in ("iat", "exp", "jti", "iss", "aud"):
            self.assertIn(key, payload)
        self.assertEqual(payload["exp"] - payload["iat"], 3600)
        self.assertEqual(payload["iss"], "phast-auth")
        self.assertEqual(payload["aud"], "phast-auth-client")
        self.assertRegex(payload["jti"], r"^[0-9a-f]{32}$")
        self.assertNotIn("sub", payload)

    def test_subject_comes_from_id(self):
        payload = self.codec.verify(self.codec.mint({"id": 42}))
        self.assertEqual(payload["sub"], 42)
        self.assertEqual(payload["id"], 42)

    def test_reserved_claims_cannot_be_overridden(self):
        payload = self.codec.verify(self.codec.mint({
            "id": 1,
            "sub": 999,
            "exp": 1,
            "iat": 1,
            "jti": "chosen",
            "iss": "someone-else",
            "aud": "someone-else",
        }))
        self.assertEqual(payload["sub"], 1)
        self.assertEqual(payload["exp"] - payload["iat"], 3600)
        self.assertNotEqual(payload["jti"], "chosen")
        self.assertEqual(payload["iss"], "phast-auth")
        self.assertEqual(payload["aud"], "phast-auth-client")

    def test_each_token_gets_a_new_id(self):
        first = self.codec.verify(self.codec.mint({"id": 1}))
        second = self.codec.verify(self.codec.mint({"id": 1}))
        self.assertNotEqual(first["jti"], second["jti"])

    def test_standard_jwt_library_accepts_token(self):
        token = self.codec.mint({"role": "reader"})
        payload = jwt.decode(token, TEST_SECRET, algorithms=["HS256"], audience="phast-auth-client")
        self.assertEqual(payload["role"], "reader")

    def test_settings_drive_lifetime_and_issuer(self):
        codec = TokenCodec.from_settings(make_settings(TOKEN_TTL_SECONDS=60, TOKEN_ISSUER="tests"))
        payload = codec.verify(codec.mint({"id": 3}))
        self.assertEqual(payload["exp"] - payload["iat"], 60)
        self.assertEqual(payload["iss"], "tests")

    @patch("phastauth.auth.token.secrets.token_hex", side_effect=NotImplementedError)
    def test_missing_random_source_is_fatal(self, mock_token_hex):
        with self.assertRaises(RandomnessFailure):
            self.codec.mint({"id": 1})

    def test_empty_secret_is_rejected(self):
        with self.assertRaises(ValueError):
            TokenCodec("")


class TestVerify(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock(1_700_000_000)
        self.codec = TokenCodec(TEST_SECRET, clock=self.clock)

    def test_every_signature_character_change_is_detected(self):
        token = self.codec.mint({"id": 5})
        header, payload, signature = token.split(".")

        for position, original in enumerate(signature):
            replacement = "A" if original != "A" else "B"
            tampered = signature[:position] + replacement + signature[position + 1:]
            with self.subTest(position=position):
                with self.assertRaises(InvalidSignature):
                    self.codec.verify(f"{header}.{payload}.{tampered}")

    def test_tampered_payload_is_detected(self):
        header, _, signature = self.codec.mint({"id": 5}).split(".")
        forged = base64.urlsafe_b64encode(json.dumps({"id": 1, "sub": 1}).encode()).decode().rstrip("=")
        with self.assertRaises(InvalidSignature):
            self.codec.verify(f"{header}.{forged}.{signature}")

    def test_other_secret_is_rejected(self):
        token = TokenCodec("another-secret", clock=self.clock).mint({"id": 5})
        with self.assertRaises(InvalidSignature):
            self.codec.verify(token)

    def test_expired_token_fails_with_valid_signature(self):
        token = self.codec.mint({"id": 5})
        self.clock.now += 3601
        with self.assertRaises(ExpiredToken):
            self.codec.verify(token)

    def test_token_is_valid_until_expiry(self):
        token = self.codec.mint({"id": 5})
        self.clock.now += 3600
        self.assertEqual(self.codec.verify(token)["sub"], 5)

    def test_tampered_and_expired_reports_signature(self):
        token = self.codec.mint({"id": 5})
        self.clock.now += 7200
        header, payload, signature = token.split(".")
        tampered = signature[:-2] + ("AA" if signature[-2:] != "AA" else "BB")
        with self.assertRaises(InvalidSignature):
            self.codec.verify(f"{header}.{payload}.{tampered}")

    def test_wrong_segment_count_is_malformed(self):
        for token in ("", "abc", "a.b", "a.b.c.d"):
            with self.subTest(token=token):
                with self.assertRaises(MalformedToken):
                    self.codec.verify(token)

    def test_non_string_is_malformed(self):
        with self.assertRaises(MalformedToken):
            self.codec.verify({"error": "no header"})

    def test_signed_garbage_payload_is_malformed(self):
        header = self.codec.mint({"id": 1}).split(".")[0]
        payload = base64.urlsafe_b64encode(b"[1, 2, 3]").decode().rstrip("=")
        signature = self.codec._signature(header, payload)
        with self.assertRaises(MalformedToken):
            self.codec.verify(f"{header}.{payload}.{signature}")


class TestRotate(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock(1_700_000_000)
        self.codec = TokenCodec(TEST_SECRET, clock=self.clock)

    def test_rotation_preserves_identity(self):
        old = self.codec.mint({"id": 9, "role": "editor"})
        old_payload = self.codec.verify(old)

        self.clock.now += 10
        new = self.codec.rotate(old)
        new_payload = self.codec.verify(new)

        self.assertNotEqual(new, old)
        self.assertEqual(new_payload["sub"], old_payload["sub"])
        self.assertEqual(new_payload["id"], 9)
        self.assertEqual(new_payload["role"], "editor")
        self.assertNotEqual(new_payload["jti"], old_payload["jti"])
        self.assertGreater(new_payload["exp"], old_payload["exp"])

    def test_expired_token_can_be_rotated(self):
        old = self.codec.mint({"id": 9})
        self.clock.now += 30 * 24 * 3600
        new_payload = self.codec.verify(self.codec.rotate(old))
        self.assertEqual(new_payload["sub"], 9)

    def test_grace_period_bounds_rotation(self):
        codec = TokenCodec(TEST_SECRET, refresh_grace_seconds=600, clock=self.clock)
        old = codec.mint({"id": 9})

        self.clock.now += 3600 + 600
        codec.rotate(old)

        self.clock.now += 1
        with self.assertRaises(ExpiredToken):
            codec.rotate(old)

    def test_rotation_checks_signature(self):
        header, payload, signature = self.codec.mint({"id": 9}).split(".")
        tampered = ("B" if signature[0] != "B" else "C") + signature[1:]
        with self.assertRaises(InvalidSignature):
            self.codec.rotate(f"{header}.{payload}.{tampered}")

    def test_rotation_rejects_malformed_token(self):
        with self.assertRaises(MalformedToken):
            self.codec.rotate("not-a-token")


if __name__ == "__main__":
    unittest.main()
