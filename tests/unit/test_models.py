"""
Unit tests for the core data types.
"""

import base64
import time

import pytest

from src.models.interfaces import AccessToken, Manifest, ModelReference, collect_messages, urnify


class TestUrnify:
    """Test URN encoding of OSS object ids."""

    def test_urnify_strips_padding(self):
        object_id = "urn:adsk.objects:os.object:test-bucket/model.rvt"
        urn = urnify(object_id)

        assert "=" not in urn
        padded = urn + "=" * (-len(urn) % 4)
        assert base64.urlsafe_b64decode(padded).decode() == object_id

    def test_urnify_is_url_safe(self):
        # Bytes chosen so that standard base64 would contain '/' and '+'
        urn = urnify("???>>>")
        assert urn == "Pz8_Pj4-"
        assert "/" not in urn
        assert "+" not in urn

    def test_model_reference_from_object(self):
        obj = {"objectKey": "house.ifc", "objectId": "urn:adsk.objects:os.object:b/house.ifc"}
        ref = ModelReference.from_object(obj)

        assert ref.name == "house.ifc"
        assert ref.urn == urnify(obj["objectId"])


class TestManifestMessages:
    """Test message collection from manifests."""

    def test_no_derivatives_yields_empty_list(self):
        assert collect_messages({"status": "success"}) == []

    def test_derivative_without_messages(self):
        assert collect_messages({"derivatives": [{"status": "success"}]}) == []

    def test_parent_then_children_in_order(self):
        payload = {
            "derivatives": [
                {
                    "messages": [{"code": "A"}],
                    "children": [
                        {"messages": [{"code": "B"}]},
                        {"messages": [{"code": "C"}]}
                    ]
                },
                {
                    "messages": [{"code": "D"}],
                    "children": [{"role": "3d"}]
                }
            ]
        }

        codes = [m["code"] for m in collect_messages(payload)]
        assert codes == ["A", "B", "C", "D"]

    def test_grandchildren_are_not_collected(self):
        payload = {
            "derivatives": [
                {
                    "messages": ["D"],
                    "children": [
                        {"messages": ["C1"], "children": [{"messages": ["G1"]}]},
                        {"messages": ["C2"]}
                    ]
                }
            ]
        }

        assert collect_messages(payload) == ["D", "C1", "C2"]

    def test_manifest_from_payload(self):
        manifest = Manifest.from_payload({
            "status": "inprogress",
            "progress": "45% complete",
            "derivatives": [{"messages": [{"type": "warning"}]}]
        })

        assert manifest.status == "inprogress"
        assert manifest.progress == "45% complete"
        assert manifest.messages == [{"type": "warning"}]
        assert not manifest.is_terminal

    @pytest.mark.parametrize("status,terminal,succeeded", [
        ("pending", False, False),
        ("inprogress", False, False),
        ("success", True, True),
        ("failed", True, False),
        ("timeout", True, False),
    ])
    def test_terminal_statuses(self, status, terminal, succeeded):
        manifest = Manifest(status=status)
        assert manifest.is_terminal is terminal
        assert manifest.succeeded is succeeded


class TestAccessToken:
    """Test token expiry bookkeeping."""

    def test_fresh_token_not_expired(self):
        token = AccessToken(access_token="abc", expires_in=3600)

        assert not token.is_expired
        assert 3590 <= token.remaining_seconds() <= 3600

    def test_expired_token(self):
        token = AccessToken(access_token="abc", expires_in=3600, expires_at=time.time() - 1)

        assert token.is_expired
        assert token.remaining_seconds() == 0

    def test_token_close_to_expiry_counts_as_expired(self):
        token = AccessToken(access_token="abc", expires_in=30)

        assert token.is_expired
        assert 0 < token.remaining_seconds() <= 30

    def test_token_outside_margin_is_valid(self):
        token = AccessToken(access_token="abc", expires_in=120)

        assert not token.is_expired
