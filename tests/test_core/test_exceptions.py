"""
Tests for chainsession.core.exceptions
========================================

The SessionError hierarchy: codes, details enrichment and serialization.
"""

from chainsession.core.exceptions import (
    ArtifactParseError,
    ChainError,
    ConfigurationError,
    ResolutionError,
    SessionError,
    StoreError,
)


class TestSessionErrors:

    def test_all_errors_share_base(self) -> None:
        for cls in (ConfigurationError, StoreError):
            assert issubclass(cls, SessionError)
        assert isinstance(ArtifactParseError("m", source_id="s"), SessionError)
        assert isinstance(ResolutionError("m", target_id="t"), SessionError)
        assert isinstance(ChainError("m"), SessionError)

    def test_default_codes(self) -> None:
        assert SessionError("m").error_code == "UNKNOWN_ERROR"
        assert ConfigurationError("m").error_code == "CONFIG_ERROR"
        assert ArtifactParseError("m", source_id="s").error_code == "ARTIFACT_PARSE_FAILED"
        assert ResolutionError("m", target_id="t").error_code == "NOT_FOUND"
        assert ChainError("m").error_code == "CHAIN_ERROR"
        assert StoreError("m").error_code == "STORE_ERROR"

    def test_details_enriched(self) -> None:
        exc = ResolutionError("m", target_id="t", fn="f", details={"extra": 1})
        assert exc.details == {"extra": 1, "target_id": "t", "fn": "f"}
        assert exc.target_id == "t"
        assert exc.fn == "f"

    def test_chain_error_reason(self) -> None:
        exc = ChainError("tx failed", reason="revert: insufficient balance")
        assert exc.reason == "revert: insufficient balance"
        assert exc.details["reason"] == "revert: insufficient balance"
        assert "reason" not in ChainError("tx failed").details

    def test_to_dict(self) -> None:
        data = ArtifactParseError("bad json", source_id="/a.json").to_dict()
        assert data == {
            "error_type": "ArtifactParseError",
            "message": "bad json",
            "error_code": "ARTIFACT_PARSE_FAILED",
            "details": {"source_id": "/a.json"},
        }

    def test_str_is_message(self) -> None:
        assert str(ChainError("boom")) == "boom"
        assert "ChainError" in repr(ChainError("boom"))
