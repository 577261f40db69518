"""
Unit tests for connection label and schema name parsing in
org.hyperledger.bpa.resolve.label and org.hyperledger.bpa.resolve.schema
"""

import pytest
from pydantic import ValidationError

from org.hyperledger.bpa.resolve.label import ConnectionLabel, split_label
from org.hyperledger.bpa.resolve.schema import schema_get_name


class TestSplitLabel:
    """Test suite for split_label."""

    def test_split_four_segments(self):
        """Test a did:sov label yields the DID and the trailing label."""
        result = split_label("did:sov:abc:123")
        assert result.did == "did:sov:abc"
        assert result.label == "123"

    def test_split_four_segments_with_spaces(self):
        result = split_label("did:sov:M6Mbe3qx7vB4wpZF4sBRjt:Acme Corp")
        assert result.did == "did:sov:M6Mbe3qx7vB4wpZF4sBRjt"
        assert result.label == "Acme Corp"

    def test_plain_label(self):
        """Test an unstructured label is kept as-is without a DID."""
        result = split_label("Acme Corp")
        assert result.did is None
        assert result.label == "Acme Corp"

    @pytest.mark.parametrize(
        "label",
        [
            "did",
            "did:sov",
            "did:sov:abc",
            "did:sov:abc:123:Acme Corp",
            "a:b:c:d:e:f",
        ],
    )
    def test_other_segment_counts(self, label):
        """Test any segment count other than four yields no DID."""
        result = split_label(label)
        assert result.did is None
        assert result.label == label

    @pytest.mark.parametrize("label", ["", None])
    def test_empty_label(self, label):
        result = split_label(label)
        assert result.did is None
        assert result.label == ""

    def test_no_structural_validation(self):
        """Test the DID candidate is not validated."""
        result = split_label("not:a:did:Label")
        assert result.did == "not:a:did"
        assert result.label == "Label"

    def test_empty_segments_are_kept(self):
        result = split_label(":::")
        assert result.did == "::"
        assert result.label == ""

    def test_trailing_delimiter_counts_as_segment(self):
        """Test an empty display label after the DID still yields the DID."""
        result = split_label("did:sov:abc:")
        assert result.did == "did:sov:abc"
        assert result.label == ""

        result = split_label("did:sov:abc:Acme:")
        assert result.did is None
        assert result.label == "did:sov:abc:Acme:"

    def test_connection_label_is_frozen(self):
        result = ConnectionLabel(label="Acme Corp")
        with pytest.raises(ValidationError):
            result.label = "Other"


class TestSchemaGetName:
    """Test suite for schema_get_name."""

    def test_indy_schema_id(self):
        assert (
            schema_get_name("M6Mbe3qx7vB4wpZF4sBRjt:2:commercialregister:1.0")
            == "commercialregister"
        )

    def test_id_ending_with_name(self):
        assert schema_get_name("did:sov:issuer:commercialregister") == "commercialregister"
        assert schema_get_name("issuer:2:commercialregister") == "commercialregister"

    def test_plain_name(self):
        assert schema_get_name("commercialregister") == "commercialregister"

    @pytest.mark.parametrize("schema_id", ["", None])
    def test_empty(self, schema_id):
        assert schema_get_name(schema_id) == ""
