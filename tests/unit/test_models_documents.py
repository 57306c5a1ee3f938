"""Unit tests for document and report models."""

from id_slugs.models.documents import ConversionOutcome, ConversionReport, Document


class TestDocument:
    """Test Document model."""

    def test_store_names(self) -> None:
        doc = Document.model_validate(
            {"_id": "p1", "_type": "post", "title": "T", "slug": {"_type": "slug", "current": "t"}}
        )
        assert doc.id == "p1"
        assert doc.type == "post"
        assert doc.get("_id") == "p1"
        assert doc.get("_type") == "post"
        assert doc.get("slug") == {"_type": "slug", "current": "t"}
        assert doc.get("missing") is None

    def test_fields_named_id_and_type_are_plain_attributes(self) -> None:
        """User fields called ``id``/``type`` never stand in for ``_id``/``_type``."""
        doc = Document.model_validate(
            {"_id": "p1", "_type": "post", "type": "feature", "id": "legacy-7"}
        )
        assert doc.type == "post"
        assert doc.id == "p1"
        assert doc.get("type") == "feature"
        assert doc.get("id") == "legacy-7"

        untagged = Document.model_validate({"_id": "p2", "type": "feature"})
        assert untagged.type == ""
        assert untagged.get("type") == "feature"

    def test_current_slug(self) -> None:
        assert Document.model_validate({"_id": "a", "slug": {"current": "x"}}).current_slug("slug") == "x"
        assert Document.model_validate({"_id": "a", "slug": {"current": ""}}).current_slug("slug") is None
        assert Document.model_validate({"_id": "a", "slug": {}}).current_slug("slug") is None
        assert Document.model_validate({"_id": "a", "slug": "x"}).current_slug("slug") is None
        assert Document.model_validate({"_id": "a"}).current_slug("slug") is None

    def test_source_text_order(self) -> None:
        """Configured field, then title, then name."""
        doc = Document.model_validate(
            {"_id": "a", "headline": "Head", "title": "Title", "name": "Name"}
        )
        assert doc.source_text("headline") == "Head"
        assert doc.source_text("other") == "Title"

        named = Document.model_validate({"_id": "a", "name": "Name"})
        assert named.source_text("title") == "Name"

    def test_source_text_skips_non_strings(self) -> None:
        doc = Document.model_validate({"_id": "a", "headline": 42, "title": "", "name": "Name"})
        assert doc.source_text("headline") == "Name"

    def test_resolve_falls_back_to_identifier(self) -> None:
        doc = Document.model_validate({"_id": "drafts.abc", "_type": "post"})
        assert doc.source_text("title") is None
        assert doc.resolve_source_text("title") == "drafts.abc"

    def test_missing_identifier(self) -> None:
        doc = Document.model_validate({"_type": "post"})
        assert doc.id == ""
        assert doc.resolve_source_text("title") == ""


class TestConversionReport:
    """Test ConversionReport aggregation."""

    def test_record(self) -> None:
        report = ConversionReport(total=3)
        report.record(ConversionOutcome(document_id="a", success=True, slug="a"))
        report.record(ConversionOutcome(document_id="b", success=False, error="boom"))
        report.record(ConversionOutcome(document_id="c", success=True, slug="c"))

        assert report.converted == 2
        assert report.failed == 1
        assert report.slugs_generated == ["a", "c"]
        assert report.errors == ["boom"]
        assert [o.document_id for o in report.outcomes] == ["a", "b", "c"]
