"""
Data model tests: division payload parsing and Statute serialization.
"""
from statute_core.models import FEDERAL, DivisionChild, DivisionNode, Statute


class TestDivisionNode:
    """Tests for DivisionNode.from_api()."""

    def test_display_children(self):
        node = DivisionNode.from_api({
            "path": "pen/chapter_1",
            "display_name": "Chapter 1. Homicide",
            "division_type": "chapter",
            "identifier": 1,
            "display_children": [
                {"display_name": "Section 187", "path": "pen/chapter_1/section_187"},
                {"display_name": "No path"},
            ],
        })

        assert node.identifier == "1"
        assert node.children == [DivisionChild("Section 187", "pen/chapter_1/section_187")]
        assert not node.has_content

    def test_children_fallback_and_name(self):
        node = DivisionNode.from_api({
            "path": "pen",
            "name": "Penal Code",
            "children": [{"name": "Part 1", "path": "pen/part_1"}],
        })

        assert node.display_name == "Penal Code"
        assert node.children == [DivisionChild("Part 1", "pen/part_1")]

    def test_content_and_source_url(self):
        node = DivisionNode.from_api({
            "path": "pen/section_187",
            "plaintext_content": "  ",
            "markdown_content": "**(a)** Murder...",
            "source_url": "https://example.test/187",
            "effective_date": "2024-01-01",
        })

        assert node.has_content
        assert node.url == "https://example.test/187"
        assert node.effective_date == "2024-01-01"


class TestStatute:
    def test_level(self):
        state = Statute("p", "Cal. Penal Code § 187", "CA", "Section 187", "text", "187")
        federal = Statute("p", "18 U.S.C. § 1001", FEDERAL, "§ 1001", "text", "1001")

        assert state.level == "state"
        assert federal.level == "federal"

    def test_to_dict(self):
        statute = Statute("p", "Cal. Penal Code § 187", "CA", "Section 187", "text", "187", chapter="chapter_1")

        data = statute.to_dict()

        assert data["id"] == "p"
        assert data["level"] == "state"
        assert data["chapter"] == "chapter_1"
        assert data["source_url"] is None
