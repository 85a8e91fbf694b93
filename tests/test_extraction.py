"""Tests for XML field extraction helpers."""

import pytest
from xml.parsers.expat import ExpatError

from rss_aggregator.extraction import (
    ATOM_NAMESPACE,
    CONTENT_NAMESPACE,
    DUBLIN_CORE_NAMESPACE,
    NodeKind,
    get_attribute_text,
    get_element_array_text,
    get_element_text,
    get_namespaced_attribute_text,
    get_namespaced_element_array_text,
    get_namespaced_element_text,
    parse_xml,
    select_all,
    select_one,
    text_value_of_child_node,
)

DOCUMENT = """<?xml version="1.0" encoding="UTF-8"?>
<rss xmlns:dc="http://purl.org/dc/elements/1.1/"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:atom="http://www.w3.org/2005/Atom">
    <channel>
        <title>Channel</title>
        <atom:link href="https://example.org/feed" rel="self"/>
        <link>https://example.org/</link>
        <item>
            <title>First</title>
            <description><![CDATA[<p>First description</p>]]></description>
            <dc:creator><![CDATA[First Creator]]></dc:creator>
            <dc:subject>one</dc:subject>
            <dc:subject>two</dc:subject>
            <category><![CDATA[alpha]]></category>
            <category><![CDATA[beta]]></category>
            <content:encoded><![CDATA[Body]]></content:encoded>
            <enclosure url="https://example.org/a.mp3" length="10"/>
            <empty/>
        </item>
        <item>
            <title>Second</title>
        </item>
    </channel>
</rss>
"""


@pytest.fixture
def document():
    return parse_xml(DOCUMENT)


@pytest.fixture
def channel(document):
    return select_one(document, "rss > channel")


@pytest.fixture
def first_item(channel):
    return select_all(channel, "item")[0]


class TestParseXml:
    """Test XML parsing."""

    def test_malformed_raises(self):
        with pytest.raises(ExpatError):
            parse_xml("<rss><channel></rss>")

    def test_cdata_sections_are_kept(self, first_item):
        description = select_one(first_item, "description")
        assert [child.nodeName for child in description.childNodes] == ["#cdata-section"]


class TestSelectors:
    """Test the selector subset."""

    def test_child_combinator(self, document):
        channel = select_one(document, "rss > channel")
        assert channel is not None
        assert channel.localName == "channel"

    def test_child_combinator_does_not_match_grandchildren(self, document):
        assert select_all(document, "rss > item") == []

    def test_descendant_combinator(self, document):
        titles = select_all(document, "rss item title")
        assert [text_value_of_child_node(t, NodeKind.TEXT) for t in titles] == ["First", "Second"]

    def test_scope_limits_to_direct_children(self, channel):
        titles = select_all(channel, ":scope > title")
        assert len(titles) == 1
        assert text_value_of_child_node(titles[0], NodeKind.TEXT) == "Channel"

    def test_plain_name_matches_all_descendants(self, channel):
        assert len(select_all(channel, "title")) == 3

    def test_document_order(self, channel):
        items = select_all(channel, "item")
        assert len(items) == 2

    def test_wildcard(self, first_item):
        assert len(select_all(first_item, "*")) == 10

    def test_local_name_matches_any_namespace(self, channel):
        # atom:link and the plain <link> both have the local name "link"
        assert len(select_all(channel, ":scope > link")) == 2

    def test_no_match(self, channel):
        assert select_one(channel, "missing") is None

    def test_none_parent(self):
        assert select_all(None, "item") == []
        assert select_one(None, "item") is None


class TestTextValueOfChildNode:
    """Test node kind specific extraction."""

    def test_text(self, first_item):
        title = select_one(first_item, "title")
        assert text_value_of_child_node(title, NodeKind.TEXT) == "First"

    def test_cdata(self, first_item):
        description = select_one(first_item, "description")
        assert text_value_of_child_node(description, NodeKind.CDATA_SECTION) == "<p>First description</p>"

    def test_wrong_kind_is_empty(self, first_item):
        title = select_one(first_item, "title")
        description = select_one(first_item, "description")
        assert text_value_of_child_node(title, NodeKind.CDATA_SECTION) == ""
        assert text_value_of_child_node(description, NodeKind.TEXT) == ""

    def test_no_children(self, first_item):
        assert text_value_of_child_node(select_one(first_item, "empty"), NodeKind.TEXT) == ""

    def test_none(self):
        assert text_value_of_child_node(None, NodeKind.TEXT) == ""


class TestElementText:
    """Test element text getters."""

    def test_get_element_text(self, first_item):
        assert get_element_text(first_item, "title", NodeKind.TEXT) == "First"
        assert get_element_text(first_item, "missing", NodeKind.TEXT) == ""

    def test_get_namespaced_element_text(self, first_item):
        creator = get_namespaced_element_text(
            first_item, DUBLIN_CORE_NAMESPACE, "creator", NodeKind.CDATA_SECTION
        )
        assert creator == "First Creator"
        content = get_namespaced_element_text(
            first_item, CONTENT_NAMESPACE, "encoded", NodeKind.CDATA_SECTION
        )
        assert content == "Body"

    def test_namespace_must_match(self, first_item):
        assert get_namespaced_element_text(first_item, ATOM_NAMESPACE, "creator", NodeKind.CDATA_SECTION) == ""

    def test_get_element_array_text(self, first_item):
        categories = get_element_array_text(first_item, "category", NodeKind.CDATA_SECTION)
        assert categories == ["alpha", "beta"]

    def test_get_element_array_text_empty(self, first_item):
        assert get_element_array_text(first_item, "missing", NodeKind.TEXT) == []
        assert get_element_array_text(None, "category", NodeKind.TEXT) == []

    def test_get_namespaced_element_array_text(self, first_item):
        subjects = get_namespaced_element_array_text(
            first_item, DUBLIN_CORE_NAMESPACE, "subject", NodeKind.TEXT
        )
        assert subjects == ["one", "two"]
        assert get_namespaced_element_array_text(None, DUBLIN_CORE_NAMESPACE, "subject", NodeKind.TEXT) == []


class TestAttributeText:
    """Test attribute getters."""

    def test_get_attribute_text(self, first_item):
        assert get_attribute_text(first_item, "enclosure", "url") == "https://example.org/a.mp3"

    def test_missing_attribute(self, first_item):
        assert get_attribute_text(first_item, "enclosure", "type") == ""
        assert get_attribute_text(first_item, "missing", "url") == ""

    def test_get_namespaced_attribute_text(self, channel):
        assert get_namespaced_attribute_text(channel, ATOM_NAMESPACE, "link", "href") == "https://example.org/feed"

    def test_namespaced_attribute_absent(self, channel):
        assert get_namespaced_attribute_text(channel, ATOM_NAMESPACE, "missing", "href") == ""
        assert get_namespaced_attribute_text(channel, ATOM_NAMESPACE, "link", "type") == ""
        assert get_namespaced_attribute_text(None, ATOM_NAMESPACE, "link", "href") == ""
