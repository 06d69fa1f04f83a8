from collections.abc import Callable

import pytest

import iana_gen


def test_decode_registry_reads_namespaced_iana_document(
    fixture_bytes: Callable[[str], bytes],
) -> None:
    document = iana_gen.decode_registry(fixture_bytes("capability-codes.xml"))

    assert document.title == "Capability Codes"
    assert document.updated == "2024-06-10"
    assert [sub.title for sub in document.registries] == [
        "Capability Codes",
        "BGP Role Values",
    ]
    first = document.registries[0].records[1]
    assert first == iana_gen.RawRecord(
        value="1", description="Multiprotocol Extensions for BGP-4"
    )


def test_decode_registry_preserves_multiline_descriptions(
    fixture_bytes: Callable[[str], bytes],
) -> None:
    document = iana_gen.decode_registry(fixture_bytes("safi-namespace.xml"))

    unicast = document.registries[0].records[1]
    assert unicast.value == "1"
    assert "\n" in unicast.description
    assert iana_gen.collapse_whitespace(unicast.description) == (
        "Network Layer Reachability Information used for unicast forwarding"
    )


def test_decode_registry_without_namespace() -> None:
    data = (
        b"<registry><title>T</title><updated>2020-01-01</updated>"
        b"<registry><title>S</title>"
        b"<record><value>1</value><description>One</description></record>"
        b"<record><value>2</value></record>"
        b"</registry></registry>"
    )

    document = iana_gen.decode_registry(data)

    assert document == iana_gen.RegistryDocument(
        title="T",
        updated="2020-01-01",
        registries=(
            iana_gen.SubRegistry(
                title="S",
                records=(
                    iana_gen.RawRecord(value="1", description="One"),
                    iana_gen.RawRecord(value="2", description=""),
                ),
            ),
        ),
    )


def test_decode_registry_only_reads_direct_children() -> None:
    data = (
        b"<registry><title>Outer</title>"
        b"<registry><title>Inner</title>"
        b"<registry><title>Nested deeper</title></registry>"
        b"</registry></registry>"
    )

    document = iana_gen.decode_registry(data)

    assert [sub.title for sub in document.registries] == ["Inner"]
    assert document.updated == ""


def test_decode_registry_skips_text_of_nested_elements() -> None:
    data = (
        b"<registry><title>T<xref type=\"rfc\">9999</xref></title>"
        b"<registry><title>S</title>"
        b"<record><value>1</value>"
        b"<description>Foo <xref type=\"rfc\">bar</xref> Baz</description></record>"
        b"<record><value>2</value><description><xref>only</xref></description></record>"
        b"</registry></registry>"
    )

    document = iana_gen.decode_registry(data)

    assert document.title == "T"
    records = document.registries[0].records
    assert records[0].description == "Foo  Baz"
    assert records[1].description == ""


def test_decode_registry_malformed_xml_is_decode_error() -> None:
    with pytest.raises(iana_gen.GenerationError) as exc_info:
        iana_gen.decode_registry(b"<registry><title>", url="https://example.test/r.xml")

    assert exc_info.value.stage == "DECODE"
    assert exc_info.value.url == "https://example.test/r.xml"


def test_decode_registry_wrong_root_is_decode_error() -> None:
    with pytest.raises(iana_gen.GenerationError) as exc_info:
        iana_gen.decode_registry(b"<html><body>Not found</body></html>")

    assert exc_info.value.stage == "DECODE"
    assert "<html>" in exc_info.value.message


def test_select_subregistry_picks_titled_block(
    fixture_bytes: Callable[[str], bytes],
) -> None:
    document = iana_gen.decode_registry(fixture_bytes("capability-codes.xml"))

    sub = iana_gen.select_subregistry(iana_gen.CAPABILITY, document)

    assert sub.title == "Capability Codes"
    assert all(r.description != "Route Server" for r in sub.records)


def test_select_subregistry_missing_title_is_decode_error(
    fixture_bytes: Callable[[str], bytes],
) -> None:
    document = iana_gen.decode_registry(fixture_bytes("capability-codes.xml"))

    with pytest.raises(iana_gen.GenerationError) as exc_info:
        iana_gen.select_subregistry(iana_gen.SAFI, document)

    assert exc_info.value.stage == "DECODE"
    assert exc_info.value.url == iana_gen.SAFI.url
    assert "'SAFI Values'" in exc_info.value.message
