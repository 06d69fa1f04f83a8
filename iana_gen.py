"""IANA BGP constants generator for Go.

Generates typed Go constants for BGP capability codes, address family
identifiers and subsequent address family identifiers from the IANA XML
registries. Produces a single gofmt-formatted source file.

Usage:
    python iana_gen.py --output iana_const.go --package corebgp
"""

import argparse
import math
import os
import re
import subprocess
import sys
import tempfile
import xml.etree.ElementTree as ET
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import requests

GENERATOR_NAME = "iana-gen"
DEFAULT_OUTPUT = Path("iana_const.go")
DEFAULT_PACKAGE = "corebgp"
DEFAULT_TIMEOUT = 10.0
DEFAULT_GOFMT = "gofmt"


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class GenerateConfig:
    output: Path
    package: str
    timeout: float
    gofmt: str
    format_source: bool


VALID_ERROR_CODES = {
    "INVALID_PACKAGE_NAME",
    "INVALID_TIMEOUT",
    "PATH_NOT_FOUND",
}
_PACKAGE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
GO_KEYWORDS = frozenset(
    {
        "break",
        "case",
        "chan",
        "const",
        "continue",
        "default",
        "defer",
        "else",
        "fallthrough",
        "for",
        "func",
        "go",
        "goto",
        "if",
        "import",
        "interface",
        "map",
        "package",
        "range",
        "return",
        "select",
        "struct",
        "switch",
        "type",
        "var",
    }
)


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


def validate_package_name(name: str) -> str:
    if _PACKAGE_NAME_RE.match(name) and name != "_" and name not in GO_KEYWORDS:
        return name
    raise ConfigError(
        "INVALID_PACKAGE_NAME",
        f"Invalid Go package name: {name!r}",
        "Package names must be Go identifiers that are not keywords (for example corebgp).",
    )


def validate_timeout(timeout: float) -> float:
    if math.isfinite(timeout) and timeout > 0:
        return timeout
    raise ConfigError(
        "INVALID_TIMEOUT",
        f"Timeout must be a positive number of seconds, got {timeout}",
        f"Omit --timeout to use the default of {DEFAULT_TIMEOUT:g} seconds.",
    )


def validate_output_path(path: Path) -> Path:
    parent = path.parent
    if parent.is_dir():
        return path
    raise ConfigError(
        "PATH_NOT_FOUND",
        f"Directory for --output does not exist: {parent}",
        "Create the directory first or pass an --output inside an existing one.",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate Go constants from the IANA BGP registries"
    )

    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT)
    parser.add_argument("--package", type=str, default=DEFAULT_PACKAGE)
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT)
    parser.add_argument("--gofmt", type=str, default=DEFAULT_GOFMT)
    parser.add_argument("--no-format", action="store_true", default=False)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> GenerateConfig:
    return GenerateConfig(
        output=validate_output_path(args.output),
        package=validate_package_name(args.package),
        timeout=validate_timeout(args.timeout),
        gofmt=args.gofmt,
        format_source=not args.no_format,
    )


def build_config(argv: list[str] | None = None) -> GenerateConfig:
    return validate_config(parse_args(argv))


# ===--- Generation errors ---=== #


VALID_STAGES = {
    "FETCH",
    "DECODE",
    "NORMALIZE",
    "FORMAT",
    "WRITE",
}


class GenerationError(Exception):
    """Fatal error that aborts the whole run before anything is written.

    Attributes:
        stage: One of VALID_STAGES, naming the pipeline step that failed.
        message: Human-readable description of the failure.
        url: Registry URL being processed, when the failure is tied to one.
    """

    def __init__(self, stage: str, message: str, url: str | None = None):
        if stage not in VALID_STAGES:
            raise ValueError(f"Unknown generation stage: {stage}")
        super().__init__(message)
        self.stage = stage
        self.message = message
        self.url = url


# ===--- Registry data model ---=== #


@dataclass(frozen=True)
class RawRecord:
    value: str
    description: str


@dataclass(frozen=True)
class SubRegistry:
    title: str
    records: tuple[RawRecord, ...]


@dataclass(frozen=True)
class RegistryDocument:
    """Decoded IANA registry document.

    Attributes:
        title: Top-level <title> text.
        updated: Top-level <updated> text, kept as the free-form date string.
        registries: Nested <registry> blocks in document order.
    """

    title: str
    updated: str
    registries: tuple[SubRegistry, ...]


@dataclass(frozen=True)
class ConstantRecord:
    """One named constant ready for emission.

    Attributes:
        original_name: Registry description carried into the trailing comment.
        name: Identifier suffix matching [A-Z0-9_]+, without the family prefix.
        value: Code point, guaranteed to fit the family bit width.
        family: Key of the RegistryFamily the record belongs to.
    """

    original_name: str
    name: str
    value: int
    family: str


# ===--- Registry families ---=== #


@dataclass(frozen=True)
class RegistryFamily:
    """Per-registry configuration driving the shared escape pipeline.

    Attributes:
        key: Short family key, e.g. "AFI".
        url: IANA XML registry location.
        subregistry_title: Title of the nested <registry> holding the records.
        prefix: Constant name prefix, e.g. "SAFI".
        bit_width: Unsigned integer width of the emitted constants.
        excluded_substrings: Case-sensitive substrings that make a record
            ineligible when found in its description.
        overrides: Exact description -> identifier table. Keys are
            whitespace-collapsed descriptions.
        replacements: Ordered literal (old, new) pairs applied in a single
            left-to-right pass by the generic pipeline.
        truncate_qualifiers: Drop text from the first "(" and then from the
            first ":" before replacement.
    """

    key: str
    url: str
    subregistry_title: str
    prefix: str
    bit_width: int
    excluded_substrings: tuple[str, ...]
    overrides: Mapping[str, str]
    replacements: tuple[tuple[str, str], ...]
    truncate_qualifiers: bool

    @property
    def go_type(self) -> str:
        return f"uint{self.bit_width}"

    @property
    def max_value(self) -> int:
        return (1 << self.bit_width) - 1


CAPABILITY_OVERRIDES = {
    "Multiprotocol Extensions for BGP-4": "MP_EXTENSIONS",
    # Spelling kept for compatibility with existing callers.
    "BGP Extended Message": "EXT_MESSSAGE",
    "BGP Role": "ROLE",
    "Support for 4-octet AS number capability": "FOUR_OCTET_AS",
    "Support for Dynamic Capability (capability specific)": "DYNAMIC",
    "Multisession BGP Capability": "MULTISESSION",
    "Long-Lived Graceful Restart (LLGR) Capability": "LLGR",
    "Routing Policy Distribution": "ROUTING_POLICY_DIST",
}

AFI_OVERRIDES = {
    "IP (IP version 4)": "IPV4",
    "IP6 (IP version 6)": "IPV6",
    "E.164 with NSAP format subaddress": "E164_WITH_NSAP_SUBADDR",
    "XTP over IP version 4": "XTP_OVER_IPV4",
    "XTP over IP version 6": "XTP_OVER_IPV6",
    "XTP native mode XTP": "XTP_NATIVE",
    "Fibre Channel World-Wide Port Name": "FIBRE_CHANNEL_WWPN",
    "Fibre Channel World-Wide Node Name": "FIBRE_CHANNEL_WWNN",
    "AFI for L2VPN information": "L2VPN_INFO",
    "MT IP: Multi-Topology IP version 4": "MT_IPV4",
    "MT IPv6: Multi-Topology IP version 6": "MT_IPV6",
    "LISP Canonical Address Format (LCAF)": "LCAF",
    "MAC/24": "MAC_FINAL_24_BITS",
    "MAC/40": "MAC_FINAL_40_BITS",
    "IPv6/64": "IPV6_INITIAL_64_BITS",
    "Routing Policy AFI": "ROUTING_POLICY",
    "Universally Unique Identifier (UUID)": "UUID",
}

# The registry wraps several SAFI descriptions across lines; keys are the
# whitespace-collapsed form.
SAFI_OVERRIDES = {
    "Network Layer Reachability Information used for unicast forwarding": "UNICAST",
    "Network Layer Reachability Information used for multicast forwarding": "MULTICAST",
    "Network Layer Reachability Information (NLRI) with MPLS Labels": "MPLS",
    "Network Layer Reachability Information used for Dynamic Placement of Multi-Segment Pseudowires": "DYN_PLACEMENT_MULTI_SEGMENT_PW",
    "Virtual Private LAN Service (VPLS)": "VPLS",
    "Layer-1 VPN auto-discovery information": "LAYER_1_VPN_AUTO_DISCOVERY_INFO",
    "MPLS-labeled VPN address": "MPLS_LABELED_VPN_ADDR",
    "Multicast for BGP/MPLS IP Virtual Private Networks (VPNs)": "MULTICAST_BGP_MPLS_IP_VPNS",
}

CAPABILITY = RegistryFamily(
    key="CAP",
    url="https://www.iana.org/assignments/capability-codes/capability-codes.xml",
    subregistry_title="Capability Codes",
    prefix="CAP",
    bit_width=8,
    excluded_substrings=("Reserved", "deprecated", "Deprecated"),
    overrides=CAPABILITY_OVERRIDES,
    replacements=(
        (" for BGP-4", ""),
        (" Capability", ""),
        (" ", "_"),
        ("-", "_"),
    ),
    truncate_qualifiers=False,
)

AFI = RegistryFamily(
    key="AFI",
    url="https://www.iana.org/assignments/address-family-numbers/address-family-numbers.xml",
    subregistry_title="Address Family Numbers",
    prefix="AFI",
    bit_width=16,
    excluded_substrings=("Reserved", "Unassigned"),
    overrides=AFI_OVERRIDES,
    replacements=(
        ("Identifier", "ID"),
        (" ", "_"),
        (".", ""),
        ("-", "_"),
    ),
    truncate_qualifiers=True,
)

SAFI = RegistryFamily(
    key="SAFI",
    url="https://www.iana.org/assignments/safi-namespace/safi-namespace.xml",
    subregistry_title="SAFI Values",
    prefix="SAFI",
    bit_width=8,
    excluded_substrings=("Reserved", "Unassigned", "OBSOLETE"),
    overrides=SAFI_OVERRIDES,
    replacements=(
        (" SAFI", ""),
        ("Flow Specification", "FLOWSPEC"),
        (" ", "_"),
        (".", ""),
        ("-", "_"),
        ("/", ""),
    ),
    truncate_qualifiers=True,
)

REGISTRY_FAMILIES: tuple[RegistryFamily, ...] = (CAPABILITY, AFI, SAFI)
"""Generation order. Output block order follows this tuple exactly."""


# ===--- Filtering ---=== #


def is_eligible(family: RegistryFamily, description: str) -> bool:
    if not description.strip():
        return False
    return not any(s in description for s in family.excluded_substrings)


# ===--- Name normalization ---=== #

NAME_RE = re.compile(r"^[A-Z0-9_]+$")
_WHITESPACE_RE = re.compile(r"\s+")
_INVALID_NAME_CHARS_RE = re.compile(r"[^A-Z0-9_]+")
_NAME_CHAR_RE = re.compile(r"[A-Z0-9]")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def comment_text(text: str) -> str:
    """Return text safe to place after a // comment marker.

    Single-line text is returned verbatim. Text spanning several lines has
    its whitespace collapsed, since a raw line break would end the comment.
    """
    if "\n" in text or "\r" in text:
        return collapse_whitespace(text)
    return text


@lru_cache(maxsize=None)
def _compile_replacer(
    replacements: tuple[tuple[str, str], ...],
) -> tuple[re.Pattern[str], dict[str, str]]:
    pattern = re.compile("|".join(re.escape(old) for old, _ in replacements))
    return pattern, dict(replacements)


def apply_replacements(text: str, replacements: tuple[tuple[str, str], ...]) -> str:
    """Apply literal replacements in one left-to-right pass.

    At each position the first listed pattern that matches wins, and
    replaced text is never rescanned. With replacements
    ((" SAFI", ""), (" ", "_")), "Tunnel SAFI" becomes "Tunnel", not
    "Tunnel_SAFI".
    """
    if not replacements:
        return text
    pattern, table = _compile_replacer(replacements)
    return pattern.sub(lambda m: table[m.group(0)], text)


def _truncate_at(text: str, sep: str) -> str:
    n = text.find(sep)
    if n > 0:
        return text[:n]
    return text


def normalize_name(family: RegistryFamily, description: str) -> str | None:
    """Map an eligible record description to a constant name suffix.

    An exact override match wins and skips the generic pipeline. Otherwise
    the description is truncated at qualifiers (families with
    truncate_qualifiers only), trimmed, passed through the family
    replacements and upper-cased. Remaining runs of characters outside
    [A-Z0-9_] become a single underscore.

    Args:
        family: Registry family supplying overrides and replacements.
        description: Raw record description. Whitespace runs, including
            line breaks from the registry's XML layout, are collapsed first.

    Returns:
        Identifier suffix matching NAME_RE, or None when the description
        leaves no letter or digit to name the constant after. Callers skip
        such records like blank descriptions.
    """
    text = collapse_whitespace(description)
    override = family.overrides.get(text)
    if override is not None:
        return override

    if family.truncate_qualifiers:
        text = _truncate_at(text, "(")
        text = _truncate_at(text, ":")
    text = text.strip()
    name = apply_replacements(text, family.replacements).upper()
    name = _INVALID_NAME_CHARS_RE.sub("_", name)
    if not _NAME_CHAR_RE.search(name):
        return None
    return name


# ===--- Value validation ---=== #

_DECIMAL_RE = re.compile(r"[0-9]+")


def parse_value(family: RegistryFamily, raw: str) -> int | None:
    """Parse a registry value as an unsigned integer of the family width.

    Returns None for anything that is not a plain decimal numeral in range:
    range expressions such as "6-7", signs, hex, or values wider than
    family.bit_width. Callers drop such records silently.
    """
    text = raw.strip()
    if not _DECIMAL_RE.fullmatch(text):
        return None
    value = int(text)
    if value > family.max_value:
        return None
    return value


# ===--- Escaping ---=== #


@dataclass(frozen=True)
class EscapeResult:
    """Constants derived from one sub-registry, with skip counts.

    Attributes:
        records: Emitted constants in registry document order.
        filtered: Records skipped by the family filter, plus records whose
            description yields no usable name.
        rejected: Eligible records whose value failed to parse or was out
            of range.
    """

    records: tuple[ConstantRecord, ...]
    filtered: int
    rejected: int


def escape_records(family: RegistryFamily, subregistry: SubRegistry) -> EscapeResult:
    """Filter, validate and name every record of one sub-registry.

    Raises:
        GenerationError: NORMALIZE stage, if two records produce the same
            name. Collisions mean an override entry is missing.
    """
    records: list[ConstantRecord] = []
    seen: dict[str, str] = {}
    filtered = 0
    rejected = 0

    for raw in subregistry.records:
        if not is_eligible(family, raw.description):
            filtered += 1
            continue
        value = parse_value(family, raw.value)
        if value is None:
            rejected += 1
            continue
        name = normalize_name(family, raw.description)
        if name is None:
            filtered += 1
            continue
        original_name = comment_text(raw.description)
        if name in seen:
            raise GenerationError(
                "NORMALIZE",
                f"{family.prefix}_{name} is produced by both "
                f"{seen[name]!r} and {original_name!r}",
                family.url,
            )
        seen[name] = original_name
        records.append(
            ConstantRecord(
                original_name=original_name,
                name=name,
                value=value,
                family=family.key,
            )
        )

    return EscapeResult(records=tuple(records), filtered=filtered, rejected=rejected)


# ===--- XML decoding ---=== #


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _child_text(element: ET.Element, name: str) -> str:
    # Own character data only; text inside nested elements such as <xref>
    # is skipped, tails between them are kept.
    for child in _children(element, name):
        return (child.text or "") + "".join(sub.tail or "" for sub in child)
    return ""


def decode_registry(data: bytes, url: str | None = None) -> RegistryDocument:
    """Decode an IANA registry XML document.

    Element matching ignores the IANA XML namespace. Only direct children
    are considered at each level: <title>, <updated> and <registry> under
    the root, <title> and <record> under each nested registry, and
    <value> and <description> under each record.

    Args:
        data: Raw XML bytes as fetched.
        url: Source URL, attached to any error raised.

    Returns:
        RegistryDocument with nested registries and records in document order.

    Raises:
        GenerationError: DECODE stage, on malformed XML or a root element
            other than <registry>.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as err:
        raise GenerationError("DECODE", f"malformed registry XML: {err}", url) from err

    root_name = _local_name(root.tag)
    if root_name != "registry":
        raise GenerationError(
            "DECODE", f"expected <registry> root element, got <{root_name}>", url
        )

    registries = tuple(
        SubRegistry(
            title=_child_text(sub, "title"),
            records=tuple(
                RawRecord(
                    value=_child_text(record, "value"),
                    description=_child_text(record, "description"),
                )
                for record in _children(sub, "record")
            ),
        )
        for sub in _children(root, "registry")
    )
    return RegistryDocument(
        title=_child_text(root, "title"),
        updated=_child_text(root, "updated"),
        registries=registries,
    )


def select_subregistry(
    family: RegistryFamily, document: RegistryDocument
) -> SubRegistry:
    for sub in document.registries:
        if sub.title == family.subregistry_title:
            return sub
    found = ", ".join(repr(sub.title) for sub in document.registries) or "none"
    raise GenerationError(
        "DECODE",
        f"no sub-registry titled {family.subregistry_title!r} (found: {found})",
        family.url,
    )


# ===--- Go source formatting ---=== #


def format_file_header(package: str) -> str:
    """Return the generated-file preamble ending in one blank line.

    Output format:
        // Code generated by iana-gen; DO NOT EDIT.

        package corebgp

    """
    return f"// Code generated by {GENERATOR_NAME}; DO NOT EDIT.\n\npackage {package}\n\n"


def format_constant_block(
    family: RegistryFamily,
    document: RegistryDocument,
    records: tuple[ConstantRecord, ...],
) -> str:
    """Render one family's constants as an unformatted Go const block.

    Output format:
        // Capability Codes, Updated: 2024-06-10
        const(
        CAP_MP_EXTENSIONS uint8 = 1// Multiprotocol Extensions for BGP-4
        )

    Alignment and spacing are left to gofmt.

    Returns:
        Block text including trailing newline.
    """
    title = comment_text(document.title)
    updated = comment_text(document.updated)
    lines = [f"// {title}, Updated: {updated}", "const("]
    for record in records:
        lines.append(
            f"{family.prefix}_{record.name} {family.go_type} = {record.value}"
            f"// {record.original_name}"
        )
    lines.append(")")
    return "\n".join(lines) + "\n"


def format_go_source(source: str, gofmt: str = DEFAULT_GOFMT) -> str:
    """Run source through gofmt and return the formatted text.

    Raises:
        GenerationError: FORMAT stage, if gofmt cannot be started or rejects
            the source. gofmt's stderr is carried in the message.
    """
    try:
        result = subprocess.run(
            [gofmt],
            input=source,
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as err:
        detail = (err.stderr or "").strip() or f"exit status {err.returncode}"
        raise GenerationError("FORMAT", f"error formatting source: {detail}") from err
    except OSError as err:
        raise GenerationError("FORMAT", f"cannot run formatter {gofmt!r}: {err}") from err
    return result.stdout


# ===--- Fetching ---=== #


def fetch_registry(session: requests.Session, url: str, timeout: float) -> bytes:
    """Download one registry document.

    The response is released on every exit path, including a non-200 status.

    Raises:
        GenerationError: FETCH stage, on transport failure, timeout or any
            status other than 200. No retries.
    """
    try:
        with session.get(url, timeout=timeout) as response:
            if response.status_code != requests.codes.ok:
                raise GenerationError(
                    "FETCH", f"got non-200 status ({response.status_code})", url
                )
            return response.content
    except requests.RequestException as err:
        raise GenerationError("FETCH", f"error retrieving registry: {err}", url) from err


# ===--- Writing ---=== #


@dataclass(frozen=True)
class FileWriteResult:
    """Result of writing the generated file.

    Attributes:
        path: Absolute path of the written file.
        line_count: Number of newline characters in the written content.
        byte_count: Number of bytes written (UTF-8 encoded).
    """

    path: Path
    line_count: int
    byte_count: int


def write_output(path: Path, content: str) -> FileWriteResult:
    """Write content to path, replacing any previous file in one step.

    The content goes to a temporary file in the same directory first, so an
    interrupted write never leaves a truncated output behind.

    Raises:
        GenerationError: WRITE stage, on any filesystem error.
    """
    path = Path(path)
    data = content.encode("utf-8")
    tmp_name = ""
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb", dir=path.parent, prefix=f".{path.name}.", delete=False
        ) as f:
            tmp_name = f.name
            f.write(data)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
        tmp_name = ""
    except OSError as err:
        raise GenerationError("WRITE", f"error writing {path}: {err}") from err
    finally:
        if tmp_name:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass

    return FileWriteResult(
        path=path.resolve(),
        line_count=content.count("\n"),
        byte_count=len(data),
    )


# ===--- Pipeline ---=== #


@dataclass(frozen=True)
class FamilyResult:
    """Outcome of processing one registry family.

    Attributes:
        family_key: RegistryFamily.key, e.g. "CAP".
        title: Registry document title.
        updated: Registry document updated date.
        records: Emitted constants in document order.
        filtered: Records skipped by the family filter.
        rejected: Records dropped by value validation.
    """

    family_key: str
    title: str
    updated: str
    records: tuple[ConstantRecord, ...]
    filtered: int
    rejected: int


def render_family(
    family: RegistryFamily, document: RegistryDocument
) -> tuple[str, FamilyResult]:
    subregistry = select_subregistry(family, document)
    escaped = escape_records(family, subregistry)
    block = format_constant_block(family, document, escaped.records)
    return block, FamilyResult(
        family_key=family.key,
        title=document.title,
        updated=document.updated,
        records=escaped.records,
        filtered=escaped.filtered,
        rejected=escaped.rejected,
    )


def generate_source(
    package: str,
    families: tuple[RegistryFamily, ...],
    fetch: Callable[[str], bytes],
) -> tuple[str, tuple[FamilyResult, ...]]:
    """Build the unformatted Go source for all families, strictly in order.

    Args:
        package: Go package name for the file header.
        families: Families to process. Output blocks follow this order.
        fetch: Returns the raw registry bytes for a URL.

    Returns:
        (source, results): the header plus one const block per family, each
        followed by a blank line, and the per-family results in order.

    Raises:
        GenerationError: Propagated from fetch, decode or escape. Processing
            stops at the first failing family.
    """
    parts = [format_file_header(package)]
    results: list[FamilyResult] = []

    for family in families:
        print(f"Fetching: {family.url}")
        data = fetch(family.url)
        document = decode_registry(data, family.url)
        block, result = render_family(family, document)
        parts.append(block)
        parts.append("\n")
        results.append(result)
        print(
            f"  {result.title}: {len(result.records)} constants "
            f"({result.filtered} filtered, {result.rejected} rejected values)"
        )

    return "".join(parts), tuple(results)


def run_generate(
    config: GenerateConfig,
    session: requests.Session | None = None,
    families: tuple[RegistryFamily, ...] = REGISTRY_FAMILIES,
) -> "GenerationSummary":
    """Execute the complete generation pipeline for a GenerateConfig.

    Stages: fetch + decode + escape per family -> gofmt -> write -> summary.
    The output file is only touched after every earlier stage succeeded.

    Args:
        config: Validated GenerateConfig from build_config.
        session: HTTP session to fetch with. A new one is opened and closed
            for the run when omitted.
        families: Families to generate, in output order.

    Returns:
        GenerationSummary describing the written file.

    Raises:
        GenerationError: Any fatal stage failure.
    """
    if session is None:
        with requests.Session() as owned:
            return run_generate(config, owned, families)

    source, results = generate_source(
        config.package,
        families,
        lambda url: fetch_registry(session, url, config.timeout),
    )
    if config.format_source:
        source = format_go_source(source, config.gofmt)

    write_result = write_output(config.output, source)
    summary = build_generation_summary(config, results, write_result)
    print_generation_summary(summary)
    return summary


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class GenerationSummary:
    """Data for the post-generation console report.

    Attributes:
        package: Go package name written to the header.
        output: Absolute output path as string.
        formatter: Formatter used, or None when formatting was skipped.
        families: Per-family results in generation order.
        line_count: Lines in the written file.
        byte_count: Bytes in the written file.
    """

    package: str
    output: str
    formatter: str | None
    families: tuple[FamilyResult, ...]
    line_count: int
    byte_count: int

    @property
    def total_constants(self) -> int:
        return sum(len(f.records) for f in self.families)


def build_generation_summary(
    config: GenerateConfig,
    results: tuple[FamilyResult, ...],
    write_result: FileWriteResult,
) -> GenerationSummary:
    return GenerationSummary(
        package=config.package,
        output=str(write_result.path),
        formatter=config.gofmt if config.format_source else None,
        families=results,
        line_count=write_result.line_count,
        byte_count=write_result.byte_count,
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    lines: list[str] = []
    lines.append("IANA constants generated:")
    lines.append("")
    lines.append(f"  Package:    {summary.package}")
    lines.append(f"  Output:     {summary.output}")
    lines.append(f"  Formatter:  {summary.formatter or 'none (--no-format)'}")
    lines.append("")
    lines.append("  Constants:")
    for result in summary.families:
        label = f"{result.family_key}:"
        lines.append(
            f"    {label:<6}{len(result.records):>6}"
            f"  ({result.filtered} filtered, {result.rejected} rejected)"
            f"  {result.title}, updated {result.updated}"
        )
    lines.append("")
    lines.append(
        f"  Total: {summary.total_constants} constants, "
        f"{summary.line_count:,} lines, {summary.byte_count:,} bytes"
    )
    lines.append("")
    return "\n".join(lines)


def print_generation_summary(summary: GenerationSummary) -> None:
    print(format_generation_summary(summary), end="")


# ===--- Main generation ---=== #


def main(argv: list[str] | None = None):
    try:
        config = build_config(argv)
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}", file=sys.stderr)
        if err.suggestion:
            print(f"Hint: {err.suggestion}", file=sys.stderr)
        raise SystemExit(1) from err

    try:
        run_generate(config)
    except GenerationError as err:
        location = f" {err.url}" if err.url else ""
        print(f"Error [{err.stage}]{location}: {err.message}", file=sys.stderr)
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
