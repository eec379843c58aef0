"""
Utility functions for turning document names into type identifiers.
"""

import keyword
import re

# Regex pattern to split text into words, handling camelCase and acronym boundaries
_WORD_PATTERN = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|[0-9]+")

_SEPARATOR_PATTERN = re.compile(r"[^0-9A-Za-z]+")

# Word prefixes for names starting with a symbol
SYMBOL_PREFIXES = {
    "-": "Minus",
    "+": "Plus",
    "&": "And",
    "|": "Or",
    "~": "Tilde",
    "=": "Equal",
    ">": "GreaterThan",
    "<": "LessThan",
    "#": "Hash",
    ".": "Dot",
    "*": "Asterisk",
    "^": "Caret",
    "%": "Percent",
    "_": "Underscore",
    "$": "DollarSign",
}

INITIALISMS = {
    "ACH", "ACL", "AMQP", "API", "ASCII", "CPU", "CSS", "DB", "DNS", "EOF", "GID", "GUID", "HTML",
    "HTTP", "HTTPS", "ID", "IP", "JSON", "PSP", "QPS", "RAM", "RPC", "RTP", "SIP", "SLA", "SMTP",
    "SQL", "SSH", "TCP", "TLS", "TS", "TTL", "UDP", "UI", "UID", "URI", "URL", "UTF8", "UUID",
    "VM", "XML", "XMPP", "XSRF", "XSS",
}  # fmt: skip

RESERVED_NAMES = {kw.lower() for kw in keyword.kwlist}


def to_camel_case(text: str) -> str:
    """Upper-case the first letter of every separator-delimited chunk and drop the separators.

    Examples:
        "pet_id" -> "PetId"
        "petId" -> "PetId"
        "x-rate-limit" -> "XRateLimit"
        "400" -> "400"
    """
    chunks = [c for c in _SEPARATOR_PATTERN.split(text) if c]
    return "".join(c[:1].upper() + c[1:] for c in chunks)


def to_camel_case_with_initialisms(text: str, initialisms: set[str] | None = None) -> str:
    """Like to_camel_case, with known initialisms upper-cased.

    Examples:
        "petId" -> "PetID"
        "http_url" -> "HTTPURL"
        "Identity" -> "Identity"
    """
    initialisms = INITIALISMS if initialisms is None else initialisms
    result = []
    for chunk in _SEPARATOR_PATTERN.split(text):
        for word in _WORD_PATTERN.findall(chunk):
            upper = word.upper()
            result.append(upper if upper in initialisms else word[:1].upper() + word[1:])
    return "".join(result)


def type_name_prefix(name: str, safe_prefix: str = "N") -> str:
    """Prefix needed for a name to start a valid identifier.

    Args:
        name: The raw name
        safe_prefix: Prefix used for names starting with a digit

    Returns:
        The prefix, or "" when the name can be used as is
    """
    if name == "":
        return "Empty"
    first = name[0]
    if first.isdigit():
        return safe_prefix
    return SYMBOL_PREFIXES.get(first, "")


def schema_name_to_type_name(
    name: str,
    safe_prefix: str = "N",
    use_initialisms: bool = False,
    initialisms: set[str] | None = None,
) -> str:
    """Convert a document name into a type name.

    Examples:
        "pet" -> "Pet"
        "400" -> "N400"
        "-1" -> "Minus1"
        "$" -> "DollarSign"
        "class" -> "ClassType"
    """
    prefix = type_name_prefix(name, safe_prefix)
    if use_initialisms:
        body = to_camel_case_with_initialisms(name, initialisms)
    else:
        body = to_camel_case(name)
    result = prefix + body
    if not result:
        result = "Empty"
    if result.lower() in RESERVED_NAMES:
        result = result + "Type"
    return result
