"""vCard generation and parsing for AppStandard Lite."""

from .escape import (
    escape_vcard_text,
    fold_line,
    format_vcard_date,
    format_vcard_timestamp,
    generate_uid,
    parse_vcard_date,
    unescape_vcard_text,
    unfold_lines,
)
from .generator import (
    MAX_QR_DATA_SIZE,
    VCardGenerator,
    check_qr_payload,
    estimate_vcard_size,
    generate_vcard,
    generate_vcf_file,
)
from .parser import VCardParser, parse_vcf

__all__ = [
    "MAX_QR_DATA_SIZE",
    "VCardGenerator",
    "VCardParser",
    "check_qr_payload",
    "escape_vcard_text",
    "estimate_vcard_size",
    "fold_line",
    "format_vcard_date",
    "format_vcard_timestamp",
    "generate_uid",
    "generate_vcard",
    "generate_vcf_file",
    "parse_vcard_date",
    "parse_vcf",
    "unescape_vcard_text",
    "unfold_lines",
]
