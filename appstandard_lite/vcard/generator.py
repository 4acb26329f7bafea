"""vCard generation for AppStandard Lite contacts.

Renders ``Contact`` models as vCard 4.0 (default) or 3.0 text. Property
order follows RFC 6350 groupings: identification, organization,
communication, geography, explanatory, calendar, then REV.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any, Optional

from ..lite_models import (
    Contact,
    ContactAddress,
    ContactEmail,
    ContactIM,
    ContactPhone,
    QRPayloadCheck,
)
from .escape import (
    escape_vcard_text,
    fold_line,
    format_vcard_date,
    format_vcard_timestamp,
    generate_uid,
)

logger = logging.getLogger(__name__)

CRLF = "\r\n"
DEFAULT_PRODID = "-//AppStandard Contacts//EN"
MAX_QR_DATA_SIZE = 2500
SUPPORTED_VERSIONS = ("3.0", "4.0")


def build_property_line(name: str, value: str, params: Optional[Mapping[str, str]] = None) -> str:
    """Build a folded ``NAME;PARAM=VALUE:value`` content line.

    A parameter whose value is the string ``"true"`` is written as a bare key.
    Empty parameter values are skipped.
    """
    line = name
    for key, param_value in (params or {}).items():
        if param_value == "true":
            line += f";{key}"
        elif param_value:
            line += f";{key}={param_value}"
    line += f":{value}"
    return fold_line(line)


class VCardGenerator:
    """Render contacts to vCard text.

    Args:
        prodid: PRODID value; defaults to the AppStandard Contacts identifier
        version: "4.0" (default) or "3.0"
        now: Optional callable returning the REV timestamp (for deterministic output)
    """

    def __init__(
        self,
        prodid: Optional[str] = None,
        version: str = "4.0",
        now: Optional[Any] = None,
    ):
        if version not in SUPPORTED_VERSIONS:
            raise ValueError(f"Unsupported vCard version: {version}")
        self.prodid = prodid or DEFAULT_PRODID
        self.version = version
        self._now = now or (lambda: datetime.now(UTC))

    @property
    def is_v4(self) -> bool:
        return self.version == "4.0"

    def generate(self, contact: Contact) -> str:
        """Render a single contact as one BEGIN:VCARD ... END:VCARD block."""
        lines: list[str] = []
        lines.extend(self._header_lines(contact))
        lines.extend(self._name_lines(contact))
        lines.extend(self._personal_lines(contact))
        lines.extend(self._organization_lines(contact))
        lines.extend(self._communication_lines(contact))
        lines.extend(self._location_lines(contact))
        lines.extend(self._explanatory_lines(contact))
        lines.extend(self._calendar_lines(contact))
        lines.append(build_property_line("REV", format_vcard_timestamp(contact.revision or self._now())))
        lines.append("END:VCARD")
        return CRLF.join(lines)

    def generate_file(self, contacts: Iterable[Contact]) -> str:
        """Render several contacts; an empty input renders ``""``."""
        cards = [self.generate(contact) for contact in contacts]
        logger.debug("Generated %d vCards", len(cards))
        return CRLF.join(cards)

    # Parameter helpers

    def _typed_params(self, type_value: Optional[str], is_primary: bool) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.is_v4:
            if type_value:
                params["TYPE"] = type_value.upper()
            if is_primary:
                params["PREF"] = "1"
            return params

        types = [type_value.upper()] if type_value else []
        if is_primary:
            types.append("PREF")
        if types:
            params["TYPE"] = ",".join(types)
        return params

    # Property groups

    def _header_lines(self, contact: Contact) -> list[str]:
        return [
            "BEGIN:VCARD",
            f"VERSION:{self.version}",
            build_property_line("PRODID", self.prodid),
            build_property_line("UID", contact.uid or generate_uid()),
            build_property_line("FN", escape_vcard_text(contact.formatted_name)),
        ]

    def _name_lines(self, contact: Contact) -> list[str]:
        lines = []
        parts = [
            contact.family_name,
            contact.given_name,
            contact.additional_name,
            contact.name_prefix,
            contact.name_suffix,
        ]
        if any(parts):
            lines.append(build_property_line("N", ";".join(escape_vcard_text(p) for p in parts)))
        if contact.nickname:
            lines.append(build_property_line("NICKNAME", escape_vcard_text(contact.nickname)))
        return lines

    def _personal_lines(self, contact: Contact) -> list[str]:
        lines = []
        if contact.photo_url:
            lines.append(build_property_line("PHOTO", contact.photo_url, {"VALUE": "URI"}))
        if contact.birthday:
            lines.append(build_property_line("BDAY", format_vcard_date(contact.birthday)))
        if contact.anniversary:
            name = "ANNIVERSARY" if self.is_v4 else "X-ANNIVERSARY"
            lines.append(build_property_line(name, format_vcard_date(contact.anniversary)))
        # GENDER and KIND do not exist in 3.0
        if self.is_v4 and contact.gender:
            lines.append(build_property_line("GENDER", contact.gender))
        if self.is_v4 and contact.kind:
            lines.append(build_property_line("KIND", contact.kind))
        return lines

    def _organization_lines(self, contact: Contact) -> list[str]:
        lines = []
        if contact.organization:
            lines.append(build_property_line("ORG", escape_vcard_text(contact.organization)))
        if contact.title:
            lines.append(build_property_line("TITLE", escape_vcard_text(contact.title)))
        if contact.role:
            lines.append(build_property_line("ROLE", escape_vcard_text(contact.role)))
        if contact.logo_url:
            lines.append(build_property_line("LOGO", contact.logo_url, {"VALUE": "URI"}))
        for member in contact.members:
            lines.append(build_property_line("MEMBER", escape_vcard_text(member)))
        return lines

    def _communication_lines(self, contact: Contact) -> list[str]:
        lines = [self._email_line(email) for email in contact.emails]
        lines.extend(self._phone_line(phone) for phone in contact.phones)
        lines.extend(self._address_line(address) for address in contact.addresses)
        lines.extend(self._impp_line(im) for im in contact.im_handles)
        return lines

    def _email_line(self, email: ContactEmail) -> str:
        return build_property_line("EMAIL", email.email, self._typed_params(email.type, email.is_primary))

    def _phone_line(self, phone: ContactPhone) -> str:
        params = self._typed_params(phone.type, phone.is_primary)
        if not self.is_v4:
            return build_property_line("TEL", phone.number, params)

        tel_uri = phone.number if phone.number.startswith("tel:") else f"tel:{''.join(phone.number.split())}"
        return build_property_line("TEL", tel_uri, {"VALUE": "uri", **params})

    def _address_line(self, address: ContactAddress) -> str:
        parts = [
            address.po_box,
            address.extended,
            address.street,
            address.city,
            address.region,
            address.postal_code,
            address.country,
        ]
        value = ";".join(escape_vcard_text(p) for p in parts)
        return build_property_line("ADR", value, self._typed_params(address.type, address.is_primary))

    def _impp_line(self, im: ContactIM) -> str:
        value = im.handle if ":" in im.handle else f"{im.service}:{im.handle}"
        return build_property_line("IMPP", value)

    def _location_lines(self, contact: Contact) -> list[str]:
        lines = []
        if contact.geo_latitude is not None and contact.geo_longitude is not None:
            if self.is_v4:
                geo = f"geo:{contact.geo_latitude},{contact.geo_longitude}"
            else:
                geo = f"{contact.geo_latitude};{contact.geo_longitude}"
            lines.append(build_property_line("GEO", geo))
        if contact.timezone:
            lines.append(build_property_line("TZ", contact.timezone))
        if contact.url:
            lines.append(build_property_line("URL", contact.url))
        return lines

    def _explanatory_lines(self, contact: Contact) -> list[str]:
        lines = []
        if contact.note:
            lines.append(build_property_line("NOTE", escape_vcard_text(contact.note)))
        if contact.categories:
            value = ",".join(escape_vcard_text(c) for c in contact.categories)
            lines.append(build_property_line("CATEGORIES", value))
        for relation in contact.relations:
            params = {"TYPE": relation.type} if relation.type else None
            lines.append(build_property_line("RELATED", escape_vcard_text(relation.value), params))
        for index, language in enumerate(contact.languages):
            params = {"PREF": "1"} if index == 0 else None
            lines.append(build_property_line("LANG", language, params))
        for profile in contact.social_profiles:
            params = {"TYPE": profile.type} if profile.type else None
            lines.append(build_property_line("X-SOCIALPROFILE", profile.url, params))
        if contact.key_url:
            lines.append(build_property_line("KEY", contact.key_url, {"VALUE": "URI"}))
        if contact.sound_url:
            lines.append(build_property_line("SOUND", contact.sound_url, {"VALUE": "URI"}))
        if contact.source_url:
            lines.append(build_property_line("SOURCE", contact.source_url))
        return lines

    def _calendar_lines(self, contact: Contact) -> list[str]:
        lines = []
        for name, value in (
            ("FBURL", contact.fburl),
            ("CALADRURI", contact.cal_adr_uri),
            ("CALURI", contact.cal_uri),
        ):
            if value:
                lines.append(build_property_line(name, value))
        return lines


def generate_vcard(contact: Contact, prodid: Optional[str] = None, version: str = "4.0") -> str:
    """Render one contact as vCard text."""
    return VCardGenerator(prodid=prodid, version=version).generate(contact)


def generate_vcf_file(contacts: Iterable[Contact], prodid: Optional[str] = None, version: str = "4.0") -> str:
    """Render several contacts as a single VCF document."""
    return VCardGenerator(prodid=prodid, version=version).generate_file(contacts)


def estimate_vcard_size(vcard: str) -> int:
    """Return the UTF-8 byte length of rendered vCard text."""
    return len(vcard.encode("utf-8"))


def check_qr_payload(
    contact: Contact,
    max_bytes: Optional[int] = None,
    settings: Any = None,
    generator: Optional[VCardGenerator] = None,
) -> QRPayloadCheck:
    """Render a contact and report whether it fits in a QR code payload.

    Args:
        contact: Contact to render
        max_bytes: Explicit limit; otherwise ``settings.qr_max_bytes`` or 2500
        settings: Optional settings object
        generator: Optional pre-configured generator

    Returns:
        QRPayloadCheck carrying the vCard text, its size and ``is_too_large``
    """
    limit = max_bytes if max_bytes is not None else getattr(settings, "qr_max_bytes", None)
    if limit is None:
        limit = MAX_QR_DATA_SIZE
    prodid = getattr(settings, "vcard_prodid", None)
    vcard = (generator or VCardGenerator(prodid=prodid)).generate(contact)
    size = estimate_vcard_size(vcard)
    too_large = size > limit
    if too_large:
        logger.info("vCard for %s is %d bytes; exceeds QR limit of %d", contact.formatted_name, size, limit)
    return QRPayloadCheck(vcard=vcard, size_bytes=size, max_bytes=limit, is_too_large=too_large)
