"""vCard (VCF) parsing for AppStandard Lite.

Parses vCard 3.0/4.0 text into ``Contact`` models. Each card is parsed
independently; a card that fails (most commonly: no FN) is reported in the
result's ``errors`` and the remaining cards are still returned.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pydantic import ValidationError

from ..lite_models import (
    Contact,
    ContactAddress,
    ContactEmail,
    ContactIM,
    ContactPhone,
    ContactRelation,
    ContactSocialProfile,
    VCFParseResult,
)
from .escape import parse_vcard_date, parse_vcard_timestamp, unescape_vcard_text, unfold_lines

logger = logging.getLogger(__name__)

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_VALID_GENDERS = ("M", "F", "O", "N", "U")
_VALID_KINDS = ("individual", "group", "org", "location")


@dataclass
class VCardProperty:
    """A single unfolded content line split into name, parameters and value."""

    name: str
    value: str
    params: dict[str, str] = field(default_factory=dict)

    @property
    def types(self) -> list[str]:
        """TYPE parameter values, lowercased (3.0 style lists included)."""
        raw = self.params.get("TYPE", "")
        return [t.strip().lower() for t in raw.split(",") if t.strip()]

    @property
    def primary_type(self) -> Optional[str]:
        """First TYPE value that is not the 3.0 ``pref`` marker."""
        for type_value in self.types:
            if type_value != "pref":
                return type_value
        return None

    @property
    def is_preferred(self) -> bool:
        pref = self.params.get("PREF", "").lower()
        return pref in ("1", "true") or "pref" in self.types

    @property
    def is_uri(self) -> bool:
        return self.value.startswith("http") or self.params.get("VALUE", "").upper() == "URI"


def parse_property_line(line: str) -> Optional[VCardProperty]:
    """Split ``[group.]NAME;PARAM=VALUE:value`` into a VCardProperty.

    Valueless parameters (``;PREF``) are recorded as ``"true"``.
    Returns None if the line has no colon.
    """
    colon_index = line.find(":")
    if colon_index == -1:
        return None

    head, value = line[:colon_index], line[colon_index + 1 :]
    parts = head.split(";")
    name = parts[0].strip().upper()
    if "." in name:
        # Strip Apple-style property groups (item1.EMAIL)
        name = name.split(".", 1)[1]

    params: dict[str, str] = {}
    for param in parts[1:]:
        if not param:
            continue
        if "=" in param:
            key, param_value = param.split("=", 1)
            key = key.upper()
            param_value = param_value.strip('"')
            # Repeated parameters (TYPE=HOME;TYPE=PREF) accumulate
            params[key] = f"{params[key]},{param_value}" if key in params else param_value
        else:
            # 2.1 style bare types (;HOME;PREF)
            bare = param.upper()
            if bare == "PREF" or _is_bare_type(bare):
                params["TYPE"] = f"{params['TYPE']},{bare}" if "TYPE" in params else bare
            else:
                params[bare] = "true"

    return VCardProperty(name=name, value=value, params=params)


def _is_bare_type(token: str) -> bool:
    """Return True for bare tokens that are TYPE values in vCard 2.1 lines."""
    return token in ("HOME", "WORK", "CELL", "VOICE", "FAX", "PAGER", "INTERNET", "OTHER", "MAIN")


def split_components(value: str, separator: str = ";") -> list[str]:
    """Split a structured value on unescaped separators, keeping escapes in each part."""
    parts = [""]
    escaped = False
    for char in value:
        if escaped:
            parts[-1] += char
            escaped = False
        elif char == "\\":
            parts[-1] += char
            escaped = True
        elif char == separator:
            parts.append("")
        else:
            parts[-1] += char
    return parts


def _parse_geo(value: str) -> Optional[tuple[float, float]]:
    coords = value[4:] if value.lower().startswith("geo:") else value
    parts = coords.split(",")
    if len(parts) != 2:
        parts = coords.split(";")
    if len(parts) != 2:
        return None
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        return None


class VCardParser:
    """Parse VCF documents into Contact models using a property handler map."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[dict[str, Any], VCardProperty], None]] = {
            "FN": self._handle_text,
            "NICKNAME": self._handle_text,
            "TITLE": self._handle_text,
            "ROLE": self._handle_text,
            "NOTE": self._handle_text,
            "TZ": self._handle_text,
            "URL": self._handle_text,
            "UID": self._handle_text,
            "SOURCE": self._handle_text,
            "N": self._handle_n,
            "PHOTO": self._handle_media,
            "LOGO": self._handle_media,
            "SOUND": self._handle_media,
            "KEY": self._handle_media,
            "BDAY": self._handle_date,
            "ANNIVERSARY": self._handle_date,
            "X-ANNIVERSARY": self._handle_date,
            "REV": self._handle_revision,
            "EMAIL": self._handle_email,
            "TEL": self._handle_phone,
            "ADR": self._handle_address,
            "ORG": self._handle_org,
            "GEO": self._handle_geo,
            "GENDER": self._handle_gender,
            "KIND": self._handle_kind,
            "CATEGORIES": self._handle_categories,
            "IMPP": self._handle_impp,
            "RELATED": self._handle_related,
            "MEMBER": self._handle_member,
            "LANG": self._handle_lang,
            "FBURL": self._handle_calendar_uri,
            "CALADRURI": self._handle_calendar_uri,
            "CALURI": self._handle_calendar_uri,
            "X-SOCIALPROFILE": self._handle_social_profile,
            "X-TWITTER": self._handle_social_profile,
            "X-FACEBOOK": self._handle_social_profile,
        }

    def parse(self, content: Optional[str]) -> VCFParseResult:
        """Parse VCF text.

        Args:
            content: Raw VCF document (may contain several cards)

        Returns:
            VCFParseResult with parsed contacts and per-card errors
        """
        result = VCFParseResult()
        if not content or not content.strip():
            result.errors.append("No valid vCard entries found in the file.")
            return result

        current: list[str] = []
        in_card = False
        for line in _LINE_SPLIT_RE.split(unfold_lines(content)):
            marker = line.strip().upper()
            if marker == "BEGIN:VCARD":
                in_card = True
                current = []
                continue
            if marker == "END:VCARD":
                if in_card and current:
                    contact = self.parse_card(current, result.errors)
                    if contact is not None:
                        result.contacts.append(contact)
                in_card = False
                current = []
                continue
            if in_card:
                current.append(line)

        if not result.contacts and not result.errors:
            result.errors.append("No valid vCard entries found in the file.")

        logger.debug("Parsed %d contacts with %d errors", len(result.contacts), len(result.errors))
        return result

    def parse_card(self, lines: list[str], errors: list[str]) -> Optional[Contact]:
        """Parse the content lines of one card (BEGIN/END excluded)."""
        data: dict[str, Any] = {
            "emails": [],
            "phones": [],
            "addresses": [],
            "im_handles": [],
            "categories": [],
            "relations": [],
            "languages": [],
            "members": [],
            "social_profiles": [],
        }

        for line in lines:
            if not line.strip():
                continue
            prop = parse_property_line(line)
            if prop is None:
                continue
            handler = self._handlers.get(prop.name)
            if handler is None:
                continue
            try:
                handler(data, prop)
            except (ValueError, IndexError) as e:
                errors.append(f"Failed to parse property {prop.name}: {e}")

        if not data.get("formatted_name"):
            errors.append("vCard missing required FN property")
            return None

        try:
            return Contact(**data)
        except ValidationError as e:
            logger.warning("Discarding vCard %r: %s", data.get("formatted_name"), e)
            errors.append(f"Invalid vCard {data.get('formatted_name')}: {e.error_count()} validation errors")
            return None

    # Handlers

    _TEXT_FIELDS = {
        "FN": "formatted_name",
        "NICKNAME": "nickname",
        "TITLE": "title",
        "ROLE": "role",
        "NOTE": "note",
        "TZ": "timezone",
        "URL": "url",
        "UID": "uid",
        "SOURCE": "source_url",
    }

    _MEDIA_FIELDS = {
        "PHOTO": "photo_url",
        "LOGO": "logo_url",
        "SOUND": "sound_url",
        "KEY": "key_url",
    }

    def _handle_text(self, data: dict[str, Any], prop: VCardProperty) -> None:
        data[self._TEXT_FIELDS[prop.name]] = unescape_vcard_text(prop.value)

    def _handle_n(self, data: dict[str, Any], prop: VCardProperty) -> None:
        parts = [unescape_vcard_text(p) or None for p in split_components(prop.value)]
        parts += [None] * (5 - len(parts))
        (
            data["family_name"],
            data["given_name"],
            data["additional_name"],
            data["name_prefix"],
            data["name_suffix"],
        ) = parts[:5]

    def _handle_media(self, data: dict[str, Any], prop: VCardProperty) -> None:
        # Inline (base64) media is not kept
        if prop.is_uri or prop.value.startswith("data:"):
            data[self._MEDIA_FIELDS[prop.name]] = prop.value

    def _handle_date(self, data: dict[str, Any], prop: VCardProperty) -> None:
        parsed = parse_vcard_date(prop.value)
        if parsed is None:
            logger.debug("Ignoring unparseable %s value %r", prop.name, prop.value)
            return
        data["birthday" if prop.name == "BDAY" else "anniversary"] = parsed

    def _handle_revision(self, data: dict[str, Any], prop: VCardProperty) -> None:
        data["revision"] = parse_vcard_timestamp(prop.value)

    def _handle_email(self, data: dict[str, Any], prop: VCardProperty) -> None:
        data["emails"].append(
            ContactEmail(
                email=prop.value.strip().lower(),
                type=prop.primary_type if prop.primary_type != "internet" else None,
                is_primary=prop.is_preferred,
            )
        )

    def _handle_phone(self, data: dict[str, Any], prop: VCardProperty) -> None:
        number = prop.value.strip()
        if number.lower().startswith("tel:"):
            number = number[4:]
        data["phones"].append(
            ContactPhone(number=number, type=prop.primary_type, is_primary=prop.is_preferred)
        )

    def _handle_address(self, data: dict[str, Any], prop: VCardProperty) -> None:
        parts = [unescape_vcard_text(p) or None for p in split_components(prop.value)]
        parts += [None] * (7 - len(parts))
        data["addresses"].append(
            ContactAddress(
                type=prop.primary_type,
                po_box=parts[0],
                extended=parts[1],
                street=parts[2],
                city=parts[3],
                region=parts[4],
                postal_code=parts[5],
                country=parts[6],
                is_primary=prop.is_preferred,
            )
        )

    def _handle_org(self, data: dict[str, Any], prop: VCardProperty) -> None:
        # ORG components are separated by ';' (organization;unit;...)
        data["organization"] = unescape_vcard_text(split_components(prop.value)[0])

    def _handle_geo(self, data: dict[str, Any], prop: VCardProperty) -> None:
        coords = _parse_geo(prop.value)
        if coords:
            data["geo_latitude"], data["geo_longitude"] = coords

    def _handle_gender(self, data: dict[str, Any], prop: VCardProperty) -> None:
        code = prop.value.split(";")[0].upper()
        if code in _VALID_GENDERS:
            data["gender"] = code

    def _handle_kind(self, data: dict[str, Any], prop: VCardProperty) -> None:
        kind = prop.value.strip().lower()
        if kind in _VALID_KINDS:
            data["kind"] = kind

    def _handle_categories(self, data: dict[str, Any], prop: VCardProperty) -> None:
        for raw in split_components(prop.value, ","):
            category = unescape_vcard_text(raw).strip()
            if category and category not in data["categories"]:
                data["categories"].append(category)

    def _handle_impp(self, data: dict[str, Any], prop: VCardProperty) -> None:
        service, sep, handle = prop.value.partition(":")
        if sep and handle:
            data["im_handles"].append(ContactIM(service=service.lower(), handle=handle))

    def _handle_related(self, data: dict[str, Any], prop: VCardProperty) -> None:
        if prop.value:
            data["relations"].append(
                ContactRelation(value=unescape_vcard_text(prop.value), type=prop.primary_type or "contact")
            )

    def _handle_member(self, data: dict[str, Any], prop: VCardProperty) -> None:
        if prop.value:
            data["members"].append(unescape_vcard_text(prop.value))

    def _handle_lang(self, data: dict[str, Any], prop: VCardProperty) -> None:
        tag = prop.value.strip()
        if not tag:
            return
        if prop.is_preferred:
            data["languages"].insert(0, tag)
        else:
            data["languages"].append(tag)

    def _handle_calendar_uri(self, data: dict[str, Any], prop: VCardProperty) -> None:
        target = {"FBURL": "fburl", "CALADRURI": "cal_adr_uri", "CALURI": "cal_uri"}[prop.name]
        # Keep the preferred (or first) URI
        if prop.is_preferred or not data.get(target):
            data[target] = prop.value.strip()

    def _handle_social_profile(self, data: dict[str, Any], prop: VCardProperty) -> None:
        if prop.name == "X-SOCIALPROFILE":
            profile_type = prop.primary_type
        else:
            profile_type = prop.name[2:].lower()
        data["social_profiles"].append(ContactSocialProfile(url=prop.value.strip(), type=profile_type))


def parse_vcf(content: Optional[str]) -> VCFParseResult:
    """Parse VCF text into contacts (convenience wrapper around VCardParser)."""
    return VCardParser().parse(content)
