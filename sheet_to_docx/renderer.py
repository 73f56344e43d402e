"""
Template Renderer
=================
Produces output documents from a Word template by writing custom document
properties (``docProps/custom.xml``) and refreshing the cached text of any
``DOCPROPERTY`` fields that display them.

python-docx has no public API for custom properties, so the part is handled
at the OPC level: its content type is registered as a plain
:class:`~docx.opc.part.XmlPart` so that the XML is parsed on load and
re-serialised on save.
"""

import datetime
import io
import logging
import os
import re
from typing import Any, Dict, Optional

import docx
from docx.opc.packuri import PackURI
from docx.opc.part import PartFactory, XmlPart
from docx.oxml import OxmlElement, parse_xml
from docx.oxml.ns import qn
from lxml import etree

from .errors import TemplateError

logger = logging.getLogger(__name__)

CT_CUSTOM_PROPERTIES = "application/vnd.openxmlformats-officedocument.custom-properties+xml"
RT_CUSTOM_PROPERTIES = (
    "http://schemas.openxmlformats.org/officeDocument/2006/relationships/custom-properties"
)
CUSTOM_PROPERTIES_PARTNAME = "/docProps/custom.xml"

NS_CUSTOM = "http://schemas.openxmlformats.org/officeDocument/2006/custom-properties"
NS_VT = "http://schemas.openxmlformats.org/officeDocument/2006/docPropsVTypes"
# Format id Word uses for user-defined properties
PROPERTY_FMTID = "{D5CDD505-2E9C-101B-9397-08002B2CF9AE}"
# pids 0 and 1 are reserved
FIRST_PID = 2

_EMPTY_CUSTOM_XML = (
    f'<Properties xmlns="{NS_CUSTOM}" xmlns:vt="{NS_VT}"/>'
).encode("utf-8")

_FIELD_PART_TYPES = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.header+xml",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.footer+xml",
}

_DOCPROPERTY_REGEX = re.compile(r'^\s*DOCPROPERTY\s+(?:"([^"]+)"|([^\s\\]+))', re.IGNORECASE)

_I4_MIN, _I4_MAX = -2 ** 31, 2 ** 31 - 1
_FILETIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

PartFactory.part_type_for[CT_CUSTOM_PROPERTIES] = XmlPart


# ------------------------------------------------------------------
# Variant encoding helpers
# ------------------------------------------------------------------

def _variant_for(value: Any):
    """Return ``(vt tag, text)`` for *value*."""
    if isinstance(value, bool):
        return "bool", "true" if value else "false"
    if isinstance(value, int) and _I4_MIN <= value <= _I4_MAX:
        return "i4", str(value)
    if isinstance(value, float):
        return "r8", repr(value)
    if isinstance(value, datetime.datetime):
        return "filetime", value.strftime(_FILETIME_FORMAT)
    if isinstance(value, datetime.date):
        return "filetime", datetime.datetime.combine(
            value, datetime.time()).strftime(_FILETIME_FORMAT)
    return "lpwstr", str(value)


def _variant_value(element) -> Any:
    tag = etree.QName(element).localname
    text = element.text or ""
    if tag in ("i1", "i2", "i4", "i8", "int", "ui1", "ui2", "ui4", "ui8", "uint"):
        return int(text)
    if tag in ("r4", "r8", "decimal"):
        return float(text)
    if tag == "bool":
        return text.strip().lower() in ("true", "1")
    if tag == "filetime":
        try:
            return datetime.datetime.strptime(text, _FILETIME_FORMAT)
        except ValueError:
            return text
    return text


def display_text(value: Any) -> str:
    """Text shown by a DOCPROPERTY field for *value*."""
    if isinstance(value, bool):
        return "Y" if value else "N"
    if isinstance(value, datetime.datetime):
        if value.time() == datetime.time():
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def docproperty_name(instr: Optional[str]) -> Optional[str]:
    """Return the property name referenced by a field instruction, if any."""
    if not instr:
        return None
    m = _DOCPROPERTY_REGEX.match(instr)
    if not m:
        return None
    return m.group(1) or m.group(2)


def _replace_text(t_elements, text: str) -> bool:
    if not t_elements:
        return False
    first, rest = t_elements[0], t_elements[1:]
    first.text = text
    first.set("{http://www.w3.org/XML/1998/namespace}space", "preserve")
    for t in rest:
        t.text = ""
    return True


# ------------------------------------------------------------------
# Document instance
# ------------------------------------------------------------------

class TemplateDocument:
    """One in-flight copy of the template."""

    def __init__(self, document):
        self._document = document
        self._custom_part = None

    @property
    def document(self):
        if self._document is None:
            raise TemplateError("Template document has already been closed")
        return self._document

    @property
    def _package(self):
        return self.document.part.package

    # ---- custom properties ----

    def _custom_properties_part(self, create: bool = True) -> Optional[XmlPart]:
        if self._custom_part is not None:
            return self._custom_part
        for rel in self._package.rels.values():
            if rel.reltype == RT_CUSTOM_PROPERTIES and not rel.is_external:
                self._custom_part = rel.target_part
                return self._custom_part
        if not create:
            return None
        part = XmlPart(PackURI(CUSTOM_PROPERTIES_PARTNAME), CT_CUSTOM_PROPERTIES,
                       parse_xml(_EMPTY_CUSTOM_XML), self._package)
        self._package.relate_to(part, RT_CUSTOM_PROPERTIES)
        self._custom_part = part
        return part

    def custom_properties(self) -> Dict[str, Any]:
        part = self._custom_properties_part(create=False)
        if part is None:
            return {}
        props = {}
        for prop in part.element.findall(f"{{{NS_CUSTOM}}}property"):
            children = list(prop)
            props[prop.get("name")] = _variant_value(children[0]) if children else None
        return props

    def set_custom_property(self, name: str, value: Any):
        """Upsert: drop any property called *name*, then append a new one."""
        root = self._custom_properties_part().element
        pids = [FIRST_PID - 1]
        for prop in root.findall(f"{{{NS_CUSTOM}}}property"):
            if prop.get("name") == name:
                root.remove(prop)
                continue
            try:
                pids.append(int(prop.get("pid")))
            except (TypeError, ValueError):
                pass

        vt_tag, text = _variant_for(value)
        prop = etree.SubElement(root, f"{{{NS_CUSTOM}}}property")
        prop.set("fmtid", PROPERTY_FMTID)
        prop.set("pid", str(max(pids) + 1))
        prop.set("name", name)
        etree.SubElement(prop, f"{{{NS_VT}}}{vt_tag}").text = text

    def set_fields(self, fields: Dict[str, Any]):
        for name, value in fields.items():
            self.set_custom_property(name, value)

    # ---- field refresh ----

    def _field_roots(self):
        for part in self._package.iter_parts():
            if isinstance(part, XmlPart) and part.content_type in _FIELD_PART_TYPES:
                yield part.element

    def refresh_fields(self, values: Optional[Dict[str, Any]] = None) -> int:
        """Rewrite the cached result of DOCPROPERTY fields.

        Uses *values* when given, otherwise the document's current custom
        properties.  Returns the number of fields updated.
        """
        if values is None:
            values = self.custom_properties()
        if not values:
            return 0
        updated = 0
        for root in self._field_roots():
            updated += self._refresh_simple_fields(root, values)
            updated += self._refresh_complex_fields(root, values)
        logger.debug(f"Refreshed {updated} DOCPROPERTY field(s)")
        return updated

    @staticmethod
    def _refresh_simple_fields(root, values) -> int:
        count = 0
        for fld in root.iter(qn("w:fldSimple")):
            name = docproperty_name(fld.get(qn("w:instr")))
            if name not in values:
                continue
            text = display_text(values[name])
            t_elements = list(fld.iter(qn("w:t")))
            if not _replace_text(t_elements, text):
                run = OxmlElement("w:r")
                t = OxmlElement("w:t")
                run.append(t)
                fld.append(run)
                _replace_text([t], text)
            count += 1
        return count

    @staticmethod
    def _refresh_complex_fields(root, values) -> int:
        count = 0
        stack = []
        for el in root.iter(qn("w:fldChar"), qn("w:instrText"), qn("w:t")):
            if el.tag == qn("w:fldChar"):
                kind = el.get(qn("w:fldCharType"))
                if kind == "begin":
                    stack.append({"instr": [], "result": False, "texts": []})
                elif kind == "separate" and stack:
                    stack[-1]["result"] = True
                elif kind == "end" and stack:
                    field = stack.pop()
                    name = docproperty_name("".join(field["instr"]))
                    if name in values and _replace_text(field["texts"],
                                                        display_text(values[name])):
                        count += 1
            elif el.tag == qn("w:instrText"):
                if stack and not stack[-1]["result"]:
                    stack[-1]["instr"].append(el.text or "")
            elif stack and stack[-1]["result"]:
                stack[-1]["texts"].append(el)
        return count

    # ---- lifecycle ----

    def save(self, path: str):
        self.document.save(path)

    def close(self):
        self._document = None
        self._custom_part = None


# ------------------------------------------------------------------
# Renderer
# ------------------------------------------------------------------

class TemplateRenderer:
    """Holds the template bytes and hands out fresh document instances."""

    def __init__(self, template_path: str):
        if not os.path.isfile(template_path):
            raise TemplateError(f"Template not found: {template_path}")
        with open(template_path, "rb") as f:
            self._blob = f.read()
        self.template_path = template_path
        self._in_flight = None
        try:
            docx.Document(io.BytesIO(self._blob))
        except Exception as e:
            self._blob = None
            raise TemplateError(f"Cannot open template {template_path}: {e}") from e

    def open_template(self) -> TemplateDocument:
        if self._blob is None:
            raise TemplateError("Template renderer has been closed")
        if self._in_flight is not None and self._in_flight._document is not None:
            raise TemplateError("Previous template instance was not closed")
        self._in_flight = TemplateDocument(docx.Document(io.BytesIO(self._blob)))
        return self._in_flight

    def close(self):
        if self._in_flight is not None:
            self._in_flight.close()
            self._in_flight = None
        self._blob = None
