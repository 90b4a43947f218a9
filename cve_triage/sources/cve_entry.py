"""
CVE Entry Parsing

Turns the raw bytes of a cvelist JSON 4.0 document into a CVEEntry.

Only the fields the triage engine and downstream report tooling consume are
lifted out; the full document stays available as `raw`.

Relevant document shape:
    CVE_data_meta.ID / CVE_data_meta.STATE
    description.description_data[].value
    references.reference_data[].url
    affects.vendor.vendor_data[].product.product_data[].version.version_data[]
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .exceptions import ReadFailure


@dataclass(frozen=True)
class Reference:
    url: str
    name: str = ''
    refsource: str = ''


@dataclass(frozen=True)
class AffectedProduct:
    vendor: str
    product: str
    versions: List[str] = field(default_factory=list)


@dataclass
class CVEEntry:
    """Structured view of one upstream vulnerability disclosure"""
    cve_id: str
    state: str = ''
    assigner: str = ''
    description: str = ''
    references: List[Reference] = field(default_factory=list)
    affected: List[AffectedProduct] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def reference_urls(self) -> List[str]:
        """Non-empty reference URLs in document order"""
        return [ref.url for ref in self.references if ref.url]


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ''


def _parse_description(doc: Dict[str, Any]) -> str:
    data = _as_list(_as_dict(doc.get('description')).get('description_data'))
    values = [_as_str(_as_dict(d).get('value')) for d in data]
    # Prefer the English text when the entry is multilingual
    english = [_as_str(_as_dict(d).get('value')) for d in data
               if _as_dict(d).get('lang') in ('eng', 'en')]
    return '\n'.join(v for v in (english or values) if v)


def _parse_references(doc: Dict[str, Any]) -> List[Reference]:
    references = []
    for ref in _as_list(_as_dict(doc.get('references')).get('reference_data')):
        ref = _as_dict(ref)
        references.append(Reference(
            url=_as_str(ref.get('url')).strip(),
            name=_as_str(ref.get('name')),
            refsource=_as_str(ref.get('refsource')),
        ))
    return references


def _parse_affected(doc: Dict[str, Any]) -> List[AffectedProduct]:
    affected = []
    vendors = _as_dict(_as_dict(doc.get('affects')).get('vendor'))
    for vendor in _as_list(vendors.get('vendor_data')):
        vendor = _as_dict(vendor)
        vendor_name = _as_str(vendor.get('vendor_name'))
        for product in _as_list(_as_dict(vendor.get('product')).get('product_data')):
            product = _as_dict(product)
            versions = [
                _as_str(_as_dict(v).get('version_value'))
                for v in _as_list(_as_dict(product.get('version')).get('version_data'))
            ]
            affected.append(AffectedProduct(
                vendor=vendor_name,
                product=_as_str(product.get('product_name')),
                versions=[v for v in versions if v],
            ))
    return affected


def parse_cve_entry(data: bytes, path: Optional[str] = None) -> CVEEntry:
    """
    Parse raw entry bytes

    Args:
        data: Raw file contents
        path: Repository path, used for error context only

    Returns:
        Parsed CVEEntry

    Raises:
        ReadFailure: If the bytes are not a JSON object with CVE_data_meta.ID
    """
    try:
        doc = json.loads(data)
    except (ValueError, RecursionError) as e:
        raise ReadFailure(f"Invalid JSON in {path}: {e}", path=path,
                          raw_data_sample=data[:200].decode('utf-8', errors='replace'))

    if not isinstance(doc, dict):
        raise ReadFailure(f"Expected a JSON object in {path}", path=path)

    meta = _as_dict(doc.get('CVE_data_meta'))
    cve_id = meta.get('ID')
    if not cve_id or not isinstance(cve_id, str):
        raise ReadFailure(f"Missing CVE_data_meta.ID in {path}", path=path)

    try:
        return CVEEntry(
            cve_id=cve_id,
            state=_as_str(meta.get('STATE')),
            assigner=_as_str(meta.get('ASSIGNER')),
            description=_parse_description(doc),
            references=_parse_references(doc),
            affected=_parse_affected(doc),
            raw=doc,
        )
    except (TypeError, ValueError, AttributeError) as e:
        raise ReadFailure(f"Malformed entry in {path}: {e}", path=path, cve_id=cve_id)
