# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""IndyScan / CandyScan transaction page parsing.

Ledger explorers render schema and credential-definition transactions
as Next.js pages. The transaction is embedded as JSON in the
``<script id="__NEXT_DATA__">`` tag under
``props.pageProps.indyscanTx.expansion.idata``:

- ``txn.data.data``: schema ``name``, ``version``, ``attr_names``
- ``txn.data``: cred-def ``signature_type`` and ``tag``
- ``txn.metadata.from``: issuer DID
- ``txnMetadata``: ``txnId`` (the schema / cred-def id) and ``seqNo``

When that JSON is missing or incomplete, identifiers are recovered
from the raw HTML with regular expressions, and the sequence number
from the ``/domain/<n>`` part of the URL.
"""
import json
import logging
import re
from typing import Any, Optional

from bs4 import BeautifulSoup

log = logging.getLogger(__name__)

SCHEMA_ID_RE = re.compile(r"([A-Za-z0-9]{21,}):2:([^:]+):([0-9.]+)")
CRED_DEF_ID_RE = re.compile(r"([A-Za-z0-9]{21,}):3:CL:(\d+):([A-Za-z0-9_-]+)")
ATTR_NAMES_RE = re.compile(r'"attr_names"\s*:\s*\[([\s\S]*?)\]')
QUOTED_RE = re.compile(r'"([^"]+)"')
SEQ_NO_RE = re.compile(r"/domain/(\d+)")

CANDYSCAN_HOSTS = ("candyscan.idlab.org", "candyscan.digitaltrust.gov.bc.ca")


def parse_ledger_from_url(url: str) -> str:
    """Ledger identifier (``candy:prod``, ``sovrin:mainnet``, ...) from an explorer URL."""
    if any(host in url for host in CANDYSCAN_HOSTS):
        match = re.search(r"/tx/([^/]+)/", url)
        if match:
            network = match.group(1).lower()
            return f"candy:{network.replace('candy_', '', 1)}"
        return "candy:dev"

    if "indyscan.io" in url:
        match = re.search(r"/txs/([^/]+)/", url)
        if match:
            return f"sovrin:{match.group(1).lower()}"
        return "sovrin:staging"

    if "bcovrin.vonx.io" in url:
        if "test." in url:
            return "bcovrin:test"
        if "dev." in url:
            return "bcovrin:dev"
        return "bcovrin:test"

    return "unknown"


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    return value if isinstance(value, int) else None


def extract_next_data(html: str) -> Optional[dict]:
    """The transaction expansion (``idata``) from the page's Next.js payload.

    Returns None when the script tag is absent, its JSON is malformed,
    or the page carries no ``indyscanTx``.
    """
    soup = BeautifulSoup(html, "html.parser")
    script = soup.find("script", id="__NEXT_DATA__")
    if script is None or not script.string:
        return None

    try:
        next_data = json.loads(script.string)
    except ValueError as e:
        log.info(f"Failed to parse __NEXT_DATA__, falling back to regex: {e}")
        return None

    tx_data = _dig(next_data, "props", "pageProps", "indyscanTx")
    if not isinstance(tx_data, dict):
        return None
    expansion = _dig(tx_data, "expansion", "idata")
    return expansion if isinstance(expansion, dict) else {}


def _seq_no_from_url(source_url: str) -> Optional[int]:
    match = SEQ_NO_RE.search(source_url)
    return int(match.group(1)) if match else None


def parse_schema_from_html(html: str, source_url: str) -> dict:
    """Schema details from an explorer page.

    Returns:
        ``{name, version, schemaId, issuerDid, attributes, ledger, seqNo}``;
        fields that could not be found are None (``attributes`` is a list).
    """
    result: dict[str, Any] = {
        "name": None,
        "version": None,
        "schemaId": None,
        "issuerDid": None,
        "attributes": [],
        "ledger": parse_ledger_from_url(source_url),
        "seqNo": None,
    }

    expansion = extract_next_data(html)
    if expansion is not None:
        schema_data = _dig(expansion, "txn", "data", "data")
        if isinstance(schema_data, dict):
            result["name"] = _text(schema_data.get("name"))
            result["version"] = _text(schema_data.get("version"))
            attr_names = schema_data.get("attr_names")
            if isinstance(attr_names, list):
                result["attributes"] = [a for a in attr_names if isinstance(a, str)]

        txn_metadata = expansion.get("txnMetadata")
        if isinstance(txn_metadata, dict):
            result["schemaId"] = _text(txn_metadata.get("txnId"))
            result["seqNo"] = _int(txn_metadata.get("seqNo"))

        issuer = _text(_dig(expansion, "txn", "metadata", "from"))
        if issuer:
            result["issuerDid"] = issuer

        if result["name"] and result["version"] and result["attributes"]:
            log.info(
                f"Parsed schema from __NEXT_DATA__: {result['name']} "
                f"with {len(result['attributes'])} attributes"
            )
            return result

    match = SCHEMA_ID_RE.search(html)
    if match:
        result["schemaId"] = match.group(0)
        result["issuerDid"] = match.group(1)
        result["name"] = match.group(2)
        result["version"] = match.group(3)

    attr_match = ATTR_NAMES_RE.search(html)
    if attr_match:
        attrs = QUOTED_RE.findall(attr_match.group(1))
        if attrs:
            result["attributes"] = attrs

    seq_no = _seq_no_from_url(source_url)
    if seq_no is not None:
        result["seqNo"] = seq_no

    return result


def parse_cred_def_from_html(html: str, source_url: str) -> dict:
    """Credential definition details from an explorer page.

    Returns:
        ``{credDefId, schemaId, issuerDid, tag, signatureType, ledger, seqNo}``
        with ``tag`` defaulting to ``default`` and ``signatureType`` to ``CL``.
    """
    result: dict[str, Any] = {
        "credDefId": None,
        "schemaId": None,
        "issuerDid": None,
        "tag": "default",
        "signatureType": "CL",
        "ledger": parse_ledger_from_url(source_url),
        "seqNo": None,
    }

    expansion = extract_next_data(html)
    if expansion is not None:
        txn_metadata = expansion.get("txnMetadata")
        if isinstance(txn_metadata, dict) and _text(txn_metadata.get("txnId")):
            result["credDefId"] = txn_metadata["txnId"]
            result["seqNo"] = _int(txn_metadata.get("seqNo"))

        issuer = _text(_dig(expansion, "txn", "metadata", "from"))
        if issuer:
            result["issuerDid"] = issuer

        txn_data = _dig(expansion, "txn", "data")
        if isinstance(txn_data, dict):
            result["signatureType"] = _text(txn_data.get("signature_type")) or "CL"
            result["tag"] = _text(txn_data.get("tag")) or "default"

        if result["credDefId"]:
            log.info(f"Parsed cred def from __NEXT_DATA__: {result['credDefId']}")
            return result

    match = CRED_DEF_ID_RE.search(html)
    if match:
        result["credDefId"] = match.group(0)
        result["issuerDid"] = match.group(1)
        result["tag"] = match.group(3)

    schema_match = SCHEMA_ID_RE.search(html)
    if schema_match:
        result["schemaId"] = schema_match.group(0)

    seq_no = _seq_no_from_url(source_url)
    if seq_no is not None:
        result["seqNo"] = seq_no

    return result
