# =============================================================================
# AUGUR FORK RISK MONITOR
# Module: chain/contracts.py
# Purpose: Load the contract manifest and bind contract handles to a client
# =============================================================================
#
# MANIFEST FORMAT (contracts/augur-abis.json):
# {
#     "<logical name>": {"address": "0x<40 hex>", "abi": [...]},
#     ...
# }
#
# REQUIRED NAMES:
# - universe    oracle universe (fork state, open interest)
# - augur       main protocol contract (dispute events)
# - repV2Token  stake token
# - cash        collateral token
#
# Any missing or malformed entry is FATAL. There is no partial binding.
#
# =============================================================================

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from web3 import AsyncWeb3
from web3.contract import AsyncContract

from shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

REQUIRED_CONTRACTS = ("universe", "augur", "repV2Token", "cash")

DISPUTE_EVENT_NAME = "DisputeCrowdsourcerCreated"
# Named event arguments the dispute aggregator reads
DISPUTE_EVENT_FIELDS = ("market", "disputeCrowdsourcer", "size")

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


@dataclass(frozen=True)
class ContractSpec:
    """One validated manifest entry."""
    name: str
    address: str
    abi: List[Dict[str, Any]]


@dataclass(frozen=True)
class AugurContracts:
    """Bound contract handles for one run."""
    universe: AsyncContract
    augur: AsyncContract
    rep_token: AsyncContract
    cash: AsyncContract


def load_manifest(manifest_path: Path) -> Dict[str, ContractSpec]:
    """
    Read and validate the contract manifest.

    Args:
        manifest_path: Path to the JSON manifest

    Returns:
        Mapping of logical name to ContractSpec for every required contract

    Raises:
        ConfigurationError: If the file is missing, unparseable, or malformed
    """
    path = Path(manifest_path)
    if not path.exists():
        raise ConfigurationError("Contract manifest not found", str(path))

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Contract manifest is not valid JSON: {e}", str(path)) from e

    if not isinstance(raw, dict):
        raise ConfigurationError("Contract manifest root must be an object", str(path))

    specs: Dict[str, ContractSpec] = {}
    for name in REQUIRED_CONTRACTS:
        entry = raw.get(name)
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Manifest entry '{name}' is missing", str(path))

        address = entry.get("address")
        if not isinstance(address, str) or not ADDRESS_RE.fullmatch(address):
            raise ConfigurationError(f"Manifest entry '{name}' has an invalid address", str(path))

        abi = entry.get("abi")
        if not isinstance(abi, list) or not all(isinstance(item, dict) for item in abi):
            raise ConfigurationError(f"Manifest entry '{name}' has an invalid abi", str(path))

        specs[name] = ContractSpec(
            name=name,
            address=AsyncWeb3.to_checksum_address(address),
            abi=abi,
        )

    check_dispute_event_schema(specs["augur"].abi)
    return specs


def check_dispute_event_schema(abi: List[Dict[str, Any]]) -> None:
    """
    Ensure the augur ABI declares the dispute event with the expected fields.

    Raises:
        ConfigurationError: If the event or any of its named inputs is missing
    """
    events = [
        item for item in abi
        if item.get("type") == "event" and item.get("name") == DISPUTE_EVENT_NAME
    ]
    if not events:
        raise ConfigurationError(f"augur abi does not declare {DISPUTE_EVENT_NAME}")

    input_names = {inp.get("name") for inp in events[0].get("inputs", [])}
    missing = [name for name in DISPUTE_EVENT_FIELDS if name not in input_names]
    if missing:
        raise ConfigurationError(
            f"{DISPUTE_EVENT_NAME} abi is missing inputs: {', '.join(missing)}"
        )


def bind_contracts(w3: AsyncWeb3, manifest_path: Path) -> AugurContracts:
    """
    Bind every required contract against a live client.

    Args:
        w3: Connected client
        manifest_path: Path to the JSON manifest

    Returns:
        AugurContracts with one handle per required contract

    Raises:
        ConfigurationError: If the manifest is missing or malformed
    """
    specs = load_manifest(manifest_path)
    handles = {
        name: w3.eth.contract(address=spec.address, abi=spec.abi)
        for name, spec in specs.items()
    }

    logger.info("Loaded contracts:")
    for name in REQUIRED_CONTRACTS:
        logger.info(f"  {name}: {specs[name].address}")

    return AugurContracts(
        universe=handles["universe"],
        augur=handles["augur"],
        rep_token=handles["repV2Token"],
        cash=handles["cash"],
    )
