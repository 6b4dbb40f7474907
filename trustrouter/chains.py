"""
Built-in chain table.

The ERC-8004 registries are deployed with CREATE2, so every mainnet shares
one set of addresses and every testnet another. Endpoint lists are free
public RPCs tried in order; ``{CHAIN}_RPC_URL`` overrides them.
"""

import os
import re
from dataclasses import dataclass

from trustrouter.exceptions import ConfigurationError

MAINNET_IDENTITY_REGISTRY = "0x8004A169FB4a3325136EB29fA0ceB6D2e539a432"
MAINNET_REPUTATION_REGISTRY = "0x8004BAa17C55a88189AE136b182e5fdA19dE9b63"
TESTNET_IDENTITY_REGISTRY = "0x8004A818BFB912233c491871b3d84c89A494BD9e"
TESTNET_REPUTATION_REGISTRY = "0x8004B663056A597Dffe9eCcC1965A193B7388713"
# Not deployed yet; reads revert and degrade to zero validations
VALIDATION_REGISTRY_PLACEHOLDER = "0x8004000000000000000000000000000000000000"

LEGACY_ETHEREUM_ENV_VAR = "ETH_RPC_URL"


@dataclass(frozen=True)
class RegistryAddresses:
    """Contract addresses for the three registries on one chain."""

    identity: str
    reputation: str
    validation: str


@dataclass(frozen=True)
class ChainConfig:
    """Static description of a supported chain."""

    name: str
    chain_id: int
    rpc_urls: tuple[str, ...]
    testnet: bool = False

    @property
    def registries(self) -> RegistryAddresses:
        if self.testnet:
            return RegistryAddresses(
                identity=TESTNET_IDENTITY_REGISTRY,
                reputation=TESTNET_REPUTATION_REGISTRY,
                validation=VALIDATION_REGISTRY_PLACEHOLDER,
            )
        return RegistryAddresses(
            identity=MAINNET_IDENTITY_REGISTRY,
            reputation=MAINNET_REPUTATION_REGISTRY,
            validation=VALIDATION_REGISTRY_PLACEHOLDER,
        )

    @property
    def env_var(self) -> str:
        return rpc_env_var(self.name)


CHAINS: dict[str, ChainConfig] = {
    chain.name: chain
    for chain in (
        ChainConfig(
            name="ethereum",
            chain_id=1,
            rpc_urls=(
                "https://eth.drpc.org",
                "https://eth.llamarpc.com",
                "https://rpc.ankr.com/eth",
                "https://ethereum-rpc.publicnode.com",
                "https://endpoints.omniatech.io/v1/eth/mainnet/public",
            ),
        ),
        ChainConfig(
            name="base",
            chain_id=8453,
            rpc_urls=(
                "https://mainnet.base.org",
                "https://base.drpc.org",
                "https://base.llamarpc.com",
                "https://rpc.ankr.com/base",
                "https://base-rpc.publicnode.com",
                "https://endpoints.omniatech.io/v1/base/mainnet/public",
            ),
        ),
        ChainConfig(
            name="arbitrum",
            chain_id=42161,
            rpc_urls=(
                "https://arb1.arbitrum.io/rpc",
                "https://arbitrum.drpc.org",
                "https://rpc.ankr.com/arbitrum",
                "https://arbitrum-one-rpc.publicnode.com",
                "https://endpoints.omniatech.io/v1/arbitrum/one/public",
            ),
        ),
        ChainConfig(
            name="polygon",
            chain_id=137,
            rpc_urls=(
                "https://polygon-rpc.com",
                "https://polygon.drpc.org",
                "https://polygon.llamarpc.com",
                "https://rpc.ankr.com/polygon",
                "https://polygon-bor-rpc.publicnode.com",
                "https://endpoints.omniatech.io/v1/matic/mainnet/public",
            ),
        ),
        ChainConfig(
            name="avalanche",
            chain_id=43114,
            rpc_urls=(
                "https://api.avax.network/ext/bc/C/rpc",
                "https://avalanche.drpc.org",
                "https://rpc.ankr.com/avalanche",
                "https://avalanche-c-chain-rpc.publicnode.com",
            ),
        ),
        ChainConfig(
            name="bnb",
            chain_id=56,
            rpc_urls=(
                "https://bsc-dataseed.binance.org",
                "https://bsc.drpc.org",
                "https://rpc.ankr.com/bsc",
                "https://bsc-rpc.publicnode.com",
            ),
        ),
        ChainConfig(
            name="gnosis",
            chain_id=100,
            rpc_urls=(
                "https://rpc.gnosischain.com",
                "https://gnosis.drpc.org",
                "https://rpc.ankr.com/gnosis",
                "https://gnosis-rpc.publicnode.com",
            ),
        ),
        ChainConfig(
            name="linea",
            chain_id=59144,
            rpc_urls=(
                "https://rpc.linea.build",
                "https://linea.drpc.org",
                "https://linea-rpc.publicnode.com",
            ),
        ),
        ChainConfig(
            name="celo",
            chain_id=42220,
            rpc_urls=(
                "https://forno.celo.org",
                "https://celo.drpc.org",
                "https://rpc.ankr.com/celo",
            ),
        ),
        ChainConfig(
            name="sepolia",
            chain_id=11155111,
            rpc_urls=(
                "https://sepolia.drpc.org",
                "https://rpc.ankr.com/eth_sepolia",
                "https://ethereum-sepolia-rpc.publicnode.com",
            ),
            testnet=True,
        ),
        ChainConfig(
            name="base-sepolia",
            chain_id=84532,
            rpc_urls=(
                "https://sepolia.base.org",
                "https://base-sepolia.drpc.org",
                "https://rpc.ankr.com/base_sepolia",
            ),
            testnet=True,
        ),
    )
}


def supported_chains() -> list[str]:
    """Names of all built-in chains, in table order."""
    return list(CHAINS)


def get_chain(name: str) -> ChainConfig:
    """
    Look up a chain by name.

    Raises:
        ConfigurationError: If the chain is not in the table
    """
    chain = CHAINS.get(name)
    if chain is None:
        raise ConfigurationError(
            f"Unsupported chain: {name}. Supported: {', '.join(supported_chains())}"
        )
    return chain


def rpc_env_var(chain: str) -> str:
    """
    Environment variable that overrides a chain's endpoints.

    Example:
        >>> rpc_env_var("base-sepolia")
        'BASE_SEPOLIA_RPC_URL'
    """
    return re.sub(r"[^A-Z0-9]", "_", chain.upper()) + "_RPC_URL"


def env_rpc_override(chain: str) -> str | None:
    """The override endpoint for a chain from the environment, if set."""
    value = os.environ.get(rpc_env_var(chain), "").strip()
    if not value and chain == "ethereum":
        value = os.environ.get(LEGACY_ETHEREUM_ENV_VAR, "").strip()
    return value or None
