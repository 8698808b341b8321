"""Configuration constants for katana-devkit."""

# Networks that carry @custom:<network> address tags in contract sources
NETWORKS = ["tatara", "katana", "bokuto"]

# Chain configuration per network
NETWORK_CONFIG = {
    "tatara": {
        "chain_id": 129399,
        "chain_name": "Tatara Testnet",
    },
    "katana": {
        "chain_id": 747474,
        "chain_name": "Katana",
    },
    "bokuto": {
        "chain_id": 987654,  # Placeholder until the network is live
        "chain_name": "Bokuto",
    },
}

# Chain IDs embedded in the generated addresses.js mapping
MAPPING_CHAIN_IDS = {
    "tatara": 471,
    "katana": 0,  # Updated when mainnet launches
}

# Number of entries written to contractdir_sample.json
SAMPLE_SIZE = 10

# Name of the optional project override file
PROJECT_CONFIG_FILE = "katana-devkit.json"

# Default address sources merged into the contract directory.
# Policy names map to addresses.BranchPolicy values.
DEFAULT_ADDRESS_SOURCES = [
    {"network": "tatara", "path": "interfaces/utils/TataraAddresses.sol", "policy": "else"},
    {"network": "mainnet", "path": "interfaces/utils/KatanaAddresses.sol", "policy": "if"},
]

# Ordered category rules for the context classifier; first match wins.
# Keywords are matched case-insensitively against name, path and description.
DEFAULT_CATEGORY_RULES = [
    {"category": "morpho", "theme": "#2470ff", "keywords": ["morpho"]},
    {"category": "yearn", "theme": "#0657f9", "keywords": ["yearn", "yvault", "tokenizedstrategy", "ybtoken"]},
    {"category": "sushi", "theme": "#fa52a0", "keywords": ["sushi", "uniswap", "routeprocessor"]},
    {"category": "seaport", "theme": "#8b5cf6", "keywords": ["seaport", "conduit"]},
    {"category": "gnosis", "theme": "#12ff80", "keywords": ["gnosis", "safe", "multisend"]},
    {
        "category": "account-abstraction",
        "theme": "#f59e0b",
        "keywords": ["entrypoint", "paymaster", "useroperation", "erc4337", "account abstraction"],
    },
    {
        "category": "bridge",
        "theme": "#06b6d4",
        "keywords": ["bridge", "globalexitroot", "nativeconverter", "zkevm", "agglayer"],
    },
    {"category": "utility", "theme": "#64748b", "keywords": ["multicall", "permit2", "util", "helper", "lens"]},
    {
        "category": "deployment",
        "theme": "#a855f7",
        "keywords": ["deploy", "create2", "createx", "proxy", "timelock", "factory"],
    },
    {
        "category": "token",
        "theme": "#10b981",
        "keywords": ["erc20", "erc721", "erc4626", "token", "weth", "ausd", "usdc", "usdt", "wbtc"],
    },
]

# Category assigned when no rule matches
FALLBACK_CATEGORY = {"category": "general", "theme": "#9ca3af"}

# Interface file (or name) -> address table key, applied after exact and
# substring matching fail
DEFAULT_ALIASES = [
    {"source": "IMorphoBlue.sol", "target": "MorphoBlue"},
]

# Local fork endpoint used by check-connection when RPC_URL is unset
DEFAULT_RPC_URL = "http://localhost:8545"

# Tokens read by check-connection (Tatara deployments)
DEFAULT_CHECK_TOKENS = {
    "AUSD": "0xa9012a055bd4e0eDfF8Ce09f960291C09D5322dC",
    "WETH": "0x17B8Ee96E3bcB3b04b3e8334de4524520C51caB4",
}
