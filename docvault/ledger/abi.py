"""Contract ABIs for the DID registry and credential store contracts."""

DID_REGISTRY_ABI: list[dict] = [
    {
        "type": "function",
        "name": "createDID",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "metadataHash", "type": "string"},
            {"name": "name", "type": "string"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "getDID",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [
            {"name": "", "type": "uint256"},
            {"name": "", "type": "string"},
            {"name": "", "type": "string"},
            {"name": "", "type": "uint256"},
        ],
    },
    {
        "type": "event",
        "name": "DIDCreated",
        "anonymous": False,
        "inputs": [
            {"name": "owner", "type": "address", "indexed": True},
            {"name": "didId", "type": "uint256", "indexed": True},
            {"name": "metadataHash", "type": "string", "indexed": False},
        ],
    },
]

CREDENTIAL_STORE_ABI: list[dict] = [
    {
        "type": "function",
        "name": "storeCredential",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "cid", "type": "string"},
            {"name": "hash", "type": "string"},
            {"name": "issuer", "type": "address"},
            {"name": "owner", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "verifyCredential",
        "stateMutability": "view",
        "inputs": [{"name": "hash", "type": "string"}],
        "outputs": [
            {"name": "", "type": "bool"},
            {"name": "", "type": "address"},
            {"name": "", "type": "address"},
            {"name": "", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "revokeCredential",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "hash", "type": "string"}],
        "outputs": [],
    },
    {
        "type": "event",
        "name": "CredentialStored",
        "anonymous": False,
        "inputs": [
            {"name": "credentialId", "type": "uint256", "indexed": True},
            {"name": "cid", "type": "string", "indexed": False},
            {"name": "hash", "type": "string", "indexed": False},
            {"name": "issuer", "type": "address", "indexed": False},
            {"name": "owner", "type": "address", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "CredentialRevoked",
        "anonymous": False,
        "inputs": [{"name": "hash", "type": "string", "indexed": True}],
    },
]
