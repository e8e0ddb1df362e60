"""
ABI of the stage-tracking contract. Must match the deployed contract exactly.
"""

CONTRACT_ABI = [
    {
        "inputs": [
            {"name": "productId", "type": "string"},
            {"name": "eventId", "type": "string"},
            {"name": "keyValuePairs", "type": "string[]"},
            {"name": "comments", "type": "string"},
            {"name": "mediaIpfs", "type": "string"}
        ],
        "name": "addStage",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [{"name": "productId", "type": "string"}],
        "name": "getStageIds",
        "outputs": [{"name": "", "type": "string[]"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "productId", "type": "string"},
            {"name": "eventId", "type": "string"}
        ],
        "name": "getStageData",
        "outputs": [{"name": "", "type": "string[]"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "productId", "type": "string"},
            {"name": "eventId", "type": "string"}
        ],
        "name": "getStageMeta",
        "outputs": [
            {"name": "comments", "type": "string"},
            {"name": "mediaIpfs", "type": "string"},
            {"name": "timestamp", "type": "uint256"},
            {"name": "submitter", "type": "address"}
        ],
        "stateMutability": "view",
        "type": "function"
    }
]
